"""
Debounced quantity adjustment for the admin fleet screen

Every +/- click updates an in-memory projection right away. The write to
Firestore waits until the admin stops clicking on that car for
QUANTITY_DEBOUNCE_SECONDS, so a burst of clicks costs one round trip.
"""
import asyncio
import logging
import time
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Deque, Dict, List, Optional, Set

from rentcar.core.config import settings
from rentcar.core.firebase import utcnow
from rentcar.services.errors import (
    CarNotFoundError,
    InvalidQuantityError,
    QuantityBelowActiveBookingsError,
)
from rentcar.services.inventory.cars import get_car, list_cars, set_car_quantity
from rentcar.services.inventory.reconciliation import reconcile_car_availability

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    """Human readable message for the admin UI"""
    title: str
    description: str
    variant: str = "default"
    car_id: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class FleetSession:
    """
    Per-admin view of the fleet.

    Holds the optimistic car projection, one pending commit task per car,
    the pre-burst snapshot used for rollback, and queued notifications.
    Only the newest NOTIFICATION_QUEUE_LIMIT notifications are kept.
    """

    def __init__(self, db, debounce_seconds: Optional[float] = None, notification_limit: Optional[int] = None):
        self.db = db
        self.debounce_seconds = (
            settings.QUANTITY_DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds
        )
        self.cars: Dict[str, Dict[str, Any]] = {}
        self._timers: Dict[str, asyncio.Task] = {}
        self._snapshots: Dict[str, Dict[str, Any]] = {}
        self._updating: Set[str] = set()
        self._tasks: Set[asyncio.Task] = set()
        self._notifications: Deque[Notification] = deque(
            maxlen=settings.NOTIFICATION_QUEUE_LIMIT if notification_limit is None else notification_limit
        )
        self.last_used = time.monotonic()

    # ==================== Projection ====================

    async def load(self) -> Dict[str, Any]:
        """Reconcile availability, then reload every car into the projection"""
        try:
            summary = await reconcile_car_availability(self.db)
            cars = await list_cars(self.db)
        except Exception as e:
            logger.error(f"Error loading cars: {e}")
            self.notify("Error loading cars", str(e), variant="destructive")
            raise

        fresh = {car['id']: car for car in cars}
        for car_id in self._snapshots:
            # keep optimistic values for cars with a burst still pending
            if car_id in self.cars and car_id in fresh:
                fresh[car_id] = self.cars[car_id]
        self.cars = fresh
        return summary

    async def ensure_car(self, car_id: str) -> Dict[str, Any]:
        """Pull a single car into the projection if it is not there yet"""
        if car_id not in self.cars:
            self.cars[car_id] = await get_car(self.db, car_id)
        return self.cars[car_id]

    def projection(self) -> List[Dict[str, Any]]:
        return [self._project(car_id) for car_id in self.cars]

    def _project(self, car_id: str) -> Dict[str, Any]:
        car = self.cars[car_id]
        return {
            'id': car_id,
            'name': car.get('name'),
            'category': car.get('category'),
            'quantity': car.get('quantity', 0),
            'available': car.get('available', 0),
            'pending': car_id in self._timers,
            'updating': car_id in self._updating,
        }

    # ==================== Adjustment ====================

    def adjust_quantity(self, car_id: str, change: int) -> Dict[str, Any]:
        """
        Apply one +/- click to the projection and (re)start the car's timer.

        Must be called from within a running event loop.

        Raises:
            CarNotFoundError: car is not in the projection
            InvalidQuantityError: the click would make quantity negative
        """
        car = self.cars.get(car_id)
        if car is None:
            raise CarNotFoundError(car_id)

        new_quantity = car.get('quantity', 0) + change
        if new_quantity < 0:
            self.notify("Invalid quantity", "Quantity cannot be negative.", variant="destructive", car_id=car_id)
            raise InvalidQuantityError()

        self._snapshots.setdefault(car_id, dict(car))
        car['quantity'] = new_quantity
        car['available'] = max(0, car.get('available', 0) + change)

        pending = self._timers.pop(car_id, None)
        if pending is not None:
            pending.cancel()

        task = asyncio.get_running_loop().create_task(self._commit_later(car_id))
        self._timers[car_id] = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        logger.debug(f"Car {car_id}: projected quantity={new_quantity}, available={car['available']}")
        return self._project(car_id)

    async def _commit_later(self, car_id: str):
        await asyncio.sleep(self.debounce_seconds)
        # Past the quiescence window: later clicks start a new burst instead of cancelling this write
        if self._timers.get(car_id) is asyncio.current_task():
            del self._timers[car_id]
        await self._commit(car_id)

    async def _commit(self, car_id: str):
        snapshot = self._snapshots.pop(car_id, None)
        car = self.cars.get(car_id)
        if car is None:
            return

        settled = car.get('quantity', 0)
        self._updating.add(car_id)
        try:
            result = await set_car_quantity(self.db, car_id, settled)
        except QuantityBelowActiveBookingsError as e:
            self._restore(car_id, snapshot)
            self.notify("Cannot reduce quantity", e.message, variant="destructive", car_id=car_id)
        except Exception as e:
            logger.error(f"Error updating quantity for car {car_id}: {e}")
            self._restore(car_id, snapshot)
            self.notify("Error updating quantity", str(e), variant="destructive", car_id=car_id)
        else:
            confirmed = {'quantity': result['quantity'], 'available': result['available']}
            if car_id in self._snapshots:
                # a newer burst started while writing; it now rolls back to the confirmed values
                self._snapshots[car_id].update(confirmed)
            else:
                car.update(confirmed)
            self.notify(
                "Quantity updated",
                f"{car.get('name', car_id)}: {result['quantity']} total, {result['available']} available",
                car_id=car_id,
            )
        finally:
            self._updating.discard(car_id)

    def _restore(self, car_id: str, snapshot: Optional[Dict[str, Any]]):
        if snapshot is None:
            return
        if car_id in self._snapshots:
            self._snapshots[car_id] = snapshot
        else:
            self.cars[car_id] = dict(snapshot)

    async def flush(self):
        """Commit every pending burst now instead of waiting for its timer"""
        car_ids = list(self._timers)
        for car_id in car_ids:
            self._timers.pop(car_id).cancel()
        for car_id in car_ids:
            await self._commit(car_id)

    async def wait_idle(self):
        """Wait until no timer or commit is running"""
        while True:
            pending = [t for t in self._tasks if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    @property
    def has_pending(self) -> bool:
        return bool(self._timers) or bool(self._updating)

    @property
    def is_busy(self) -> bool:
        return self.has_pending or any(not t.done() for t in self._tasks)

    # ==================== Notifications ====================

    def notify(self, title: str, description: str, variant: str = "default", car_id: Optional[str] = None):
        self._notifications.append(Notification(title, description, variant, car_id))

    def drain_notifications(self) -> List[Notification]:
        drained = list(self._notifications)
        self._notifications.clear()
        return drained


class SessionRegistry:
    """
    Fleet sessions keyed by admin user id

    Sessions unused for FLEET_SESSION_IDLE_SECONDS are dropped on the next
    lookup, unless they still have a burst waiting or being written.
    """

    def __init__(self, debounce_seconds: Optional[float] = None, idle_seconds: Optional[float] = None):
        self.debounce_seconds = debounce_seconds
        self.idle_seconds = settings.FLEET_SESSION_IDLE_SECONDS if idle_seconds is None else idle_seconds
        self._sessions: Dict[str, FleetSession] = {}

    def get(self, session_key: str, db) -> FleetSession:
        now = time.monotonic()
        self._evict_idle(now, keep=session_key)

        session = self._sessions.get(session_key)
        if session is None:
            session = FleetSession(db, debounce_seconds=self.debounce_seconds)
            self._sessions[session_key] = session
        session.last_used = now
        return session

    def _evict_idle(self, now: float, keep: str):
        for key, session in list(self._sessions.items()):
            if key == keep or session.is_busy:
                continue
            if now - session.last_used >= self.idle_seconds:
                del self._sessions[key]
                logger.info(f"Evicted idle fleet session {key}")

    def __len__(self) -> int:
        return len(self._sessions)

    async def flush_all(self):
        for key, session in self._sessions.items():
            if session.has_pending:
                logger.info(f"Flushing pending quantity updates for session {key}")
            await session.flush()
            await session.wait_idle()


session_registry = SessionRegistry()
