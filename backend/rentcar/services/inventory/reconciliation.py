"""
Car availability reconciliation
Recomputes each car's `available` counter from its active bookings
"""
import logging
from collections import Counter
from typing import Any, Dict, Iterable

from rentcar.core.firebase import Collections, list_documents, update_document
from rentcar.services.constants import ACTIVE_BOOKING_STATUSES

logger = logging.getLogger(__name__)


def booking_car_id(booking: Dict[str, Any]) -> Any:
    """Car reference of a booking, tolerating an embedded car document"""
    car_ref = booking.get('car_id')
    if isinstance(car_ref, dict):
        return car_ref.get('id')
    return car_ref


def count_active_bookings(bookings: Iterable[Dict[str, Any]]) -> Counter:
    """Count pending/confirmed bookings per car id"""
    return Counter(
        booking_car_id(b) for b in bookings
        if b.get('status') in ACTIVE_BOOKING_STATUSES
    )


def compute_available(quantity: int, active_count: int) -> int:
    """Units free to book, never negative"""
    return max(0, int(quantity or 0) - active_count)


async def reconcile_car_availability(db, dry_run: bool = False) -> Dict[str, Any]:
    """
    Bring every car's `available` in line with its active bookings.

    Both collections are read fresh. Cars whose stored value already matches
    are left alone; each discrepant car gets its own update, and a failure on
    one car is logged and counted without stopping the rest.

    Args:
        db: Firestore client
        dry_run: If True, only report what would change

    Returns:
        dict with counts: total, corrected, unchanged, failed
    """
    cars = list_documents(db, Collections.CARS)
    bookings = list_documents(db, Collections.BOOKINGS)
    active_counts = count_active_bookings(bookings)

    corrected = 0
    unchanged = 0
    failed = 0

    for car in cars:
        car_id = car['id']
        actual_available = compute_available(car.get('quantity', 0), active_counts.get(car_id, 0))

        if car.get('available') == actual_available:
            unchanged += 1
            continue

        logger.info(
            f"Car {car_id}: available {car.get('available')} -> {actual_available} "
            f"(quantity={car.get('quantity')}, active={active_counts.get(car_id, 0)})"
        )

        if dry_run:
            corrected += 1
            continue

        try:
            update_document(db, Collections.CARS, car_id, {'available': actual_available})
            corrected += 1
        except Exception as e:
            logger.error(f"Failed to reconcile car {car_id}: {e}")
            failed += 1

    result = {
        'total': len(cars),
        'corrected': corrected,
        'unchanged': unchanged,
        'failed': failed,
        'dry_run': dry_run,
    }

    logger.info(
        f"Reconciliation summary: {corrected} corrected, {unchanged} unchanged, "
        f"{failed} failed, {len(cars)} total"
    )
    return result
