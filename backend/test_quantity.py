"""
Test quantity floor checks and the debounced admin adjustment session
"""
import asyncio

import pytest

from rentcar.core.firebase import Collections, get_document
from rentcar.services.errors import (
    CarInUseError,
    CarNotFoundError,
    InvalidQuantityError,
    QuantityBelowActiveBookingsError,
)
from rentcar.services.inventory import cars as car_service
from rentcar.services.inventory.quantity import FleetSession, SessionRegistry
from rentcar.schemas.car import CarUpdate

DEBOUNCE = 0.05


@pytest.fixture
def fleet(db, make_car, make_booking):
    # quantity 5, available 3, two active bookings
    make_car('camry', quantity=5, available=3)
    make_booking('camry', status='pending')
    make_booking('camry', status='confirmed')
    make_booking('camry', status='cancelled')
    return db


@pytest.fixture
def write_log(monkeypatch):
    """Record every write set_car_quantity makes"""
    writes = []
    real_update = car_service.update_document

    def recording_update(db, collection, doc_id, data):
        writes.append((doc_id, dict(data)))
        return real_update(db, collection, doc_id, data)

    monkeypatch.setattr(car_service, 'update_document', recording_update)
    return writes


# ==================== set_car_quantity ====================

async def test_quantity_below_active_bookings_rejected(fleet):
    with pytest.raises(QuantityBelowActiveBookingsError) as exc:
        await car_service.set_car_quantity(fleet, 'camry', 1)

    assert exc.value.active_count == 2
    assert "Cannot reduce quantity below 2" in exc.value.message
    car = get_document(fleet, Collections.CARS, 'camry')
    assert (car['quantity'], car['available']) == (5, 3)


async def test_quantity_recomputes_available(fleet):
    result = await car_service.set_car_quantity(fleet, 'camry', 4)

    assert result == {'id': 'camry', 'quantity': 4, 'available': 2}
    car = get_document(fleet, Collections.CARS, 'camry')
    assert (car['quantity'], car['available']) == (4, 2)


async def test_quantity_negative_and_missing_car(fleet):
    with pytest.raises(InvalidQuantityError):
        await car_service.set_car_quantity(fleet, 'camry', -1)
    with pytest.raises(CarNotFoundError):
        await car_service.set_car_quantity(fleet, 'missing', 3)


async def test_update_car_routes_quantity_through_floor_check(fleet):
    with pytest.raises(QuantityBelowActiveBookingsError):
        await car_service.update_car(fleet, 'camry', CarUpdate(quantity=1, name='Renamed'))

    car = get_document(fleet, Collections.CARS, 'camry')
    assert car['name'] == 'Camry'

    updated = await car_service.update_car(fleet, 'camry', CarUpdate(quantity=6, category='SUV'))
    assert (updated['quantity'], updated['available'], updated['category']) == (6, 4, 'suv')


async def test_delete_car_with_active_bookings_refused(fleet, make_car, make_booking):
    with pytest.raises(CarInUseError):
        await car_service.delete_car(fleet, 'camry')

    make_car('swift', quantity=1)
    make_booking('swift', status='completed')
    await car_service.delete_car(fleet, 'swift')
    assert get_document(fleet, Collections.CARS, 'swift') is None


# ==================== FleetSession ====================

async def test_burst_of_clicks_makes_one_write(fleet, write_log):
    session = FleetSession(fleet, debounce_seconds=DEBOUNCE)
    await session.load()

    for _ in range(3):
        projected = session.adjust_quantity('camry', +1)
    assert projected['quantity'] == 8
    assert projected['available'] == 6
    assert projected['pending'] is True
    assert write_log == []

    await session.wait_idle()

    assert write_log == [('camry', {'quantity': 8, 'available': 6})]
    car = get_document(fleet, Collections.CARS, 'camry')
    assert (car['quantity'], car['available']) == (8, 6)
    assert session.projection()[0]['pending'] is False
    titles = [n.title for n in session.drain_notifications()]
    assert titles == ["Quantity updated"]


async def test_clicks_cancelling_out_still_commit_net_delta(fleet, write_log):
    session = FleetSession(fleet, debounce_seconds=DEBOUNCE)
    await session.load()

    session.adjust_quantity('camry', +1)
    session.adjust_quantity('camry', -1)
    await session.wait_idle()

    assert write_log == [('camry', {'quantity': 5, 'available': 3})]


async def test_rejected_burst_rolls_back_projection(fleet, write_log):
    session = FleetSession(fleet, debounce_seconds=DEBOUNCE)
    await session.load()

    for _ in range(4):
        session.adjust_quantity('camry', -1)
    assert session.cars['camry']['quantity'] == 1

    await session.wait_idle()

    assert write_log == []
    assert session.cars['camry']['quantity'] == 5
    assert session.cars['camry']['available'] == 3
    notifications = session.drain_notifications()
    assert notifications[0].title == "Cannot reduce quantity"
    assert notifications[0].variant == "destructive"
    assert "2 active bookings" in notifications[0].description


async def test_write_failure_rolls_back_and_notifies(fleet, monkeypatch):
    session = FleetSession(fleet, debounce_seconds=DEBOUNCE)
    await session.load()

    def failing_update(*args, **kwargs):
        raise RuntimeError("network down")

    monkeypatch.setattr(car_service, 'update_document', failing_update)

    session.adjust_quantity('camry', +2)
    await session.wait_idle()

    assert session.cars['camry']['quantity'] == 5
    notification = session.drain_notifications()[0]
    assert notification.title == "Error updating quantity"
    assert notification.description == "network down"


async def test_negative_click_rejected_without_scheduling(db, make_car, write_log):
    make_car('swift', quantity=0, available=0)
    session = FleetSession(db, debounce_seconds=DEBOUNCE)
    await session.load()

    with pytest.raises(InvalidQuantityError):
        session.adjust_quantity('swift', -1)

    assert session.has_pending is False
    assert session.drain_notifications()[0].title == "Invalid quantity"


async def test_cars_debounce_independently(fleet, make_car, write_log):
    make_car('swift', quantity=2, available=2)
    session = FleetSession(fleet, debounce_seconds=DEBOUNCE)
    await session.load()

    session.adjust_quantity('camry', +1)
    session.adjust_quantity('swift', +1)
    session.adjust_quantity('swift', +1)
    await session.wait_idle()

    assert sorted(write_log) == [
        ('camry', {'quantity': 6, 'available': 4}),
        ('swift', {'quantity': 4, 'available': 4}),
    ]


async def test_flush_commits_without_waiting(fleet, write_log):
    session = FleetSession(fleet, debounce_seconds=60)
    await session.load()

    session.adjust_quantity('camry', +1)
    await session.flush()

    assert write_log == [('camry', {'quantity': 6, 'available': 4})]
    assert session.has_pending is False


async def test_click_during_commit_starts_new_burst(fleet, write_log, monkeypatch):
    session = FleetSession(fleet, debounce_seconds=DEBOUNCE)
    await session.load()

    real_set = car_service.set_car_quantity
    started = asyncio.Event()
    release = asyncio.Event()

    async def slow_set(db, car_id, quantity):
        started.set()
        await release.wait()
        return await real_set(db, car_id, quantity)

    monkeypatch.setattr('rentcar.services.inventory.quantity.set_car_quantity', slow_set)

    session.adjust_quantity('camry', +1)
    await started.wait()
    session.adjust_quantity('camry', +1)
    release.set()
    await session.wait_idle()

    assert [w[1]['quantity'] for w in write_log] == [6, 7]
    assert session.cars['camry']['quantity'] == 7


async def test_load_keeps_unsaved_projection(fleet):
    session = FleetSession(fleet, debounce_seconds=60)
    await session.load()
    session.adjust_quantity('camry', +1)

    await session.load()

    assert session.cars['camry']['quantity'] == 6
    await session.flush()


async def test_load_failure_notifies(db, monkeypatch):
    session = FleetSession(db, debounce_seconds=DEBOUNCE)

    async def broken(*args, **kwargs):
        raise RuntimeError("firestore unavailable")

    monkeypatch.setattr('rentcar.services.inventory.quantity.reconcile_car_availability', broken)

    with pytest.raises(RuntimeError):
        await session.load()
    assert session.drain_notifications()[0].title == "Error loading cars"


# ==================== Bounded state ====================

def test_notification_queue_keeps_newest(db):
    session = FleetSession(db, notification_limit=3)

    for i in range(5):
        session.notify(f"Message {i}", "")

    assert [n.title for n in session.drain_notifications()] == ['Message 2', 'Message 3', 'Message 4']
    assert session.drain_notifications() == []


def test_idle_sessions_are_evicted(db):
    registry = SessionRegistry(debounce_seconds=DEBOUNCE, idle_seconds=0)

    first = registry.get('admin-a', db)
    registry.get('admin-b', db)

    assert len(registry) == 1
    assert registry.get('admin-a', db) is not first


def test_recent_sessions_are_kept(db):
    registry = SessionRegistry(debounce_seconds=DEBOUNCE, idle_seconds=3600)

    first = registry.get('admin-a', db)
    registry.get('admin-b', db)

    assert len(registry) == 2
    assert registry.get('admin-a', db) is first


async def test_busy_session_is_not_evicted(fleet, write_log):
    registry = SessionRegistry(debounce_seconds=60, idle_seconds=0)
    busy = registry.get('admin-a', fleet)
    await busy.load()
    busy.adjust_quantity('camry', +1)

    registry.get('admin-b', fleet)
    assert registry.get('admin-a', fleet) is busy

    await registry.flush_all()
    assert write_log == [('camry', {'quantity': 6, 'available': 4})]
