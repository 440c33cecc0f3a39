"""
Test booking creation and status transitions against car availability
"""
from datetime import date

import pytest

from rentcar.core.firebase import Collections, get_document, list_documents
from rentcar.schemas.booking import BookingCreate
from rentcar.services.bookings import lifecycle
from rentcar.services.errors import BookingNotFoundError, CarNotFoundError, CarUnavailableError


def booking_request(car_id, **overrides):
    data = {
        'userId': 'user-1',
        'carId': car_id,
        'startDate': '2024-06-01',
        'endDate': '2024-06-03',
        'startTime': '09:00',
        'endTime': '18:00',
        'totalAmount': 1200,
    }
    data.update(overrides)
    return BookingCreate(**data)


# ==================== Create ====================

async def test_create_booking_decrements_available_once(db, make_car):
    make_car('camry', quantity=3, available=2)

    booking = await lifecycle.create_booking(db, booking_request('camry'))

    assert booking['status'] == 'pending'
    assert booking['start_date'] == '2024-06-01'
    assert booking['total_amount'] == 1200.0
    assert len(list_documents(db, Collections.BOOKINGS)) == 1
    assert get_document(db, Collections.CARS, 'camry')['available'] == 1


async def test_create_booking_rejected_when_nothing_available(db, make_car):
    make_car('camry', quantity=3, available=0)

    with pytest.raises(CarUnavailableError) as exc:
        await lifecycle.create_booking(db, booking_request('camry'))

    assert exc.value.message == "Car is not available for booking"
    assert list_documents(db, Collections.BOOKINGS) == []
    assert get_document(db, Collections.CARS, 'camry')['available'] == 0


async def test_create_booking_unknown_car(db):
    with pytest.raises(CarNotFoundError):
        await lifecycle.create_booking(db, booking_request('missing'))

    assert list_documents(db, Collections.BOOKINGS) == []


def test_booking_request_rejects_end_before_start():
    with pytest.raises(ValueError):
        booking_request('camry', startDate='2024-06-05', endDate='2024-06-01')

    with pytest.raises(ValueError):
        booking_request('camry', endDate='2024-06-01', startTime='15:00', endTime='10:00')


def test_booking_request_accepts_snake_case():
    request = BookingCreate(
        user_id='u', car_id='c', start_date=date(2024, 1, 1), end_date=date(2024, 1, 1),
        start_time='08:00', end_time='09:30', total_amount=50
    )
    assert request.need_driver is False


# ==================== Status ====================

async def test_cancel_restores_one_unit_and_replay_is_noop(db, make_car):
    make_car('camry', quantity=3, available=3)
    booking = await lifecycle.create_booking(db, booking_request('camry'))
    assert get_document(db, Collections.CARS, 'camry')['available'] == 2

    await lifecycle.update_booking_status(db, booking['id'], 'cancelled')
    assert get_document(db, Collections.CARS, 'camry')['available'] == 3

    await lifecycle.update_booking_status(db, booking['id'], 'cancelled')
    assert get_document(db, Collections.CARS, 'camry')['available'] == 3


async def test_cancel_caps_available_at_quantity(db, make_car, make_booking):
    make_car('camry', quantity=2, available=2)
    booking_id = make_booking('camry', status='confirmed')

    await lifecycle.update_booking_status(db, booking_id, 'cancelled')

    assert get_document(db, Collections.CARS, 'camry')['available'] == 2


async def test_confirm_and_complete_leave_availability_alone(db, make_car, make_booking):
    make_car('camry', quantity=3, available=2)
    booking_id = make_booking('camry', status='pending')

    await lifecycle.update_booking_status(db, booking_id, 'confirmed')
    await lifecycle.update_booking_status(db, booking_id, 'completed')
    await lifecycle.update_booking_status(db, booking_id, 'cancelled')

    assert get_document(db, Collections.BOOKINGS, booking_id)['status'] == 'cancelled'
    assert get_document(db, Collections.CARS, 'camry')['available'] == 2


async def test_cancel_with_deleted_car_still_updates_status(db, make_booking):
    booking_id = make_booking('gone', status='pending')

    updated = await lifecycle.update_booking_status(db, booking_id, 'cancelled')

    assert updated['status'] == 'cancelled'


async def test_update_missing_booking(db):
    with pytest.raises(BookingNotFoundError):
        await lifecycle.update_booking_status(db, 'nope', 'confirmed')


# ==================== Reads ====================

async def test_list_bookings_filters_by_user_and_embeds_car(db, make_car, make_booking):
    make_car('camry')
    make_booking('camry', user_id='alice')
    make_booking('camry', user_id='bob')
    make_booking('deleted-car', user_id='alice')

    bookings = await lifecycle.list_bookings(db, user_id='alice')

    assert len(bookings) == 2
    assert {b['user_id'] for b in bookings} == {'alice'}
    cars = {b['car_id']: b['car'] for b in bookings}
    assert cars['camry']['name'] == 'Camry'
    assert cars['deleted-car'] is None
