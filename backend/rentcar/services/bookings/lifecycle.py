"""
Booking lifecycle
Creating bookings and applying status transitions, keeping the car's
`available` counter in step
"""
import logging
from typing import Any, Dict, List, Optional

from rentcar.core.firebase import (
    Collections,
    create_document,
    get_document,
    list_documents,
    update_document,
)
from rentcar.schemas.booking import BookingCreate
from rentcar.services.constants import ACTIVE_BOOKING_STATUSES, BookingStatus
from rentcar.services.errors import (
    BookingNotFoundError,
    CarNotFoundError,
    CarUnavailableError,
)

logger = logging.getLogger(__name__)


def _attach_car(booking: Dict[str, Any], cars: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    booking['car'] = cars.get(booking.get('car_id'))
    return booking


async def create_booking(db, request: BookingCreate) -> Dict[str, Any]:
    """
    Create a pending booking and take one unit of the car's availability.

    The booking insert and the availability decrement are two separate
    writes. Two concurrent requests can both see `available > 0`; the next
    reconciliation run repairs the counter.

    Raises:
        CarNotFoundError: the car does not exist
        CarUnavailableError: the car has no units available
    """
    car = get_document(db, Collections.CARS, request.car_id)
    if car is None:
        raise CarNotFoundError(request.car_id)
    if car.get('available', 0) <= 0:
        logger.info(f"Booking rejected: car {request.car_id} has no units available")
        raise CarUnavailableError(request.car_id)

    booking_data = {
        'user_id': request.user_id,
        'car_id': request.car_id,
        'start_date': request.start_date.isoformat(),
        'end_date': request.end_date.isoformat(),
        'start_time': request.start_time,
        'end_time': request.end_time,
        'total_amount': float(request.total_amount),
        'need_driver': request.need_driver,
        'driver_contact': request.driver_contact,
        'status': BookingStatus.PENDING,
    }
    booking_id = create_document(db, Collections.BOOKINGS, booking_data)

    try:
        update_document(db, Collections.CARS, request.car_id, {'available': car['available'] - 1})
    except Exception:
        logger.error(
            f"Booking {booking_id} created but availability of car {request.car_id} "
            f"was not decremented; reconciliation will repair it"
        )
        raise

    logger.info(f"Booking created: {booking_id} for car {request.car_id} by user {request.user_id}")
    return await get_booking(db, booking_id)


async def update_booking_status(db, booking_id: str, status: str) -> Dict[str, Any]:
    """
    Persist a booking's new status.

    Cancelling gives one unit back to the car, but only when the booking
    was still holding one (pending or confirmed). Replaying a cancel is a
    no-op for availability.

    Raises:
        BookingNotFoundError: the booking does not exist
    """
    booking = get_document(db, Collections.BOOKINGS, booking_id)
    if booking is None:
        raise BookingNotFoundError(booking_id)

    previous_status = booking.get('status')
    update_document(db, Collections.BOOKINGS, booking_id, {'status': status})
    logger.info(f"Booking {booking_id}: {previous_status} -> {status}")

    if status == BookingStatus.CANCELLED and previous_status in ACTIVE_BOOKING_STATUSES:
        _restore_availability(db, booking.get('car_id'), booking_id)

    return await get_booking(db, booking_id)


def _restore_availability(db, car_id: str, booking_id: str):
    car = get_document(db, Collections.CARS, car_id)
    if car is None:
        logger.warning(f"Booking {booking_id} cancelled but car {car_id} no longer exists")
        return

    quantity = car.get('quantity', 0)
    available = min(car.get('available', 0) + 1, quantity)
    update_document(db, Collections.CARS, car_id, {'available': available})
    logger.info(f"Car {car_id}: available restored to {available}")


async def get_booking(db, booking_id: str) -> Dict[str, Any]:
    booking = get_document(db, Collections.BOOKINGS, booking_id)
    if booking is None:
        raise BookingNotFoundError(booking_id)
    booking['car'] = get_document(db, Collections.CARS, booking.get('car_id'))
    return booking


async def list_bookings(db, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """All bookings (or one user's), newest first, each with its car"""
    filters = [('user_id', '==', user_id)] if user_id else None
    bookings = list_documents(db, Collections.BOOKINGS, filters)
    cars = {car['id']: car for car in list_documents(db, Collections.CARS)}

    bookings.sort(key=lambda b: str(b.get('created_at') or ''), reverse=True)
    return [_attach_car(b, cars) for b in bookings]
