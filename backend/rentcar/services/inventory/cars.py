"""
Car catalogue operations
CRUD over the cars collection plus the quantity floor check
"""
import logging
from typing import Any, Dict, List

from rentcar.core.firebase import (
    Collections,
    create_document,
    delete_document,
    get_document,
    list_documents,
    update_document,
)
from rentcar.schemas.car import CarCreate, CarUpdate
from rentcar.services.constants import ACTIVE_BOOKING_STATUSES
from rentcar.services.errors import (
    CarInUseError,
    CarNotFoundError,
    InvalidQuantityError,
    QuantityBelowActiveBookingsError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def count_car_active_bookings(db, car_id: str) -> int:
    """Number of pending/confirmed bookings referencing a car"""
    bookings = list_documents(db, Collections.BOOKINGS, [
        ('car_id', '==', car_id),
        ('status', 'in', sorted(ACTIVE_BOOKING_STATUSES)),
    ])
    return len(bookings)


async def list_cars(db) -> List[Dict[str, Any]]:
    return list_documents(db, Collections.CARS)


async def get_car(db, car_id: str) -> Dict[str, Any]:
    car = get_document(db, Collections.CARS, car_id)
    if car is None:
        raise CarNotFoundError(car_id)
    return car


async def create_car(db, car: CarCreate) -> Dict[str, Any]:
    """Add a car to the fleet with every unit available"""
    car_data = car.model_dump()
    car_data['available'] = car.quantity

    car_id = create_document(db, Collections.CARS, car_data)
    logger.info(f"Car created: {car_id} ({car.name}, quantity={car.quantity})")
    return await get_car(db, car_id)


async def set_car_quantity(db, car_id: str, quantity: int) -> Dict[str, Any]:
    """
    Set a car's total quantity and recompute its availability.

    The new quantity may not drop below the number of active bookings for
    the car. On success `available` becomes `quantity - active bookings`.

    Raises:
        InvalidQuantityError: quantity is negative
        CarNotFoundError: no such car
        QuantityBelowActiveBookingsError: quantity under the active booking count
    """
    if quantity < 0:
        raise InvalidQuantityError()

    await get_car(db, car_id)
    active_count = count_car_active_bookings(db, car_id)

    if quantity < active_count:
        logger.warning(
            f"Rejected quantity {quantity} for car {car_id}: {active_count} active bookings"
        )
        raise QuantityBelowActiveBookingsError(car_id, active_count)

    available = quantity - active_count
    update_document(db, Collections.CARS, car_id, {
        'quantity': quantity,
        'available': available,
    })
    logger.info(f"Car {car_id}: quantity={quantity}, available={available}")

    return {'id': car_id, 'quantity': quantity, 'available': available}


async def update_car(db, car_id: str, car_update: CarUpdate) -> Dict[str, Any]:
    """Merge the provided fields; a quantity change goes through the floor check"""
    existing = await get_car(db, car_id)

    update_data = car_update.model_dump(exclude_unset=True, exclude_none=True)
    quantity = update_data.pop('quantity', None)

    if not update_data and quantity is None:
        raise ValidationError("No fields to update")

    if quantity is not None and quantity != existing.get('quantity'):
        await set_car_quantity(db, car_id, quantity)

    if update_data:
        update_document(db, Collections.CARS, car_id, update_data)

    logger.info(f"Car updated: {car_id} fields={sorted(update_data)} quantity={quantity}")
    return await get_car(db, car_id)


async def delete_car(db, car_id: str) -> None:
    """
    Delete a car.

    Cars with active bookings are kept (CarInUseError). Finished or
    cancelled bookings keep their car_id after the car is gone.
    """
    await get_car(db, car_id)

    active_count = count_car_active_bookings(db, car_id)
    if active_count:
        raise CarInUseError(car_id, active_count)

    delete_document(db, Collections.CARS, car_id)
    logger.warning(f"Car deleted: {car_id}")
