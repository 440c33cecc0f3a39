"""Inventory services package"""
from rentcar.services.inventory.reconciliation import (
    count_active_bookings,
    compute_available,
    reconcile_car_availability
)
from rentcar.services.inventory.cars import (
    list_cars,
    get_car,
    create_car,
    update_car,
    delete_car,
    set_car_quantity,
    count_car_active_bookings
)
from rentcar.services.inventory.quantity import (
    FleetSession,
    Notification,
    SessionRegistry,
    session_registry
)

__all__ = [
    'count_active_bookings',
    'compute_available',
    'reconcile_car_availability',
    'list_cars',
    'get_car',
    'create_car',
    'update_car',
    'delete_car',
    'set_car_quantity',
    'count_car_active_bookings',
    'FleetSession',
    'Notification',
    'SessionRegistry',
    'session_registry'
]
