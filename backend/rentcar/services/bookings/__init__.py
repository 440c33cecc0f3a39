"""Booking services package"""
from rentcar.services.bookings.lifecycle import (
    create_booking,
    update_booking_status,
    get_booking,
    list_bookings
)

__all__ = [
    'create_booking',
    'update_booking_status',
    'get_booking',
    'list_bookings'
]
