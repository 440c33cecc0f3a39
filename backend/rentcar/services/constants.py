"""
Roles, statuses and other constants shared by the services
"""


class Role:
    USER = "user"
    ADMIN = "admin"


class UserStatus:
    ACTIVE = "active"
    SUSPENDED = "suspended"


class BookingStatus:
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Bookings in these states hold one unit of a car's inventory
ACTIVE_BOOKING_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})
