"""
Domain errors raised by the RentCar services
Routers translate them into HTTP responses
"""


class RentCarError(Exception):
    """Base class for domain errors"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(RentCarError):
    pass


class ValidationError(RentCarError):
    pass


class ConflictError(RentCarError):
    pass


class CarNotFoundError(NotFoundError):
    def __init__(self, car_id: str):
        super().__init__("Car not found")
        self.car_id = car_id


class BookingNotFoundError(NotFoundError):
    def __init__(self, booking_id: str):
        super().__init__("Booking not found")
        self.booking_id = booking_id


class UserNotFoundError(NotFoundError):
    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class CarUnavailableError(ValidationError):
    def __init__(self, car_id: str):
        super().__init__("Car is not available for booking")
        self.car_id = car_id


class InvalidQuantityError(ValidationError):
    def __init__(self, message: str = "Quantity cannot be negative."):
        super().__init__(message)


class QuantityBelowActiveBookingsError(ValidationError):
    def __init__(self, car_id: str, active_count: int):
        super().__init__(
            f"This car has {active_count} active bookings. "
            f"Cannot reduce quantity below {active_count}."
        )
        self.car_id = car_id
        self.active_count = active_count


class DuplicateUserError(ValidationError):
    def __init__(self):
        super().__init__("User already exists")


class AuthenticationError(ValidationError):
    pass


class CarInUseError(ConflictError):
    def __init__(self, car_id: str, active_count: int):
        super().__init__(
            f"Car has {active_count} active bookings and cannot be deleted"
        )
        self.car_id = car_id
        self.active_count = active_count
