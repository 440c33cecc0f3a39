"""
Test request schema validation and camelCase aliasing
"""
import pytest
from pydantic import ValidationError

from rentcar.schemas.booking import BookingCreate, BookingStatusUpdate
from rentcar.schemas.car import CarCreate, CarUpdate, QuantityAdjustRequest
from rentcar.schemas.common import CamelModel
from rentcar.schemas.user import LoginRequest, UserRegister, UserUpdate

REQUEST_MODELS = [
    BookingCreate, BookingStatusUpdate, CarCreate, CarUpdate,
    QuantityAdjustRequest, LoginRequest, UserRegister, UserUpdate,
]

BOOKING = {
    'userId': 'user-1',
    'carId': 'camry',
    'startDate': '2024-07-01',
    'endDate': '2024-07-02',
    'startTime': '10:00',
    'endTime': '09:00',
    'totalAmount': 900,
}


@pytest.mark.parametrize('model', REQUEST_MODELS, ids=lambda m: m.__name__)
def test_models_use_field_validators_only(model):
    decorators = model.__pydantic_decorators__
    assert decorators.validators == {}
    assert decorators.root_validators == {}


def test_camel_config():
    assert CamelModel.model_config['populate_by_name'] is True

    update = CarUpdate(price_per_hour=10)
    assert update.model_dump(by_alias=True, exclude_unset=True) == {'pricePerHour': 10}


def test_car_category_and_features_normalized():
    car = CarCreate(
        name='Camry', model='2024', image='x', pricePerHour=300, category=' Sedan ',
        transmission='Automatic', seats=5, features='AC, , Bluetooth', quantity=2
    )

    assert car.category == 'sedan'
    assert car.features == ['AC', 'Bluetooth']
    assert CarUpdate(category=None).category is None


def test_quantity_change_must_be_non_zero():
    with pytest.raises(ValidationError, match='change must be non-zero'):
        QuantityAdjustRequest(change=0)


def test_booking_end_date_before_start_rejected():
    with pytest.raises(ValidationError, match='End date must not be before start date'):
        BookingCreate(**BOOKING | {'endDate': '2024-06-30'})


def test_booking_same_day_end_time_checked():
    assert BookingCreate(**BOOKING).end_time == '09:00'

    with pytest.raises(ValidationError, match='End time must be after start time'):
        BookingCreate(**BOOKING | {'endDate': '2024-07-01'})


def test_emails_are_normalized():
    assert LoginRequest(email=' Admin@RentCar.com ', password='x').email == 'admin@rentcar.com'
