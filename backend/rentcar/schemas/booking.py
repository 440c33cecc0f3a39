"""
Booking request/response schemas
"""
from pydantic import Field, ValidationInfo, field_validator
from typing import Optional
from datetime import date, datetime

from rentcar.schemas.common import CamelModel
from rentcar.schemas.car import CarResponse

TIME_PATTERN = r'^([01]\d|2[0-3]):[0-5]\d$'
STATUS_PATTERN = r'^(pending|confirmed|cancelled|completed)$'


class BookingCreate(CamelModel):
    """Create booking request"""
    user_id: str = Field(..., min_length=1)
    car_id: str = Field(..., min_length=1)
    start_date: date
    end_date: date
    start_time: str = Field(..., pattern=TIME_PATTERN)
    end_time: str = Field(..., pattern=TIME_PATTERN)
    total_amount: float = Field(..., ge=0)
    need_driver: bool = False
    driver_contact: Optional[str] = None

    @field_validator('end_date')
    @classmethod
    def validate_end_date(cls, v, info: ValidationInfo):
        start = info.data.get('start_date')
        if start and v < start:
            raise ValueError('End date must not be before start date')
        return v

    @field_validator('end_time')
    @classmethod
    def validate_end_time(cls, v, info: ValidationInfo):
        start_date = info.data.get('start_date')
        end_date = info.data.get('end_date')
        start_time = info.data.get('start_time')
        if start_date and end_date and start_time and start_date == end_date and v <= start_time:
            raise ValueError('End time must be after start time')
        return v


class BookingStatusUpdate(CamelModel):
    """Status transition request"""
    status: str = Field(..., pattern=STATUS_PATTERN)


class BookingResponse(CamelModel):
    """Booking response with the car embedded when it still exists"""
    id: str
    user_id: str
    car_id: str
    start_date: str
    end_date: str
    start_time: str
    end_time: str
    total_amount: float
    need_driver: bool = False
    driver_contact: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    car: Optional[CarResponse] = None
