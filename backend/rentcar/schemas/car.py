"""
Car request/response schemas
"""
from pydantic import Field, field_validator
from typing import Optional, List
from datetime import datetime

from rentcar.schemas.common import CamelModel


class CarBase(CamelModel):
    """Base car schema"""
    name: str = Field(..., min_length=1)
    model: str = Field(..., description="Model name or year")
    image: str = Field(..., description="Image URL")
    price_per_hour: float = Field(..., gt=0)
    description: str = ""
    category: str = Field(..., min_length=1)
    transmission: str
    seats: int = Field(..., ge=1, le=60)
    features: List[str] = Field(default_factory=list)

    @field_validator('category')
    @classmethod
    def normalize_category(cls, v):
        return v.strip().lower()

    @field_validator('features', mode='before')
    @classmethod
    def split_features(cls, v):
        # The admin form posts a comma separated string
        if isinstance(v, str):
            return [f.strip() for f in v.split(',') if f.strip()]
        return v


class CarCreate(CarBase):
    """Create car request; available starts equal to quantity"""
    quantity: int = Field(..., ge=0)


class CarUpdate(CamelModel):
    """Update car request (all fields optional)"""
    name: Optional[str] = Field(None, min_length=1)
    model: Optional[str] = None
    image: Optional[str] = None
    price_per_hour: Optional[float] = Field(None, gt=0)
    description: Optional[str] = None
    category: Optional[str] = None
    transmission: Optional[str] = None
    seats: Optional[int] = Field(None, ge=1, le=60)
    features: Optional[List[str]] = None
    quantity: Optional[int] = Field(None, ge=0)

    @field_validator('category')
    @classmethod
    def normalize_category(cls, v):
        return v.strip().lower() if v is not None else v

    @field_validator('features', mode='before')
    @classmethod
    def split_features(cls, v):
        if isinstance(v, str):
            return [f.strip() for f in v.split(',') if f.strip()]
        return v


class CarResponse(CarBase):
    """Car response with inventory counters"""
    id: str
    model: str = ""
    image: str = ""
    price_per_hour: float = 0.0
    transmission: str = ""
    seats: Optional[int] = None
    quantity: int = 0
    available: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class QuantityAdjustRequest(CamelModel):
    """One +/- click on the admin fleet screen"""
    change: int = Field(..., description="Quantity delta, usually +1 or -1")

    @field_validator('change')
    @classmethod
    def validate_change(cls, v):
        if v == 0:
            raise ValueError('change must be non-zero')
        return v


class FleetCar(CamelModel):
    """Projected car state held in an admin session"""
    id: str
    name: Optional[str] = None
    category: Optional[str] = None
    quantity: int
    available: int
    pending: bool = False
    updating: bool = False
