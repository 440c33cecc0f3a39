"""
User request/response schemas
"""
from pydantic import Field, field_validator
from typing import Optional
from datetime import datetime

from rentcar.schemas.common import CamelModel

EMAIL_PATTERN = r'^[^@\s]+@[^@\s]+\.[^@\s]+$'


class UserRegister(CamelModel):
    """Registration request"""
    name: str = Field(..., min_length=1)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6)
    phone: Optional[str] = None

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()


class LoginRequest(CamelModel):
    """Email/password pair; also used to re-activate the seeded admin"""
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()


class UserUpdate(CamelModel):
    """Admin update request (all fields optional)"""
    name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    role: Optional[str] = Field(None, pattern=r'^(user|admin)$')
    status: Optional[str] = Field(None, pattern=r'^(active|suspended)$')


class UserResponse(CamelModel):
    """User without credentials"""
    id: str
    name: str
    email: str
    role: str = "user"
    status: str = "active"
    phone: Optional[str] = None
    join_date: Optional[datetime] = None


class LoginResponse(CamelModel):
    """
    Authenticated user plus a Firebase custom token

    Exchange the token for an ID token and send it as
    "Authorization: Bearer <id_token>".
    """
    user: UserResponse
    token: str
    token_type: str = "custom"


class AccountStatusResponse(CamelModel):
    """Account state without identifiers"""
    name: str
    email: str
    status: str
