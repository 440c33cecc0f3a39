"""
Translation of domain errors into HTTP responses
"""
from fastapi import HTTPException, status

from rentcar.services.errors import (
    ConflictError,
    NotFoundError,
    RentCarError,
    ValidationError,
)


def to_http_exception(error: RentCarError) -> HTTPException:
    """Map a domain error to 404 / 400 / 409"""
    if isinstance(error, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, ConflictError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, ValidationError):
        code = status.HTTP_400_BAD_REQUEST
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=error.message)
