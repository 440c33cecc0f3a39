"""
Booking endpoints for RentCar
Creating bookings, reading them back, and admin status transitions
"""
from fastapi import APIRouter, HTTPException, status, Depends
from typing import Any, Dict, List, Optional
import logging

from rentcar.api.v1.cars import car_doc_to_response
from rentcar.api.v1.errors import to_http_exception
from rentcar.core.firebase import get_db
from rentcar.core.security import (
    get_current_user,
    get_current_user_optional,
    require_admin,
    verify_user_access,
)
from rentcar.schemas.booking import BookingCreate, BookingResponse, BookingStatusUpdate
from rentcar.services.bookings import lifecycle
from rentcar.services.constants import Role
from rentcar.services.errors import RentCarError

logger = logging.getLogger(__name__)

router = APIRouter()


def booking_doc_to_response(doc: Dict[str, Any]) -> BookingResponse:
    """Convert a Firestore booking document to BookingResponse"""
    car = doc.get('car')
    return BookingResponse(
        id=doc['id'],
        user_id=doc.get('user_id', ''),
        car_id=doc.get('car_id', ''),
        start_date=str(doc.get('start_date', '')),
        end_date=str(doc.get('end_date', '')),
        start_time=doc.get('start_time', ''),
        end_time=doc.get('end_time', ''),
        total_amount=doc.get('total_amount') or 0.0,
        need_driver=bool(doc.get('need_driver')),
        driver_contact=doc.get('driver_contact'),
        status=doc.get('status', 'pending'),
        created_at=doc.get('created_at'),
        updated_at=doc.get('updated_at'),
        car=car_doc_to_response(car) if car else None
    )


@router.get("", response_model=List[BookingResponse])
async def list_bookings(
    current_user: dict = Depends(get_current_user),
    db=Depends(get_db)
):
    """
    List bookings

    Admins see every booking; other users see their own.
    """
    try:
        user_filter: Optional[str] = None
        if current_user.get('role') != Role.ADMIN:
            user_filter = current_user['uid']

        bookings = await lifecycle.list_bookings(db, user_id=user_filter)
        return [booking_doc_to_response(b) for b in bookings]

    except Exception as e:
        logger.error(f"Error fetching bookings: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error fetching bookings"
        )


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking: BookingCreate,
    current_user: Optional[dict] = Depends(get_current_user_optional),
    db=Depends(get_db)
):
    """
    Create a booking

    The car must exist (404 "Car not found") and have a unit available
    (400 "Car is not available for booking"). The booking starts as pending.
    """
    if current_user:
        verify_user_access(booking.user_id, current_user)

    try:
        created = await lifecycle.create_booking(db, booking)
        return booking_doc_to_response(created)
    except RentCarError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error creating booking: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error creating booking"
        )


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    current_user: dict = Depends(get_current_user),
    db=Depends(get_db)
):
    """Get one booking; users may only read their own"""
    try:
        booking = await lifecycle.get_booking(db, booking_id)
    except RentCarError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error fetching booking {booking_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error fetching booking"
        )

    if current_user.get('role') != Role.ADMIN and booking.get('user_id') != current_user['uid']:
        # 404 instead of 403 to avoid leaking booking ids
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Booking not found"
        )

    return booking_doc_to_response(booking)


@router.put("/{booking_id}", response_model=BookingResponse)
async def update_booking_status(
    booking_id: str,
    update: BookingStatusUpdate,
    admin: dict = Depends(require_admin),
    db=Depends(get_db)
):
    """
    Change a booking's status (Admin only)

    Cancelling a pending or confirmed booking returns one unit to the car.
    """
    try:
        updated = await lifecycle.update_booking_status(db, booking_id, update.status)
        logger.info(f"Booking {booking_id} set to {update.status} by admin {admin['uid']}")
        return booking_doc_to_response(updated)
    except RentCarError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error updating booking {booking_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error updating booking"
        )
