"""
Car catalogue endpoints for RentCar
Public browsing plus admin CRUD
"""
from fastapi import APIRouter, HTTPException, status, Depends, Query
from typing import Any, Dict, List, Optional
import logging

from rentcar.api.v1.errors import to_http_exception
from rentcar.core.firebase import get_db
from rentcar.core.security import require_admin
from rentcar.schemas.car import CarCreate, CarUpdate, CarResponse
from rentcar.services.errors import RentCarError
from rentcar.services.inventory import cars as car_service

logger = logging.getLogger(__name__)

router = APIRouter()


# ==================== Helper Functions ====================

def car_doc_to_response(doc: Dict[str, Any]) -> CarResponse:
    """Convert a Firestore car document to CarResponse"""
    return CarResponse(
        id=doc['id'],
        name=doc.get('name') or 'Unknown Car',
        model=doc.get('model') or '',
        image=doc.get('image') or '',
        price_per_hour=doc.get('price_per_hour') or 0.0,
        description=doc.get('description') or '',
        category=doc.get('category') or doc.get('type') or 'other',
        transmission=doc.get('transmission') or '',
        seats=doc.get('seats'),
        features=doc.get('features') or [],
        quantity=doc.get('quantity', 0),
        available=doc.get('available', 0),
        created_at=doc.get('created_at'),
        updated_at=doc.get('updated_at')
    )


# ==================== Endpoints ====================

@router.get("", response_model=List[CarResponse])
async def list_cars(
    category: Optional[str] = Query(None, description="Filter by category"),
    search: Optional[str] = Query(None, description="Case-insensitive name search"),
    db=Depends(get_db)
):
    """
    List the fleet

    Query parameters:
    - category: only cars in this category ("all" or empty for every car)
    - search: substring match on the car name
    """
    try:
        cars = await car_service.list_cars(db)

        if category and category.lower() != "all":
            cars = [c for c in cars if (c.get('category') or '').lower() == category.lower()]
        if search:
            cars = [c for c in cars if search.lower() in (c.get('name') or '').lower()]

        return [car_doc_to_response(c) for c in cars]

    except Exception as e:
        logger.error(f"Error listing cars: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list cars: {str(e)}"
        )


@router.get("/{car_id}", response_model=CarResponse)
async def get_car(car_id: str, db=Depends(get_db)):
    """Get car details by ID"""
    try:
        return car_doc_to_response(await car_service.get_car(db, car_id))
    except RentCarError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error retrieving car {car_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve car: {str(e)}"
        )


@router.post("", response_model=CarResponse, status_code=status.HTTP_201_CREATED)
async def create_car(
    car: CarCreate,
    admin: dict = Depends(require_admin),
    db=Depends(get_db)
):
    """Add a car to the fleet (Admin only)"""
    try:
        created = await car_service.create_car(db, car)
        logger.info(f"Car {created['id']} created by admin {admin['uid']}")
        return car_doc_to_response(created)
    except Exception as e:
        logger.error(f"Error creating car: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create car: {str(e)}"
        )


@router.put("/{car_id}", response_model=CarResponse)
async def update_car(
    car_id: str,
    car_update: CarUpdate,
    admin: dict = Depends(require_admin),
    db=Depends(get_db)
):
    """
    Update car details (Admin only)

    Only provided fields are changed. A new quantity is checked against the
    car's active bookings and `available` is recomputed from it.
    """
    try:
        updated = await car_service.update_car(db, car_id, car_update)
        logger.info(f"Car {car_id} updated by admin {admin['uid']}")
        return car_doc_to_response(updated)
    except RentCarError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error updating car {car_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update car: {str(e)}"
        )


@router.delete("/{car_id}", status_code=status.HTTP_200_OK)
async def delete_car(
    car_id: str,
    admin: dict = Depends(require_admin),
    db=Depends(get_db)
):
    """
    Delete a car (Admin only)

    Refused with 409 while the car still has pending or confirmed bookings.
    """
    try:
        await car_service.delete_car(db, car_id)
        logger.warning(f"Car {car_id} deleted by admin {admin['uid']}")
        return {"message": "Car deleted successfully", "deleted": True}
    except RentCarError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error deleting car {car_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete car: {str(e)}"
        )
