"""
Admin console endpoints
Availability sync, debounced quantity adjustment, notifications, analytics
"""
from fastapi import APIRouter, HTTPException, status, Depends
from typing import Any, Dict, List
from datetime import datetime
import logging

import pytz

from rentcar.api.v1.errors import to_http_exception
from rentcar.core.config import settings
from rentcar.core.firebase import Collections, get_db, list_documents
from rentcar.core.security import require_admin
from rentcar.schemas.analytics import AnalyticsResponse, DashboardStats
from rentcar.schemas.car import FleetCar, QuantityAdjustRequest
from rentcar.schemas.user import AccountStatusResponse, LoginRequest
from rentcar.services import users as user_service
from rentcar.services.analytics import build_analytics, summarize_dashboard
from rentcar.services.errors import RentCarError
from rentcar.services.inventory.quantity import FleetSession, SessionRegistry, session_registry
from rentcar.services.users import public_user

logger = logging.getLogger(__name__)

router = APIRouter()


def get_session_registry() -> SessionRegistry:
    return session_registry


def get_fleet_session(
    admin: dict = Depends(require_admin),
    registry: SessionRegistry = Depends(get_session_registry),
    db=Depends(get_db)
) -> FleetSession:
    """The calling admin's fleet session"""
    return registry.get(admin['uid'], db)


def _fetch_collections(db):
    bookings = list_documents(db, Collections.BOOKINGS)
    cars = list_documents(db, Collections.CARS)
    users = [public_user(u) for u in list_documents(db, Collections.USERS)]
    return bookings, cars, users


# ==================== Accounts ====================

@router.post("/activate")
async def activate_admin(request: LoginRequest, db=Depends(get_db)):
    """
    Re-activate the seeded admin account

    Needs the seeded admin's email and password. The response carries no
    identifiers; sign in through /auth/login afterwards.
    """
    try:
        admin = await user_service.activate_default_admin(db, request.email, request.password)
        return {
            "message": "Admin account activated successfully",
            "user": AccountStatusResponse(**admin)
        }
    except RentCarError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error activating admin: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to activate admin: {str(e)}"
        )


# ==================== Fleet Session ====================

@router.post("/sync-availability")
async def sync_availability(session: FleetSession = Depends(get_fleet_session)):
    """
    Reconcile every car's availability with its active bookings and reload
    the admin's fleet view
    """
    try:
        summary = await session.load()
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to sync availability: {str(e)}"
        )

    return {
        "reconciliation": summary,
        "cars": [FleetCar(**c) for c in session.projection()]
    }


@router.get("/fleet", response_model=List[FleetCar])
async def get_fleet(session: FleetSession = Depends(get_fleet_session)):
    """Current fleet view, including optimistic values of unsaved adjustments"""
    if not session.cars:
        try:
            await session.load()
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to load fleet: {str(e)}"
            )
    return [FleetCar(**c) for c in session.projection()]


@router.post("/fleet/{car_id}/quantity", response_model=FleetCar, status_code=status.HTTP_202_ACCEPTED)
async def adjust_quantity(
    car_id: str,
    request: QuantityAdjustRequest,
    session: FleetSession = Depends(get_fleet_session)
):
    """
    Apply one +/- click to a car's quantity

    Returns the projected car immediately. The change is saved once no
    further clicks arrive for QUANTITY_DEBOUNCE_SECONDS; the outcome shows
    up in /admin/notifications.
    """
    try:
        await session.ensure_car(car_id)
        return FleetCar(**session.adjust_quantity(car_id, request.change))
    except RentCarError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error adjusting quantity for car {car_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to adjust quantity: {str(e)}"
        )


@router.get("/notifications", response_model=List[Dict[str, Any]])
async def get_notifications(session: FleetSession = Depends(get_fleet_session)):
    """Return and clear the admin's queued messages"""
    return [n.to_dict() for n in session.drain_notifications()]


# ==================== Dashboard ====================

@router.get("/stats", response_model=DashboardStats)
async def get_stats(admin: dict = Depends(require_admin), db=Depends(get_db)):
    """Header counters for the admin dashboard"""
    try:
        bookings, cars, users = _fetch_collections(db)
        return DashboardStats(**summarize_dashboard(
            bookings, cars, users, low_stock_threshold=settings.LOW_STOCK_THRESHOLD
        ))
    except Exception as e:
        logger.error(f"Error loading statistics: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to load dashboard statistics: {str(e)}"
        )


@router.get("/analytics", response_model=AnalyticsResponse)
async def get_analytics(admin: dict = Depends(require_admin), db=Depends(get_db)):
    """Revenue, utilization, trends, user growth and category mix"""
    try:
        bookings, cars, users = _fetch_collections(db)
        now = datetime.now(pytz.timezone(settings.TIMEZONE))
        return AnalyticsResponse(**build_analytics(
            bookings, cars, users, now,
            months=settings.ANALYTICS_MONTHS,
            days=settings.ANALYTICS_DAYS,
            top_n=settings.ANALYTICS_TOP_CARS
        ))
    except Exception as e:
        logger.error(f"Error generating analytics: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to generate analytics: {str(e)}"
        )
