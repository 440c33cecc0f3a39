"""
Authentication and user management endpoints
"""
from fastapi import APIRouter, HTTPException, status, Depends
from typing import List
import logging

from rentcar.api.v1.errors import to_http_exception
from rentcar.core.firebase import create_login_token, get_db
from rentcar.core.security import require_admin, safe_log_error
from rentcar.schemas.user import LoginRequest, LoginResponse, UserRegister, UserResponse, UserUpdate
from rentcar.services import users as user_service
from rentcar.services.errors import RentCarError

logger = logging.getLogger(__name__)

auth_router = APIRouter()
router = APIRouter()


# ==================== Auth ====================

@auth_router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(request: UserRegister, db=Depends(get_db)):
    """Create a user account (role: user)"""
    try:
        return UserResponse(**await user_service.register_user(db, request))
    except RentCarError as e:
        raise to_http_exception(e)
    except Exception as e:
        safe_log_error(f"Error registering {request.email}", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to register user: {str(e)}"
        )


@auth_router.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest, db=Depends(get_db)):
    """
    Check credentials and return the user with a Firebase custom token

    The client exchanges the token for an ID token and sends it as
    "Authorization: Bearer <id_token>" on later requests.
    """
    try:
        user = await user_service.authenticate_user(db, request.email, request.password)
        token = create_login_token(user['id'], {'role': user.get('role')})
        return LoginResponse(user=UserResponse(**user), token=token)
    except RentCarError as e:
        raise to_http_exception(e)
    except Exception as e:
        safe_log_error(f"Error logging in {request.email}", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to log in: {str(e)}"
        )


# ==================== Users (Admin) ====================

@router.get("", response_model=List[UserResponse])
async def list_users(admin: dict = Depends(require_admin), db=Depends(get_db)):
    """List every user without credentials (Admin only)"""
    try:
        return [UserResponse(**u) for u in await user_service.list_users(db)]
    except Exception as e:
        logger.error(f"Error listing users: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list users: {str(e)}"
        )


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    user_update: UserUpdate,
    admin: dict = Depends(require_admin),
    db=Depends(get_db)
):
    """Update a user's name, phone, role or status (Admin only)"""
    try:
        updated = await user_service.update_user(db, user_id, user_update)
        logger.info(f"User {user_id} updated by admin {admin['uid']}")
        return UserResponse(**updated)
    except RentCarError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error updating user {user_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update user: {str(e)}"
        )
