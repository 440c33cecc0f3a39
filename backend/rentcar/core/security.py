"""
Security utilities for RentCar
Firebase ID token verification, admin guard, cron secret check, log redaction
"""
from fastapi import Depends, HTTPException, status, Header
from typing import Optional, Dict, Any
import logging
import re

from rentcar.core.config import settings
from rentcar.core.firebase import get_db, get_document, verify_id_token, Collections
from rentcar.services.constants import Role, UserStatus

logger = logging.getLogger(__name__)


# ==================== Caller Resolution ====================

async def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    db=Depends(get_db)
) -> Dict[str, Any]:
    """
    Verify the Firebase ID token in the Authorization header and load the user.

    Expects header format: "Bearer <firebase_id_token>". Role and status are
    read from the users collection, so changes apply to live tokens.

    Raises:
        HTTPException 401: token missing, invalid or expired, or unknown user
        HTTPException 403: account suspended
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header is required",
            headers={"WWW-Authenticate": "Bearer"}
        )

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format. Use: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"}
        )

    try:
        decoded_token = verify_id_token(parts[1])
    except ValueError as e:
        logger.warning(f"Token verification failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"}
        )

    uid = decoded_token.get('uid')
    if not uid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing user ID"
        )

    try:
        user = get_document(db, Collections.USERS, uid)
    except Exception as e:
        safe_log_error(f"Error resolving user {uid}", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to verify user"
        )

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown user"
        )

    if user.get('status') != UserStatus.ACTIVE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account is not active. Please contact support."
        )

    return {
        'uid': user['id'],
        'email': user.get('email', ''),
        'name': user.get('name', ''),
        'role': user.get('role', Role.USER),
    }


async def get_current_user_optional(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    db=Depends(get_db)
) -> Optional[Dict[str, Any]]:
    """
    Optional caller resolution.
    Returns None if no token provided, raises only if the token is invalid.
    """
    if not authorization:
        return None

    return await get_current_user(authorization, db)


async def require_admin(
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> Dict[str, Any]:
    """Allow only active admins"""
    if current_user.get('role') != Role.ADMIN:
        logger.warning(f"Non-admin user {current_user.get('uid')} attempted an admin action")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user


def verify_user_access(user_id: str, current_user: Dict[str, Any]) -> bool:
    """
    Check if current user can act on resources belonging to user_id.
    Users can access their own resources; admins can access any.

    Raises:
        HTTPException 403: access denied
    """
    if current_user.get('uid') == user_id or current_user.get('role') == Role.ADMIN:
        return True

    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Access denied"
    )


# ==================== Cron Secret Verification ====================

async def verify_cron_secret(
    x_cron_secret: Optional[str] = Header(None, alias="X-Cron-Secret")
) -> None:
    """
    Verify X-Cron-Secret header matches the CRON_SECRET setting.

    Protects job endpoints that external schedulers call.

    Raises:
        HTTPException: If secret is missing or invalid
    """
    if not settings.CRON_SECRET:
        if settings.ENVIRONMENT == "production":
            logger.error("CRON_SECRET not configured in production")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Server configuration error"
            )
        logger.warning("CRON_SECRET not configured - allowing access in development")
        return

    if not x_cron_secret:
        logger.warning("Missing X-Cron-Secret header for cron endpoint")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization header"
        )

    if x_cron_secret != settings.CRON_SECRET:
        logger.warning("Invalid X-Cron-Secret header for cron endpoint")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization"
        )


# ==================== Log Redaction ====================

def redact_sensitive_data(text: str) -> str:
    """
    Redact sensitive information from logs
    Removes: emails, phone numbers
    """
    if not text:
        return text

    text = re.sub(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b', '[EMAIL_REDACTED]', text)
    text = re.sub(r'\+?\d[\d\s()\-]{8,14}\d', '[PHONE_REDACTED]', text)

    return text


def safe_log_error(message: str, error: Exception):
    """Log errors with sensitive data redaction"""
    safe_message = redact_sensitive_data(message)
    safe_error = redact_sensitive_data(str(error))
    logger.error(f"{safe_message}: {safe_error}")
