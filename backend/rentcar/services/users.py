"""
User accounts: registration, login, admin management and the seeded admin
"""
import logging
from typing import Any, Dict, List, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from rentcar.core.config import settings
from rentcar.core.firebase import (
    Collections,
    create_document,
    get_document,
    list_documents,
    update_document,
    utcnow,
)
from rentcar.schemas.user import UserRegister, UserUpdate
from rentcar.services.constants import Role, UserStatus
from rentcar.services.errors import (
    AuthenticationError,
    DuplicateUserError,
    UserNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    """Strip credentials before a user leaves the service layer"""
    return {k: v for k, v in user.items() if k != 'password_hash'}


def find_user_by_email(db, email: str) -> Optional[Dict[str, Any]]:
    matches = list_documents(db, Collections.USERS, [('email', '==', email.strip().lower())])
    return matches[0] if matches else None


async def register_user(db, request: UserRegister, role: str = Role.USER) -> Dict[str, Any]:
    if find_user_by_email(db, request.email):
        raise DuplicateUserError()

    user_data = {
        'name': request.name,
        'email': request.email,
        'password_hash': generate_password_hash(request.password),
        'phone': request.phone,
        'role': role,
        'status': UserStatus.ACTIVE,
        'join_date': utcnow(),
    }
    user_id = create_document(db, Collections.USERS, user_data)
    logger.info(f"✅ User registered: {user_id} (role={role})")

    return public_user(get_document(db, Collections.USERS, user_id))


async def authenticate_user(db, email: str, password: str) -> Dict[str, Any]:
    user = find_user_by_email(db, email)
    if user is None:
        raise AuthenticationError("User not found")
    if not check_password_hash(user.get('password_hash', ''), password):
        raise AuthenticationError("Invalid password")
    if user.get('status') != UserStatus.ACTIVE:
        raise AuthenticationError("Your account is not active. Please contact support.")

    logger.info(f"User logged in: {user['id']}")
    return public_user(user)


async def get_user(db, user_id: str) -> Dict[str, Any]:
    user = get_document(db, Collections.USERS, user_id)
    if user is None:
        raise UserNotFoundError()
    return public_user(user)


async def list_users(db) -> List[Dict[str, Any]]:
    return [public_user(u) for u in list_documents(db, Collections.USERS)]


async def update_user(db, user_id: str, user_update: UserUpdate) -> Dict[str, Any]:
    """Merge name/phone/role/status changes"""
    if get_document(db, Collections.USERS, user_id) is None:
        raise UserNotFoundError()

    update_data = user_update.model_dump(exclude_unset=True, exclude_none=True)
    if not update_data:
        raise ValidationError("No fields to update")

    update_document(db, Collections.USERS, user_id, update_data)
    logger.info(f"User updated: {user_id} fields={sorted(update_data)}")
    return await get_user(db, user_id)


async def ensure_default_admin(db) -> Optional[str]:
    """Seed the default admin account when no admin exists yet"""
    if list_documents(db, Collections.USERS, [('role', '==', Role.ADMIN)]):
        return None

    user_id = create_document(db, Collections.USERS, {
        'name': settings.DEFAULT_ADMIN_NAME,
        'email': settings.DEFAULT_ADMIN_EMAIL.lower(),
        'password_hash': generate_password_hash(settings.DEFAULT_ADMIN_PASSWORD),
        'role': Role.ADMIN,
        'status': UserStatus.ACTIVE,
        'join_date': utcnow(),
    })
    logger.info(f"Default admin user created: {settings.DEFAULT_ADMIN_EMAIL}")
    return user_id


async def activate_default_admin(db, email: str, password: str) -> Dict[str, Any]:
    """
    Re-activate the seeded admin account.

    Requires the seeded admin's own email and password. The account status
    is not checked, so a suspended admin can recover.

    Raises:
        UserNotFoundError: no seeded admin
        AuthenticationError: credentials do not match the seeded admin
    """
    admin = find_user_by_email(db, settings.DEFAULT_ADMIN_EMAIL)
    if admin is None:
        raise UserNotFoundError("Admin account not found")

    if email.strip().lower() != admin.get('email') or \
            not check_password_hash(admin.get('password_hash', ''), password):
        logger.warning("Rejected default admin activation: credentials do not match")
        raise AuthenticationError("Invalid credentials")

    update_document(db, Collections.USERS, admin['id'], {'status': UserStatus.ACTIVE})
    logger.info(f"Default admin activated: {admin['id']}")
    return await get_user(db, admin['id'])
