"""JWT Authentication utilities for ChopXpress"""
import enum
import os
import secrets
from datetime import datetime, timedelta
from typing import Optional

from jose import jwt, JWTError

import config  # noqa: F401  loads .env

# Used only when SECRET_KEY is unset; tokens then die with the process
_FALLBACK_SECRET_KEY = secrets.token_hex(32)
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 15


def get_secret_key() -> str:
    """Secret key for JWT - set SECRET_KEY in production"""
    return os.getenv("SECRET_KEY") or _FALLBACK_SECRET_KEY


class UserRole(str, enum.Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
    SUPER_ADMIN = "super-admin"


STAFF_ROLES = (UserRole.ADMIN, UserRole.SUPER_ADMIN)


def is_staff(role: Optional[UserRole]) -> bool:
    return role in STAFF_ROLES


def create_access_token(user_id: str, email: str, role: UserRole = UserRole.CUSTOMER) -> str:
    """Create a short-lived access token"""
    expire = datetime.utcnow() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": UserRole(role).value,
        "type": "access",
        "exp": expire
    }
    return jwt.encode(payload, get_secret_key(), algorithm=ALGORITHM)


def verify_token(token: str, token_type: str = "access") -> Optional[dict]:
    """Verify and decode a JWT token"""
    try:
        payload = jwt.decode(token, get_secret_key(), algorithms=[ALGORITHM])
        if payload.get("type") != token_type:
            return None
        return payload
    except JWTError:
        return None


def get_role_from_token(token: Optional[str]) -> Optional[UserRole]:
    """Role of a signed-in user, None for anonymous or bad tokens"""
    if not token:
        return None
    payload = verify_token(token, "access")
    if not payload:
        return None
    try:
        return UserRole(payload.get("role", UserRole.CUSTOMER.value))
    except ValueError:
        return None
