"""
Authentication and authorization

- Passwords are hashed with passlib (pbkdf2_sha256).
- Access tokens are HMAC-signed JWTs carrying the user id (sub) and role.
- DEV_MODE additionally accepts the legacy X-User-Id header as identity.

Usage:
    @router.post("/labs/{lab_id}/submit")
    def submit_lab(lab_id: str, user: User = Depends(get_current_user), ...):
        ...
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from learnplatform.core.config import get_settings
from learnplatform.core.database import get_db
from learnplatform.core.errors import MESSAGES
from learnplatform.models import User
from learnplatform.models.user import ROLE_ADMIN, ROLE_INSTRUCTOR

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


def create_access_token(user_id: str, role: str, expires_minutes: Optional[int] = None) -> str:
    """
    Issue a signed access token

    Args:
        user_id: user the token identifies
        role: role at issue time (informational; authorization re-reads the user row)
        expires_minutes: lifetime override, defaults to ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        str: encoded JWT
    """
    settings = get_settings()
    minutes = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    payload = {"sub": str(user_id), "role": role, "exp": expire}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[str]:
    """
    Verify a token and return its user id

    Returns:
        Optional[str]: user id, or None when the token is invalid or expired
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.info(f"Rejected access token: {e}")
        return None
    user_id = payload.get("sub")
    return str(user_id) if user_id else None


def _unauthorized(message_key: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=MESSAGES[message_key],
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    x_user_id: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the calling user

    Bearer token first; the X-User-Id header only counts in DEV_MODE.

    Raises:
        401: no identity, bad token, unknown or deactivated user
    """
    user_id: Optional[str] = None

    if credentials is not None:
        user_id = decode_access_token(credentials.credentials)
        if not user_id:
            raise _unauthorized("login_required")
    elif x_user_id and get_settings().dev_mode:
        user_id = x_user_id

    if not user_id:
        raise _unauthorized("login_required")

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise _unauthorized("user_not_found")

    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    """Admins only"""
    if user.role != ROLE_ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=MESSAGES["admin_required"])
    return user


def require_reviewer(user: User = Depends(get_current_user)) -> User:
    """Admins and instructors (submission review, instructor views)"""
    if user.role not in (ROLE_ADMIN, ROLE_INSTRUCTOR):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=MESSAGES["reviewer_required"])
    return user
