# taskhub/core/auth.py
import uuid
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.database import get_db
from taskhub.models import User
from taskhub.core.errors import AppError, UnauthorizedError
from taskhub.core.security import decode_access_token

# auto_error is off so a missing header is reported in the error envelope
reusable_bearer = HTTPBearer(auto_error=False)


async def _user_from_token(db: AsyncSession, token: str) -> User:
    payload = decode_access_token(token)
    try:
        user_id = uuid.UUID(payload["userId"])
    except (ValueError, AttributeError, TypeError):
        raise UnauthorizedError("Invalid or expired token", code="INVALID_TOKEN")

    # Re-fetch so tokens of deleted accounts stop working
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise UnauthorizedError("User no longer exists")
    return user


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(reusable_bearer),
) -> User:
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise UnauthorizedError("No token provided")
    return await _user_from_token(db, credentials.credentials)


async def get_optional_user(
    db: AsyncSession = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(reusable_bearer),
) -> Optional[User]:
    """Like get_current_user, but anonymous requests proceed with None."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        return await _user_from_token(db, credentials.credentials)
    except AppError:
        return None
