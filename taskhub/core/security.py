# taskhub/core/security.py
from datetime import timedelta
from typing import Optional

from jose import jwt, JWTError, ExpiredSignatureError

from taskhub.config import settings
from taskhub.core.errors import UnauthorizedError
from taskhub.utils.time import utcnow


def create_access_token(user_id, email: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {
        "userId": str(user_id),
        "email": email,
        "role": role,
        "exp": expire,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise UnauthorizedError("Invalid or expired token", code="TOKEN_EXPIRED")
    except JWTError:
        raise UnauthorizedError("Invalid or expired token", code="INVALID_TOKEN")

    if not payload.get("userId"):
        raise UnauthorizedError("Invalid or expired token", code="INVALID_TOKEN")
    return payload
