from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
import uuid

from jose import jwt

from app.core.config import settings


def create_access_token(user_id: int, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a bearer token for the identity provider's user.

    Tokens are normally minted by the identity provider; this helper exists for
    service-to-service calls and tests.
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode = {
        "sub": str(user_id),
        "role": role,
        "exp": expire,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
