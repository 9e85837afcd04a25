"""JWT verification for tokens issued by the host platform."""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from institute_billing.core.config import settings


def create_access_token(
    subject: str,
    role: str,
    student_id: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed access token (used by the CLI and tests)."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode: dict[str, Any] = {"sub": subject, "role": role, "exp": expire}
    if student_id:
        to_encode["student_id"] = student_id
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Decode and verify an access token. Returns None if invalid."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
