"""JWT issuing and verification."""

import hashlib
import uuid
from datetime import datetime, timedelta, timezone

from jose import jwt

from feeservice.core.config import get_settings

settings = get_settings()


def derive_user_id(username: str) -> str:
    """Stable user id for the login stub (no user store yet)."""
    digest = hashlib.sha256(username.strip().lower().encode()).hexdigest()[:12]
    return f"user-{digest}"


def create_jwt(
    user_id: str,
    tenant_id: str,
    role: str,
    username: str,
    expires_delta: timedelta | None = None,
) -> tuple[str, datetime]:
    """Issue a signed token. Returns (token, expires_at)."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": user_id,
        "jti": uuid.uuid4().hex,
        "iat": int(now.timestamp()),
        "exp": expire,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "UserId": user_id,
        "SchoolId": tenant_id,
        "Role": role,
        "role": role,
        "name": username,
    }
    token = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return token, expire


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jose.JWTError on failure."""
    return jwt.decode(
        token,
        settings.jwt_secret_key,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        issuer=settings.jwt_issuer,
    )
