"""Authentication endpoints — token issuing and current principal."""

import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from feeservice.api.deps import Tenant
from feeservice.core.security import create_jwt, derive_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

DEFAULT_ROLE = "SchoolAdmin"


# ── Schemas ──────────────────────────────────────────────────

class LoginRequest(BaseModel):
    username: str
    password: str
    school_id: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user_id: str
    school_id: str
    role: str


class MeResponse(BaseModel):
    school_id: uuid.UUID
    user_id: str | None
    role: str | None


# ── Routes ───────────────────────────────────────────────────

@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest) -> LoginResponse:
    """Issue a SchoolAdmin JWT for the given school.

    There is no user store yet: any non-empty password is accepted and the
    user id is derived from the username.
    """
    logger.info("Login attempt username=%s school=%s", body.username, body.school_id)

    if not body.username.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username is required.")
    if not body.school_id.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="SchoolId is required.")
    try:
        school_id = uuid.UUID(body.school_id.strip())
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="SchoolId must be a valid GUID.",
        ) from exc

    if not body.password.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials.")

    user_id = derive_user_id(body.username)
    token, expires_at = create_jwt(
        user_id=user_id,
        tenant_id=str(school_id),
        role=DEFAULT_ROLE,
        username=body.username.strip(),
    )
    logger.info("Login successful user=%s school=%s", user_id, school_id)

    return LoginResponse(
        access_token=token,
        expires_at=expires_at,
        user_id=user_id,
        school_id=str(school_id),
        role=DEFAULT_ROLE,
    )


@router.get("/me", response_model=MeResponse)
async def get_me(ctx: Tenant) -> MeResponse:
    """Return the tenant context resolved from the caller's token."""
    return MeResponse(school_id=ctx.tenant_id, user_id=ctx.user_id, role=ctx.role)
