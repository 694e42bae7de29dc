"""FastAPI dependencies for authentication, tenant resolution and services."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from feeservice.core.config import UploadPolicy, get_settings
from feeservice.core.database import get_session
from feeservice.core.errors import Forbidden
from feeservice.core.security import decode_jwt
from feeservice.core.tenancy import TenantContext, resolve_tenant_context
from feeservice.services.fees import FeeService
from feeservice.services.storage import ObjectStore, get_object_store
from feeservice.services.uploads import UploadAuthorizationIssuer

bearer_scheme = HTTPBearer(auto_error=False)


def get_claims(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> dict:
    """Verify the bearer JWT and return its claims."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_jwt(credentials.credentials)
    except JWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired JWT",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def get_tenant_context(claims: Annotated[dict, Depends(get_claims)]) -> TenantContext:
    return resolve_tenant_context(claims)


def require_admin(ctx: Annotated[TenantContext, Depends(get_tenant_context)]) -> TenantContext:
    """Raise 403 unless the caller holds one of the configured admin roles."""
    if not ctx.has_role(*get_settings().admin_role_set):
        raise Forbidden("Only school administrators can perform this action.")
    return ctx


def get_upload_policy() -> UploadPolicy:
    return UploadPolicy.from_settings(get_settings())


def get_store() -> ObjectStore:
    return get_object_store()


def get_upload_issuer(
    store: Annotated[ObjectStore, Depends(get_store)],
    policy: Annotated[UploadPolicy, Depends(get_upload_policy)],
) -> UploadAuthorizationIssuer:
    return UploadAuthorizationIssuer(store=store, policy=policy)


def get_fee_service(
    session: Annotated[AsyncSession, Depends(get_session)],
    policy: Annotated[UploadPolicy, Depends(get_upload_policy)],
) -> FeeService:
    return FeeService(session=session, policy=policy)


# Typed shorthand for use in route signatures
Tenant = Annotated[TenantContext, Depends(get_tenant_context)]
Admin = Annotated[TenantContext, Depends(require_admin)]
Session = Annotated[AsyncSession, Depends(get_session)]
Fees = Annotated[FeeService, Depends(get_fee_service)]
Uploads = Annotated[UploadAuthorizationIssuer, Depends(get_upload_issuer)]
