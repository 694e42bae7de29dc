"""Tenant context resolution from verified JWT claims.

Each identity field is looked up through an ordered tuple of claim names;
the first claim present with a non-blank value wins. Keeping the precedence
as data makes it visible and testable on its own.
"""

import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from feeservice.core.errors import TenantResolutionError

logger = logging.getLogger(__name__)

# Dedicated claims first, then the standard JWT / ASP.NET-style fallbacks.
TENANT_CLAIMS: tuple[str, ...] = ("SchoolId", "TenantId", "tid", "sub")
USER_CLAIMS: tuple[str, ...] = ("UserId", "sub", "name")
ROLE_CLAIMS: tuple[str, ...] = ("Role", "role")


@dataclass(frozen=True)
class TenantContext:
    """Resolved identity carried through a request."""

    tenant_id: uuid.UUID
    user_id: str | None = None
    role: str | None = None

    @property
    def namespace(self) -> str:
        """Object-key prefix owned by this tenant."""
        return f"tenants/{self.tenant_id}/"

    def has_role(self, *roles: str) -> bool:
        if not self.role:
            return False
        wanted = {r.lower() for r in roles}
        return self.role.lower() in wanted


def first_claim(claims: Mapping[str, Any], names: tuple[str, ...]) -> str | None:
    """Return the first non-blank claim value among *names*, stripped."""
    for name in names:
        value = claims.get(name)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def resolve_tenant_context(claims: Mapping[str, Any]) -> TenantContext:
    """Build a TenantContext from an already-verified claim set.

    Raises TenantResolutionError when no tenant claim is usable. Missing
    user or role claims are left as None; role gating happens elsewhere.
    """
    raw_tenant = first_claim(claims, TENANT_CLAIMS)
    if raw_tenant is None:
        logger.warning("Tenant id not found in token claims (user=%s)", claims.get("name", "unknown"))
        raise TenantResolutionError("SchoolId not found in token.")

    try:
        tenant_id = uuid.UUID(raw_tenant)
    except ValueError as exc:
        logger.warning("Tenant claim is not a valid identifier: %r", raw_tenant)
        raise TenantResolutionError("SchoolId in token is not a valid identifier.") from exc

    ctx = TenantContext(
        tenant_id=tenant_id,
        user_id=first_claim(claims, USER_CLAIMS),
        role=first_claim(claims, ROLE_CLAIMS),
    )
    logger.debug(
        "Resolved tenant context tenant=%s user=%s role=%s",
        ctx.tenant_id, ctx.user_id or "N/A", ctx.role or "N/A",
    )
    return ctx
