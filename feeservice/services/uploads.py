"""Upload authorization — presigned, tenant-namespaced S3 write slots.

Issuing a slot is the first half of a two-call protocol: the client PUTs
the bytes straight to S3 with the returned capability, then references
``final_url`` when creating the fee. Nothing here binds the two calls, so
``FeeService`` re-checks tenant ownership of the URL at commit time.

Extension and content type are validated against independent allow-lists;
a ``.png`` name declared as ``image/jpeg`` is accepted.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel

from feeservice.core.config import UploadPolicy
from feeservice.core.errors import InvalidArgument, Unavailable
from feeservice.core.tenancy import TenantContext
from feeservice.services.storage import ObjectStore

logger = logging.getLogger(__name__)


class UploadAuthorizationRequest(BaseModel):
    record_id: str
    file_name: str
    content_type: str
    size_bytes: int


class UploadAuthorization(BaseModel):
    capability: str
    object_key: str
    final_url: str
    expires_at: datetime


def object_namespace(tenant_id: uuid.UUID | str, record_id: str) -> str:
    return f"tenants/{tenant_id}/records/{record_id}/"


def is_safe_segment(value: str) -> bool:
    """True when *value* can sit between two slashes of a key without changing its depth."""
    return "/" not in value and "\\" not in value and value not in (".", "..")


def file_extension(file_name: str) -> str:
    """Lower-cased text from the last dot on, so ``.png`` alone counts as a PNG."""
    _, dot, ext = file_name.rpartition(".")
    return f".{ext}".lower() if dot else ""


def unique_object_name(record_id: str, extension: str, now: datetime) -> str:
    """``{record_id}_{yyyymmddHHMMSS}_{8 hex}{ext}`` — unique without coordination."""
    return f"{record_id}_{now:%Y%m%d%H%M%S}_{uuid.uuid4().hex[:8]}{extension}"


@dataclass
class UploadAuthorizationIssuer:
    store: ObjectStore
    policy: UploadPolicy

    def _validate(self, ctx: TenantContext, req: UploadAuthorizationRequest) -> str:
        """Check *req* against policy, first violation wins. Returns the extension."""
        if ctx.tenant_id is None or not str(ctx.tenant_id).strip():
            raise InvalidArgument("SchoolId cannot be empty.")

        if not req.record_id or not req.record_id.strip():
            raise InvalidArgument("record_id cannot be empty.")
        if not is_safe_segment(req.record_id.strip()):
            raise InvalidArgument("record_id must not contain path separators or dot segments.")

        if not req.file_name or not req.file_name.strip():
            raise InvalidArgument("file_name cannot be empty.")
        extension = file_extension(req.file_name.strip())
        if extension not in self.policy.allowed_extensions:
            raise InvalidArgument(
                f"File extension must be one of: {', '.join(self.policy.allowed_extensions)}"
            )

        if req.size_bytes <= 0 or req.size_bytes > self.policy.max_size_bytes:
            raise InvalidArgument(
                f"File size must be between 1 byte and {self.policy.max_size_bytes} bytes."
            )

        if not req.content_type or req.content_type.strip().lower() not in self.policy.allowed_content_types:
            raise InvalidArgument(
                f"Content type must be one of: {', '.join(self.policy.allowed_content_types)}"
            )
        return extension

    def issue(self, ctx: TenantContext, req: UploadAuthorizationRequest) -> UploadAuthorization:
        try:
            extension = self._validate(ctx, req)
        except InvalidArgument as exc:
            logger.warning(
                "Rejected upload authorization tenant=%s record=%s: %s",
                ctx.tenant_id, req.record_id, exc.message,
            )
            raise

        record_id = req.record_id.strip()
        content_type = req.content_type.strip().lower()
        now = datetime.now(timezone.utc)
        ttl = timedelta(minutes=self.policy.ttl_minutes)

        key = object_namespace(ctx.tenant_id, record_id) + unique_object_name(record_id, extension, now)

        try:
            capability = self.store.issue_write_capability(key, ttl, content_type)
        except (ClientError, BotoCoreError) as exc:
            logger.exception("S3 error while issuing upload capability tenant=%s record=%s", ctx.tenant_id, record_id)
            raise Unavailable("Object storage is unavailable. Please try again later.") from exc

        expires_at = now + ttl
        logger.info("Issued upload authorization for %s, expires at %s", key, expires_at.isoformat())

        return UploadAuthorization(
            capability=capability,
            object_key=key,
            final_url=self.store.object_url(key),
            expires_at=expires_at,
        )
