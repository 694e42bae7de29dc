"""Fee persistence — every query and insert is scoped to the caller's tenant."""

import logging
import re
import uuid
from dataclasses import dataclass
from urllib.parse import urlsplit

from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from feeservice.core.config import UploadPolicy
from feeservice.core.errors import Conflict, Forbidden, Internal, InvalidArgument, NotFound, Unavailable
from feeservice.core.tenancy import TenantContext
from feeservice.models.base import utcnow
from feeservice.models.fee import Fee, FeeCreate, FeeStatus, FeeType


logger = logging.getLogger(__name__)

S3_HOST_PATTERN = re.compile(r"^(?:[a-z0-9.-]+\.)?s3[a-z0-9.-]*\.amazonaws\.com$")


@dataclass
class FeeService:
    session: AsyncSession
    policy: UploadPolicy

    def _image_key(self, url: str) -> str:
        """Object key of *url* in the configured bucket.

        Virtual-hosted (``{bucket}.s3.{region}.amazonaws.com/key``) and
        path-style (``s3.{region}.amazonaws.com/{bucket}/key``) URLs are
        accepted. Anything else shaped like S3 is a foreign bucket.
        """
        try:
            parts = urlsplit(url)
            host = parts.hostname or ""
        except ValueError:
            parts, host = None, ""
        if (
            parts is None
            or "\\" in url
            or parts.scheme.lower() not in ("http", "https")
            or "@" in parts.netloc
            or not S3_HOST_PATTERN.match(host)
            or not parts.path.lstrip("/")
        ):
            logger.warning("Invalid S3 URL format provided: %s", url)
            raise InvalidArgument(
                "image_url must be a valid S3 URL format "
                "(e.g., https://bucket.s3.region.amazonaws.com/key)."
            )

        bucket = self.policy.bucket.lower()
        region = self.policy.region.lower()
        path = parts.path.lstrip("/")
        if host == f"{bucket}.s3.{region}.amazonaws.com":
            return path
        if host == f"s3.{region}.amazonaws.com" and path.startswith(bucket + "/"):
            return path[len(bucket) + 1:]
        logger.warning("image_url outside bucket %s rejected: %s", self.policy.bucket, url)
        raise Forbidden("image_url does not point at this service's image bucket.")

    def _check_image_url(self, ctx: TenantContext, url: str) -> None:
        key = self._image_key(url)
        if not key.startswith(ctx.namespace) or any(part in (".", "..") for part in key.split("/")):
            logger.warning("Cross-tenant image_url rejected for tenant %s: %s", ctx.tenant_id, url)
            raise Forbidden("image_url does not belong to this school's upload namespace.")

    async def commit(self, ctx: TenantContext, payload: FeeCreate) -> Fee:
        """Validate *payload* against *ctx* and insert a new active fee."""
        logger.info("Creating fee title=%r tenant=%s user=%s", payload.title, ctx.tenant_id, ctx.user_id)

        if ctx.tenant_id is None or not str(ctx.tenant_id).strip():
            raise InvalidArgument("SchoolId cannot be empty.")
        if not ctx.user_id or not ctx.user_id.strip():
            raise InvalidArgument("UserId cannot be empty.")
        try:
            tenant_id = uuid.UUID(str(ctx.tenant_id))
        except ValueError as exc:
            raise InvalidArgument("SchoolId must be a valid GUID.") from exc

        title = payload.title.strip()
        if not title:
            raise InvalidArgument("Title is required.")

        image_url = (payload.image_url or "").strip() or None
        if image_url:
            self._check_image_url(ctx, image_url)

        fee_type = FeeType.parse(payload.fee_type)
        if fee_type is None:
            raise InvalidArgument(
                f"Invalid fee_type: {payload.fee_type}. "
                f"Must be one of: {', '.join(t.value for t in FeeType)}"
            )

        description = payload.description.strip() if payload.description else None
        fee = Fee(
            tenant_id=tenant_id,
            title=title,
            description=description or None,
            amount=payload.amount,
            fee_type=fee_type,
            image_url=image_url,
            status=FeeStatus.ACTIVE,
            created_by=ctx.user_id,
            created_at=utcnow(),
        )

        self.session.add(fee)
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            logger.error("Integrity error while creating fee tenant=%s user=%s", tenant_id, ctx.user_id, exc_info=True)
            raise Conflict("A fee with similar details already exists.") from exc
        except (OperationalError, InterfaceError) as exc:
            await self.session.rollback()
            logger.error("Database unavailable while creating fee tenant=%s", tenant_id, exc_info=True)
            raise Unavailable("The database is unavailable. Please try again later.") from exc
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception("Database error while creating fee tenant=%s user=%s", tenant_id, ctx.user_id)
            raise Internal("Failed to create fee due to database error.") from exc

        await self.session.refresh(fee)
        logger.info("Fee created id=%s tenant=%s title=%r", fee.id, tenant_id, fee.title)
        return fee

    async def get(self, ctx: TenantContext, fee_id: uuid.UUID) -> Fee:
        stmt = select(Fee).where(Fee.id == fee_id, Fee.tenant_id == ctx.tenant_id)
        result = await self.session.execute(stmt)
        fee = result.scalar_one_or_none()
        if fee is None:
            raise NotFound("Fee not found")
        return fee

    async def list_fees(
        self,
        ctx: TenantContext,
        status: FeeStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Fee]:
        stmt = select(Fee).where(Fee.tenant_id == ctx.tenant_id)
        if status is not None:
            stmt = stmt.where(Fee.status == status)
        stmt = stmt.order_by(Fee.created_at.desc()).offset(offset).limit(limit)  # type: ignore[union-attr]
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
