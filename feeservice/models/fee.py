"""Fee model — a school-scoped charge, optionally illustrated by an S3 image."""

import uuid
from datetime import datetime
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import CheckConstraint, DateTime, Numeric
from sqlalchemy import Enum as SAEnum
from sqlmodel import Column, Field, SQLModel

from feeservice.models.base import new_uuid, utcnow


class FeeType(StrEnum):
    ACTIVITY_FEE = "ActivityFee"
    CLASS_FEE = "ClassFee"
    COURSE_FEE = "CourseFee"
    TRANSPORT_FEE = "TransportFee"
    LAB_FEE = "LabFee"
    MISC_FEE = "MiscFee"

    @classmethod
    def parse(cls, value: str) -> "FeeType | None":
        """Case-insensitive lookup by value; None when unknown."""
        wanted = value.strip().lower()
        for member in cls:
            if member.value.lower() == wanted:
                return member
        return None


class FeeStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


def _enum_column(enum_cls: type[StrEnum], **kwargs) -> Column:
    """VARCHAR column holding the enum *values* (``active``, ``LabFee``), not member names."""
    return Column(
        SAEnum(
            enum_cls,
            values_callable=lambda members: [m.value for m in members],
            native_enum=False,
            length=20,
            validate_strings=True,
        ),
        **kwargs,
    )


class Fee(SQLModel, table=True):
    __tablename__ = "fees"
    __table_args__ = (CheckConstraint("amount > 0", name="ck_fees_amount_positive"),)

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(nullable=False, index=True)

    title: str = Field(max_length=200, nullable=False)
    description: str | None = Field(default=None, max_length=2000)
    amount: Decimal = Field(sa_column=Column(Numeric(18, 2), nullable=False))
    fee_type: FeeType = Field(sa_column=_enum_column(FeeType, nullable=False, index=True))
    image_url: str | None = Field(default=None, max_length=500)
    status: FeeStatus = Field(
        default=FeeStatus.ACTIVE,
        sa_column=_enum_column(FeeStatus, nullable=False, index=True, server_default=FeeStatus.ACTIVE.value),
    )

    created_by: str = Field(nullable=False)
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )
    updated_by: str | None = Field(default=None)
    updated_at: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))


# ── Pydantic schemas ─────────────────────────────────────────

class FeeCreate(SQLModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    amount: Decimal = Field(gt=0, max_digits=18, decimal_places=2)
    fee_type: str = Field(min_length=1)
    image_url: str | None = Field(default=None, max_length=500)


class FeeRead(SQLModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    title: str
    description: str | None
    amount: Decimal
    fee_type: FeeType
    image_url: str | None
    status: FeeStatus
    created_by: str
    created_at: datetime
    updated_by: str | None
    updated_at: datetime | None
