"""Import all models so SQLModel.metadata picks them up."""

from feeservice.models.fee import Fee, FeeCreate, FeeRead, FeeStatus, FeeType

__all__ = [
    "Fee",
    "FeeCreate",
    "FeeRead",
    "FeeStatus",
    "FeeType",
]
