"""Fee endpoints — all queries scoped to the caller's school."""

import uuid

from fastapi import APIRouter, Query, status

from feeservice.api.deps import Admin, Fees, Tenant
from feeservice.models.fee import FeeCreate, FeeRead, FeeStatus

router = APIRouter(prefix="/fees", tags=["fees"])


@router.post("", response_model=FeeRead, status_code=status.HTTP_201_CREATED)
async def create_fee(body: FeeCreate, ctx: Admin, fees: Fees) -> FeeRead:
    fee = await fees.commit(ctx, body)
    return FeeRead.model_validate(fee)


@router.get("", response_model=list[FeeRead])
async def list_fees(
    ctx: Tenant,
    fees: Fees,
    fee_status: FeeStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> list[FeeRead]:
    rows = await fees.list_fees(ctx, status=fee_status, limit=limit, offset=offset)
    return [FeeRead.model_validate(f) for f in rows]


@router.get("/{fee_id}", response_model=FeeRead)
async def get_fee(fee_id: uuid.UUID, ctx: Tenant, fees: Fees) -> FeeRead:
    return FeeRead.model_validate(await fees.get(ctx, fee_id))
