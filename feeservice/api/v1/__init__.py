"""V1 API router aggregation."""

from fastapi import APIRouter

from feeservice.api.v1.auth import router as auth_router
from feeservice.api.v1.fees import router as fees_router
from feeservice.api.v1.system import router as system_router
from feeservice.api.v1.uploads import router as uploads_router

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(auth_router)
v1_router.include_router(uploads_router)
v1_router.include_router(fees_router)
v1_router.include_router(system_router)
