"""Upload authorization endpoint — presigned S3 PUT slots for fee images."""

from fastapi import APIRouter
from starlette.concurrency import run_in_threadpool

from feeservice.api.deps import Admin, Uploads
from feeservice.services.uploads import UploadAuthorization, UploadAuthorizationRequest

router = APIRouter(prefix="/upload-authorizations", tags=["uploads"])


@router.post("", response_model=UploadAuthorization)
async def create_upload_authorization(
    body: UploadAuthorizationRequest,
    ctx: Admin,
    issuer: Uploads,
) -> UploadAuthorization:
    """Authorize one direct-to-S3 image upload for a fee.

    The client PUTs the file to ``capability`` with the declared
    Content-Type and ``x-amz-server-side-encryption: AES256``, then sends
    ``final_url`` as ``image_url`` when creating the fee.
    """
    # boto3 presigning is synchronous
    return await run_in_threadpool(issuer.issue, ctx, body)
