"""S3 object-store collaborator.

Only two things cross this boundary: presigned write capabilities going out
to clients, and best-effort deletes. Image bytes never pass through the API.
"""

import logging
from datetime import timedelta
from functools import lru_cache
from typing import Protocol
from urllib.parse import urlparse

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from feeservice.core.config import Settings, UploadPolicy, get_settings

logger = logging.getLogger(__name__)


def key_from_url(url: str, bucket: str) -> str:
    """Object key addressed by an S3 URL, virtual-hosted or path-style."""
    key = urlparse(url).path.lstrip("/")
    prefix = bucket + "/"
    if key.lower().startswith(prefix.lower()):
        key = key[len(prefix):]
    return key


class ObjectStore(Protocol):
    def issue_write_capability(self, key: str, ttl: timedelta, content_type: str) -> str: ...

    def object_url(self, key: str) -> str: ...

    def delete_object(self, url: str) -> bool: ...


class S3ObjectStore:
    """ObjectStore backed by a boto3 S3 client."""

    def __init__(self, client, policy: UploadPolicy) -> None:
        self._client = client
        self._policy = policy

    def issue_write_capability(self, key: str, ttl: timedelta, content_type: str) -> str:
        """Presign a single PUT of *key*, pinned to content type and SSE-S3.

        Raises botocore ClientError / BotoCoreError on credential or config
        problems; callers classify them.
        """
        return self._client.generate_presigned_url(
            "put_object",
            Params={
                "Bucket": self._policy.bucket,
                "Key": key,
                "ContentType": content_type,
                "ServerSideEncryption": "AES256",
            },
            ExpiresIn=int(ttl.total_seconds()),
            HttpMethod="PUT",
        )

    def object_url(self, key: str) -> str:
        if not key or not key.strip():
            raise ValueError("Object key cannot be empty.")
        return self._policy.object_url(key)

    def delete_object(self, url: str) -> bool:
        """Delete the object behind *url*. Returns False instead of raising."""
        if not url or not url.strip():
            logger.warning("Image URL is empty for delete operation")
            return False
        key = key_from_url(url, self._policy.bucket)
        try:
            self._client.delete_object(Bucket=self._policy.bucket, Key=key)
        except (ClientError, BotoCoreError):
            logger.exception("S3 error while deleting object %s", key)
            return False
        logger.info("Deleted object from S3: %s", key)
        return True


def build_s3_client(settings: Settings):
    kwargs = {
        "region_name": settings.aws_region,
        "config": Config(signature_version="s3v4", s3={"addressing_style": "virtual"}),
    }
    if settings.aws_access_key_id and settings.aws_secret_access_key:
        kwargs["aws_access_key_id"] = settings.aws_access_key_id
        kwargs["aws_secret_access_key"] = settings.aws_secret_access_key
    return boto3.client("s3", **kwargs)


@lru_cache
def get_object_store() -> S3ObjectStore:
    settings = get_settings()
    return S3ObjectStore(build_s3_client(settings), UploadPolicy.from_settings(settings))
