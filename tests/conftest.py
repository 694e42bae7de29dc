"""Shared test fixtures — async SQLite in-memory DB, offline S3 client, test client."""

import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["AWS_BUCKET_NAME"] = "fee-images-test"
os.environ["AWS_REGION"] = "us-east-1"

import uuid  # noqa: E402
from collections.abc import AsyncGenerator  # noqa: E402

import boto3  # noqa: E402
import pytest  # noqa: E402
from botocore.config import Config  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

# Import all models so metadata is populated
import feeservice.models  # noqa: F401, E402
from feeservice.api.deps import get_store  # noqa: E402
from feeservice.core.config import UploadPolicy, get_settings  # noqa: E402
from feeservice.core.database import get_session  # noqa: E402
from feeservice.core.security import create_jwt  # noqa: E402
from feeservice.core.tenancy import TenantContext  # noqa: E402
from feeservice.main import app  # noqa: E402
from feeservice.services.storage import S3ObjectStore  # noqa: E402

BUCKET = "fee-images-test"
REGION = "us-east-1"


@pytest.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite://", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def session(engine) -> AsyncGenerator[AsyncSession, None]:
    factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as sess:
        yield sess
        await sess.rollback()


@pytest.fixture
def policy() -> UploadPolicy:
    return UploadPolicy.from_settings(get_settings())


@pytest.fixture
def s3_client():
    """Real boto3 client with dummy credentials; presigning never touches the network."""
    return boto3.client(
        "s3",
        region_name=REGION,
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        config=Config(signature_version="s3v4", s3={"addressing_style": "virtual"}),
    )


@pytest.fixture
def store(s3_client, policy) -> S3ObjectStore:
    return S3ObjectStore(s3_client, policy)


@pytest.fixture
async def client(session, store) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async test client with DB session and object store overrides."""

    async def _override_session():
        yield session

    app.dependency_overrides[get_session] = _override_session
    app.dependency_overrides[get_store] = lambda: store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def _make_headers(
    tenant_id: uuid.UUID | str,
    role: str = "SchoolAdmin",
    user_id: str = "user-admin",
    username: str = "admin@school.test",
) -> dict:
    token, _ = create_jwt(user_id=user_id, tenant_id=str(tenant_id), role=role, username=username)
    return {"Authorization": f"Bearer {token}"}


def _make_ctx(tenant_id: uuid.UUID | None = None, user_id: str | None = "user-admin") -> TenantContext:
    return TenantContext(tenant_id=tenant_id or uuid.uuid4(), user_id=user_id, role="SchoolAdmin")


@pytest.fixture
def headers_for():
    """Factory: bearer headers for a tenant / role."""
    return _make_headers


@pytest.fixture
def ctx_for():
    """Factory: TenantContext for service-level tests."""
    return _make_ctx
