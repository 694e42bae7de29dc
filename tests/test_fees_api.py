"""HTTP tests for upload authorizations and fee creation."""

import uuid
from decimal import Decimal
from unittest.mock import patch

import pytest
from botocore.exceptions import NoCredentialsError
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from feeservice.api.deps import get_store
from feeservice.core.database import get_session
from feeservice.core.errors import Internal
from feeservice.main import app


def _upload_body(**overrides) -> dict:
    body = {
        "record_id": "r1",
        "file_name": "a.png",
        "content_type": "image/png",
        "size_bytes": 1000,
    }
    body.update(overrides)
    return body


def _fee_body(**overrides) -> dict:
    body = {
        "title": "Science fair",
        "description": "Materials for the spring science fair",
        "amount": "25.00",
        "fee_type": "ActivityFee",
    }
    body.update(overrides)
    return body


# ── Upload authorizations ────────────────────────────────────


@pytest.mark.asyncio
async def test_upload_authorization_success(client: AsyncClient, headers_for):
    school = uuid.uuid4()
    resp = await client.post("/v1/upload-authorizations", json=_upload_body(), headers=headers_for(school))
    assert resp.status_code == 200
    data = resp.json()
    assert data["object_key"].startswith(f"tenants/{school}/records/r1/r1_")
    assert data["object_key"].endswith(".png")
    assert data["final_url"].endswith(data["object_key"])
    assert "X-Amz-Signature" in data["capability"]
    assert data["expires_at"]


@pytest.mark.asyncio
async def test_upload_authorization_invalid_is_400(client: AsyncClient, headers_for):
    resp = await client.post(
        "/v1/upload-authorizations",
        json=_upload_body(size_bytes=5_242_881),
        headers=headers_for(uuid.uuid4()),
    )
    assert resp.status_code == 400
    body = resp.json()
    assert "File size" in body["detail"]
    assert "capability" not in body


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    {"record_id": "r1", "file_name": "a.png", "content_type": "image/png"},
    _upload_body(size_bytes="lots"),
    {},
])
async def test_upload_authorization_malformed_body_is_400(client: AsyncClient, headers_for, body):
    resp = await client.post("/v1/upload-authorizations", json=body, headers=headers_for(uuid.uuid4()))
    assert resp.status_code == 400
    assert resp.json()["title"] == "Bad Request"


@pytest.mark.asyncio
async def test_upload_authorization_requires_token(client: AsyncClient):
    resp = await client.post("/v1/upload-authorizations", json=_upload_body())
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_upload_authorization_requires_admin_role(client: AsyncClient, headers_for):
    resp = await client.post(
        "/v1/upload-authorizations",
        json=_upload_body(),
        headers=headers_for(uuid.uuid4(), role="Teacher"),
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_upload_authorization_store_outage_is_503(client: AsyncClient, headers_for):
    class DownStore:
        def issue_write_capability(self, key, ttl, content_type):
            raise NoCredentialsError()

    app.dependency_overrides[get_store] = lambda: DownStore()
    resp = await client.post("/v1/upload-authorizations", json=_upload_body(), headers=headers_for(uuid.uuid4()))
    assert resp.status_code == 503
    assert resp.json()["correlation_id"]


# ── Fee creation ─────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_fee(client: AsyncClient, headers_for):
    school = uuid.uuid4()
    resp = await client.post("/v1/fees", json=_fee_body(), headers=headers_for(school, user_id="user-7"))
    assert resp.status_code == 201
    data = resp.json()
    assert data["tenant_id"] == str(school)
    assert data["created_by"] == "user-7"
    assert data["status"] == "active"
    assert data["fee_type"] == "ActivityFee"
    assert Decimal(data["amount"]) == Decimal("25.00")
    assert data["image_url"] is None


@pytest.mark.asyncio
async def test_tenant_id_in_body_is_ignored(client: AsyncClient, headers_for):
    school = uuid.uuid4()
    resp = await client.post(
        "/v1/fees",
        json=_fee_body(tenant_id=str(uuid.uuid4())),
        headers=headers_for(school),
    )
    assert resp.status_code == 201
    assert resp.json()["tenant_id"] == str(school)


@pytest.mark.asyncio
async def test_create_fee_invalid_type_is_400(client: AsyncClient, headers_for):
    resp = await client.post("/v1/fees", json=_fee_body(fee_type="Parking"), headers=headers_for(uuid.uuid4()))
    assert resp.status_code == 400
    assert "ActivityFee" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_blank_title_is_400(client: AsyncClient, headers_for):
    resp = await client.post("/v1/fees", json=_fee_body(title="   "), headers=headers_for(uuid.uuid4()))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Title is required."


@pytest.mark.asyncio
@pytest.mark.parametrize("override", [
    {"amount": "0"},
    {"amount": "-5"},
    {"title": ""},
    {"title": "t" * 201},
    {"description": "d" * 2001},
    {"image_url": "https://b.s3.amazonaws.com/" + "k" * 500},
    {"amount": "not-a-number"},
])
async def test_create_fee_shape_validation_is_400(client: AsyncClient, headers_for, override):
    resp = await client.post("/v1/fees", json=_fee_body(**override), headers=headers_for(uuid.uuid4()))
    assert resp.status_code == 400
    body = resp.json()
    assert body["title"] == "Bad Request"
    assert body["detail"]
    assert body["correlation_id"] == resp.headers["X-Correlation-Id"]


@pytest.mark.asyncio
async def test_create_fee_requires_admin(client: AsyncClient, headers_for):
    resp = await client.post(
        "/v1/fees", json=_fee_body(), headers=headers_for(uuid.uuid4(), role="Parent"),
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_unexpected_db_error_is_generic_500(client: AsyncClient, headers_for):
    with patch("feeservice.services.fees.FeeService.commit", side_effect=SQLAlchemyError("secret table detail")):
        resp = await client.post("/v1/fees", json=_fee_body(), headers=headers_for(uuid.uuid4()))
    assert resp.status_code == 500
    body = resp.json()
    assert "secret table detail" not in body["detail"]
    assert body["correlation_id"] == resp.headers["X-Correlation-Id"]


@pytest.mark.asyncio
async def test_internal_error_message_is_not_leaked(client: AsyncClient, headers_for):
    with patch(
        "feeservice.services.fees.FeeService.commit",
        side_effect=Internal("Failed to create fee due to database error."),
    ):
        resp = await client.post("/v1/fees", json=_fee_body(), headers=headers_for(uuid.uuid4()))
    assert resp.status_code == 500
    assert resp.json()["detail"] == Internal.PUBLIC_MESSAGE


@pytest.mark.asyncio
async def test_correlation_id_is_echoed(client: AsyncClient, headers_for):
    resp = await client.get(
        "/v1/fees",
        headers={**headers_for(uuid.uuid4()), "X-Correlation-Id": "abc123"},
    )
    assert resp.status_code == 200
    assert resp.headers["X-Correlation-Id"] == "abc123"


# ── Two-phase flow ───────────────────────────────────────────


@pytest.mark.asyncio
async def test_authorize_then_commit_end_to_end(client: AsyncClient, headers_for):
    t1, t2 = uuid.uuid4(), uuid.uuid4()

    resp = await client.post("/v1/upload-authorizations", json=_upload_body(), headers=headers_for(t1))
    assert resp.status_code == 200
    auth = resp.json()
    assert auth["object_key"].startswith(f"tenants/{t1}/records/r1/")
    assert auth["object_key"].endswith(".png")

    resp = await client.post(
        "/v1/fees",
        json=_fee_body(image_url=auth["final_url"]),
        headers=headers_for(t1),
    )
    assert resp.status_code == 201
    fee = resp.json()
    assert fee["tenant_id"] == str(t1)
    assert fee["image_url"] == auth["final_url"]

    # Same URL presented by another school
    resp = await client.post(
        "/v1/fees",
        json=_fee_body(image_url=auth["final_url"]),
        headers=headers_for(t2),
    )
    assert resp.status_code == 403
    assert "namespace" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_fee_read_back_round_trips(client: AsyncClient, headers_for):
    school = uuid.uuid4()
    headers = headers_for(school)
    description = "x" * 2000
    resp = await client.post(
        "/v1/fees", json=_fee_body(description=description, amount="9999999.99"), headers=headers,
    )
    created = resp.json()

    resp = await client.get(f"/v1/fees/{created['id']}", headers=headers)
    assert resp.status_code == 200
    fetched = resp.json()
    assert fetched == created
    assert fetched["description"] == description
    assert Decimal(fetched["amount"]) == Decimal("9999999.99")


@pytest.mark.asyncio
async def test_other_school_cannot_read_fee(client: AsyncClient, headers_for):
    resp = await client.post("/v1/fees", json=_fee_body(), headers=headers_for(uuid.uuid4()))
    fee_id = resp.json()["id"]

    resp = await client.get(f"/v1/fees/{fee_id}", headers=headers_for(uuid.uuid4()))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_list_fees_scoped_to_school(client: AsyncClient, headers_for):
    a, b = uuid.uuid4(), uuid.uuid4()
    await client.post("/v1/fees", json=_fee_body(title="A"), headers=headers_for(a))
    await client.post("/v1/fees", json=_fee_body(title="B"), headers=headers_for(b))

    resp = await client.get("/v1/fees", headers=headers_for(a, role="Teacher"))
    assert resp.status_code == 200
    assert [f["title"] for f in resp.json()] == ["A"]


# ── Health ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health_is_public(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_system_health_reports_database(client: AsyncClient):
    resp = await client.get("/v1/system/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["database"]["status"] == "ok"
    assert data["object_store"]["bucket"] == "fee-images-test"


@pytest.mark.asyncio
async def test_system_health_hides_database_error_text(client: AsyncClient):
    class DownSession:
        async def execute(self, *args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("could not connect to db.internal:5432 as fees"))

    async def _down_session():
        yield DownSession()

    app.dependency_overrides[get_session] = _down_session
    resp = await client.get("/v1/system/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "degraded"
    assert data["database"]["status"] == "error"
    assert "db.internal" not in resp.text
