"""HTTP surface tests. The app state is wired by hand, the lifespan is not run."""

import httpx
import pytest

from server.api_server import app
from server.dependencies.auth import load_api_key
from server.dependencies.errors import get_status_code
from services.invoice_upload.UploadService import UploadService
from shared.errors.exceptions import (
    AuthenticationError,
    ConfigurationError,
    TokenNotFoundError,
    TokenStoreError,
    UploadSessionError,
    ValidationError,
)
from tests.conftest import SUBSCRIPTION_ID, make_jwt

HEADERS = {"X-Api-Key": "inbound-key"}
PDF = ("files", ("inv1.pdf", b"%PDF-1.7", "application/pdf"))


@pytest.fixture
async def api(helper_config, token_store, invoicing_client):
    app.state.logging = helper_config.get_logger()
    app.state.helper_config = helper_config
    app.state.api_key = load_api_key(helper_config)
    app.state.token_store = token_store
    app.state.invoicing_client = invoicing_client
    app.state.upload_service = UploadService(helper_config=helper_config, invoicing_client=invoicing_client)
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://bridge.test") as client:
        yield client


@pytest.fixture
def scripted_platform(fake_platform):
    fake_platform.responses["new"] = httpx.Response(200, json={"uploadId": "up-42"})
    fake_platform.responses["upload"] = httpx.Response(200)
    fake_platform.responses["complete"] = httpx.Response(200, json={"jobId": "job-7"})
    return fake_platform


@pytest.mark.parametrize(
    ("error", "status_code"),
    [
        (ConfigurationError("missing"), 500),
        (ValidationError("fileName", "too short"), 422),
        (TokenNotFoundError(SUBSCRIPTION_ID), 401),
        (AuthenticationError(401, "Unauthorized"), 401),
        (TokenStoreError("down"), 502),
        (UploadSessionError(400, "bad request"), 502),
    ],
)
def test_error_status_mapping(error: Exception, status_code: int) -> None:
    assert get_status_code(error) == status_code


async def test_requests_need_the_inbound_api_key(api) -> None:
    resp = await api.post("/authenticate", json={"login": "alice", "password": "pw"}, headers={"X-Api-Key": "wrong"})

    assert resp.status_code == 401
    missing = await api.get("/uploads/any")
    assert missing.status_code == 401


def test_unset_inbound_api_key_is_a_configuration_error(helper_config, monkeypatch) -> None:
    monkeypatch.delenv("API_SERVER_API_KEY")

    with pytest.raises(ConfigurationError, match="API_SERVER_API_KEY"):
        load_api_key(helper_config)


async def test_authenticate_returns_expiry_but_not_the_token(api, fake_platform, fake_store) -> None:
    token = make_jwt({"sub": "alice", "exp": 1700000000})
    fake_platform.responses["authenticate"] = httpx.Response(200, json={"token": token, "displayName": "Alice", "language": "fr"})

    resp = await api.post("/authenticate", json={"login": "alice", "password": "pw"}, headers=HEADERS)

    assert resp.status_code == 200
    assert resp.json() == {"login": "alice", "displayName": "Alice", "language": "fr", "expiresAt": "2023-11-14T22:13:20.000Z"}
    assert token not in resp.text
    assert fake_store.rows[SUBSCRIPTION_ID]["token"] == token


async def test_authenticate_rejected_by_platform(api, fake_platform) -> None:
    fake_platform.responses["authenticate"] = httpx.Response(401)

    resp = await api.post("/authenticate", json={"login": "alice", "password": "wrong"}, headers=HEADERS)

    assert resp.status_code == 401
    assert resp.json()["error"] == "AuthenticationError"
    assert "Unauthorized" in resp.json()["detail"]


async def test_upload_round_trip(api, scripted_platform, stored_token) -> None:
    created = await api.post("/uploads", files=[PDF], headers=HEADERS)
    assert created.status_code == 200
    status = created.json()
    assert status["phase"] == "session_active"
    assert status["upload_id"] == "up-42"
    assert status["files"] == ["inv1.pdf"]
    workflow_id = status["workflow_id"]

    content = await api.post(f"/uploads/{workflow_id}/content", headers=HEADERS)
    assert content.status_code == 200
    assert content.json()["phase"] == "completed"
    assert b"%PDF-1.7" in scripted_platform.requests[-1].content

    completed = await api.post(f"/uploads/{workflow_id}/complete", headers=HEADERS)
    assert completed.status_code == 200
    assert completed.json()["job_id"] == "job-7"

    again = await api.post(f"/uploads/{workflow_id}/complete", headers=HEADERS)
    assert again.status_code == 409

    fetched = await api.get(f"/uploads/{workflow_id}", headers=HEADERS)
    assert fetched.json()["job_id"] == "job-7"


async def test_upload_without_token_is_unauthorized(api, scripted_platform) -> None:
    resp = await api.post("/uploads", files=[PDF], headers=HEADERS)

    assert resp.status_code == 401
    assert resp.json()["error"] == "TokenNotFoundError"
    assert app.state.upload_service.count() == 0
    assert scripted_platform.requests == []


async def test_invalid_file_name_is_unprocessable(api, scripted_platform, stored_token) -> None:
    resp = await api.post("/uploads", files=[("files", ("a.pd", b"x", "application/pdf"))], headers=HEADERS)

    assert resp.status_code == 422
    assert resp.json()["error"] == "ValidationError"
    assert app.state.upload_service.count() == 0


async def test_platform_error_is_bad_gateway(api, fake_platform, stored_token) -> None:
    fake_platform.responses["new"] = httpx.Response(503, text="maintenance")

    resp = await api.post("/uploads", files=[PDF], headers=HEADERS)

    assert resp.status_code == 502
    assert "maintenance" in resp.json()["detail"]


async def test_unknown_workflow_is_not_found(api) -> None:
    assert (await api.get("/uploads/missing", headers=HEADERS)).status_code == 404
    assert (await api.post("/uploads/missing/content", headers=HEADERS)).status_code == 404
    assert (await api.delete("/uploads/missing", headers=HEADERS)).status_code == 404


async def test_content_before_session_conflicts(api, helper_config) -> None:
    workflow = app.state.upload_service.start_workflow()

    resp = await api.post(f"/uploads/{workflow.workflow_id}/content", headers=HEADERS)

    assert resp.status_code == 409
    assert resp.json()["error"] == "WorkflowStateError"


async def test_discard_workflow(api, scripted_platform, stored_token) -> None:
    created = await api.post("/uploads", files=[PDF], headers=HEADERS)
    workflow_id = created.json()["workflow_id"]

    resp = await api.delete(f"/uploads/{workflow_id}", headers=HEADERS)

    assert resp.status_code == 204
    assert (await api.get(f"/uploads/{workflow_id}", headers=HEADERS)).status_code == 404
