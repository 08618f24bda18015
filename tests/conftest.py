import base64
import json
import logging

import httpx
import pytest

from shared.clients.invoicing.cecurity.InvoicingClientCecurity import InvoicingClientCecurity
from shared.clients.tokenstore.supabase.TokenStoreClientSupabase import TokenStoreClientSupabase
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger

PLATFORM_URL = "https://platform.test"
STORE_URL = "https://store.test"
SUBSCRIPTION_ID = "sub-0001"


def make_jwt(payload: dict) -> str:
    def encode(part: dict) -> str:
        return base64.urlsafe_b64encode(json.dumps(part).encode()).rstrip(b"=").decode()

    return f"{encode({'alg': 'HS256', 'typ': 'JWT'})}.{encode(payload)}.signature"


class FakeTokenStore:
    """In-memory PostgREST table answering the requests of TokenStoreClientSupabase."""

    def __init__(self) -> None:
        self.rows: dict[str, dict] = {}
        self.requests: list[httpx.Request] = []
        self.fail_with: int | None = None
        self.duplicate_rows = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with:
            return httpx.Response(self.fail_with, json={"message": "store unavailable"})
        if request.url.path == "/rest/v1/":
            return httpx.Response(200, json={})
        if request.method == "POST":
            for row in json.loads(request.content):
                self.rows[row["subscription_id"]] = row
            return httpx.Response(201)
        if request.method == "GET":
            wanted = request.url.params.get("subscription_id", "").removeprefix("eq.")
            matches = [row for key, row in self.rows.items() if key == wanted]
            return httpx.Response(200, json=matches * 2 if self.duplicate_rows else matches)
        return httpx.Response(405)


class FakePlatform:
    """Scriptable invoicing platform. Responses are keyed by the last path segment."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: dict[str, httpx.Response] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        action = request.url.path.rstrip("/").rsplit("/", 1)[-1]
        return self.responses.get(action, httpx.Response(404, text="not scripted"))


@pytest.fixture
def env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INVOICING_CECURITY_BASE_URL", PLATFORM_URL)
    monkeypatch.setenv("INVOICING_CECURITY_API_KEY", "platform-api-key")
    monkeypatch.setenv("INVOICING_CECURITY_SUBSCRIPTION_ID", SUBSCRIPTION_ID)
    monkeypatch.setenv("INVOICING_CECURITY_MAIL_ADDRESS", "invoices@example.test")
    monkeypatch.setenv("TOKENSTORE_SUPABASE_BASE_URL", STORE_URL)
    monkeypatch.setenv("TOKENSTORE_SUPABASE_API_KEY", "service-role-key")
    monkeypatch.setenv("API_SERVER_API_KEY", "inbound-key")
    monkeypatch.delenv("ENV_FILE", raising=False)


@pytest.fixture
def helper_config(env) -> HelperConfig:
    return HelperConfig(logger=ColorLogger(logging.getLogger("efacture.tests")))


@pytest.fixture
def fake_store() -> FakeTokenStore:
    return FakeTokenStore()


@pytest.fixture
def fake_platform() -> FakePlatform:
    return FakePlatform()


@pytest.fixture
async def token_store(helper_config, fake_store):
    client = TokenStoreClientSupabase(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(fake_store))
    yield client
    await client.close()


@pytest.fixture
async def invoicing_client(helper_config, token_store, fake_platform):
    client = InvoicingClientCecurity(helper_config=helper_config, token_store=token_store)
    await client.boot(transport=httpx.MockTransport(fake_platform))
    yield client
    await client.close()


@pytest.fixture
def stored_token(fake_store) -> str:
    token = make_jwt({"sub": "alice", "exp": 1700000000})
    fake_store.rows[SUBSCRIPTION_ID] = {
        "subscription_id": SUBSCRIPTION_ID,
        "login": "alice",
        "token": token,
        "expires_at": "2023-11-14T22:13:20.000Z",
    }
    return token
