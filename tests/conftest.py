from __future__ import annotations

import base64
import os
import sys
from collections.abc import Iterator
from pathlib import Path
from urllib.parse import parse_qs, urlparse

# Required settings must exist before extension_auth is imported: the config
# module refuses to load without them.
os.environ["APP_ENV"] = "test"
os.environ["DEFAULT_CLIENT_ID"] = "test-extension-client"
os.environ["DEFAULT_CLIENT_SECRET"] = "test-extension-secret-0123456789"
os.environ["JWT_SECRET"] = "test-jwt-signing-secret-0123456789abcdef"
os.environ.pop("REDIS_URL", None)
os.environ.pop("DEFAULT_CLIENT_REDIRECT_URIS", None)
os.environ.pop("ACCESS_TOKEN_TTL_SEC", None)
os.environ.pop("AUTH_CODE_TTL_SEC", None)

# Ensure repo root is on sys.path so `import extension_auth` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from extension_auth.api import dependencies  # noqa: E402
from extension_auth.core.config import PARTNER_CALLBACK_URL  # noqa: E402
from extension_auth.main import app  # noqa: E402
from extension_auth.models.oauth_client import OAuthClient  # noqa: E402
from extension_auth.repos.oauth_client_repo import (  # noqa: E402
    InMemoryOAuthClientRepo,
)
from extension_auth.services.client_auth_service import hash_secret  # noqa: E402

CLIENT_ID = os.environ["DEFAULT_CLIENT_ID"]
CLIENT_SECRET = os.environ["DEFAULT_CLIENT_SECRET"]
REDIRECT_URI = PARTNER_CALLBACK_URL

OTHER_CLIENT_ID = "other-client"
OTHER_CLIENT_SECRET = "other-client-secret-abcdef"
OTHER_REDIRECT_URI = "https://other.example.com/callback"


@pytest.fixture(autouse=True)
def reset_auth_codes() -> None:
    """Clear the in-memory code store between tests."""
    repo = dependencies.get_auth_code_service()._repo
    if hasattr(repo, "_by_code_hash"):
        repo._by_code_hash.clear()  # type: ignore[union-attr]


@pytest.fixture(autouse=True)
def reset_dependency_overrides() -> Iterator[None]:
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app, follow_redirects=False)


@pytest.fixture
def two_clients() -> InMemoryOAuthClientRepo:
    """Registry holding the default client plus a second, unrelated one."""
    repo = InMemoryOAuthClientRepo(
        [
            dependencies.get_client_repo().get(CLIENT_ID),  # type: ignore[list-item]
            OAuthClient.new(
                client_id=OTHER_CLIENT_ID,
                display_name="Other Client",
                redirect_uris=(OTHER_REDIRECT_URI,),
                secret_hash=hash_secret(OTHER_CLIENT_SECRET),
            ),
        ]
    )
    app.dependency_overrides[dependencies.get_client_repo] = lambda: repo
    return repo


def basic_auth(client_id: str = CLIENT_ID, secret: str = CLIENT_SECRET) -> dict:
    raw = f"{client_id}:{secret}".encode()
    return {"Authorization": f"Basic {base64.b64encode(raw).decode()}"}


def mint_token(client_id: str = CLIENT_ID, scope: str | None = None) -> str:
    """Create a valid access token signed with the service key."""
    return dependencies.get_token_service().issue(client_id, scope)


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def authorize(client: TestClient, **params: str) -> dict[str, list[str]]:
    """GET /oauth/authorize and return the redirect's parsed query."""
    query = {"client_id": CLIENT_ID, "response_type": "code", **params}
    resp = client.get("/oauth/authorize", params=query)
    assert resp.status_code == 302, resp.text
    return parse_qs(urlparse(resp.headers["location"]).query)


def obtain_code(client: TestClient, **params: str) -> str:
    return authorize(client, **params)["code"][0]


@pytest.fixture
def token() -> str:
    return mint_token()
