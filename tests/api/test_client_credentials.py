"""POST /oauth/token with grant_type=client_credentials."""

from __future__ import annotations

import jwt
from fastapi.testclient import TestClient

from tests.conftest import CLIENT_ID, basic_auth


def test_client_credentials_issues_token(client: TestClient) -> None:
    resp = client.post(
        "/oauth/token",
        data={"grant_type": "client_credentials"},
        headers=basic_auth(),
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["token_type"] == "Bearer"
    assert body["expires_in"] == 3600
    assert "refresh_token" not in body

    claims = jwt.decode(body["access_token"], options={"verify_signature": False})
    assert claims["clientId"] == CLIENT_ID
    assert claims["aud"] == CLIENT_ID
    assert claims["scope"] == "signature"


def test_client_credentials_echoes_scope(client: TestClient) -> None:
    resp = client.post(
        "/oauth/token",
        data={"grant_type": "client_credentials", "scope": "signature"},
        headers=basic_auth(),
    )
    assert resp.json()["scope"] == "signature"


def test_client_credentials_requires_valid_secret(client: TestClient) -> None:
    resp = client.post(
        "/oauth/token",
        data={"grant_type": "client_credentials"},
        headers=basic_auth(secret="wrong"),
    )
    assert resp.status_code == 401
    assert resp.json()["error"] == "invalid_client"


def test_client_credentials_token_opens_protected_resource(
    client: TestClient,
) -> None:
    access_token = client.post(
        "/oauth/token",
        data={"grant_type": "client_credentials"},
        headers=basic_auth(),
    ).json()["access_token"]

    resp = client.get(
        "/api/protected", headers={"Authorization": f"Bearer {access_token}"}
    )
    assert resp.status_code == 200
    assert resp.json()["client_id"] == CLIENT_ID
