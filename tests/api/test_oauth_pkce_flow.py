"""Authorization Code + PKCE — full flow test.

This test acts as the signing provider, driving every step of the
handshake against the authorization server (extension_auth/api/oauth.py)
and finally using the issued token against the verification endpoint.

Flow:
  1. Setup      — generate PKCE verifier + challenge
  2. Authorize  — GET /oauth/authorize → 302 redirect with code
  3. Token      — POST /oauth/token (code + verifier) → access_token
  4. Resource   — POST /oauth/verify-mobile with Bearer token → 200
"""

from __future__ import annotations

import logging

from fastapi.testclient import TestClient

from extension_auth.services import pkce_service
from tests.conftest import REDIRECT_URI, authorize, basic_auth

logger = logging.getLogger(__name__)

STATE = "drone-registration-42"


def _token_request(client: TestClient, code: str, **extra: str):
    return client.post(
        "/oauth/token",
        data={
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": REDIRECT_URI,
            **extra,
        },
        headers=basic_auth(),
    )


def test_full_pkce_flow(client: TestClient) -> None:
    # ---- Step 1: setup ----
    verifier = pkce_service.generate_code_verifier()
    challenge = pkce_service.compute_code_challenge(verifier)
    logger.info("Step 1  verifier=%d chars", len(verifier))

    # ---- Step 2: authorize ----
    query = authorize(
        client,
        redirect_uri=REDIRECT_URI,
        state=STATE,
        scope="signature",
        prompt="consent",
        code_challenge=challenge,
        code_challenge_method="S256",
    )
    assert query["state"] == [STATE]
    code = query["code"][0]

    # ---- Step 3: token ----
    resp = _token_request(client, code, code_verifier=verifier)
    assert resp.status_code == 200, resp.text
    access_token = resp.json()["access_token"]

    # ---- Step 4: resource ----
    resp = client.post(
        "/oauth/verify-mobile",
        json={"phoneNumber": "1234567890", "region": "1"},
        headers={"Authorization": f"Bearer {access_token}"},
    )
    assert resp.status_code == 200
    assert resp.json() == {"verified": True}


def test_wrong_verifier_is_rejected(client: TestClient) -> None:
    challenge = pkce_service.compute_code_challenge(
        pkce_service.generate_code_verifier()
    )
    code = authorize(
        client,
        redirect_uri=REDIRECT_URI,
        code_challenge=challenge,
        code_challenge_method="S256",
    )["code"][0]

    resp = _token_request(
        client, code, code_verifier=pkce_service.generate_code_verifier()
    )
    assert resp.status_code == 400
    assert resp.json() == {
        "error": "invalid_grant",
        "error_description": "PKCE verification failed",
    }


def test_missing_verifier_is_rejected(client: TestClient) -> None:
    verifier = pkce_service.generate_code_verifier()
    code = authorize(
        client,
        redirect_uri=REDIRECT_URI,
        code_challenge=pkce_service.compute_code_challenge(verifier),
        code_challenge_method="S256",
    )["code"][0]

    resp = _token_request(client, code)
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_grant"

    # A failed check burns the code: the right verifier is now too late.
    resp = _token_request(client, code, code_verifier=verifier)
    assert resp.status_code == 400


def test_plain_method_round_trip(client: TestClient) -> None:
    verifier = pkce_service.generate_code_verifier()
    code = authorize(
        client,
        redirect_uri=REDIRECT_URI,
        code_challenge=verifier,
        code_challenge_method="plain",
    )["code"][0]

    resp = _token_request(client, code, code_verifier=verifier)
    assert resp.status_code == 200, resp.text


def test_challenge_without_method_defaults_to_plain(client: TestClient) -> None:
    verifier = pkce_service.generate_code_verifier()
    code = authorize(client, redirect_uri=REDIRECT_URI, code_challenge=verifier)[
        "code"
    ][0]

    resp = _token_request(client, code, code_verifier=verifier)
    assert resp.status_code == 200, resp.text
