"""Demo: walk the signing extension's OAuth + verify-mobile flow in-process.

Plays the signing provider against the app with FastAPI TestClient, using
throwaway credentials unless DEFAULT_CLIENT_ID/SECRET and JWT_SECRET are
already exported.

Run with:
    python scripts/demo_extension_flow.py
"""

from __future__ import annotations

import base64
import os
import sys
from pathlib import Path
from urllib.parse import parse_qs, urlparse

os.environ.setdefault("DEFAULT_CLIENT_ID", "demo-extension-client")
os.environ.setdefault("DEFAULT_CLIENT_SECRET", "demo-extension-secret")
os.environ.setdefault("JWT_SECRET", "demo-jwt-signing-secret-change-me")
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from fastapi.testclient import TestClient  # noqa: E402

from extension_auth.core.config import SETTINGS  # noqa: E402
from extension_auth.main import app  # noqa: E402
from extension_auth.services import pkce_service  # noqa: E402

CLIENT_ID = SETTINGS.default_client_id
REDIRECT_URI = SETTINGS.default_client_redirect_uris[0]


def _basic_auth() -> dict[str, str]:
    raw = f"{CLIENT_ID}:{SETTINGS.default_client_secret}".encode()
    return {"Authorization": f"Basic {base64.b64encode(raw).decode()}"}


def main() -> None:
    client = TestClient(app, follow_redirects=False)

    # ── Step 1: CORS preflight ──────────────────────────────────────
    r = client.options("/oauth/token")
    print(f"1. OPTIONS /oauth/token    → {r.status_code}  (preflight)")

    # ── Step 2: GET /oauth/authorize ────────────────────────────────
    verifier = pkce_service.generate_code_verifier()
    params = {
        "client_id": CLIENT_ID,
        "redirect_uri": REDIRECT_URI,
        "response_type": "code",
        "code_challenge": pkce_service.compute_code_challenge(verifier),
        "code_challenge_method": "S256",
        "scope": "signature",
        "state": "demo-state",
        "prompt": "consent",
    }
    r = client.get("/oauth/authorize", params=params)
    query = parse_qs(urlparse(r.headers["location"]).query)
    code = query["code"][0]
    print(
        f"2. GET  /oauth/authorize   → {r.status_code}  "
        f"code={code[:12]}…  state={query['state'][0]}"
    )

    # ── Step 3: POST /oauth/token ───────────────────────────────────
    token_request = {
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": REDIRECT_URI,
        "code_verifier": verifier,
    }
    r = client.post("/oauth/token", data=token_request, headers=_basic_auth())
    token_data = r.json()
    access_token = token_data["access_token"]
    print(
        f"3. POST /oauth/token       → {r.status_code}  "
        f"token={access_token[:20]}…  "
        f"expires_in={token_data['expires_in']}s"
    )

    # ── Step 4: POST /oauth/verify-mobile ───────────────────────────
    bearer = {"Authorization": f"Bearer {access_token}"}
    for phone_number, region in (("1234567890", "1"), ("1234567890", "91")):
        r = client.post(
            "/oauth/verify-mobile",
            json={"phoneNumber": phone_number, "region": region},
            headers=bearer,
        )
        print(f"4. POST /oauth/verify-mobile ({region}) → {r.status_code}  {r.json()}")

    # ── Step 5: replay the code ─────────────────────────────────────
    r = client.post("/oauth/token", data=token_request, headers=_basic_auth())
    print(
        f"5. POST /oauth/token (replay) → {r.status_code}  "
        f"{r.json()['error_description']}"
    )

    print("\nAll steps completed.")


if __name__ == "__main__":
    main()
