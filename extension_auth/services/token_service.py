"""Bearer access token issuance and validation (HS256 JWT).

Centralizes token logic so /oauth/token (issuance) and the bearer
dependency in api/dependencies.py (validation) share one key, one issuer,
and one claims schema:

    clientId, scope, iat, exp, aud (= clientId), iss, jti

Tokens are stateless and cannot be revoked before they expire.
"""

from __future__ import annotations

import secrets
import uuid
from datetime import UTC, datetime, timedelta

import jwt

ALGORITHM = "HS256"
DEFAULT_SCOPE = "signature"
REQUIRED_CLAIMS = ["clientId", "aud", "iss", "exp", "iat"]


class TokenService:
    def __init__(self, *, secret: str, issuer: str, ttl_sec: int = 3600) -> None:
        if not secret:
            raise ValueError("token signing secret must be non-empty")
        self._secret = secret
        self.issuer = issuer
        self.ttl_sec = ttl_sec

    def __repr__(self) -> str:
        return f"TokenService(issuer={self.issuer!r}, ttl_sec={self.ttl_sec})"

    def issue(self, client_id: str, scope: str | None = None) -> str:
        """Build and sign an access token bound to client_id."""
        now = datetime.now(UTC)
        payload = {
            "clientId": client_id,
            "scope": scope or DEFAULT_SCOPE,
            "iss": self.issuer,
            "aud": client_id,
            "iat": now,
            "exp": now + timedelta(seconds=self.ttl_sec),
            "jti": str(uuid.uuid4()),
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str, *, audience: str | None = None) -> dict:
        """Verify signature, issuer, expiry and audience; return the claims.

        Pins the algorithm to HS256 so alg:none and algorithm-switching
        tokens are refused. Without an explicit audience the token must be
        addressed to the client it names (aud == clientId).

        Raises jwt.ExpiredSignatureError or jwt.InvalidTokenError on failure.
        """
        claims = jwt.decode(
            token,
            self._secret,
            algorithms=[ALGORITHM],
            issuer=self.issuer,
            audience=audience,
            options={"require": REQUIRED_CLAIMS, "verify_aud": audience is not None},
        )
        if audience is None and claims["aud"] != claims["clientId"]:
            raise jwt.InvalidAudienceError("Audience does not match clientId")
        return claims


def generate_refresh_token() -> str:
    # Opaque and unpersisted: handed to offline-access clients but never
    # redeemable by any endpoint.
    return secrets.token_hex(32)
