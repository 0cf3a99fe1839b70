"""Authorization code issuance and single-use redemption.

Codes are 256-bit random values rendered as 64 hex characters. Only the
SHA-256 of a code is stored, so a dump of the store cannot be replayed.
Every redemption attempt removes the record first and validates second:
a code that fails any later check is still gone.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import UTC, datetime

from extension_auth.core.errors import InvalidGrantError
from extension_auth.core.metrics import AUTH_CODES_ISSUED, CODE_REDEMPTIONS
from extension_auth.models.authorization_code import AuthorizationCode
from extension_auth.repos.auth_code_repo import AuthCodeRepo

logger = logging.getLogger(__name__)

AUTH_CODE_TTL_SEC = 600


def hash_code(raw_code: str) -> str:
    return hashlib.sha256(raw_code.encode("utf-8")).hexdigest()


def _now_ts() -> int:
    return int(datetime.now(UTC).timestamp())


class AuthCodeService:
    def __init__(self, repo: AuthCodeRepo, ttl_sec: int = AUTH_CODE_TTL_SEC) -> None:
        self._repo = repo
        self.ttl_sec = ttl_sec

    async def issue(
        self,
        *,
        client_id: str,
        redirect_uri: str,
        redirect_uri_bound: bool = True,
        state: str | None = None,
        scope: str | None = None,
        access_type: str | None = None,
        code_challenge: str | None = None,
        code_challenge_method: str | None = None,
    ) -> str:
        raw_code = secrets.token_hex(32)
        record = AuthorizationCode.new(
            code_hash=hash_code(raw_code),
            client_id=client_id,
            redirect_uri=redirect_uri,
            redirect_uri_bound=redirect_uri_bound,
            issued_at=_now_ts(),
            ttl_sec=self.ttl_sec,
            scope=scope,
            state=state,
            access_type=access_type,
            code_challenge=code_challenge,
            code_challenge_method=code_challenge_method,
        )
        await self._repo.create(record, self.ttl_sec)
        AUTH_CODES_ISSUED.inc()
        logger.info(
            "Authorization code issued  client_id=%s code=%s… expires_at=%d pkce=%s",
            client_id,
            record.code_hash[:12],
            record.expires_at,
            code_challenge_method or "none",
        )
        return raw_code

    async def redeem(self, raw_code: str) -> AuthorizationCode:
        """Consume a code. Raises InvalidGrantError if unknown or expired."""
        code_hash = hash_code(raw_code)
        record = await self._repo.pop(code_hash)
        if record is None:
            CODE_REDEMPTIONS.labels(result="unknown").inc()
            logger.warning(
                "Code redemption failed: unknown or already used  code=%s…",
                code_hash[:12],
            )
            raise InvalidGrantError("Invalid or expired authorization code")

        if record.is_expired(_now_ts()):
            CODE_REDEMPTIONS.labels(result="expired").inc()
            logger.warning(
                "Code redemption failed: expired  client_id=%s code=%s…",
                record.client_id,
                code_hash[:12],
            )
            raise InvalidGrantError("Invalid or expired authorization code")

        CODE_REDEMPTIONS.labels(result="ok").inc()
        return record
