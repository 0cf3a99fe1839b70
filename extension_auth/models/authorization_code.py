from __future__ import annotations

import json
from dataclasses import asdict, dataclass


@dataclass(frozen=True, slots=True)
class AuthorizationCode:
    """Issuance metadata for one authorization code.

    Keyed by the SHA-256 of the raw code; the raw value is only ever handed
    to the client in the redirect.

    redirect_uri_bound is True when the client sent redirect_uri to
    /oauth/authorize, in which case /oauth/token must repeat it.
    """

    code_hash: str
    client_id: str
    redirect_uri: str
    redirect_uri_bound: bool
    scope: str | None
    state: str | None
    access_type: str | None
    code_challenge: str | None
    code_challenge_method: str | None
    issued_at: int
    expires_at: int

    @staticmethod
    def new(
        *,
        code_hash: str,
        client_id: str,
        redirect_uri: str,
        redirect_uri_bound: bool,
        issued_at: int,
        ttl_sec: int,
        scope: str | None = None,
        state: str | None = None,
        access_type: str | None = None,
        code_challenge: str | None = None,
        code_challenge_method: str | None = None,
    ) -> AuthorizationCode:
        return AuthorizationCode(
            code_hash=code_hash,
            client_id=client_id,
            redirect_uri=redirect_uri,
            redirect_uri_bound=redirect_uri_bound,
            scope=scope,
            state=state,
            access_type=access_type,
            code_challenge=code_challenge,
            code_challenge_method=code_challenge_method,
            issued_at=issued_at,
            expires_at=issued_at + ttl_sec,
        )

    def is_expired(self, now_ts: int) -> bool:
        return now_ts > self.expires_at

    @property
    def wants_refresh_token(self) -> bool:
        return self.access_type == "offline"

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @staticmethod
    def from_json(raw: str) -> AuthorizationCode:
        return AuthorizationCode(**json.loads(raw))
