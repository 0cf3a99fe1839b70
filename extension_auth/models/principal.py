from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated client identity extracted from a validated bearer token.

    Carried through the request via FastAPI's dependency system; protected
    endpoints receive this instead of raw claims.
    """

    client_id: str
    scopes: frozenset[str]
    token_id: str | None = None

    @staticmethod
    def from_claims(claims: dict) -> Principal:
        scope = claims.get("scope") or ""
        return Principal(
            client_id=claims["clientId"],
            scopes=frozenset(scope.split()),
            token_id=claims.get("jti"),
        )

    def has_scope(self, scope: str) -> bool:
        return scope in self.scopes
