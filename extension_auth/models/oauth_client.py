from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class OAuthClient:
    client_id: str
    display_name: str
    redirect_uris: tuple[str, ...]
    # Argon2 encoded hash; the plaintext secret is never kept in memory.
    secret_hash: str = field(repr=False)

    @staticmethod
    def new(
        *,
        client_id: str,
        display_name: str,
        redirect_uris: tuple[str, ...],
        secret_hash: str,
    ) -> OAuthClient:
        if not client_id:
            raise ValueError("client_id must be non-empty")
        return OAuthClient(
            client_id=client_id,
            display_name=display_name,
            redirect_uris=tuple(redirect_uris),
            secret_hash=secret_hash,
        )

    @property
    def default_redirect_uri(self) -> str | None:
        return self.redirect_uris[0] if self.redirect_uris else None
