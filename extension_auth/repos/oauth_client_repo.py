from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from extension_auth.models.oauth_client import OAuthClient


class OAuthClientRepo(Protocol):
    def get(self, client_id: str) -> OAuthClient | None: ...


class InMemoryOAuthClientRepo:
    """Static allow-list of clients, fixed at construction.

    No register/delete: the registry is built once from configuration at
    startup and never changes afterwards.
    """

    def __init__(self, clients: Iterable[OAuthClient] = ()) -> None:
        self._by_client_id: dict[str, OAuthClient] = {}
        for client in clients:
            if client.client_id in self._by_client_id:
                raise ValueError(f"duplicate client_id {client.client_id!r}")
            self._by_client_id[client.client_id] = client

    def get(self, client_id: str) -> OAuthClient | None:
        return self._by_client_id.get(client_id)

    def __len__(self) -> int:
        return len(self._by_client_id)
