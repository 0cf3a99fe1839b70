from __future__ import annotations

from typing import Protocol, runtime_checkable

from extension_auth.models.authorization_code import AuthorizationCode


@runtime_checkable
class AuthCodeRepo(Protocol):
    async def create(self, record: AuthorizationCode, ttl_sec: int) -> None: ...

    async def pop(self, code_hash: str) -> AuthorizationCode | None:
        """Remove and return the record in one step, or None if absent."""
        ...


class InMemoryAuthCodeRepo:
    """Per-process code store for tests and single-process deployments.

    Expired entries are not swept; they are rejected (and dropped) when
    someone tries to redeem them.
    """

    def __init__(self) -> None:
        self._by_code_hash: dict[str, AuthorizationCode] = {}

    async def create(self, record: AuthorizationCode, ttl_sec: int) -> None:
        self._by_code_hash[record.code_hash] = record

    async def pop(self, code_hash: str) -> AuthorizationCode | None:
        return self._by_code_hash.pop(code_hash, None)


class RedisAuthCodeRepo:
    """Redis-backed code store shared by every process behind the service.

    SET ... EX lets Redis drop unredeemed codes on its own; GETDEL makes
    redemption a single atomic command, so two concurrent token requests
    carrying the same code cannot both receive the record.
    """

    _PREFIX = "oauth:code:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def create(self, record: AuthorizationCode, ttl_sec: int) -> None:
        await self._redis.set(
            f"{self._PREFIX}{record.code_hash}", record.to_json(), ex=ttl_sec
        )

    async def pop(self, code_hash: str) -> AuthorizationCode | None:
        raw = await self._redis.getdel(f"{self._PREFIX}{code_hash}")
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return AuthorizationCode.from_json(raw)


def build_auth_code_repo(redis_client) -> AuthCodeRepo:
    if redis_client is not None:
        return RedisAuthCodeRepo(redis_client)
    return InMemoryAuthCodeRepo()
