from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass, field

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError

from extension_auth.core.config import Settings
from extension_auth.core.errors import InvalidClientError
from extension_auth.models.oauth_client import OAuthClient
from extension_auth.repos.oauth_client_repo import (
    InMemoryOAuthClientRepo,
    OAuthClientRepo,
)

logger = logging.getLogger(__name__)

# Client secrets are hashed once at startup; verification goes through
# Argon2, whose digest comparison is constant-time.
_ph = PasswordHasher()

# Verified against when the client_id is unknown, so a miss costs the same
# as a wrong secret and response timing does not reveal which ids exist.
_DUMMY_HASH = _ph.hash("unknown-client-placeholder")


@dataclass(frozen=True, slots=True)
class ClientCredentials:
    client_id: str
    client_secret: str = field(repr=False)


def hash_secret(plain_secret: str) -> str:
    if not plain_secret:
        raise ValueError("client secret must be non-empty")
    return _ph.hash(plain_secret)


def verify_secret(plain_secret: str, secret_hash: str) -> bool:
    if not plain_secret or not secret_hash:
        return False
    try:
        return _ph.verify(secret_hash, plain_secret)
    except (VerifyMismatchError, VerificationError, InvalidHash):
        return False


def build_client_repo(settings: Settings) -> InMemoryOAuthClientRepo:
    """Build the static client allow-list from settings."""
    default_client = OAuthClient.new(
        client_id=settings.default_client_id,
        display_name=settings.default_client_name,
        redirect_uris=settings.default_client_redirect_uris,
        secret_hash=hash_secret(settings.default_client_secret),
    )
    logger.info(
        "Client registry loaded  client_id=%s name=%r redirect_uris=%d",
        default_client.client_id,
        default_client.display_name,
        len(default_client.redirect_uris),
    )
    return InMemoryOAuthClientRepo([default_client])


def parse_basic_auth(authorization: str | None) -> ClientCredentials | None:
    """Decode ``Authorization: Basic base64(id:secret)``.

    Returns None when the header is absent or not Basic. Raises
    InvalidClientError when it is Basic but cannot be decoded.
    """
    if not authorization:
        return None
    scheme, _, encoded = authorization.partition(" ")
    if scheme.lower() != "basic":
        return None
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        raise InvalidClientError("Malformed Basic authorization header") from None
    client_id, sep, client_secret = decoded.partition(":")
    if not sep or not client_id:
        raise InvalidClientError("Malformed Basic authorization header")
    return ClientCredentials(client_id=client_id, client_secret=client_secret)


def extract_client_credentials(
    authorization: str | None, params: dict[str, str]
) -> ClientCredentials | None:
    """Basic header first, then client_id/client_secret body parameters."""
    creds = parse_basic_auth(authorization)
    if creds is not None:
        return creds
    client_id = params.get("client_id")
    client_secret = params.get("client_secret")
    if client_id and client_secret:
        return ClientCredentials(client_id=client_id, client_secret=client_secret)
    return None


def authenticate_client(
    repo: OAuthClientRepo, creds: ClientCredentials | None
) -> OAuthClient:
    if creds is None:
        raise InvalidClientError("Missing client credentials")

    client = repo.get(creds.client_id)
    secret_hash = client.secret_hash if client is not None else _DUMMY_HASH
    secret_ok = verify_secret(creds.client_secret, secret_hash)

    if client is None or not secret_ok:
        logger.warning("Client authentication failed  client_id=%s", creds.client_id)
        raise InvalidClientError("Invalid client credentials")
    return client
