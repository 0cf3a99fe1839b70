"""FastAPI dependency providers.

The client registry, code store, token issuer and phone directory are
built once here and handed to endpoints through ``Depends``. Tests swap
any of them with ``app.dependency_overrides``.
"""

from __future__ import annotations

import logging
from typing import Annotated

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from extension_auth.core.config import SETTINGS
from extension_auth.core.errors import BearerTokenError
from extension_auth.core.metrics import TOKEN_VALIDATIONS
from extension_auth.db.redis import redis_pool
from extension_auth.models.principal import Principal
from extension_auth.repos.auth_code_repo import build_auth_code_repo
from extension_auth.repos.oauth_client_repo import OAuthClientRepo
from extension_auth.services.auth_code_service import AuthCodeService
from extension_auth.services.client_auth_service import build_client_repo
from extension_auth.services.phone_directory import PhoneDirectory
from extension_auth.services.token_service import TokenService

logger = logging.getLogger(__name__)

_client_repo = build_client_repo(SETTINGS)
_auth_code_service = AuthCodeService(
    build_auth_code_repo(redis_pool), ttl_sec=SETTINGS.auth_code_ttl_sec
)
_token_service = TokenService(
    secret=SETTINGS.jwt_secret,
    issuer=SETTINGS.token_issuer,
    ttl_sec=SETTINGS.access_token_ttl_sec,
)
_phone_directory = PhoneDirectory.from_json_file(SETTINGS.phone_data_path)

bearer_scheme = HTTPBearer(auto_error=False)


def get_client_repo() -> OAuthClientRepo:
    return _client_repo


def get_auth_code_service() -> AuthCodeService:
    return _auth_code_service


def get_token_service() -> TokenService:
    return _token_service


def get_phone_directory() -> PhoneDirectory:
    return _phone_directory


def require_client(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> Principal:
    """Validate ``Authorization: Bearer <token>`` and return the Principal.

    Used as a dependency on every protected endpoint.
    """
    if credentials is None or not credentials.credentials:
        TOKEN_VALIDATIONS.labels(result="missing").inc()
        raise BearerTokenError(
            "Missing or invalid authorization header",
            "Bearer token required",
        )

    try:
        claims = tokens.verify(credentials.credentials)
    except jwt.ExpiredSignatureError:
        TOKEN_VALIDATIONS.labels(result="expired").inc()
        logger.warning("Expired token rejected")
        raise BearerTokenError("Invalid token", "Token expired") from None
    except jwt.InvalidTokenError as e:
        TOKEN_VALIDATIONS.labels(result="invalid").inc()
        logger.warning("Invalid token rejected: %s", e)
        raise BearerTokenError("Invalid token", "Token failed validation") from None

    TOKEN_VALIDATIONS.labels(result="valid").inc()
    principal = Principal.from_claims(claims)
    logger.debug(
        "Token validated for client_id=%s scopes=%s",
        principal.client_id,
        sorted(principal.scopes),
    )
    return principal
