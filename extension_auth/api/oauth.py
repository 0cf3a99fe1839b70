from __future__ import annotations

import json
import logging
from typing import Annotated
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel

from extension_auth.api.dependencies import (
    get_auth_code_service,
    get_client_repo,
    get_token_service,
)
from extension_auth.core.errors import (
    InvalidGrantError,
    InvalidRequestError,
    UnauthorizedClientError,
    UnsupportedGrantTypeError,
)
from extension_auth.core.metrics import TOKENS_ISSUED
from extension_auth.models.oauth_client import OAuthClient
from extension_auth.repos.oauth_client_repo import OAuthClientRepo
from extension_auth.services import pkce_service
from extension_auth.services.auth_code_service import AuthCodeService
from extension_auth.services.client_auth_service import (
    authenticate_client,
    extract_client_credentials,
)
from extension_auth.services.token_service import (
    TokenService,
    generate_refresh_token,
)

# ---------------------------------------------------------------------------
# Authorization Server — OAuth 2.0 Authorization Code (+ optional PKCE) and
# Client Credentials grants.
#
# Endpoints:
#   GET  /oauth/authorize  — issue authorization code, redirect back to client
#   POST /oauth/token      — exchange code or client credentials for a token
# ---------------------------------------------------------------------------

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/oauth", tags=["oauth"])

NO_STORE_HEADERS = {"Cache-Control": "no-store", "Pragma": "no-cache"}


def _log_context(client_id: str | None, grant_type: str | None = None) -> dict:
    # Top-level keys in JSON log lines (see core/logging.py).
    return {"client_id": client_id, "grant_type": grant_type}


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    expires_in: int
    scope: str | None = None
    refresh_token: str | None = None


# ========================== GET /oauth/authorize ==========================
# The signing provider sends the user's browser here. We validate the
# request, record a one-time code, and redirect back with it.


def _resolve_redirect_uri(
    client: OAuthClient, redirect_uri: str | None
) -> tuple[str, bool]:
    """Return (redirect target, whether it is bound to the code)."""
    if redirect_uri is not None:
        # Exact match against registration; prefix or wildcard matching
        # would turn the endpoint into an open redirector.
        if redirect_uri not in client.redirect_uris:
            raise InvalidRequestError(
                "redirect_uri is not registered for this client"
            )
        return redirect_uri, True

    default = client.default_redirect_uri
    if default is None:
        raise InvalidRequestError("redirect_uri is required")
    return default, False


def _validate_pkce(
    code_challenge: str | None, code_challenge_method: str | None
) -> str | None:
    if code_challenge is None:
        if code_challenge_method is not None:
            raise InvalidRequestError(
                "code_challenge_method given without code_challenge"
            )
        return None
    method = code_challenge_method or pkce_service.PLAIN
    if method not in pkce_service.SUPPORTED_METHODS:
        raise InvalidRequestError("code_challenge_method must be S256 or plain")
    return method


# POST reads the same query parameters as GET.
@router.api_route("/authorize", methods=["GET", "POST"])
async def authorize(
    clients: Annotated[OAuthClientRepo, Depends(get_client_repo)],
    codes: Annotated[AuthCodeService, Depends(get_auth_code_service)],
    client_id: Annotated[str | None, Query()] = None,
    redirect_uri: Annotated[str | None, Query()] = None,
    response_type: Annotated[str | None, Query()] = None,
    state: Annotated[str | None, Query()] = None,
    scope: Annotated[str | None, Query()] = None,
    prompt: Annotated[str | None, Query()] = None,
    access_type: Annotated[str | None, Query()] = None,
    code_challenge: Annotated[str | None, Query()] = None,
    code_challenge_method: Annotated[str | None, Query()] = None,
) -> RedirectResponse:
    logger.info(
        "AUTHORIZE request  client_id=%s response_type=%s scope=%s",
        client_id,
        response_type,
        scope,
        extra=_log_context(client_id),
    )

    # FAIL POINT: only the code flow exists here (no implicit grant)
    if not client_id or response_type != "code":
        raise InvalidRequestError("Missing required parameters")

    client = clients.get(client_id)
    if client is None:
        logger.warning(
            "AUTHORIZE rejected: unknown client_id=%s",
            client_id,
            extra=_log_context(client_id),
        )
        raise UnauthorizedClientError("Invalid client")

    if prompt is not None and prompt != "consent":
        raise InvalidRequestError("Invalid prompt parameter")

    target, bound = _resolve_redirect_uri(client, redirect_uri)
    method = _validate_pkce(code_challenge, code_challenge_method)

    raw_code = await codes.issue(
        client_id=client.client_id,
        redirect_uri=target,
        redirect_uri_bound=bound,
        state=state,
        scope=scope,
        access_type=access_type,
        code_challenge=code_challenge,
        code_challenge_method=method,
    )

    params = {"code": raw_code}
    if state is not None:
        params["state"] = state
    separator = "&" if "?" in target else "?"
    logger.info(
        "AUTHORIZE redirecting  client_id=%s bound_redirect=%s",
        client_id,
        bound,
        extra=_log_context(client_id),
    )
    return RedirectResponse(
        url=f"{target}{separator}{urlencode(params)}",
        status_code=status.HTTP_302_FOUND,
    )


# ========================== POST /oauth/token =============================
# Accepts form-urlencoded or JSON bodies. Client credentials come from the
# Basic header, falling back to client_id/client_secret in the body.


async def _read_params(request: Request) -> dict[str, str]:
    content_type = request.headers.get("content-type", "")
    if (
        "application/x-www-form-urlencoded" in content_type
        or "multipart/form-data" in content_type
    ):
        form = await request.form()
        return {k: v for k, v in form.items() if isinstance(v, str)}

    body = await request.body()
    if not body:
        return {}
    try:
        data = json.loads(body)
    except ValueError:
        # Same leniency as an empty body: the gates below report what is missing.
        return {}
    if not isinstance(data, dict):
        return {}
    params: dict[str, str] = {}
    for key, value in data.items():
        if value is None:
            continue
        if not isinstance(value, str):
            raise InvalidRequestError(f"Parameter {key} must be a string")
        params[str(key)] = value
    return params


async def _exchange_code(
    params: dict[str, str], client: OAuthClient, codes: AuthCodeService
) -> tuple[str | None, bool]:
    """Validate an authorization_code grant; return (scope, wants_refresh)."""
    code = params.get("code")
    if not code:
        raise InvalidRequestError("Missing authorization code")

    # The record is removed here, before any other check runs.
    record = await codes.redeem(code)

    if record.client_id != client.client_id:
        logger.warning(
            "TOKEN rejected: code issued to client_id=%s presented by client_id=%s",
            record.client_id,
            client.client_id,
            extra=_log_context(client.client_id, "authorization_code"),
        )
        raise InvalidGrantError("Authorization code was not issued to this client")

    if record.redirect_uri_bound and params.get("redirect_uri") != record.redirect_uri:
        logger.warning(
            "TOKEN rejected: redirect_uri mismatch  client_id=%s",
            client.client_id,
            extra=_log_context(client.client_id, "authorization_code"),
        )
        raise InvalidGrantError(
            "redirect_uri does not match the authorization request"
        )

    if record.code_challenge is not None:
        # NOTE: never log code_verifier.
        verifier = params.get("code_verifier")
        if not verifier or not pkce_service.verify_code_challenge(
            verifier,
            record.code_challenge,
            record.code_challenge_method or pkce_service.PLAIN,
        ):
            logger.warning(
                "TOKEN rejected: PKCE verification failed  client_id=%s",
                client.client_id,
                extra=_log_context(client.client_id, "authorization_code"),
            )
            raise InvalidGrantError("PKCE verification failed")

    return record.scope, record.wants_refresh_token


@router.post("/token", response_model=TokenResponse, response_model_exclude_none=True)
async def token(
    request: Request,
    clients: Annotated[OAuthClientRepo, Depends(get_client_repo)],
    codes: Annotated[AuthCodeService, Depends(get_auth_code_service)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> JSONResponse:
    params = await _read_params(request)

    creds = extract_client_credentials(request.headers.get("authorization"), params)
    client = authenticate_client(clients, creds)

    grant_type = params.get("grant_type")
    logger.info(
        "TOKEN request  client_id=%s grant_type=%s",
        client.client_id,
        grant_type,
        extra=_log_context(client.client_id, grant_type),
    )

    if not grant_type:
        raise InvalidRequestError("Missing grant_type")

    wants_refresh = False
    if grant_type == "authorization_code":
        scope, wants_refresh = await _exchange_code(params, client, codes)
    elif grant_type == "client_credentials":
        scope = params.get("scope")
    else:
        raise UnsupportedGrantTypeError("Unsupported grant type")

    body = TokenResponse(
        access_token=tokens.issue(client.client_id, scope),
        expires_in=tokens.ttl_sec,
        scope=scope,
        refresh_token=generate_refresh_token() if wants_refresh else None,
    )
    TOKENS_ISSUED.labels(grant_type=grant_type).inc()
    logger.info(
        "TOKEN issued  client_id=%s grant_type=%s expires_in=%d refresh=%s",
        client.client_id,
        grant_type,
        tokens.ttl_sec,
        wants_refresh,
        extra=_log_context(client.client_id, grant_type),
    )
    return JSONResponse(
        content=body.model_dump(exclude_none=True),
        headers=NO_STORE_HEADERS,
    )
