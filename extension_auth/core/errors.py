"""OAuth2 error taxonomy (RFC 6749 §5.2) and the handlers that render it.

Endpoints raise an OAuthError subclass at the failing gate; the exception
handlers installed in main.py turn it into ``{error, error_description}``
with the matching status code and headers.
"""

from __future__ import annotations

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

BASIC_REALM = 'Basic realm="Sample Extension App"'


class OAuthError(Exception):
    error = "server_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self, description: str, *, headers: dict[str, str] | None = None
    ) -> None:
        super().__init__(description)
        self.description = description
        self.headers = headers or {}

    def to_dict(self) -> dict[str, str]:
        return {"error": self.error, "error_description": self.description}


class InvalidRequestError(OAuthError):
    error = "invalid_request"
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedClientError(OAuthError):
    error = "unauthorized_client"
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidClientError(OAuthError):
    error = "invalid_client"
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, description: str) -> None:
        super().__init__(description, headers={"WWW-Authenticate": BASIC_REALM})


class InvalidGrantError(OAuthError):
    error = "invalid_grant"
    status_code = status.HTTP_400_BAD_REQUEST


class UnsupportedGrantTypeError(OAuthError):
    error = "unsupported_grant_type"
    status_code = status.HTTP_400_BAD_REQUEST


class BearerTokenError(OAuthError):
    """Protected resource rejected the bearer token (RFC 6750 invalid_token).

    The body keeps the extension client's contract, a human-readable
    ``error`` ("Invalid token"); the RFC code travels in WWW-Authenticate.
    """

    error = "invalid_token"
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str, description: str) -> None:
        super().__init__(
            description,
            headers={"WWW-Authenticate": f'Bearer error="{self.error}"'},
        )
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"error": self.message, "error_description": self.description}


async def oauth_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, OAuthError)
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=exc.headers,
    )


# Framework-raised HTTP errors (no route, wrong method) in the same shape.
_HTTP_ERRORS = {
    status.HTTP_404_NOT_FOUND: ("not_found", "Endpoint not found"),
    status.HTTP_405_METHOD_NOT_ALLOWED: ("method_not_allowed", "Method not allowed"),
}


async def http_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, StarletteHTTPException)
    error, description = _HTTP_ERRORS.get(
        exc.status_code, ("invalid_request", str(exc.detail))
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": error, "error_description": description},
        headers=exc.headers,
    )


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RequestValidationError)
    missing = sorted(
        {str(err["loc"][-1]) for err in exc.errors() if err.get("loc")}
    )
    description = (
        f"Missing or invalid parameters: {', '.join(missing)}"
        if missing
        else "Malformed request"
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "invalid_request", "error_description": description},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # Details go to the log only; the caller gets the generic taxonomy entry.
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "server_error",
            "error_description": "Internal server error",
        },
    )
