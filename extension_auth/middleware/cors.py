"""Permissive CORS for the extension endpoints.

The signing provider and the mobile client call from arbitrary origins, so
the policy is ``*`` with no credentials. Starlette answers preflights with
200 "OK"; the extension contract expects 204 with an empty body.
"""

from __future__ import annotations

from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response
from starlette.types import Receive, Scope, Send

ALLOWED_METHODS = ("GET", "POST", "OPTIONS")
ALLOWED_HEADERS = ("Content-Type", "Authorization")

# Headers for OPTIONS requests that are not full CORS preflights (no Origin
# or no Access-Control-Request-Method).
PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": ", ".join(ALLOWED_HEADERS),
    "Access-Control-Allow-Methods": ", ".join(ALLOWED_METHODS),
}


class NoContentPreflightCORSMiddleware(CORSMiddleware):
    """CORSMiddleware that answers every OPTIONS request with 204.

    Full preflights get Starlette's negotiated headers; any other OPTIONS
    (clients that skip Origin or Access-Control-Request-Method) gets
    PREFLIGHT_HEADERS. Neither reaches the router.
    """

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["method"] == "OPTIONS":
            headers = Headers(scope=scope)
            is_preflight = (
                "origin" in headers and "access-control-request-method" in headers
            )
            if not is_preflight:
                response = Response(status_code=204, headers=PREFLIGHT_HEADERS)
                await response(scope, receive, send)
                return
        await super().__call__(scope, receive, send)

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        headers = {
            key: value
            for key, value in response.headers.items()
            if key.lower() not in ("content-length", "content-type")
        }
        return Response(status_code=204, headers=headers)
