from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from extension_auth.api.health import router as health_router
from extension_auth.api.metrics_endpoint import router as metrics_router
from extension_auth.api.mobile import router as mobile_router
from extension_auth.api.oauth import router as oauth_router
from extension_auth.api.resource import router as resource_router
from extension_auth.core.config import SETTINGS
from extension_auth.core.errors import (
    OAuthError,
    http_error_handler,
    oauth_error_handler,
    unhandled_error_handler,
    validation_error_handler,
)
from extension_auth.core.logging import setup_logging
from extension_auth.db.redis import lifespan_redis
from extension_auth.middleware.cors import (
    ALLOWED_HEADERS,
    ALLOWED_METHODS,
    NoContentPreflightCORSMiddleware,
)
from extension_auth.middleware.metrics import MetricsMiddleware
from extension_auth.middleware.request_context import RequestContextMiddleware

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    async with lifespan_redis():
        yield


# only app setup + router registration

app = FastAPI(
    title="extension-auth-service",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_exception_handler(OAuthError, oauth_error_handler)
app.add_exception_handler(StarletteHTTPException, http_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

app.add_middleware(
    NoContentPreflightCORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=list(ALLOWED_METHODS),
    allow_headers=list(ALLOWED_HEADERS),
)

# Middleware execution order: last-added runs first (outermost layer).
# RequestContext (outermost) → Metrics → CORS → route handler
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(oauth_router)
app.include_router(mobile_router)
app.include_router(resource_router)


logger.info(
    "extension-auth-service started  env=%s log_level=%s port=%d docs=%s redis=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
    "on" if SETTINGS.redis_url else "off",
)
