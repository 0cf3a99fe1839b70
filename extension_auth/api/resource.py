from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from extension_auth.api.dependencies import require_client
from extension_auth.models.principal import Principal

logger = logging.getLogger(__name__)

router = APIRouter(tags=["resource"])


class ProtectedOut(BaseModel):
    message: str
    client_id: str
    scope: str


@router.get("/api/protected", response_model=ProtectedOut)
def get_protected(
    principal: Annotated[Principal, Depends(require_client)],
) -> ProtectedOut:
    """Protected endpoint — requires a valid access token.

    The smallest possible consumer of an issued token: it echoes the
    client identity and scope carried in the claims.
    """
    logger.info("Resource accessed by client_id=%s", principal.client_id)
    return ProtectedOut(
        message="Access granted to protected resource",
        client_id=principal.client_id,
        scope=" ".join(sorted(principal.scopes)),
    )
