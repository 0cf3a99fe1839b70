from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from extension_auth.api.dependencies import get_phone_directory, require_client
from extension_auth.core.metrics import MOBILE_VERIFICATIONS
from extension_auth.models.principal import Principal
from extension_auth.services.phone_directory import PhoneDirectory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/oauth", tags=["verification"])


class VerifyMobileIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    phone_number: str = Field(alias="phoneNumber", min_length=1)
    region: str = Field(min_length=1)


class VerifyMobileOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    verified: bool
    verify_failure_reason: str | None = Field(
        default=None, serialization_alias="verifyFailureReason"
    )


@router.post(
    "/verify-mobile",
    response_model=VerifyMobileOut,
    response_model_exclude_none=True,
    response_model_by_alias=True,
)
async def verify_mobile(
    body: VerifyMobileIn,
    principal: Annotated[Principal, Depends(require_client)],
    directory: Annotated[PhoneDirectory, Depends(get_phone_directory)],
) -> VerifyMobileOut:
    """Look up a phone number + region pair. Read-only; requires a bearer token."""
    result = directory.verify(body.phone_number, body.region)
    MOBILE_VERIFICATIONS.labels(
        result="verified" if result.verified else "rejected"
    ).inc()
    # The number itself is personal data; only the outcome is logged.
    logger.info(
        "Mobile verification  client_id=%s verified=%s reason=%s",
        principal.client_id,
        result.verified,
        result.failure_reason,
    )
    return VerifyMobileOut(
        verified=result.verified, verify_failure_reason=result.failure_reason
    )
