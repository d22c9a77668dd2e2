from typing import Optional
from fastapi import APIRouter, Request

from auth.models import ValidateKeyRequest, ValidateKeyResponse
from common.exceptions import ValidationException
from common.logging import get_logger, log_security_event
from common.middleware import client_ip
from common.responses import merge_responses
from dependencies import AuthenticatorDep

router = APIRouter(tags=["Authentication"])
logger = get_logger("auth")


@router.post("/validate-key",
    response_model=ValidateKeyResponse,
    summary="Validate an API key",
    description="Checks a key supplied in the body; no Authorization header needed.",
    responses=merge_responses("unauthorized"),
)
async def validate_key(
    request: Request,
    authenticator: AuthenticatorDep,
    body: Optional[ValidateKeyRequest] = None,
):
    api_key = body.apiKey if body else None
    if not api_key:
        raise ValidationException(detail="API key is required", field="apiKey", error_code="MISSING_FIELDS")

    identity = authenticator.authenticate(api_key, ip_address=client_ip(request))

    log_security_event(
        event_type="API_KEY_VALIDATED",
        client_id=identity.id,
        ip_address=client_ip(request),
    )
    return ValidateKeyResponse(clientId=identity.id)
