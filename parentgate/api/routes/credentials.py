"""
Credential API routes.

PIN setup, strength preview and recovery. Plain PINs and answers only
pass through to CredentialService; they are never logged or echoed back.
"""

from fastapi import APIRouter, status
import structlog

from parentgate.api.dependencies import ContextDep
from parentgate.api.schemas import (
    CredentialStatusResponse,
    PinResetRequest,
    PinSetupRequest,
    PinStrengthRequest,
    PinStrengthResponse,
)

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/credentials", tags=["credentials"])


@router.get("", response_model=CredentialStatusResponse)
async def get_credentials(context: ContextDep):
    """Whether a PIN is set, and the recovery question if so."""
    if not await context.credentials.has_pin():
        return CredentialStatusResponse(pin_configured=False)
    return CredentialStatusResponse(
        pin_configured=True,
        recovery_question=await context.credentials.recovery_question(),
    )


@router.post(
    "", response_model=PinStrengthResponse, status_code=status.HTTP_201_CREATED
)
async def set_pin(request: PinSetupRequest, context: ContextDep):
    """
    Set the parent PIN.

    Allowed when no PIN exists yet, or from the unlocked parent console.
    """
    strength = await context.credentials.set_pin(
        request.pin, request.recovery_question, request.recovery_answer
    )
    return PinStrengthResponse(strength=strength, progress=strength.progress)


@router.post("/reset", response_model=PinStrengthResponse)
async def reset_pin(request: PinResetRequest, context: ContextDep):
    """Replace a forgotten PIN using the security answer.

    Repeated wrong answers lock recovery (423) for the lockout period.
    """
    strength = await context.credentials.reset_pin(request.recovery_answer, request.new_pin)
    return PinStrengthResponse(strength=strength, progress=strength.progress)


@router.post("/strength", response_model=PinStrengthResponse)
async def pin_strength(request: PinStrengthRequest, context: ContextDep):
    strength = context.credentials.rate_pin(request.pin)
    return PinStrengthResponse(strength=strength, progress=strength.progress)
