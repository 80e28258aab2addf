"""
Mode API routes.

Endpoints for the gate's status snapshot, mode switches, inactivity relock
and the emergency override. Refusals surface through the exception
handlers (423 for locks, 401 for a wrong PIN, 503 when the PIN cannot be
verified).
"""

from fastapi import APIRouter, status
import structlog

from parentgate.api.dependencies import ContextDep
from parentgate.api.schemas import (
    EmergencyOverrideRequest,
    EmergencyOverrideResponse,
    InactivityCheckResponse,
    ModeStatusResponse,
    ModeSwitchRequest,
)

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/mode", tags=["mode"])


@router.get("", response_model=ModeStatusResponse)
async def get_mode(context: ContextDep):
    """Current mode, lock state and countdowns."""
    return ModeStatusResponse.from_status(context.gate.status())


@router.post("/switch", response_model=ModeStatusResponse)
async def switch_mode(request: ModeSwitchRequest, context: ContextDep):
    """
    Switch between restricted and unrestricted mode.

    Switching to restricted never needs a PIN. Switching to unrestricted
    checks the time lock, the attempt lockout and the PIN, in that order.
    """
    await context.gate.request_switch(request.mode, request.pin)
    return ModeStatusResponse.from_status(context.gate.status())


@router.post("/activity", status_code=status.HTTP_204_NO_CONTENT)
async def record_activity(context: ContextDep):
    """Mark the parent console as in use (resets the inactivity timer)."""
    context.gate.record_activity()


@router.post("/inactivity-check", response_model=InactivityCheckResponse)
async def inactivity_check(context: ContextDep):
    """Relock the parent console if it has been idle too long."""
    relocked = await context.gate.enforce_inactivity()
    return InactivityCheckResponse(relocked=relocked, mode=context.gate.current_mode())


@router.post("/emergency-override", response_model=EmergencyOverrideResponse)
async def activate_emergency_override(
    request: EmergencyOverrideRequest, context: ContextDep
):
    """Suspend time locks after answering the security question."""
    expires_at = await context.gate.activate_emergency_override(request.recovery_answer)
    return EmergencyOverrideResponse(active=True, expires_at=expires_at)


@router.delete("/emergency-override", response_model=EmergencyOverrideResponse)
async def deactivate_emergency_override(context: ContextDep):
    context.gate.deactivate_emergency_override()
    return EmergencyOverrideResponse(active=False)
