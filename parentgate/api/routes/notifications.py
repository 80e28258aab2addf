"""
Notification API routes.

Polling counterpart of the NotificationHub callbacks: badges and banners
that cannot subscribe re-query the recent backlog instead.
"""

from fastapi import APIRouter, Query

from parentgate.api.dependencies import ContextDep
from parentgate.api.schemas import NotificationSchema, NotificationsResponse

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationsResponse)
async def list_notifications(
    context: ContextDep,
    limit: int = Query(default=20, ge=1, le=100),
):
    return NotificationsResponse(
        notifications=[
            NotificationSchema(**n.model_dump()) for n in context.hub.recent(limit)
        ]
    )
