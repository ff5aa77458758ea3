"""B2B notification inbox routes."""
import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from prometheus_client import Counter

from marketplace.api.dependencies import get_current_user, get_notification_service
from marketplace.api.errors import track
from marketplace.domain.models import Notification, NotificationType, User
from marketplace.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/b2b/notifications", tags=["notifications"])

notification_counter = Counter(
    "b2b_notification_requests_total", "Total number of notification inbox requests", ["status"]
)


@router.get("", response_model=List[Notification])
async def list_notifications(
    read: Optional[bool] = None,
    notification_type: Optional[NotificationType] = Query(default=None, alias="type"),
    limit: Optional[int] = Query(default=None, ge=1, le=200),
    user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> List[Notification]:
    with track(notification_counter, "notification listing"):
        return await service.list_notifications(
            user.user_id, read=read, notification_type=notification_type, limit=limit
        )


@router.get("/unread-count")
async def unread_count(
    user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> dict:
    with track(notification_counter, "unread count"):
        return {"count": await service.unread_count(user.user_id)}


@router.post("/read-all")
async def mark_all_read(
    user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> dict:
    with track(notification_counter, "mark all read"):
        return {"updated": await service.mark_all_read(user.user_id)}


@router.post("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_read(
    notification_id: UUID,
    user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> None:
    with track(notification_counter, "mark read"):
        await service.mark_read(user.user_id, notification_id)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: UUID,
    user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
) -> None:
    with track(notification_counter, "notification deletion"):
        await service.delete_notification(user.user_id, notification_id)
