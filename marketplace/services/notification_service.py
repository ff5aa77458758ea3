"""B2B notification inbox service."""
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from marketplace.domain.exceptions import NotificationNotFoundException
from marketplace.domain.models import Notification, NotificationType
from marketplace.infrastructure.repositories import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """Service for writing and reading B2B notifications."""

    def __init__(self, notification_repository: NotificationRepository):
        self.notification_repository = notification_repository

    async def notify(
        self,
        user_id: UUID,
        notification_type: NotificationType,
        title: str,
        message: str,
        offer_id: Optional[UUID] = None,
        response_id: Optional[UUID] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        """Insert a notification for a user."""
        notification = Notification(
            user_id=user_id,
            type=notification_type,
            title=title,
            message=message,
            offer_id=offer_id,
            response_id=response_id,
            metadata=metadata or {},
        )
        return await self.notification_repository.create(notification)

    async def already_notified(
        self, user_id: UUID, offer_id: UUID, notification_type: NotificationType
    ) -> bool:
        return await self.notification_repository.exists(user_id, offer_id, notification_type)

    async def list_notifications(
        self,
        user_id: UUID,
        read: Optional[bool] = None,
        notification_type: Optional[NotificationType] = None,
        limit: Optional[int] = None,
    ) -> List[Notification]:
        return await self.notification_repository.list_by_user(
            user_id, read=read, notification_type=notification_type, limit=limit
        )

    async def unread_count(self, user_id: UUID) -> int:
        return await self.notification_repository.count_unread(user_id)

    async def _get_owned(self, user_id: UUID, notification_id: UUID) -> Notification:
        notification = await self.notification_repository.get_by_id(notification_id)
        # Other users' notifications are reported as missing
        if notification is None or notification.user_id != user_id:
            raise NotificationNotFoundException(str(notification_id))
        return notification

    async def mark_read(self, user_id: UUID, notification_id: UUID) -> None:
        notification = await self._get_owned(user_id, notification_id)
        if not notification.read:
            await self.notification_repository.mark_read(notification_id)

    async def mark_all_read(self, user_id: UUID) -> int:
        count = await self.notification_repository.mark_all_read(user_id)
        logger.info(f"Marked {count} notifications read for user {user_id}")
        return count

    async def delete_notification(self, user_id: UUID, notification_id: UUID) -> None:
        await self._get_owned(user_id, notification_id)
        await self.notification_repository.delete(notification_id)
        logger.info(f"Deleted notification {notification_id}")
