"""Tests for NotificationService."""
import pytest
from uuid import uuid4

from marketplace.domain.exceptions import NotificationNotFoundException
from marketplace.domain.models import NotificationType, User
from marketplace.services.notification_service import NotificationService


@pytest.mark.asyncio
async def test_notify_and_list(notification_service: NotificationService, grossiste: User) -> None:
    """Test a notification lands unread in the user's inbox."""
    # Act
    notification = await notification_service.notify(
        grossiste.user_id,
        NotificationType.OUTBID,
        "Vous avez été surenchéri",
        "Une offre de 1500 DA a dépassé votre enchère.",
        metadata={"amount": 1500.0},
    )

    # Assert
    inbox = await notification_service.list_notifications(grossiste.user_id)
    assert [n.notification_id for n in inbox] == [notification.notification_id]
    assert inbox[0].read is False
    assert await notification_service.unread_count(grossiste.user_id) == 1


@pytest.mark.asyncio
async def test_list_filters_by_type(notification_service: NotificationService, grossiste: User) -> None:
    """Test filtering the inbox by notification type."""
    await notification_service.notify(grossiste.user_id, NotificationType.NEW_OFFER, "Offre", "Offre")
    await notification_service.notify(grossiste.user_id, NotificationType.OUTBID, "Surenchère", "Surenchère")

    outbid = await notification_service.list_notifications(
        grossiste.user_id, notification_type=NotificationType.OUTBID
    )

    assert [n.type for n in outbid] == [NotificationType.OUTBID]


@pytest.mark.asyncio
async def test_mark_read(notification_service: NotificationService, grossiste: User) -> None:
    """Test marking one notification read."""
    notification = await notification_service.notify(
        grossiste.user_id, NotificationType.NEW_OFFER, "Offre", "Offre"
    )

    await notification_service.mark_read(grossiste.user_id, notification.notification_id)

    assert await notification_service.unread_count(grossiste.user_id) == 0
    assert await notification_service.list_notifications(grossiste.user_id, read=False) == []


@pytest.mark.asyncio
async def test_mark_all_read(notification_service: NotificationService, grossiste: User, fournisseur: User) -> None:
    """Test marking every notification read only touches the caller's inbox."""
    await notification_service.notify(grossiste.user_id, NotificationType.NEW_OFFER, "Offre", "Offre")
    await notification_service.notify(grossiste.user_id, NotificationType.NEW_BID, "Enchère", "Enchère")
    await notification_service.notify(fournisseur.user_id, NotificationType.NEW_OFFER, "Offre", "Offre")

    updated = await notification_service.mark_all_read(grossiste.user_id)

    assert updated == 2
    assert await notification_service.unread_count(fournisseur.user_id) == 1


@pytest.mark.asyncio
async def test_other_users_notification_is_not_found(
    notification_service: NotificationService,
    grossiste: User,
    fournisseur: User,
) -> None:
    """Test a user cannot read or delete someone else's notification."""
    notification = await notification_service.notify(
        grossiste.user_id, NotificationType.NEW_OFFER, "Offre", "Offre"
    )

    with pytest.raises(NotificationNotFoundException):
        await notification_service.mark_read(fournisseur.user_id, notification.notification_id)
    with pytest.raises(NotificationNotFoundException):
        await notification_service.delete_notification(fournisseur.user_id, notification.notification_id)


@pytest.mark.asyncio
async def test_delete_notification(notification_service: NotificationService, grossiste: User) -> None:
    """Test deleting a notification."""
    notification = await notification_service.notify(
        grossiste.user_id, NotificationType.NEW_OFFER, "Offre", "Offre"
    )

    await notification_service.delete_notification(grossiste.user_id, notification.notification_id)

    assert await notification_service.list_notifications(grossiste.user_id) == []
    with pytest.raises(NotificationNotFoundException):
        await notification_service.delete_notification(grossiste.user_id, uuid4())
