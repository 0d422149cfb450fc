from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.notification import NotificationType
from app.models.user import User
from app.modules.auth.dependencies import get_current_admin, get_current_user
from app.schemas.common import success_response
from app.schemas.notification import NotificationCreate
from app.services.notification_service import notification_service, serialize_notification

router = APIRouter()


@router.get("")
async def list_notifications(
    type: Optional[NotificationType] = Query(None),
    is_read: Optional[bool] = Query(None, alias="isRead"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Broadcasts and personal notifications; admins also get admin notifications"""
    return success_response(await notification_service.list_for_user(db, current_user, type, is_read))


@router.get("/stats")
async def notification_stats(
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return success_response(await notification_service.get_stats(db))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_notification(
    notification_data: NotificationCreate,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    notification = await notification_service.create(db, current_user, notification_data)
    return success_response(
        {"notification": serialize_notification(notification, False)},
        "Notification created successfully",
    )


@router.put("/read-all")
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    marked = await notification_service.mark_all_read(db, current_user)
    return success_response({"modifiedCount": marked}, "All notifications marked as read")


@router.put("/{notification_id}/read")
async def mark_read(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    notification = await notification_service.mark_read(db, current_user, notification_id)
    return success_response(
        {"notification": serialize_notification(notification, True)},
        "Notification marked as read",
    )


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: str,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    await notification_service.delete(db, notification_id)
    return success_response(message="Notification deleted successfully")
