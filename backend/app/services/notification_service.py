"""
Notification Service

A notification is addressed to one user, broadcast to everyone (no user),
or reserved for admins. Read state is kept per user in NotificationRead so a
broadcast can be read by each recipient independently.
"""
from typing import Any, Dict, Optional

from sqlalchemy import and_, delete, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from app.core.exceptions import NotificationNotFoundError, UserNotFoundError
from app.core.logging_config import logger
from app.models.notification import Notification, NotificationRead, NotificationType
from app.models.user import User
from app.schemas.common import dump
from app.schemas.notification import NotificationCreate, NotificationResponse
from app.services import access_control


def visible_to(user: User) -> ColumnElement:
    personal = and_(
        Notification.is_for_admin.is_(False),
        or_(Notification.user_id.is_(None), Notification.user_id == user.id),
    )
    if access_control.is_admin(user):
        return or_(Notification.is_for_admin.is_(True), personal)
    return personal


def can_access(user: User, notification: Notification) -> bool:
    if notification.is_for_admin:
        return access_control.is_admin(user)
    return notification.user_id is None or notification.user_id == user.id


def serialize_notification(notification: Notification, is_read: bool) -> Dict[str, Any]:
    response = NotificationResponse.model_validate(notification)
    response.is_read = is_read
    return dump(response)


class NotificationService:
    """Service for in-app notifications"""

    async def list_for_user(
        self,
        db: AsyncSession,
        user: User,
        type: Optional[NotificationType] = None,
        is_read: Optional[bool] = None,
    ) -> Dict[str, Any]:
        receipt = and_(NotificationRead.notification_id == Notification.id, NotificationRead.user_id == user.id)
        query = (
            select(Notification, NotificationRead.id)
            .outerjoin(NotificationRead, receipt)
            .where(visible_to(user))
            .order_by(Notification.created_at.desc())
        )
        if type:
            query = query.where(Notification.type == type)
        if is_read is True:
            query = query.where(NotificationRead.id.is_not(None))
        elif is_read is False:
            query = query.where(NotificationRead.id.is_(None))

        rows = (await db.execute(query)).all()
        notifications = [serialize_notification(n, read_id is not None) for n, read_id in rows]
        return {
            "notifications": notifications,
            "unreadCount": sum(1 for n in notifications if not n["isRead"]),
        }

    async def create(self, db: AsyncSession, actor: User, data: NotificationCreate) -> Notification:
        if data.user_id:
            access_control.ensure_valid_id(data.user_id)
            if not await db.get(User, data.user_id):
                raise UserNotFoundError(data.user_id)

        notification = Notification(
            title=data.title,
            message=data.message,
            type=data.type,
            user_id=data.user_id,
            is_for_admin=data.is_for_admin,
            created_by=actor.id,
        )
        db.add(notification)
        await db.commit()
        await db.refresh(notification)

        logger.info(f"Notification '{notification.title}' created by {actor.email}")
        return notification

    def notify(
        self,
        db: AsyncSession,
        user_id: Optional[str],
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
    ) -> Notification:
        """System notification added to the caller's transaction"""
        notification = Notification(title=title, message=message, type=type, user_id=user_id)
        db.add(notification)
        return notification

    async def _get(self, db: AsyncSession, notification_id: str) -> Notification:
        access_control.ensure_valid_id(notification_id)
        notification = await db.get(Notification, notification_id)
        if not notification:
            raise NotificationNotFoundError(notification_id)
        return notification

    async def _is_read(self, db: AsyncSession, notification_id: str, user_id: str) -> bool:
        return bool((await db.execute(
            select(exists().where(
                NotificationRead.notification_id == notification_id,
                NotificationRead.user_id == user_id,
            ))
        )).scalar())

    async def mark_read(self, db: AsyncSession, user: User, notification_id: str) -> Notification:
        notification = await self._get(db, notification_id)
        access_control.ensure(can_access(user, notification))

        if not await self._is_read(db, notification.id, user.id):
            db.add(NotificationRead(notification_id=notification.id, user_id=user.id))
            await db.commit()
        return notification

    async def mark_all_read(self, db: AsyncSession, user: User) -> int:
        already_read = select(NotificationRead.notification_id).where(NotificationRead.user_id == user.id)
        unread_ids = (await db.execute(
            select(Notification.id).where(visible_to(user), Notification.id.not_in(already_read))
        )).scalars().all()

        for notification_id in unread_ids:
            db.add(NotificationRead(notification_id=notification_id, user_id=user.id))
        if unread_ids:
            await db.commit()
        return len(unread_ids)

    async def delete(self, db: AsyncSession, notification_id: str) -> None:
        notification = await self._get(db, notification_id)
        await db.execute(delete(NotificationRead).where(NotificationRead.notification_id == notification.id))
        await db.delete(notification)
        await db.commit()

    async def get_stats(self, db: AsyncSession) -> Dict[str, Any]:
        total = (await db.execute(select(func.count(Notification.id)))).scalar() or 0
        read_any = select(NotificationRead.notification_id)
        unread = (await db.execute(
            select(func.count(Notification.id)).where(Notification.id.not_in(read_any))
        )).scalar() or 0
        by_type = dict((await db.execute(
            select(Notification.type, func.count(Notification.id)).group_by(Notification.type)
        )).all())
        admin_only = (await db.execute(
            select(func.count(Notification.id)).where(Notification.is_for_admin.is_(True))
        )).scalar() or 0

        return {
            "total": total,
            "unread": unread,
            "byType": {t.value: by_type.get(t, 0) for t in NotificationType},
            "adminNotifications": admin_only,
            "userNotifications": total - admin_only,
        }


notification_service = NotificationService()
