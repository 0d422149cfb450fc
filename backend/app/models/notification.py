from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, UniqueConstraint
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid, utcnow


class NotificationType(str, enum.Enum):
    SUCCESS = "success"
    WARNING = "warning"
    INFO = "info"
    ERROR = "error"


class Notification(Base):
    """In-app notification; user_id NULL means broadcast"""
    __tablename__ = "notifications"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(100), nullable=False)
    message = Column(String(500), nullable=False)
    type = Column(SQLEnum(NotificationType), default=NotificationType.INFO, nullable=False)
    user_id = Column(GUID, nullable=True, index=True)
    is_for_admin = Column(Boolean, default=False, nullable=False)
    created_by = Column(GUID, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<Notification {self.title}>"


class NotificationRead(Base):
    """Per-user read receipt, so broadcasts can be read independently"""
    __tablename__ = "notification_reads"
    __table_args__ = (UniqueConstraint("notification_id", "user_id", name="uq_notification_read"),)

    id = Column(GUID, primary_key=True, default=generate_uuid)
    notification_id = Column(GUID, nullable=False, index=True)
    user_id = Column(GUID, nullable=False, index=True)
    read_at = Column(DateTime, default=utcnow, nullable=False)
