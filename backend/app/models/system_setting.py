from sqlalchemy import Column, String, DateTime, Text, JSON

from app.core.database import Base
from app.core.types import GUID, generate_uuid, utcnow


class SystemSetting(Base):
    """System settings for admin configuration, one row per section"""
    __tablename__ = "system_settings"

    id = Column(GUID, primary_key=True, default=generate_uuid)

    # Section key: general, notifications, backup, security, analytics
    key = Column(String(100), unique=True, nullable=False, index=True)
    value = Column(JSON, nullable=False)

    description = Column(Text, nullable=True)

    # Audit trail
    updated_by = Column(GUID, nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<SystemSetting {self.key}>"
