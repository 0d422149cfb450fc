from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, JSON

from app.core.database import Base
from app.core.types import GUID, generate_uuid, utcnow
from app.domain.roles import UserRole


def default_preferences():
    return {
        "notifications": {"email": True, "sms": False, "push": True},
        "language": "en",
        "timezone": "UTC",
        "theme": "light",
    }


class User(Base):
    """User model"""
    __tablename__ = "users"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)

    # Decided once at registration, never re-derived from the email
    role = Column(SQLEnum(UserRole), default=UserRole.USER, nullable=False)

    # Plain reference; the community may have been deleted since
    community_id = Column(GUID, nullable=True, index=True)

    phone = Column(String(20), nullable=True)
    address = Column(JSON, nullable=True)  # street, city, state, zipCode, country

    is_active = Column(Boolean, default=True, nullable=False)
    is_email_verified = Column(Boolean, default=False, nullable=False)

    preferences = Column(JSON, default=default_preferences)
    notification_settings = Column(JSON, nullable=True)
    privacy = Column(JSON, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    last_login = Column(DateTime, nullable=True)

    @property
    def full_address(self) -> str:
        if not self.address:
            return ""
        parts = [self.address.get(key) for key in ("street", "city", "state", "zipCode")]
        return ", ".join(part for part in parts if part)

    def __repr__(self):
        return f"<User {self.email}>"
