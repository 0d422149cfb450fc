from datetime import datetime
from typing import Annotated, Optional

from pydantic import Field, StringConstraints

from app.models.notification import NotificationType
from app.schemas.common import CamelModel


class NotificationCreate(CamelModel):
    title: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
    message: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)]
    type: NotificationType = NotificationType.INFO
    user_id: Optional[str] = Field(None, description="Recipient; omit to broadcast")
    is_for_admin: bool = False


class NotificationResponse(CamelModel):
    id: str
    title: str
    message: str
    type: NotificationType
    user_id: Optional[str] = None
    is_for_admin: bool = False
    is_read: bool = False
    created_at: datetime
