from datetime import datetime

from pydantic import BaseModel

from classgrid.models.notification import NotificationType


class NotificationOut(BaseModel):
    id: str
    class_name: str
    title: str
    message: str
    notification_type: NotificationType
    created_at: datetime

    model_config = {"from_attributes": True}
