from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from sqlalchemy import select
from sqlalchemy.orm import Session

from classgrid.api.deps import get_db
from classgrid.models.notification import Notification, NotificationType
from classgrid.schemas.notification import NotificationOut
from classgrid.services.notification_hub import notification_hub

router = APIRouter()


@router.get("/notifications", response_model=list[NotificationOut])
def list_notifications(
    class_name: str = Query(alias="className", min_length=1, max_length=100),
    notification_type: NotificationType | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
) -> list[NotificationOut]:
    query = (
        select(Notification)
        .where(Notification.class_name == class_name.strip())
        .order_by(Notification.created_at.desc())
    )
    if notification_type:
        query = query.where(Notification.notification_type == notification_type)
    query = query.offset(offset).limit(limit)
    return list(db.execute(query).scalars())


@router.websocket("/notifications/ws/{class_name}")
async def notifications_socket(websocket: WebSocket, class_name: str) -> None:
    await notification_hub.connect(class_name, websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await notification_hub.disconnect(class_name, websocket)
