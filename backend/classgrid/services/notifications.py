from __future__ import annotations

from datetime import datetime, timezone
import logging

from anyio import from_thread
from sqlalchemy.orm import Session

from classgrid.models.notification import Notification, NotificationType
from classgrid.services.notification_hub import notification_hub

logger = logging.getLogger(__name__)

PUBLISHED_TITLE = "Timetable Published"


def _as_utc_iso(value: datetime | None) -> str:
    if value is None:
        return datetime.now(timezone.utc).isoformat()
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def notification_to_event_payload(notification: Notification, *, event: str = "notification.created") -> dict:
    return {
        "event": event,
        "notification": {
            "id": notification.id,
            "class_name": notification.class_name,
            "title": notification.title,
            "message": notification.message,
            "notification_type": notification.notification_type.value,
            "created_at": _as_utc_iso(notification.created_at),
        },
    }


def push_to_class_subscribers(notification: Notification) -> None:
    """Best-effort websocket fan-out; only works from a worker thread of the running app."""
    payload = notification_to_event_payload(notification)
    try:
        from_thread.run(notification_hub.publish, notification.class_name, payload)
    except Exception:
        logger.debug("No realtime delivery for class %s", notification.class_name, exc_info=True)


def notify_class(
    db: Session,
    *,
    class_name: str,
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.timetable,
    deliver_realtime: bool = True,
) -> Notification:
    record = Notification(
        class_name=class_name,
        title=title,
        message=message,
        notification_type=notification_type,
    )
    db.add(record)
    db.flush()

    if deliver_realtime:
        push_to_class_subscribers(record)
    return record


def notify_timetable_published(db: Session, class_name: str) -> Notification:
    return notify_class(
        db,
        class_name=class_name,
        title=PUBLISHED_TITLE,
        message=f"Timetable for {class_name} is now live.",
        notification_type=NotificationType.timetable,
    )
