# crud/notifications.py
from __future__ import annotations

from typing import Optional

import structlog

from backend import BackendClient, BackendError, ROW_NOT_FOUND

logger = structlog.get_logger(__name__)


def list_notifications(client: BackendClient, user_id: str, limit: Optional[int] = None) -> list[dict]:
    return client.select(
        "notifications", filters={"user_id": user_id}, order="created_at", desc=True, limit=limit
    )


def unread_count(client: BackendClient, user_id: str) -> int:
    return len(client.select("notifications", "id", filters={"user_id": user_id, "read": False}))


def mark_read(client: BackendClient, user_id: str, notification_id: str) -> dict:
    # setting read=True again is harmless, so repeats just return the row
    rows = client.update("notifications", {"read": True}, {"id": notification_id, "user_id": user_id})
    if not rows:
        raise BackendError("Notification not found", code=ROW_NOT_FOUND, status=404)
    return rows[0]


def mark_all_read(client: BackendClient, user_id: str) -> int:
    rows = client.update("notifications", {"read": True}, {"user_id": user_id, "read": False})
    return len(rows)


def notify(client: BackendClient, user_id: str, message: str, link: Optional[str] = None) -> dict:
    return client.insert("notifications", {"user_id": user_id, "message": message, "link": link})[0]


def notify_best_effort(client: BackendClient, user_id: str, message: str, link: Optional[str] = None) -> None:
    """Side-effect notifications never fail the action that triggered them."""
    try:
        notify(client, user_id, message, link)
    except BackendError as e:
        logger.warning("notification_failed", user_id=user_id, error=e.message)
