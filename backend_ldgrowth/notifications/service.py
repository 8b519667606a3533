"""
Notification storage and read-state management.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import event, func, select, update
from sqlalchemy.orm import Session

from backend_ldgrowth.core.exceptions import NotFoundError
from backend_ldgrowth.database import session_scope
from backend_ldgrowth.database.models import Notification
from backend_ldgrowth.ldgrowth_logging import get_logger
from backend_ldgrowth.notifications.webhook import send_webhook

logger = get_logger(__name__)

PRIORITIES = ("low", "medium", "high")
_PENDING_WEBHOOKS = "pending_webhooks"


def notify(
    session: Session,
    user_id: int,
    store_id: int,
    type: str,
    title: str,
    message: str,
    priority: str = "medium",
    related_id: int | None = None,
    related_model: str | None = None,
) -> Notification:
    """
    Add a notification inside the caller's session and queue it for the webhook.

    Callers own the transaction, so a failed business operation never leaves
    a stray notification behind. The webhook is only called once the
    transaction has committed.
    """
    if priority not in PRIORITIES:
        priority = "medium"
    notification = Notification(
        user_id=user_id,
        store_id=store_id,
        type=type,
        title=title,
        message=message,
        priority=priority,
        related_id=related_id,
        related_model=related_model,
    )
    session.add(notification)
    session.flush()
    logger.info("notification_created", user_id=user_id, type=type, related_model=related_model)
    session.info.setdefault(_PENDING_WEBHOOKS, []).append(notification.to_dict())
    return notification


@event.listens_for(Session, "after_commit")
def _deliver_webhooks(session: Session) -> None:
    for payload in session.info.pop(_PENDING_WEBHOOKS, []):
        try:
            send_webhook(payload)
        except Exception:
            logger.exception("notification_webhook_error", notification_id=payload.get("id"))


@event.listens_for(Session, "after_rollback")
def _drop_webhooks(session: Session) -> None:
    session.info.pop(_PENDING_WEBHOOKS, None)


def create_notification(
    user_id: int,
    store_id: int,
    type: str,
    title: str,
    message: str,
    priority: str = "medium",
    related_id: int | None = None,
    related_model: str | None = None,
) -> dict[str, Any]:
    """Standalone variant of notify() with its own transaction."""
    with session_scope() as session:
        return notify(
            session, user_id, store_id, type, title, message,
            priority=priority, related_id=related_id, related_model=related_model,
        ).to_dict()


def list_notifications(actor: dict[str, Any], unread_only: bool = False, limit: int = 50) -> list[dict[str, Any]]:
    with session_scope() as session:
        stmt = select(Notification).where(Notification.user_id == actor["id"])
        if unread_only:
            stmt = stmt.where(Notification.read.is_(False))
        stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
        return [n.to_dict() for n in session.scalars(stmt).all()]


def unread_count(session: Session, user_id: int) -> int:
    stmt = (
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
    )
    return session.scalar(stmt) or 0


def mark_read(actor: dict[str, Any], notification_id: int) -> dict[str, Any]:
    with session_scope() as session:
        notification = session.get(Notification, notification_id)
        if notification is None or notification.user_id != actor["id"]:
            raise NotFoundError("Notification not found")
        notification.read = True
        session.flush()
        return notification.to_dict()


def mark_all_read(actor: dict[str, Any]) -> int:
    with session_scope() as session:
        result = session.execute(
            update(Notification)
            .where(Notification.user_id == actor["id"], Notification.read.is_(False))
            .values(read=True)
        )
        count = result.rowcount or 0
    logger.info("notifications_marked_read", user_id=actor["id"], count=count)
    return count
