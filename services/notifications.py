"""Helpers for queuing user and admin notifications on the current session."""

from __future__ import annotations

from models import db
from models.notification import Notification


def notify_user(
    user_id: int,
    title: str,
    message: str,
    *,
    type: str = "system",
    link: str | None = "/dashboard",
    session=None,
) -> Notification:
    """Add a notification for one user. The caller commits."""

    notification = Notification(
        audience="user",
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        link=link,
        read=False,
    )
    (session or db.session).add(notification)
    return notification


def notify_admins(
    title: str,
    message: str,
    *,
    type: str = "system",
    link: str | None = None,
    session=None,
) -> Notification:
    """Add a notification to the admin feed. The caller commits."""

    notification = Notification(
        audience="admin",
        user_id=None,
        type=type,
        title=title,
        message=message,
        link=link,
        read=False,
    )
    (session or db.session).add(notification)
    return notification
