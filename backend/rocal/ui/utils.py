from __future__ import annotations

from datetime import date, datetime

from fastapi import Request

from rocal.services.notifications import Notification

NOTIFICATIONS_KEY = "notifications"


def format_date(value: date | datetime | None) -> str:
    if value is None:
        return "—"
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def format_money(value: float | int | None) -> str:
    return f"${(value or 0):,.2f}"


def flash(request: Request, notifications: list[Notification]) -> None:
    if not notifications:
        return
    pending = list(request.session.get(NOTIFICATIONS_KEY, []))
    pending.extend(notification.to_dict() for notification in notifications)
    request.session[NOTIFICATIONS_KEY] = pending


def pop_notifications(request: Request) -> list[Notification]:
    pending = request.session.pop(NOTIFICATIONS_KEY, None) or []
    return [Notification.from_dict(item) for item in pending if isinstance(item, dict)]
