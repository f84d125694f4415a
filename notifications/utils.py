# notifications/utils.py
from extensions import db
from notifications.models import Notification


def push_notification(user_id: int, message: str, ntype: str = "info", meta: dict | None = None):
    """Queue a notification on the current session; the caller commits."""
    n = Notification(user_id=user_id, message=message, type=ntype, meta=meta,
                     group_id=(meta or {}).get("group_id"))
    db.session.add(n)
    return n


def push_to_many(user_ids: list[int], message: str, ntype: str = "info", meta: dict | None = None):
    # one row per distinct recipient
    return [push_notification(uid, message, ntype, meta) for uid in sorted(set(user_ids or []))]
