# utils/audit_logger.py
import json
import logging
from datetime import datetime

from audit.models import AuditLog
from extensions import db

logger = logging.getLogger(__name__)


def _normalize(value):
    # dates and Decimals become strings so the row fits a JSON column
    if not value:
        return None
    return json.loads(json.dumps(value, default=str))


def log_audit_action(user_id, action, table_name, record_id=None, old=None, new=None, actor_kind="staff"):
    """
    Adds an audit row to the current session; it is committed together with the
    change it describes. Audit failures never break the caller.
    """
    try:
        entry = AuditLog(
            user_id=user_id,
            actor_kind=actor_kind,
            action=action,
            table_name=table_name,
            record_id=record_id,
            old_value=_normalize(old),
            new_value=_normalize(new),
            timestamp=datetime.utcnow(),
        )
        db.session.add(entry)
        return entry
    except Exception as err:
        logger.warning("[Audit Logger] failed to queue audit row for %s %s: %s", table_name, record_id, err)
        return None


def audit_actor(actor, action, table_name, record_id=None, old=None, new=None):
    """Same as log_audit_action, with the id and kind taken from a users.auth.Actor."""
    if actor is None:
        return log_audit_action(None, action, table_name, record_id, old, new, actor_kind="system")
    return log_audit_action(actor.id, action, table_name, record_id, old, new, actor_kind=actor.kind)
