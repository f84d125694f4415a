# audit/models.py

from datetime import datetime
from extensions import db


class AuditLog(db.Model):
    __tablename__ = 'audit_logs'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=True)           # staff user id, or member id when actor_kind == "member"
    actor_kind = db.Column(db.String(10), nullable=False, default="staff")
    action = db.Column(db.String(255), nullable=False)       # e.g., "Create group", "Approve loan"
    table_name = db.Column(db.String(100), nullable=False)   # e.g., "Loan"
    record_id = db.Column(db.Integer, nullable=True)
    old_value = db.Column(db.JSON)                           # before update
    new_value = db.Column(db.JSON)                           # after update
    timestamp = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "actor_kind": self.actor_kind,
            "action": self.action,
            "table_name": self.table_name,
            "record_id": self.record_id,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "timestamp": self.timestamp.strftime("%Y-%m-%d %H:%M:%S") if self.timestamp else None
        }
