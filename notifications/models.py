# notifications/models.py
from datetime import datetime
from extensions import db

NOTIFICATION_TYPES = ("info", "warning", "reminder")


class Notification(db.Model):
    """In-app message for a staff user: meeting reminders, overdue loans."""
    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    group_id = db.Column(db.Integer, db.ForeignKey("groups.id", ondelete="CASCADE"), nullable=True, index=True)
    message = db.Column(db.String(500), nullable=False)
    type = db.Column(db.String(20), nullable=False, default="info")
    meta = db.Column(db.JSON, nullable=True)           # {"meeting_id": 3} / {"loan_id": 7}
    is_read = db.Column(db.Boolean, nullable=False, default=False, index=True)
    read_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    def mark_read(self):
        if not self.is_read:
            self.is_read = True
            self.read_at = datetime.utcnow()

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "group_id": self.group_id,
            "message": self.message,
            "type": self.type,
            "meta": self.meta or {},
            "is_read": self.is_read,
            "read_at": self.read_at.strftime("%Y-%m-%d %H:%M:%S") if self.read_at else None,
            "created_at": self.created_at.strftime("%Y-%m-%d %H:%M:%S") if self.created_at else None,
        }
