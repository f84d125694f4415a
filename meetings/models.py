# meetings/models.py
from datetime import datetime
from extensions import db
from sqlalchemy import Numeric

MEETING_STATUSES = ("scheduled", "completed", "cancelled")


class Meeting(db.Model):
    __tablename__ = "meetings"

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(db.Integer, db.ForeignKey("groups.id"), nullable=False, index=True)
    date = db.Column(db.DateTime, nullable=False, index=True)
    location = db.Column(db.String(255), nullable=True)
    agenda = db.Column(db.Text, nullable=True)
    minutes = db.Column(db.Text, nullable=True)
    attendees = db.Column(db.JSON, nullable=True)  # member ids marked present
    status = db.Column(db.String(20), nullable=False, default="scheduled")  # scheduled | completed | cancelled

    notification_sent_24h = db.Column(db.Boolean, nullable=False, default=False)
    notification_sent_now = db.Column(db.Boolean, nullable=False, default=False)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    attendance = db.relationship("MeetingAttendance", backref="meeting", cascade="all, delete-orphan", lazy=True)

    def to_dict(self):
        return {
            "id": self.id,
            "group_id": self.group_id,
            "date": self.date.strftime("%Y-%m-%d %H:%M:%S") if self.date else None,
            "location": self.location,
            "agenda": self.agenda,
            "minutes": self.minutes,
            "attendees": self.attendees or [],
            "status": self.status,
            "notification_sent_24h": self.notification_sent_24h,
            "notification_sent_now": self.notification_sent_now,
            "created_by": self.created_by,
            "created_at": self.created_at.strftime("%Y-%m-%d %H:%M:%S") if self.created_at else None,
        }


class MeetingAttendance(db.Model):
    __tablename__ = "meeting_attendance"

    id = db.Column(db.Integer, primary_key=True)
    meeting_id = db.Column(db.Integer, db.ForeignKey("meetings.id"), nullable=False, index=True)
    member_id = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=False, index=True)
    is_present = db.Column(db.Boolean, nullable=False, default=False)
    shares_purchased = db.Column(db.Integer, nullable=False, default=0)
    welfare_payment = db.Column(Numeric(12, 2), nullable=False, default=0)
    loan_payment = db.Column(Numeric(12, 2), nullable=False, default=0)
    notes = db.Column(db.Text, nullable=True)
    recorded_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    # one row per member per meeting
    __table_args__ = (db.UniqueConstraint("meeting_id", "member_id", name="uq_meeting_member"),)

    def to_dict(self):
        return {
            "id": self.id,
            "meeting_id": self.meeting_id,
            "member_id": self.member_id,
            "is_present": self.is_present,
            "shares_purchased": self.shares_purchased,
            "welfare_payment": float(self.welfare_payment or 0),
            "loan_payment": float(self.loan_payment or 0),
            "notes": self.notes,
            "recorded_at": self.recorded_at.strftime("%Y-%m-%d %H:%M:%S") if self.recorded_at else None,
        }
