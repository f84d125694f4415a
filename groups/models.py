# groups/models.py
from datetime import datetime, date
from extensions import db
from sqlalchemy import Numeric

MEETING_FREQUENCIES = ("weekly", "biweekly", "monthly")


class Group(db.Model):
    __tablename__ = "groups"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    location = db.Column(db.String(255), nullable=False)
    registration_number = db.Column(db.String(100), nullable=True)

    # Rules of the group
    meeting_frequency = db.Column(db.String(20), nullable=False, default="monthly")
    max_members = db.Column(db.Integer, nullable=False, default=30)
    saving_per_share = db.Column(Numeric(12, 2), nullable=False, default=0)   # share value
    cycle_months = db.Column(db.Integer, nullable=False, default=12)
    interest_rate = db.Column(Numeric(5, 2), nullable=False, default=2)       # % per month on loans
    welfare_amount = db.Column(Numeric(12, 2), nullable=False, default=0)     # agreed welfare per member per month

    # Activities / business
    main_activity = db.Column(db.Text, nullable=True)
    other_activities = db.Column(db.Text, nullable=True)
    registration_date = db.Column(db.Date, nullable=False, default=date.today)
    has_running_business = db.Column(db.Boolean, nullable=False, default=False)
    business_name = db.Column(db.String(255), nullable=True)
    business_location = db.Column(db.String(255), nullable=True)
    current_input = db.Column(db.Text, nullable=True)  # funds, manpower, services...

    available_cash = db.Column(Numeric(12, 2), nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    members = db.relationship("Member", backref="group", cascade="all, delete-orphan", lazy=True)
    transactions = db.relationship("Transaction", backref="group", cascade="all, delete-orphan", lazy=True)
    loans = db.relationship("Loan", backref="group", cascade="all, delete-orphan", lazy=True)
    meetings = db.relationship("Meeting", backref="group", cascade="all, delete-orphan", lazy=True)
    cashbox_entries = db.relationship("CashboxEntry", backref="group", cascade="all, delete-orphan", lazy=True)

    def __repr__(self):
        return f"<Group {self.id} {self.name}>"

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "location": self.location,
            "registration_number": self.registration_number,
            "meeting_frequency": self.meeting_frequency,
            "max_members": self.max_members,
            "saving_per_share": float(self.saving_per_share or 0),
            "cycle_months": self.cycle_months,
            "interest_rate": float(self.interest_rate or 0),
            "welfare_amount": float(self.welfare_amount or 0),
            "main_activity": self.main_activity,
            "other_activities": self.other_activities,
            "registration_date": self.registration_date.isoformat() if self.registration_date else None,
            "has_running_business": self.has_running_business,
            "business_name": self.business_name,
            "business_location": self.business_location,
            "current_input": self.current_input,
            "available_cash": float(self.available_cash or 0),
            "is_active": self.is_active,
            "created_by": self.created_by,
            "created_at": self.created_at.strftime("%Y-%m-%d %H:%M:%S") if self.created_at else None,
            "updated_at": self.updated_at.strftime("%Y-%m-%d %H:%M:%S") if self.updated_at else None,
        }
