# members/models.py
from datetime import datetime, date
from extensions import db
from sqlalchemy import Numeric

GROUP_ROLES = ("member", "secretary", "finance", "chairman")
LEADERSHIP_ROLES = ("secretary", "finance", "chairman")
GENDERS = ("M", "F")


class Member(db.Model):
    __tablename__ = "members"

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(db.Integer, db.ForeignKey("groups.id"), nullable=False, index=True)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    gender = db.Column(db.String(10), nullable=False)                  # M | F
    group_role = db.Column(db.String(20), nullable=False, default="member")
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(20), nullable=True, index=True)
    address = db.Column(db.Text, nullable=True)
    join_date = db.Column(db.Date, nullable=False, default=date.today)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    # Balances (kept consistent by finance.ledger)
    total_shares = db.Column(db.Integer, nullable=False, default=0)
    savings_balance = db.Column(Numeric(12, 2), nullable=False, default=0)
    welfare_balance = db.Column(Numeric(12, 2), nullable=False, default=0)
    current_loan = db.Column(Numeric(12, 2), nullable=False, default=0)

    next_of_kin = db.Column(db.String(255), nullable=True)
    pin_hash = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    transactions = db.relationship("Transaction", backref="member", cascade="all, delete", lazy=True,
                                   foreign_keys="Transaction.member_id")
    loans = db.relationship("Loan", backref="member", cascade="all, delete", lazy=True)
    attendance = db.relationship("MeetingAttendance", backref="member", cascade="all, delete", lazy=True)

    def __repr__(self):
        return f"<Member {self.id} {self.first_name} {self.last_name}>"

    def set_pin(self, pin):
        from users.auth import hash_pin
        self.pin_hash = hash_pin(pin)

    def check_pin(self, pin):
        from users.auth import check_pin
        return check_pin(self.pin_hash, pin)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    @property
    def is_leader(self):
        return self.group_role in LEADERSHIP_ROLES

    def to_dict(self):
        return {
            "id": self.id,
            "group_id": self.group_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "gender": self.gender,
            "group_role": self.group_role,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "join_date": self.join_date.isoformat() if self.join_date else None,
            "is_active": self.is_active,
            "total_shares": self.total_shares,
            "savings_balance": float(self.savings_balance or 0),
            "welfare_balance": float(self.welfare_balance or 0),
            "current_loan": float(self.current_loan or 0),
            "next_of_kin": self.next_of_kin,
            "created_at": self.created_at.strftime("%Y-%m-%d %H:%M:%S") if self.created_at else None,
        }
