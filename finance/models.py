# finance/models.py
from datetime import datetime
from extensions import db
from sqlalchemy import Numeric

TRANSACTION_TYPES = ("deposit", "withdrawal", "loan_payment", "loan_disbursement", "welfare_payment")
LOAN_STATUSES = ("pending", "approved", "active", "completed", "defaulted")
CASHBOX_TYPES = ("deposit", "withdrawal")


# --------------------
# Transaction Model
# --------------------
class Transaction(db.Model):
    __tablename__ = "transactions"

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(db.Integer, db.ForeignKey("groups.id"), nullable=False, index=True)
    member_id = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=False, index=True)
    type = db.Column(db.String(20), nullable=False)  # deposit | withdrawal | loan_payment | loan_disbursement | welfare_payment
    amount = db.Column(Numeric(12, 2), nullable=False)
    description = db.Column(db.Text, nullable=True)
    transaction_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    # who processed it: a staff user, or a group leader acting for the group
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_by_member_id = db.Column(db.Integer, db.ForeignKey("members.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "group_id": self.group_id,
            "member_id": self.member_id,
            "type": self.type,
            "amount": float(self.amount or 0),
            "description": self.description,
            "transaction_date": self.transaction_date.strftime("%Y-%m-%d %H:%M:%S") if self.transaction_date else None,
            "created_by": self.created_by,
            "created_by_member_id": self.created_by_member_id,
        }


# --------------------
# Loan Model
# --------------------
class Loan(db.Model):
    __tablename__ = "loans"

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(db.Integer, db.ForeignKey("groups.id"), nullable=False, index=True)
    member_id = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=False, index=True)
    amount = db.Column(Numeric(12, 2), nullable=False)             # original principal
    interest_rate = db.Column(Numeric(5, 2), nullable=False)       # % per month
    term_months = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), nullable=False, default="pending", index=True)

    application_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    approval_date = db.Column(db.DateTime, nullable=True)
    disbursement_date = db.Column(db.DateTime, nullable=True)
    due_date = db.Column(db.DateTime, nullable=True)

    remaining_balance = db.Column(Numeric(12, 2), nullable=True)   # balance incl. compounded interest
    total_amount_due = db.Column(Numeric(12, 2), nullable=True)
    months_overdue = db.Column(db.Integer, nullable=False, default=0)
    last_interest_update = db.Column(db.DateTime, nullable=True)

    purpose = db.Column(db.Text, nullable=True)
    approved_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        def _ts(value):
            return value.strftime("%Y-%m-%d %H:%M:%S") if value else None

        return {
            "id": self.id,
            "group_id": self.group_id,
            "member_id": self.member_id,
            "amount": float(self.amount or 0),
            "interest_rate": float(self.interest_rate or 0),
            "term_months": self.term_months,
            "status": self.status,
            "application_date": _ts(self.application_date),
            "approval_date": _ts(self.approval_date),
            "disbursement_date": _ts(self.disbursement_date),
            "due_date": _ts(self.due_date),
            "remaining_balance": float(self.remaining_balance) if self.remaining_balance is not None else None,
            "total_amount_due": float(self.total_amount_due) if self.total_amount_due is not None else None,
            "months_overdue": self.months_overdue,
            "last_interest_update": _ts(self.last_interest_update),
            "purpose": self.purpose,
            "approved_by": self.approved_by,
        }


# --------------------
# Cash box Model
# --------------------
class CashboxEntry(db.Model):
    __tablename__ = "cashbox"

    id = db.Column(db.Integer, primary_key=True)
    group_id = db.Column(db.Integer, db.ForeignKey("groups.id"), nullable=False, index=True)
    amount = db.Column(Numeric(12, 2), nullable=False)
    transaction_type = db.Column(db.String(20), nullable=False)  # deposit | withdrawal
    description = db.Column(db.Text, nullable=True)
    recorded_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    recorded_by_member_id = db.Column(db.Integer, db.ForeignKey("members.id", ondelete="SET NULL"), nullable=True)
    recorded_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "group_id": self.group_id,
            "amount": float(self.amount or 0),
            "transaction_type": self.transaction_type,
            "description": self.description,
            "recorded_by": self.recorded_by,
            "recorded_by_member_id": self.recorded_by_member_id,
            "recorded_at": self.recorded_at.strftime("%Y-%m-%d %H:%M:%S") if self.recorded_at else None,
        }
