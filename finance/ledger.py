# finance/ledger.py
"""
Balance-amending writes. Everything here adds to the current session and
leaves the commit to the caller, so one request is one unit of work.
"""
import logging
from datetime import datetime

from sqlalchemy import func

from extensions import db
from finance.calculations import as_float, calculate_member_shares
from finance.models import Transaction, Loan, CashboxEntry
from utils.audit_logger import audit_actor
from utils.errors import BusinessRuleError

logger = logging.getLogger(__name__)


def to_money(value):
    return round(as_float(value), 2)


def recompute_shares(member, group=None):
    group = group or member.group
    member.total_shares = calculate_member_shares(member.savings_balance, group.saving_per_share)
    return member.total_shares


def new_transaction(group, member, txn_type, amount, description=None, actor=None, transaction_date=None):
    """Insert the ledger row only; balances are the caller's business."""
    txn = Transaction(
        group_id=group.id,
        member_id=member.id,
        type=txn_type,
        amount=to_money(amount),
        description=description,
        transaction_date=transaction_date or datetime.utcnow(),
        created_by=actor.user_id if actor else None,
        created_by_member_id=actor.member_id if actor else None,
    )
    db.session.add(txn)
    return txn


def add_cashbox_entry(group, amount, transaction_type, description=None, actor=None):
    entry = CashboxEntry(
        group_id=group.id,
        amount=to_money(amount),
        transaction_type=transaction_type,
        description=description,
        recorded_by=actor.user_id if actor else None,
        recorded_by_member_id=actor.member_id if actor else None,
    )
    db.session.add(entry)
    return entry


def cashbox_balance(group_id):
    rows = (db.session.query(CashboxEntry.transaction_type, func.coalesce(func.sum(CashboxEntry.amount), 0))
            .filter(CashboxEntry.group_id == group_id)
            .group_by(CashboxEntry.transaction_type)
            .all())
    totals = {ttype: as_float(total) for ttype, total in rows}
    return totals.get("deposit", 0.0) - totals.get("withdrawal", 0.0)


def _settle_loans(member, amount):
    """Spread a repayment over the member's active loans, oldest first."""
    remaining = amount
    active = (Loan.query
              .filter_by(member_id=member.id, status="active")
              .order_by(Loan.disbursement_date.asc(), Loan.id.asc())
              .all())
    for loan in active:
        if remaining <= 0:
            break
        balance = as_float(loan.remaining_balance)
        paid = min(balance, remaining)
        loan.remaining_balance = to_money(balance - paid)
        remaining -= paid
        if as_float(loan.remaining_balance) <= 0:
            loan.remaining_balance = 0
            loan.status = "completed"
            logger.info("Loan %s completed", loan.id)


def apply_loan_payment(member, amount):
    """Cap the payment at the member's outstanding loan and apply it. Returns the amount applied."""
    current = as_float(member.current_loan)
    if current <= 0:
        raise BusinessRuleError("Member has no outstanding loan")
    paid = min(as_float(amount), current)
    member.current_loan = to_money(current - paid)
    _settle_loans(member, paid)
    return paid


def record_transaction(group, member, txn_type, amount, description=None, actor=None, transaction_date=None):
    """Insert a transaction and amend the member's balances to match."""
    amount = to_money(amount)
    if amount <= 0:
        raise BusinessRuleError("Amount must be greater than zero")

    if txn_type == "deposit":
        member.savings_balance = to_money(as_float(member.savings_balance) + amount)
    elif txn_type == "withdrawal":
        savings = as_float(member.savings_balance)
        if amount > savings:
            raise BusinessRuleError("Withdrawal exceeds savings balance",
                                    details={"savings_balance": savings, "requested": amount})
        member.savings_balance = to_money(savings - amount)
    elif txn_type == "welfare_payment":
        member.welfare_balance = to_money(as_float(member.welfare_balance) + amount)
    elif txn_type == "loan_payment":
        amount = to_money(apply_loan_payment(member, amount))
    elif txn_type == "loan_disbursement":
        member.current_loan = to_money(as_float(member.current_loan) + amount)
    else:
        raise BusinessRuleError(f"Unknown transaction type: {txn_type}")

    recompute_shares(member, group)
    txn = new_transaction(group, member, txn_type, amount, description, actor, transaction_date)
    db.session.flush()
    audit_actor(actor, "create", "transactions", txn.id, new=txn.to_dict())
    logger.info("Recorded %s of %.2f for member %s in group %s", txn_type, amount, member.id, group.id)
    return txn


def submit_savings(group, member, savings_amount, welfare_amount, submitted_by, actor=None):
    """A leader's collection round: savings + welfare, and the cash goes into the box."""
    savings_amount = to_money(savings_amount)
    welfare_amount = to_money(welfare_amount)
    if savings_amount < 0 or welfare_amount < 0:
        raise BusinessRuleError("Invalid submission data")

    created = []
    if savings_amount > 0:
        created.append(record_transaction(group, member, "deposit", savings_amount,
                                          f"Savings deposit submitted by {submitted_by}", actor))
    if welfare_amount > 0:
        created.append(record_transaction(group, member, "welfare_payment", welfare_amount,
                                          f"Welfare payment submitted by {submitted_by}", actor))
    if created:
        add_cashbox_entry(group, savings_amount + welfare_amount, "deposit",
                          f"Savings and welfare deposits submitted by {submitted_by}", actor)
    return created


def process_loan_payment(group, member, amount, processed_by, actor=None):
    if to_money(amount) <= 0:
        raise BusinessRuleError("Invalid payment data")

    txn = record_transaction(group, member, "loan_payment", amount,
                             f"Loan payment processed by {processed_by}", actor)
    add_cashbox_entry(group, txn.amount, "deposit",
                      f"Loan payment from {member.full_name}", actor)
    return {
        "remaining_balance": as_float(member.current_loan),
        "payment_amount": as_float(txn.amount),
        "transaction": txn,
    }
