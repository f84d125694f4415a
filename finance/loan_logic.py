# finance/loan_logic.py
import logging
from datetime import datetime

from dateutil.relativedelta import relativedelta

from extensions import db
from finance.calculations import as_float, calculate_group_financials, calculate_loan_total_due
from finance.ledger import new_transaction, add_cashbox_entry, to_money
from finance.models import Loan
from notifications.utils import push_notification
from utils.audit_logger import audit_actor
from utils.errors import BusinessRuleError
from utils.validation import MAX_MONEY

logger = logging.getLogger(__name__)

# status -> statuses it may move to
LOAN_TRANSITIONS = {
    "pending": ("approved", "defaulted"),
    "approved": ("active", "defaulted"),
    "active": ("completed", "defaulted"),
    "completed": (),
    "defaulted": (),
}
TERMS_EDITABLE = ("pending", "approved")


def available_loan_funds(group):
    members = [m for m in group.members if m.is_active]
    return calculate_group_financials(group, members, group.loans)["available_loan_funds"]


def create_loan(group, member, data, actor=None):
    """
    New applications start as pending with the group's rate and cycle unless told
    otherwise. A requested status beyond pending walks the normal transitions.
    """
    amount = to_money(data["amount"])
    if amount <= 0:
        raise BusinessRuleError("Loan amount must be greater than zero")

    rate = data.get("interest_rate")
    term = data.get("term_months")
    loan = Loan(
        group_id=group.id,
        member_id=member.id,
        amount=amount,
        interest_rate=as_float(rate) if rate is not None else as_float(group.interest_rate),
        term_months=int(term) if term else group.cycle_months,
        status="pending",
        application_date=datetime.utcnow(),
        remaining_balance=amount,
        months_overdue=0,
        purpose=data.get("purpose"),
    )
    db.session.add(loan)
    db.session.flush()
    audit_actor(actor, "create", "loans", loan.id, new=loan.to_dict())

    requested = data.get("status") or "pending"
    if requested != "pending":
        path = {"approved": ["approved"], "active": ["approved", "active"]}.get(requested)
        if path is None:
            raise BusinessRuleError(f"A new loan cannot start as {requested}")
        for status in path:
            change_status(loan, status, actor)
    return loan


def change_status(loan, new_status, actor=None, now=None):
    now = now or datetime.utcnow()
    if new_status == loan.status:
        return loan
    if new_status not in LOAN_TRANSITIONS.get(loan.status, ()):
        raise BusinessRuleError(f"Cannot move a loan from {loan.status} to {new_status}")

    if new_status == "approved":
        loan.approval_date = now
        loan.approved_by = actor.user_id if actor else None
    elif new_status == "active":
        _disburse(loan, actor, now)
    elif new_status == "completed":
        if as_float(loan.remaining_balance) > 0:
            raise BusinessRuleError("Loan still has an outstanding balance",
                                    details={"remaining_balance": as_float(loan.remaining_balance)})

    logger.info("Loan %s: %s -> %s", loan.id, loan.status, new_status)
    loan.status = new_status
    return loan


def _disburse(loan, actor, now):
    group = loan.group
    member = loan.member
    principal = as_float(loan.amount)

    funds = available_loan_funds(group)
    if principal > funds:
        raise BusinessRuleError("Not enough cash in the box for this loan",
                                details={"available_loan_funds": funds, "requested": principal})

    try:
        total_due = to_money(calculate_loan_total_due(principal, loan.interest_rate, loan.term_months, compound=True))
    except OverflowError:
        total_due = None
    if total_due is None or total_due > MAX_MONEY:
        raise BusinessRuleError("Loan terms give a total due that is too large",
                                details={"max_total_due": MAX_MONEY})
    loan.disbursement_date = now
    loan.due_date = now + relativedelta(months=loan.term_months)
    loan.total_amount_due = total_due
    loan.remaining_balance = total_due
    loan.last_interest_update = now
    if not loan.approval_date:
        loan.approval_date = now

    member.current_loan = to_money(as_float(member.current_loan) + total_due)
    new_transaction(group, member, "loan_disbursement", principal,
                    f"Loan #{loan.id} disbursed", actor, transaction_date=now)
    add_cashbox_entry(group, principal, "withdrawal",
                      f"Loan disbursement to {member.full_name}", actor)


def update_loan(loan, changes, actor=None):
    before = loan.to_dict()
    status = changes.pop("status", None)

    term_fields = {k: v for k, v in changes.items() if k in ("amount", "interest_rate", "term_months")}
    if term_fields and loan.status not in TERMS_EDITABLE:
        raise BusinessRuleError("Loan terms cannot change once the loan is disbursed")
    for field, value in changes.items():
        setattr(loan, field, value)
    if "amount" in term_fields:
        loan.remaining_balance = to_money(term_fields["amount"])

    if status:
        change_status(loan, status, actor)

    audit_actor(actor, "update", "loans", loan.id, old=before, new=loan.to_dict())
    return loan


def _months_between(start, end):
    delta = relativedelta(end, start)
    return delta.years * 12 + delta.months


def refresh_overdue_loans(now=None):
    """
    Compound every active loan past its due date once per overdue month.
    Each newly counted month adds interest at the loan rate to the remaining
    balance and to the member's current loan. Returns the number of loans touched.
    """
    now = now or datetime.utcnow()
    overdue = Loan.query.filter(Loan.status == "active", Loan.due_date.isnot(None), Loan.due_date < now).all()

    touched = 0
    for loan in overdue:
        months = _months_between(loan.due_date, now)
        new_months = months - (loan.months_overdue or 0)
        if new_months <= 0:
            continue

        balance = as_float(loan.remaining_balance)
        grown = to_money(balance * (1 + as_float(loan.interest_rate) / 100) ** new_months)
        delta = grown - balance

        loan.remaining_balance = grown
        loan.total_amount_due = to_money(as_float(loan.total_amount_due) + delta)
        loan.months_overdue = months
        loan.last_interest_update = now
        loan.member.current_loan = to_money(as_float(loan.member.current_loan) + delta)

        if loan.group.created_by:
            push_notification(
                loan.group.created_by,
                f"Loan #{loan.id} for {loan.member.full_name} is {months} month(s) overdue",
                ntype="warning",
                meta={"loan_id": loan.id, "group_id": loan.group_id},
            )
        audit_actor(None, "overdue_interest", "loans", loan.id,
                    new={"months_overdue": months, "interest_added": delta})
        touched += 1

    if touched:
        db.session.commit()
        logger.info("Applied overdue interest to %d loan(s)", touched)
    return touched
