import logging
import math

from flask import Blueprint, jsonify

from extensions import db
from finance import ledger
from finance.calculations import (
    calculate_amortized_payment, calculate_loan_interest, calculate_loan_total_due,
    calculate_monthly_payment, generate_payment_schedule
)
from finance.loan_logic import create_loan, update_loan
from finance.models import CashboxEntry, Loan, Transaction
from finance.schemas import (
    CashboxCreate, LoanCalculation, LoanCreate, LoanPayment, LoanUpdate, SubmitSavings, TransactionCreate
)
from groups.routes import get_group_or_404
from members.routes import get_member_or_404
from users.auth import current_actor, ensure_group_access, login_required, staff_required
from utils.audit_logger import audit_actor
from utils.errors import BusinessRuleError, Forbidden, NotFound
from utils.validation import changes_from, parse_body, query_int, query_str

logger = logging.getLogger(__name__)

finance_bp = Blueprint('finance', __name__)


def _group_and_member(group_id, member_id):
    group = get_group_or_404(group_id)
    ensure_group_access(group.id)
    member = get_member_or_404(member_id)
    if member.group_id != group.id:
        raise BusinessRuleError('Member does not belong to this group')
    return group, member


def _require_staff_or_leader(group_id):
    """Staff, or a secretary / finance / chairman acting for their own group."""
    actor = current_actor()
    if actor.is_staff:
        return
    if actor.record.is_leader and actor.record.group_id == group_id:
        return
    raise Forbidden('Only group leaders can do this')


def _scope_to_actor(query, group_col, member_col):
    """Staff see their groups; leaders see their group; ordinary members only their own rows."""
    actor = current_actor()
    if actor.is_member and not actor.record.is_leader:
        return query.filter(member_col == actor.id)
    visible = actor.visible_group_ids()
    if visible is not None:
        query = query.filter(group_col.in_(visible or [-1]))
    return query


# -----------------------------
# Transactions
# -----------------------------
@finance_bp.route('/transactions', methods=['GET'])
@login_required
def list_transactions():
    query = _scope_to_actor(Transaction.query, Transaction.group_id, Transaction.member_id)
    group_id = query_int('group_id')
    member_id = query_int('member_id')
    if group_id:
        ensure_group_access(group_id)
        query = query.filter(Transaction.group_id == group_id)
    if member_id:
        query = query.filter(Transaction.member_id == member_id)
    txns = query.order_by(Transaction.transaction_date.desc(), Transaction.id.desc()).all()
    return jsonify([t.to_dict() for t in txns]), 200


@finance_bp.route('/transactions', methods=['POST'])
@staff_required()
def create_transaction():
    body = parse_body(TransactionCreate)
    group, member = _group_and_member(body.group_id, body.member_id)
    txn = ledger.record_transaction(group, member, body.type, body.amount, body.description,
                                    current_actor(), body.transaction_date)
    db.session.commit()
    return jsonify(txn.to_dict()), 201


@finance_bp.route('/transactions/submit-savings', methods=['POST'])
@login_required
def submit_savings():
    body = parse_body(SubmitSavings)
    _require_staff_or_leader(body.group_id)
    group, member = _group_and_member(body.group_id, body.member_id)

    created = ledger.submit_savings(group, member, body.savings_amount, body.welfare_amount,
                                    body.submitted_by, current_actor())
    db.session.commit()
    return jsonify({
        'message': 'Savings and welfare submitted successfully',
        'transactions': [t.to_dict() for t in created],
        'member': member.to_dict(),
    }), 200


@finance_bp.route('/transactions/loan-payment', methods=['POST'])
@login_required
def loan_payment():
    body = parse_body(LoanPayment)
    _require_staff_or_leader(body.group_id)
    group, member = _group_and_member(body.group_id, body.member_id)

    result = ledger.process_loan_payment(group, member, body.amount, body.processed_by, current_actor())
    db.session.commit()
    return jsonify({
        'message': 'Loan payment processed successfully',
        'remaining_balance': result['remaining_balance'],
        'payment_amount': result['payment_amount'],
    }), 200


# -----------------------------
# Loans
# -----------------------------
def get_loan_or_404(loan_id):
    loan = db.session.get(Loan, loan_id)
    if not loan:
        raise NotFound('Loan not found')
    return loan


@finance_bp.route('/loans', methods=['GET'])
@login_required
def list_loans():
    query = _scope_to_actor(Loan.query, Loan.group_id, Loan.member_id)
    group_id = query_int('group_id')
    member_id = query_int('member_id')
    status = query_str('status')
    if group_id:
        ensure_group_access(group_id)
        query = query.filter(Loan.group_id == group_id)
    if member_id:
        query = query.filter(Loan.member_id == member_id)
    if status:
        query = query.filter(Loan.status == status)
    loans = query.order_by(Loan.application_date.desc(), Loan.id.desc()).all()
    return jsonify([l.to_dict() for l in loans]), 200


@finance_bp.route('/loans', methods=['POST'])
@login_required
def apply_for_loan():
    body = parse_body(LoanCreate)
    actor = current_actor()
    group, member = _group_and_member(body.group_id, body.member_id)

    data = body.model_dump()
    if actor.is_member:
        # members apply (for themselves, or leaders for their group); staff decide
        if actor.id != member.id and not actor.record.is_leader:
            raise Forbidden('Members can only apply for their own loans')
        data['status'] = 'pending'

    loan = create_loan(group, member, data, actor)
    db.session.commit()
    return jsonify(loan.to_dict()), 201


@finance_bp.route('/loans/<int:loan_id>', methods=['GET'])
@login_required
def get_loan(loan_id):
    loan = get_loan_or_404(loan_id)
    actor = current_actor()
    ensure_group_access(loan.group_id)
    if actor.is_member and not actor.record.is_leader and loan.member_id != actor.id:
        raise Forbidden('Insufficient permissions')
    return jsonify(loan.to_dict()), 200


@finance_bp.route('/loans/<int:loan_id>', methods=['PUT'])
@staff_required()
def edit_loan(loan_id):
    loan = get_loan_or_404(loan_id)
    ensure_group_access(loan.group_id)
    changes = changes_from(parse_body(LoanUpdate))
    update_loan(loan, changes, current_actor())
    db.session.commit()
    return jsonify(loan.to_dict()), 200


@finance_bp.route('/loans/calculate', methods=['POST'])
@login_required
def loan_calculator():
    body = parse_body(LoanCalculation)

    try:
        if body.method == 'amortized':
            result = calculate_amortized_payment(body.amount, body.interest_rate, body.term_months)
        else:
            compound = body.method == 'compound'
            result = {
                'monthly_payment': calculate_monthly_payment(body.amount, body.interest_rate, body.term_months, compound),
                'total_amount': calculate_loan_total_due(body.amount, body.interest_rate, body.term_months, compound),
                'total_interest': calculate_loan_interest(body.amount, body.interest_rate, body.term_months, compound),
                'schedule': generate_payment_schedule(body.amount, body.interest_rate, body.term_months, compound),
            }
    except OverflowError:
        result = None
    if result is None or not math.isfinite(result['total_amount']):
        raise BusinessRuleError('Loan terms are too large to calculate')
    result['method'] = body.method
    return jsonify(result), 200


# -----------------------------
# Cash box
# -----------------------------
@finance_bp.route('/cashbox', methods=['POST'])
@staff_required()
def record_cashbox_entry():
    body = parse_body(CashboxCreate)
    group = get_group_or_404(body.group_id)
    ensure_group_access(group.id)

    if body.transaction_type == 'withdrawal':
        balance = ledger.cashbox_balance(group.id)
        if body.amount > balance:
            raise BusinessRuleError('Not enough cash in the box',
                                    details={'balance': balance, 'requested': body.amount})

    actor = current_actor()
    entry = ledger.add_cashbox_entry(group, body.amount, body.transaction_type, body.description, actor)
    db.session.flush()
    audit_actor(actor, "create", "cashbox", entry.id, new=entry.to_dict())
    db.session.commit()
    return jsonify(entry.to_dict()), 201


@finance_bp.route('/cashbox/<int:group_id>', methods=['GET'])
@login_required
def list_cashbox_entries(group_id):
    get_group_or_404(group_id)
    ensure_group_access(group_id)
    entries = (CashboxEntry.query.filter_by(group_id=group_id)
               .order_by(CashboxEntry.recorded_at.desc(), CashboxEntry.id.desc()).all())
    return jsonify([e.to_dict() for e in entries]), 200


@finance_bp.route('/cashbox/<int:group_id>/balance', methods=['GET'])
@login_required
def get_cashbox_balance(group_id):
    get_group_or_404(group_id)
    ensure_group_access(group_id)
    return jsonify({'group_id': group_id, 'balance': ledger.cashbox_balance(group_id)}), 200
