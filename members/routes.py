import logging
from datetime import date

from dateutil.relativedelta import relativedelta
from flask import Blueprint, jsonify

from extensions import db
from finance.calculations import as_float, calculate_welfare_contribution
from finance.ledger import recompute_shares, to_money
from finance.models import CashboxEntry, Loan, Transaction
from groups.routes import get_group_or_404
from members.models import Member
from members.schemas import MemberCreate, MemberUpdate, SharesUpdate
from reports.queries import group_stats
from users.auth import (
    current_actor, ensure_group_access, ensure_member_access, login_required, staff_required
)
from utils.audit_logger import audit_actor
from utils.errors import BusinessRuleError, Conflict, NotFound
from utils.validation import changes_from, parse_body, query_int

logger = logging.getLogger(__name__)

members_bp = Blueprint('members', __name__)


def get_member_or_404(member_id):
    member = db.session.get(Member, member_id)
    if not member:
        raise NotFound('Member not found')
    return member


def _phone_taken(phone, exclude_id=None):
    if not phone:
        return False
    query = Member.query.filter(Member.phone == phone)
    if exclude_id:
        query = query.filter(Member.id != exclude_id)
    return db.session.query(query.exists()).scalar()


def months_active(join_date, today=None):
    today = today or date.today()
    if not join_date or join_date > today:
        return 0
    delta = relativedelta(today, join_date)
    # the joining month counts
    return delta.years * 12 + delta.months + 1


@members_bp.route('/members', methods=['GET'])
@login_required
def list_members():
    actor = current_actor()
    group_id = query_int('group_id')
    query = Member.query
    if group_id:
        ensure_group_access(group_id)
        query = query.filter(Member.group_id == group_id)
    else:
        visible = actor.visible_group_ids()
        if visible is not None:
            query = query.filter(Member.group_id.in_(visible or [-1]))
    members = query.order_by(Member.first_name, Member.last_name).all()
    return jsonify([m.to_dict() for m in members]), 200


def _ensure_room(group):
    active_count = Member.query.filter_by(group_id=group.id, is_active=True).count()
    if active_count >= group.max_members:
        raise BusinessRuleError(f'Group is full ({group.max_members} members)')


@members_bp.route('/members', methods=['POST'])
@staff_required()
def create_member():
    body = parse_body(MemberCreate)
    group = get_group_or_404(body.group_id)
    ensure_group_access(group.id)

    if body.is_active:
        _ensure_room(group)
    if _phone_taken(body.phone):
        raise Conflict('A member with this phone number already exists')

    data = body.model_dump(exclude={'pin'}, exclude_none=True)
    member = Member(**data)
    member.savings_balance = to_money(body.savings_balance)
    member.welfare_balance = to_money(body.welfare_balance)
    member.current_loan = to_money(body.current_loan)
    member.set_pin(body.pin)
    recompute_shares(member, group)

    db.session.add(member)
    db.session.flush()
    audit_actor(current_actor(), "create", "members", member.id, new=member.to_dict())
    db.session.commit()
    logger.info("Member %s added to group %s", member.id, group.id)
    return jsonify(member.to_dict()), 201


@members_bp.route('/members/<int:member_id>', methods=['GET'])
@login_required
def get_member(member_id):
    member = get_member_or_404(member_id)
    ensure_member_access(member)
    return jsonify(member.to_dict()), 200


@members_bp.route('/members/<int:member_id>', methods=['PUT'])
@staff_required()
def update_member(member_id):
    member = get_member_or_404(member_id)
    ensure_group_access(member.group_id)
    changes = changes_from(parse_body(MemberUpdate))

    if changes.get('phone') and _phone_taken(changes['phone'], exclude_id=member.id):
        raise Conflict('A member with this phone number already exists')

    if changes.get('is_active') and not member.is_active:
        _ensure_room(member.group)

    before = member.to_dict()
    pin = changes.pop('pin', None)
    for field, value in changes.items():
        setattr(member, field, value)
    if pin:
        member.set_pin(pin)

    audit_actor(current_actor(), "update", "members", member.id, old=before, new=member.to_dict())
    db.session.commit()
    return jsonify(member.to_dict()), 200


@members_bp.route('/members/<int:member_id>', methods=['DELETE'])
@staff_required()
def delete_member(member_id):
    member = get_member_or_404(member_id)
    ensure_group_access(member.group_id)
    audit_actor(current_actor(), "delete", "members", member.id, old=member.to_dict())
    # rows this member recorded for others stay, without the recorder
    Transaction.query.filter_by(created_by_member_id=member.id).update({"created_by_member_id": None})
    CashboxEntry.query.filter_by(recorded_by_member_id=member.id).update({"recorded_by_member_id": None})
    db.session.delete(member)
    db.session.commit()
    return jsonify({'message': 'Member deleted successfully'}), 200


@members_bp.route('/members/<int:member_id>/shares', methods=['PATCH'])
@staff_required()
def update_member_shares(member_id):
    """Set the share count directly; savings follow as shares x share value."""
    member = get_member_or_404(member_id)
    ensure_group_access(member.group_id)
    body = parse_body(SharesUpdate)

    before = member.to_dict()
    member.savings_balance = to_money(body.shares * as_float(member.group.saving_per_share))
    recompute_shares(member)

    audit_actor(current_actor(), "update_shares", "members", member.id, old=before, new=member.to_dict())
    db.session.commit()
    return jsonify(member.to_dict()), 200


@members_bp.route('/members/<int:member_id>/dashboard', methods=['GET'])
@login_required
def member_dashboard(member_id):
    member = get_member_or_404(member_id)
    ensure_member_access(member)
    group = member.group

    months = months_active(member.join_date)
    welfare_due = calculate_welfare_contribution(group.welfare_amount, months)
    welfare_paid = as_float(member.welfare_balance)

    loans = Loan.query.filter_by(member_id=member.id).order_by(Loan.application_date.desc()).all()
    recent = (Transaction.query.filter_by(member_id=member.id)
              .order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
              .limit(10).all())

    return jsonify({
        'member': member.to_dict(),
        'group': group.to_dict(),
        'group_stats': group_stats(group.id),
        'welfare': {
            'months_active': months,
            'expected': welfare_due,
            'paid': welfare_paid,
            'arrears': max(0.0, welfare_due - welfare_paid),
        },
        'loans': [l.to_dict() for l in loans],
        'recent_transactions': [t.to_dict() for t in recent],
    }), 200


@members_bp.route('/members/<int:member_id>/transaction-history', methods=['GET'])
@login_required
def member_transaction_history(member_id):
    member = get_member_or_404(member_id)
    ensure_member_access(member)
    txns = (Transaction.query.filter_by(member_id=member.id)
            .order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
            .all())
    return jsonify([t.to_dict() for t in txns]), 200
