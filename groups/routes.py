import logging

from flask import Blueprint, jsonify

from extensions import db
from finance.calculations import as_float, update_member_shares, validate_group_calculations
from finance.models import Transaction
from groups.models import Group
from groups.schemas import GroupCreate, GroupUpdate
from members.models import Member
from reports.queries import group_stats
from users.auth import admin_required, current_actor, ensure_group_access, login_required, staff_required
from utils.audit_logger import audit_actor
from utils.errors import NotFound
from utils.validation import changes_from, parse_body

logger = logging.getLogger(__name__)

groups_bp = Blueprint('groups', __name__)


def get_group_or_404(group_id):
    group = db.session.get(Group, group_id)
    if not group:
        raise NotFound('Group not found')
    return group


def _visible_group(group_id):
    group = get_group_or_404(group_id)
    ensure_group_access(group.id)
    return group


@groups_bp.route('/groups', methods=['GET'])
@login_required
def list_groups():
    query = Group.query
    visible = current_actor().visible_group_ids()
    if visible is not None:
        query = query.filter(Group.id.in_(visible or [-1]))
    groups = query.order_by(Group.created_at.desc()).all()
    return jsonify([g.to_dict() for g in groups]), 200


@groups_bp.route('/groups', methods=['POST'])
@staff_required()
def create_group():
    body = parse_body(GroupCreate)
    actor = current_actor()
    data = body.model_dump(exclude_none=True)
    group = Group(created_by=actor.id, **data)
    db.session.add(group)
    db.session.flush()
    audit_actor(actor, "create", "groups", group.id, new=group.to_dict())
    db.session.commit()
    logger.info("Group %s '%s' created by user %s", group.id, group.name, actor.id)
    return jsonify(group.to_dict()), 201


@groups_bp.route('/groups/<int:group_id>', methods=['GET'])
@login_required
def get_group(group_id):
    return jsonify(_visible_group(group_id).to_dict()), 200


@groups_bp.route('/groups/<int:group_id>', methods=['PUT'])
@staff_required()
def update_group(group_id):
    group = _visible_group(group_id)
    changes = changes_from(parse_body(GroupUpdate))
    before = group.to_dict()

    for field, value in changes.items():
        setattr(group, field, value)

    # a new share price changes everybody's share count
    if "saving_per_share" in changes:
        for member in group.members:
            update_member_shares(member, group)

    audit_actor(current_actor(), "update", "groups", group.id, old=before, new=group.to_dict())
    db.session.commit()
    return jsonify(group.to_dict()), 200


@groups_bp.route('/groups/<int:group_id>', methods=['DELETE'])
@admin_required
def delete_group(group_id):
    group = get_group_or_404(group_id)
    audit_actor(current_actor(), "delete", "groups", group.id, old=group.to_dict())
    db.session.delete(group)
    db.session.commit()
    logger.warning("Group %s deleted with all its records", group_id)
    return jsonify({'message': 'Group deleted successfully'}), 200


# -----------------------------
# Group views
# -----------------------------
@groups_bp.route('/groups/<int:group_id>/stats', methods=['GET'])
@login_required
def get_group_stats(group_id):
    _visible_group(group_id)
    return jsonify(group_stats(group_id)), 200


@groups_bp.route('/groups/<int:group_id>/financials', methods=['GET'])
@login_required
def get_group_financials(group_id):
    group = _visible_group(group_id)
    stats = group_stats(group_id)
    stats["share_discrepancies"] = validate_group_calculations(group, [m for m in group.members if m.is_active])
    return jsonify(stats), 200


@groups_bp.route('/groups/<int:group_id>/members', methods=['GET'])
@login_required
def get_group_members(group_id):
    _visible_group(group_id)
    members = Member.query.filter_by(group_id=group_id).order_by(Member.first_name, Member.last_name).all()
    return jsonify([m.to_dict() for m in members]), 200


@groups_bp.route('/groups/<int:group_id>/members-with-loans', methods=['GET'])
@login_required
def get_members_with_loans(group_id):
    _visible_group(group_id)
    members = Member.query.filter(Member.group_id == group_id, Member.current_loan > 0).all()
    return jsonify([m.to_dict() for m in members if as_float(m.current_loan) > 0]), 200


@groups_bp.route('/groups/<int:group_id>/transaction-history', methods=['GET'])
@login_required
def get_group_transaction_history(group_id):
    _visible_group(group_id)
    rows = (db.session.query(Transaction, Member)
            .outerjoin(Member, Transaction.member_id == Member.id)
            .filter(Transaction.group_id == group_id)
            .order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
            .all())
    history = []
    for txn, member in rows:
        item = txn.to_dict()
        item["member_name"] = member.full_name if member else "Unknown Member"
        history.append(item)
    return jsonify(history), 200


@groups_bp.route('/groups/<int:group_id>/recalculate-shares', methods=['POST'])
@staff_required()
def recalculate_shares(group_id):
    group = _visible_group(group_id)
    fixed = validate_group_calculations(group, group.members)
    for member in group.members:
        update_member_shares(member, group)
    if fixed:
        audit_actor(current_actor(), "recalculate_shares", "groups", group.id, new={"fixed": fixed})
    db.session.commit()
    return jsonify({'message': 'Shares recalculated', 'updated': len(fixed), 'details': fixed}), 200
