import logging

from flask import Blueprint, current_app, jsonify

from extensions import db
from members.models import Member
from reports.queries import group_stats
from users.auth import (
    admin_required, current_actor, end_session, find_user_by_identifier,
    generate_user_code, hash_pin, issue_session, load_actor, touch_last_login
)
from users.models import User
from users.schemas import BarcodeLogin, LoginRequest, MemberLogin, StaffLogin, UserCreate, UserUpdate
from utils.audit_logger import audit_actor, log_audit_action
from utils.errors import Conflict, NotFound
from utils.validation import changes_from, parse_body

logger = logging.getLogger(__name__)

users_bp = Blueprint('users', __name__)


def _staff_session(user, pin=None):
    """Shared tail of the staff logins. pin=None means the identifier alone is trusted (barcode)."""
    if not user:
        return jsonify({'error': 'Invalid credentials'}), 401
    if not user.is_active:
        return jsonify({'error': 'Account is deactivated'}), 401
    if pin is not None and not user.check_pin(pin):
        logger.info("Failed PIN for staff user %s", user.user_code)
        return jsonify({'error': 'Invalid credentials'}), 401

    touch_last_login(user)
    db.session.commit()

    resp = jsonify({'user_type': 'staff', 'user': user.to_dict()})
    issue_session(resp, "staff", user)
    logger.info("Staff login: %s (%s)", user.user_code, user.role)
    return resp, 200


# ✅ First admin account
@users_bp.route('/initialize', methods=['POST'])
def initialize_system():
    if User.query.filter_by(role='admin').first():
        return jsonify({'error': 'System already initialized'}), 400

    pin = current_app.config['INITIAL_ADMIN_PIN']
    admin = User(
        user_code=generate_user_code(),
        first_name='System',
        last_name='Administrator',
        phone='+1234567890',
        email='admin@weka.com',
        pin_hash=hash_pin(pin),
        role='admin',
        is_active=True,
        location='Main Office',
    )
    db.session.add(admin)
    db.session.flush()
    log_audit_action(None, "initialize", "users", admin.id, new=admin.to_dict(), actor_kind="system")
    db.session.commit()

    return jsonify({
        'message': 'System initialized successfully',
        'admin_user': admin.to_dict(),
        'credentials': {'user_id': admin.user_code, 'phone': admin.phone, 'pin': pin},
    }), 201


# ✅ Login by phone or user code
@users_bp.route('/login', methods=['POST'])
def login():
    body = parse_body(LoginRequest)
    return _staff_session(find_user_by_identifier(body.phone_or_user_id), body.pin)


@users_bp.route('/login/barcode', methods=['POST'])
def login_barcode():
    body = parse_body(BarcodeLogin)
    user = find_user_by_identifier(body.barcode_data)
    if not user:
        return jsonify({'error': 'Invalid barcode or user not found'}), 401
    return _staff_session(user)


@users_bp.route('/auth/staff-login', methods=['POST'])
def staff_login():
    body = parse_body(StaffLogin)
    return _staff_session(find_user_by_identifier(body.user_id or body.phone), body.pin)


@users_bp.route('/auth/member-login', methods=['POST'])
@users_bp.route('/members/login', methods=['POST'])
def member_login():
    body = parse_body(MemberLogin)
    member = Member.query.filter_by(phone=body.phone.strip()).first()
    if not member or not member.check_pin(body.pin):
        return jsonify({'error': 'Invalid phone number or PIN'}), 401
    if not member.is_active:
        return jsonify({'error': 'Account is deactivated'}), 401
    if not member.group or not member.group.is_active:
        return jsonify({'error': 'Access denied. Your group has been deactivated. '
                                 'Please contact your administrator.'}), 403

    resp = jsonify({
        'user_type': 'member',
        'member': member.to_dict(),
        'group_stats': group_stats(member.group_id),
    })
    issue_session(resp, "member", member)
    logger.info("Member login: %s (group %s)", member.id, member.group_id)
    return resp, 200


@users_bp.route('/logout', methods=['POST'])
@users_bp.route('/clear-session', methods=['POST'])
def logout():
    resp = jsonify({'message': 'Logged out successfully'})
    end_session(resp)
    return resp, 200


@users_bp.route('/auth/user', methods=['GET'])
def auth_user():
    actor, error = load_actor()
    if error:
        return error
    if actor.is_staff:
        return jsonify({'user_type': 'staff', 'user': actor.record.to_dict()}), 200
    return jsonify({'user_type': 'member', 'member': actor.record.to_dict()}), 200


@users_bp.route('/member-session', methods=['GET'])
def member_session():
    actor, error = load_actor()
    if error:
        return error
    if not actor.is_member:
        return jsonify({'error': 'No member session'}), 401
    member = actor.record
    return jsonify({
        'user_type': 'member',
        'member': member.to_dict(),
        'group': member.group.to_dict(),
        'group_stats': group_stats(member.group_id),
    }), 200


# -----------------------------
# Staff account management (admin)
# -----------------------------
@users_bp.route('/users', methods=['GET'])
@admin_required
def list_users():
    users = User.query.order_by(User.created_at.desc()).all()
    return jsonify([u.to_dict() for u in users]), 200


@users_bp.route('/users', methods=['POST'])
@admin_required
def create_user():
    body = parse_body(UserCreate)
    if User.query.filter_by(phone=body.phone).first():
        raise Conflict('A user with this phone number already exists')
    if body.user_id and User.query.filter_by(user_code=body.user_id).first():
        raise Conflict('User ID already taken')

    actor = current_actor()
    user = User(
        user_code=body.user_id or generate_user_code(),
        first_name=body.first_name,
        last_name=body.last_name,
        phone=body.phone,
        email=body.email,
        role=body.role,
        location=body.location,
        assigned_groups=body.assigned_groups,
        profile_image_url=body.profile_image_url,
        assigned_by=actor.id,
    )
    user.set_pin(body.pin)
    db.session.add(user)
    db.session.flush()
    audit_actor(actor, "create", "users", user.id, new=user.to_dict())
    db.session.commit()
    return jsonify(user.to_dict()), 201


@users_bp.route('/users/<int:user_id>', methods=['PUT'])
@admin_required
def update_user(user_id):
    user = db.session.get(User, user_id)
    if not user:
        raise NotFound('User not found')

    changes = changes_from(parse_body(UserUpdate))
    if changes.get('phone') and changes['phone'] != user.phone:
        if User.query.filter_by(phone=changes['phone']).first():
            raise Conflict('A user with this phone number already exists')

    before = user.to_dict()
    pin = changes.pop('pin', None)
    for field, value in changes.items():
        setattr(user, field, value)
    if pin:
        user.set_pin(pin)

    audit_actor(current_actor(), "update", "users", user.id, old=before, new=user.to_dict())
    db.session.commit()
    return jsonify(user.to_dict()), 200
