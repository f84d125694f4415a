# users/auth.py
"""
Session handling for the two kinds of principal the API knows about:

* staff  -> users.models.User   (admin / field_monitor / field_attendant)
* member -> members.models.Member (logs in with phone + PIN)

The session is a JWT kept in an HTTP-only cookie. Its claims say which kind of
principal it belongs to; logout puts the token id on the revoked list so the
cookie is dead server-side even if a client keeps it.
"""
import logging
import random
from dataclasses import dataclass
from datetime import datetime
from functools import wraps

from flask import current_app, g, jsonify
from flask_jwt_extended import (
    create_access_token, set_access_cookies, unset_jwt_cookies,
    verify_jwt_in_request, get_jwt, get_jwt_identity
)
from werkzeug.security import generate_password_hash, check_password_hash

from extensions import db, jwt
from users.models import User, RevokedToken
from utils.errors import Forbidden

logger = logging.getLogger(__name__)


# --- PIN hashing (salted scrypt) ---
def hash_pin(pin: str) -> str:
    method = current_app.config.get("PIN_HASH_METHOD", "scrypt")
    return generate_password_hash(str(pin), method=method)


def check_pin(pin_hash: str, pin) -> bool:
    if not pin_hash or pin is None:
        return False
    return check_password_hash(pin_hash, str(pin))


def generate_user_code() -> str:
    """TD + six digits, unique among staff accounts."""
    while True:
        code = f"TD{random.randint(100000, 999999)}"
        if not User.query.filter_by(user_code=code).first():
            return code


def find_user_by_identifier(identifier: str):
    """Identifiers starting with TD are user codes; anything else is a phone number."""
    identifier = (identifier or "").strip()
    if not identifier:
        return None
    if identifier.upper().startswith("TD"):
        return User.query.filter_by(user_code=identifier.upper()).first()
    return User.query.filter_by(phone=identifier).first()


# --- Current principal ---
@dataclass
class Actor:
    kind: str          # staff | member
    id: int
    role: str          # staff role, or the member's group role
    record: object     # User or Member

    @property
    def is_staff(self):
        return self.kind == "staff"

    @property
    def is_member(self):
        return self.kind == "member"

    @property
    def is_admin(self):
        return self.is_staff and self.role == "admin"

    @property
    def user_id(self):
        """Staff user id for created_by / recorded_by columns, None for members."""
        return self.id if self.is_staff else None

    @property
    def member_id(self):
        return self.id if self.is_member else None

    def visible_group_ids(self):
        if self.is_member:
            return [self.record.group_id]
        return self.record.visible_group_ids()

    def can_access_group(self, group_id) -> bool:
        visible = self.visible_group_ids()
        return visible is None or int(group_id) in visible


def current_actor():
    return getattr(g, "actor", None)


def ensure_group_access(group_id):
    actor = current_actor()
    if actor is None or not actor.can_access_group(group_id):
        raise Forbidden("You do not have access to this group")


def ensure_member_access(member, write=False):
    """
    Staff reach members of the groups they can see. A member reaches their own
    record; group leaders also reach the other members of their group. Writes
    from a member require a leadership role.
    """
    actor = current_actor()
    if actor is None:
        raise Forbidden("Insufficient permissions")
    if actor.is_staff:
        ensure_group_access(member.group_id)
        return
    if write and not actor.record.is_leader:
        raise Forbidden("Only group leaders can do this")
    if actor.id == member.id:
        return
    if actor.record.is_leader and actor.record.group_id == member.group_id:
        return
    raise Forbidden("Insufficient permissions")


# --- Session issue / revoke ---
def issue_session(response, kind: str, principal):
    role = principal.role if kind == "staff" else principal.group_role
    token = create_access_token(
        identity=str(principal.id),
        additional_claims={"kind": kind, "role": role},
    )
    set_access_cookies(response, token)
    return token


def end_session(response):
    """Revoke the presented session (if any) and clear the cookie."""
    try:
        verify_jwt_in_request(optional=True)
        claims = get_jwt()
    except Exception as e:
        # expired or malformed cookie: nothing to revoke, just clear it
        logger.info("Logout with unusable session token: %s", e)
        claims = {}

    jti = claims.get("jti")
    if jti and not RevokedToken.query.filter_by(jti=jti).first():
        db.session.add(RevokedToken(
            jti=jti,
            principal_kind=claims.get("kind"),
            principal_id=int(claims["sub"]) if claims.get("sub") else None,
        ))
        db.session.commit()
    unset_jwt_cookies(response)
    return response


def _revoke_current():
    claims = get_jwt()
    jti = claims.get("jti")
    if jti and not RevokedToken.query.filter_by(jti=jti).first():
        db.session.add(RevokedToken(jti=jti, principal_kind=claims.get("kind"),
                                    principal_id=int(claims["sub"])))
        db.session.commit()


def _unauthorized(message="Unauthorized"):
    resp = jsonify({"error": message})
    return resp, 401


def load_actor():
    """
    Resolve the session cookie into an Actor stored on flask.g.
    Returns (actor, None) or (None, error_response).
    """
    verify_jwt_in_request()
    claims = get_jwt()
    kind = claims.get("kind")
    principal_id = int(get_jwt_identity())

    if kind == "staff":
        user = db.session.get(User, principal_id)
        if not user or not user.is_active:
            return None, _unauthorized()
        g.actor = Actor(kind="staff", id=user.id, role=user.role, record=user)
        return g.actor, None

    if kind == "member":
        from members.models import Member
        member = db.session.get(Member, principal_id)
        if not member or not member.is_active:
            return None, _unauthorized()
        if not member.group or not member.group.is_active:
            # deactivated group: end the session for good
            _revoke_current()
            resp = jsonify({"error": "Access denied. Your group has been deactivated. "
                                     "Please contact your administrator."})
            unset_jwt_cookies(resp)
            return None, (resp, 403)
        g.actor = Actor(kind="member", id=member.id, role=member.group_role, record=member)
        return g.actor, None

    return None, _unauthorized("Session corrupted - please log in again")


# --- Decorators ---
def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        actor, error = load_actor()
        if error:
            return error
        return fn(*args, **kwargs)
    return wrapper


def staff_required(*roles):
    """Staff session required; when roles are given the staff role must be one of them."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            actor, error = load_actor()
            if error:
                return error
            if not actor.is_staff or (roles and actor.role not in roles):
                return jsonify({"error": "Insufficient permissions"}), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def admin_required(fn):
    return staff_required("admin")(fn)


def touch_last_login(user):
    user.last_login = datetime.utcnow()


# --- flask-jwt-extended callbacks ---
@jwt.token_in_blocklist_loader
def _is_token_revoked(jwt_header, jwt_payload):
    jti = jwt_payload.get("jti")
    return db.session.query(RevokedToken.id).filter_by(jti=jti).first() is not None


@jwt.unauthorized_loader
def _missing_token(reason):
    return jsonify({"error": "Unauthorized"}), 401


@jwt.invalid_token_loader
def _invalid_token(reason):
    return jsonify({"error": "Unauthorized", "details": reason}), 401


@jwt.expired_token_loader
def _expired_token(jwt_header, jwt_payload):
    return jsonify({"error": "Session expired"}), 401


@jwt.revoked_token_loader
def _revoked_token(jwt_header, jwt_payload):
    return jsonify({"error": "Session has ended"}), 401
