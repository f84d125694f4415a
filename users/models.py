from datetime import datetime
from extensions import db

STAFF_ROLES = ("admin", "field_monitor", "field_attendant")


class User(db.Model):
    """Platform staff account. Members of a group log in separately (see members.models)."""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    user_code = db.Column(db.String(8), unique=True, nullable=False)    # TDXXXXXX
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(20), unique=True, nullable=False)
    email = db.Column(db.String(120), nullable=True)
    pin_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default="field_attendant")  # admin | field_monitor | field_attendant
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    location = db.Column(db.String(255), nullable=True)

    assigned_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)  # who created this account
    assigned_groups = db.Column(db.JSON, nullable=True)  # field_monitor scope: list of group ids
    profile_image_url = db.Column(db.String(255), nullable=True)

    last_login = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<User {self.user_code} {self.role}>'

    # --- PIN helpers ---
    def set_pin(self, pin):
        from users.auth import hash_pin
        self.pin_hash = hash_pin(pin)

    def check_pin(self, pin):
        from users.auth import check_pin
        return check_pin(self.pin_hash, pin)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    def visible_group_ids(self):
        """None means every group; otherwise the explicit list a field monitor was given."""
        if self.role == "field_monitor" and self.assigned_groups:
            return [int(g) for g in self.assigned_groups]
        return None

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_code,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone": self.phone,
            "email": self.email,
            "role": self.role,
            "is_active": self.is_active,
            "location": self.location,
            "assigned_by": self.assigned_by,
            "assigned_groups": self.assigned_groups or [],
            "profile_image_url": self.profile_image_url,
            "last_login": self.last_login.strftime("%Y-%m-%d %H:%M:%S") if self.last_login else None,
            "created_at": self.created_at.strftime("%Y-%m-%d %H:%M:%S") if self.created_at else None,
        }


class RevokedToken(db.Model):
    """Ended sessions. A token whose jti is listed here is rejected."""
    __tablename__ = "revoked_tokens"

    id = db.Column(db.Integer, primary_key=True)
    jti = db.Column(db.String(36), unique=True, nullable=False, index=True)
    principal_kind = db.Column(db.String(10), nullable=True)   # staff | member
    principal_id = db.Column(db.Integer, nullable=True)
    revoked_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
