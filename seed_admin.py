# seed_admin.py
"""Create the bootstrap admin account if it does not exist yet.

    SEED_ADMIN_PIN=080319 python seed_admin.py
"""
import logging
import os

from app import app
from extensions import db
from users.auth import find_user_by_identifier, hash_pin
from users.models import User

logger = logging.getLogger("seed_admin")

ADMIN_PHONE = os.getenv("SEED_ADMIN_PHONE", "0787007542")
ADMIN_CODE = "TD000001"


def seed_admin(pin=None):
    pin = pin or os.getenv("SEED_ADMIN_PIN", "080319")

    existing = find_user_by_identifier(ADMIN_PHONE) or find_user_by_identifier(ADMIN_CODE)
    if existing:
        logger.info("Admin user already exists: id=%s user_id=%s phone=%s",
                    existing.id, existing.user_code, existing.phone)
        return existing

    admin = User(
        user_code=ADMIN_CODE,
        first_name="admin",
        last_name="user",
        phone=ADMIN_PHONE,
        pin_hash=hash_pin(pin),
        role="admin",
        is_active=True,
        location="Main Office",
    )
    db.session.add(admin)
    db.session.commit()
    logger.info("Created admin user: %s", admin.to_dict())
    return admin


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    with app.app_context():
        seed_admin()
