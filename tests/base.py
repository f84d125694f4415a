"""
Shared fixtures: an app on an in-memory database, a seeded admin, and helpers
to create groups and members directly and to log in through the API.
"""
import unittest

from app import create_app
from config import TestConfig
from extensions import db
from groups.models import Group
from members.models import Member
from users.models import User

ADMIN_PIN = "123456"
MEMBER_PIN = "1234"


class VSLATestCase(unittest.TestCase):

    def setUp(self):
        self.app = create_app(TestConfig)
        self.ctx = self.app.app_context()
        self.ctx.push()
        db.create_all()
        self.client = self.app.test_client()
        self.admin = self.make_user(phone="0700000001", user_code="TD000001", role="admin")

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.ctx.pop()

    # ---- fixtures ----
    def make_user(self, phone, user_code, role="field_attendant", pin=ADMIN_PIN, **extra):
        extra.setdefault("is_active", True)
        user = User(user_code=user_code, first_name="Staff", last_name=role.title(),
                    phone=phone, role=role, **extra)
        user.set_pin(pin)
        db.session.add(user)
        db.session.commit()
        return user

    def make_group(self, **overrides):
        data = dict(name="Tusitukirewamu", location="Gulu", saving_per_share=1000,
                    interest_rate=10, welfare_amount=500, cycle_months=12,
                    max_members=30, created_by=self.admin.id)
        data.update(overrides)
        group = Group(**data)
        db.session.add(group)
        db.session.commit()
        return group

    def make_member(self, group, phone, first_name="Akello", group_role="member", gender="F",
                    savings=0, welfare=0, loan=0, pin=MEMBER_PIN, **extra):
        member = Member(group_id=group.id, first_name=first_name, last_name="Grace",
                        gender=gender, group_role=group_role, phone=phone,
                        savings_balance=savings, welfare_balance=welfare, current_loan=loan,
                        total_shares=int(savings // float(group.saving_per_share or 1)), **extra)
        member.set_pin(pin)
        db.session.add(member)
        db.session.commit()
        return member

    # ---- sessions ----
    def login_staff(self, identifier="0700000001", pin=ADMIN_PIN):
        resp = self.client.post("/api/login", json={"phone_or_user_id": identifier, "pin": pin})
        self.assertEqual(resp.status_code, 200, resp.get_json())
        return resp

    def login_admin(self):
        return self.login_staff()

    def login_member(self, phone, pin=MEMBER_PIN):
        resp = self.client.post("/api/auth/member-login", json={"phone": phone, "pin": pin})
        self.assertEqual(resp.status_code, 200, resp.get_json())
        return resp

    def logout(self):
        return self.client.post("/api/logout")
