import unittest

from extensions import db
from tests.base import ADMIN_PIN, MEMBER_PIN, VSLATestCase
from users.models import RevokedToken, User


class TestInitialize(VSLATestCase):

    def setUp(self):
        super().setUp()
        # start from an empty system
        db.session.delete(self.admin)
        db.session.commit()

    def test_initialize_creates_admin_once(self):
        resp = self.client.post("/api/initialize")
        self.assertEqual(resp.status_code, 201)
        body = resp.get_json()
        self.assertEqual(body["admin_user"]["role"], "admin")
        self.assertTrue(body["credentials"]["user_id"].startswith("TD"))
        self.assertEqual(body["credentials"]["pin"], self.app.config["INITIAL_ADMIN_PIN"])

        again = self.client.post("/api/initialize")
        self.assertEqual(again.status_code, 400)
        self.assertEqual(again.get_json()["error"], "System already initialized")


class TestStaffLogin(VSLATestCase):

    def test_login_by_phone_sets_session_cookie(self):
        resp = self.login_staff("0700000001")
        body = resp.get_json()
        self.assertEqual(body["user_type"], "staff")
        self.assertEqual(body["user"]["user_id"], "TD000001")
        self.assertIn("vsla_session", resp.headers.get("Set-Cookie", ""))

        me = self.client.get("/api/auth/user")
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.get_json()["user"]["phone"], "0700000001")

    def test_login_by_user_code(self):
        resp = self.client.post("/api/auth/staff-login", json={"user_id": "TD000001", "pin": ADMIN_PIN})
        self.assertEqual(resp.status_code, 200)
        self.assertIsNotNone(db.session.get(User, self.admin.id).last_login)

    def test_wrong_pin(self):
        resp = self.client.post("/api/login", json={"phone_or_user_id": "0700000001", "pin": "654321"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.get_json()["error"], "Invalid credentials")

    def test_malformed_pin_is_rejected_by_validation(self):
        resp = self.client.post("/api/login", json={"phone_or_user_id": "0700000001", "pin": "12"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()["error"], "Invalid request data")

    def test_staff_login_requires_identifier(self):
        resp = self.client.post("/api/auth/staff-login", json={"pin": ADMIN_PIN})
        self.assertEqual(resp.status_code, 400)

    def test_deactivated_account(self):
        self.make_user(phone="0700000002", user_code="TD000002", is_active=False)
        resp = self.client.post("/api/login", json={"phone_or_user_id": "TD000002", "pin": ADMIN_PIN})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.get_json()["error"], "Account is deactivated")

    def test_barcode_login(self):
        resp = self.client.post("/api/login/barcode", json={"barcode_data": "TD000001"})
        self.assertEqual(resp.status_code, 200)

        unknown = self.client.post("/api/login/barcode", json={"barcode_data": "TD999999"})
        self.assertEqual(unknown.status_code, 401)


class TestSessions(VSLATestCase):

    def test_requests_without_session(self):
        resp = self.client.get("/api/groups")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.get_json()["error"], "Unauthorized")

    def test_logout_revokes_token(self):
        self.login_admin()
        cookie = self.client.get_cookie("vsla_session")
        self.assertIsNotNone(cookie)

        self.assertEqual(self.logout().status_code, 200)
        self.assertEqual(RevokedToken.query.count(), 1)

        # replaying the old cookie is refused
        self.client.set_cookie("vsla_session", cookie.value)
        resp = self.client.get("/api/auth/user")
        self.assertEqual(resp.status_code, 401)

    def test_logout_without_session_is_harmless(self):
        resp = self.client.post("/api/clear-session")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(RevokedToken.query.count(), 0)


class TestMemberLogin(VSLATestCase):

    def setUp(self):
        super().setUp()
        self.group = self.make_group()
        self.member = self.make_member(self.group, phone="0772000001", savings=5000)

    def test_member_login_returns_group_stats(self):
        resp = self.login_member("0772000001")
        body = resp.get_json()
        self.assertEqual(body["user_type"], "member")
        self.assertEqual(body["member"]["id"], self.member.id)
        self.assertEqual(body["group_stats"]["total_savings"], 5000)

        session = self.client.get("/api/member-session")
        self.assertEqual(session.status_code, 200)
        self.assertEqual(session.get_json()["group"]["id"], self.group.id)

    def test_member_login_alias(self):
        resp = self.client.post("/api/members/login", json={"phone": "0772000001", "pin": MEMBER_PIN})
        self.assertEqual(resp.status_code, 200)

    def test_member_wrong_pin(self):
        resp = self.client.post("/api/auth/member-login", json={"phone": "0772000001", "pin": "9999"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.get_json()["error"], "Invalid phone number or PIN")

    def test_member_of_inactive_group_cannot_log_in(self):
        self.group.is_active = False
        db.session.commit()
        resp = self.client.post("/api/auth/member-login", json={"phone": "0772000001", "pin": MEMBER_PIN})
        self.assertEqual(resp.status_code, 403)

    def test_session_ends_when_group_is_deactivated(self):
        self.login_member("0772000001")
        self.group.is_active = False
        db.session.commit()

        resp = self.client.get("/api/member-session")
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(RevokedToken.query.filter_by(principal_kind="member").count(), 1)

    def test_member_cannot_reach_staff_routes(self):
        self.login_member("0772000001")
        resp = self.client.post("/api/groups", json={"name": "X", "location": "Y", "saving_per_share": 1})
        self.assertEqual(resp.status_code, 403)

    def test_staff_session_is_not_a_member_session(self):
        self.login_admin()
        resp = self.client.get("/api/member-session")
        self.assertEqual(resp.status_code, 401)


class TestUserManagement(VSLATestCase):

    def setUp(self):
        super().setUp()
        self.login_admin()

    def test_create_user_generates_code(self):
        resp = self.client.post("/api/users", json={
            "first_name": "Opio", "last_name": "Denis", "phone": "0700000009",
            "pin": "246810", "role": "field_monitor",
        })
        self.assertEqual(resp.status_code, 201)
        body = resp.get_json()
        self.assertRegex(body["user_id"], r"^TD\d{6}$")
        self.assertEqual(body["assigned_by"], self.admin.id)

    def test_duplicate_phone(self):
        resp = self.client.post("/api/users", json={
            "first_name": "Opio", "last_name": "Denis", "phone": "0700000001", "pin": "246810",
        })
        self.assertEqual(resp.status_code, 409)

    def test_update_user_pin(self):
        user = self.make_user(phone="0700000003", user_code="TD000003")
        resp = self.client.put(f"/api/users/{user.id}", json={"pin": "999999", "location": "Lira"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json()["location"], "Lira")

        self.logout()
        login = self.client.post("/api/login", json={"phone_or_user_id": "TD000003", "pin": "999999"})
        self.assertEqual(login.status_code, 200)

    def test_update_rejects_null_phone(self):
        user = self.make_user(phone="0700000003", user_code="TD000003")
        resp = self.client.put(f"/api/users/{user.id}", json={"phone": None})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("details", resp.get_json())
        self.assertEqual(db.session.get(User, user.id).phone, "0700000003")

    def test_non_admin_cannot_manage_users(self):
        self.make_user(phone="0700000004", user_code="TD000004")
        self.logout()
        self.login_staff("TD000004")
        self.assertEqual(self.client.get("/api/users").status_code, 403)

    def test_audit_log_lists_changes(self):
        self.client.post("/api/users", json={
            "first_name": "Opio", "last_name": "Denis", "phone": "0700000010", "pin": "246810",
        })
        resp = self.client.get("/api/audit/logs?table=users")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json()[0]["action"], "create")


if __name__ == "__main__":
    unittest.main()
