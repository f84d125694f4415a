import unittest
from datetime import date

from extensions import db
from groups.models import Group
from members.models import Member
from members.routes import months_active
from tests.base import MEMBER_PIN, VSLATestCase


class TestGroups(VSLATestCase):

    def setUp(self):
        super().setUp()
        self.login_admin()

    def test_create_group(self):
        resp = self.client.post("/api/groups", json={
            "name": "Bega Kwa Bega", "location": "Lira", "saving_per_share": 2000,
            "interest_rate": 5, "welfare_amount": 1000,
        })
        self.assertEqual(resp.status_code, 201)
        body = resp.get_json()
        self.assertEqual(body["created_by"], self.admin.id)
        self.assertEqual(body["meeting_frequency"], "monthly")
        self.assertEqual(body["available_cash"], 0)

    def test_create_group_validation(self):
        resp = self.client.post("/api/groups", json={"name": "No share value", "location": "Lira"})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("details", resp.get_json())

    def test_changing_share_value_recomputes_shares(self):
        group = self.make_group()
        member = self.make_member(group, phone="0772000001", savings=6000)
        self.assertEqual(member.total_shares, 6)

        resp = self.client.put(f"/api/groups/{group.id}", json={"saving_per_share": 2000})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(db.session.get(Member, member.id).total_shares, 3)

    def test_delete_group_cascades(self):
        group = self.make_group()
        self.make_member(group, phone="0772000001")
        resp = self.client.delete(f"/api/groups/{group.id}")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(Group.query.count(), 0)
        self.assertEqual(Member.query.count(), 0)

    def test_unknown_group(self):
        resp = self.client.get("/api/groups/999")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.get_json()["error"], "Group not found")

    def test_group_stats_and_financials(self):
        group = self.make_group()
        self.make_member(group, phone="0772000001", savings=5000)
        member = self.make_member(group, phone="0772000002", savings=3000)
        member.total_shares = 1
        db.session.commit()

        stats = self.client.get(f"/api/groups/{group.id}/stats").get_json()
        self.assertEqual(stats["total_members"], 2)
        self.assertEqual(stats["total_savings"], 8000)
        self.assertEqual(stats["total_shares"], 8)

        financials = self.client.get(f"/api/groups/{group.id}/financials").get_json()
        self.assertEqual(len(financials["share_discrepancies"]), 1)

    def test_recalculate_shares(self):
        group = self.make_group()
        member = self.make_member(group, phone="0772000001", savings=5000)
        member.total_shares = 2
        db.session.commit()

        resp = self.client.post(f"/api/groups/{group.id}/recalculate-shares")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json()["updated"], 1)
        self.assertEqual(db.session.get(Member, member.id).total_shares, 5)

        # nothing left to fix the second time round
        again = self.client.post(f"/api/groups/{group.id}/recalculate-shares").get_json()
        self.assertEqual(again["updated"], 0)
        self.assertEqual(db.session.get(Member, member.id).total_shares, 5)

    def test_update_rejects_null_for_required_fields(self):
        group = self.make_group()
        for field in ("name", "saving_per_share", "is_active"):
            resp = self.client.put(f"/api/groups/{group.id}", json={field: None})
            self.assertEqual(resp.status_code, 400, field)
        self.assertEqual(db.session.get(Group, group.id).name, "Tusitukirewamu")

    def test_update_clears_optional_fields(self):
        group = self.make_group(description="Women's savings group")
        resp = self.client.put(f"/api/groups/{group.id}", json={"description": None})
        self.assertEqual(resp.status_code, 200)
        self.assertIsNone(resp.get_json()["description"])

    def test_interest_rate_must_fit_the_column(self):
        resp = self.client.post("/api/groups", json={
            "name": "Too dear", "location": "Lira", "saving_per_share": 1000, "interest_rate": 1000,
        })
        self.assertEqual(resp.status_code, 400)

    def test_members_with_loans(self):
        group = self.make_group()
        self.make_member(group, phone="0772000001")
        borrower = self.make_member(group, phone="0772000002", loan=1500)

        resp = self.client.get(f"/api/groups/{group.id}/members-with-loans")
        self.assertEqual([m["id"] for m in resp.get_json()], [borrower.id])

    def test_field_monitor_sees_assigned_groups_only(self):
        mine = self.make_group(name="Assigned")
        self.make_group(name="Other")
        self.make_user(phone="0700000005", user_code="TD000005", role="field_monitor",
                       assigned_groups=[mine.id])
        self.logout()
        self.login_staff("TD000005")

        groups = self.client.get("/api/groups").get_json()
        self.assertEqual([g["name"] for g in groups], ["Assigned"])


class TestMembers(VSLATestCase):

    def setUp(self):
        super().setUp()
        self.group = self.make_group(max_members=2)
        self.login_admin()

    def _payload(self, **kw):
        data = {"group_id": self.group.id, "first_name": "Okello", "last_name": "Peter",
                "gender": "M", "phone": "0772000009", "pin": "4321"}
        data.update(kw)
        return data

    def test_create_member_with_opening_balances(self):
        resp = self.client.post("/api/members", json=self._payload(savings_balance=4500, current_loan=1000))
        self.assertEqual(resp.status_code, 201)
        body = resp.get_json()
        self.assertEqual(body["total_shares"], 4)
        self.assertEqual(body["current_loan"], 1000)
        self.assertNotIn("pin_hash", body)

    def test_duplicate_member_phone(self):
        self.make_member(self.group, phone="0772000009")
        resp = self.client.post("/api/members", json=self._payload())
        self.assertEqual(resp.status_code, 409)

    def test_group_full(self):
        self.make_member(self.group, phone="0772000001")
        self.make_member(self.group, phone="0772000002")
        resp = self.client.post("/api/members", json=self._payload())
        self.assertEqual(resp.status_code, 400)

    def test_pin_must_be_digits(self):
        resp = self.client.post("/api/members", json=self._payload(pin="12ab"))
        self.assertEqual(resp.status_code, 400)

    def test_update_does_not_touch_balances(self):
        member = self.make_member(self.group, phone="0772000001", savings=3000)
        resp = self.client.put(f"/api/members/{member.id}",
                               json={"group_role": "chairman", "savings_balance": 999999})
        self.assertEqual(resp.status_code, 200)
        body = resp.get_json()
        self.assertEqual(body["group_role"], "chairman")
        self.assertEqual(body["savings_balance"], 3000)

    def test_set_shares_directly(self):
        member = self.make_member(self.group, phone="0772000001")
        resp = self.client.patch(f"/api/members/{member.id}/shares", json={"shares": 7})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json()["savings_balance"], 7000)
        self.assertEqual(resp.get_json()["total_shares"], 7)

    def test_delete_member(self):
        member = self.make_member(self.group, phone="0772000001")
        resp = self.client.delete(f"/api/members/{member.id}")
        self.assertEqual(resp.status_code, 200)
        self.assertIsNone(db.session.get(Member, member.id))

    def test_update_rejects_null_names(self):
        member = self.make_member(self.group, phone="0772000001")
        resp = self.client.put(f"/api/members/{member.id}", json={"first_name": None})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(db.session.get(Member, member.id).first_name, "Akello")

    def test_reactivation_respects_group_size(self):
        self.make_member(self.group, phone="0772000001")
        self.make_member(self.group, phone="0772000002")
        retired = self.make_member(self.group, phone="0772000003", is_active=False)

        resp = self.client.put(f"/api/members/{retired.id}", json={"is_active": True})
        self.assertEqual(resp.status_code, 400)
        self.assertFalse(db.session.get(Member, retired.id).is_active)

    def test_opening_balance_cannot_be_infinite(self):
        resp = self.client.post("/api/members", data='{"group_id": %d, "first_name": "Okello", '
                                '"last_name": "Peter", "gender": "M", "pin": "4321", '
                                '"savings_balance": Infinity}' % self.group.id,
                                content_type="application/json")
        self.assertEqual(resp.status_code, 400)


class TestMemberAccess(VSLATestCase):

    def setUp(self):
        super().setUp()
        self.group = self.make_group(welfare_amount=500)
        self.member = self.make_member(self.group, phone="0772000001", welfare=500)
        self.other = self.make_member(self.group, phone="0772000002", first_name="Opio")

    def test_member_sees_own_record_only(self):
        self.login_member("0772000001")
        self.assertEqual(self.client.get(f"/api/members/{self.member.id}").status_code, 200)
        self.assertEqual(self.client.get(f"/api/members/{self.other.id}").status_code, 403)

    def test_leader_sees_group_members(self):
        self.make_member(self.group, phone="0772000003", group_role="secretary")
        self.login_member("0772000003", MEMBER_PIN)
        self.assertEqual(self.client.get(f"/api/members/{self.other.id}").status_code, 200)

    def test_member_dashboard_welfare(self):
        self.member.join_date = date.today()
        db.session.commit()
        self.login_member("0772000001")

        resp = self.client.get(f"/api/members/{self.member.id}/dashboard")
        self.assertEqual(resp.status_code, 200)
        welfare = resp.get_json()["welfare"]
        self.assertEqual(welfare["months_active"], 1)
        self.assertEqual(welfare["expected"], 500)
        self.assertEqual(welfare["arrears"], 0)


class TestMonthsActive(unittest.TestCase):

    def test_joining_month_counts(self):
        self.assertEqual(months_active(date(2024, 1, 15), today=date(2024, 1, 20)), 1)
        self.assertEqual(months_active(date(2024, 1, 15), today=date(2024, 3, 20)), 3)

    def test_future_join_date(self):
        self.assertEqual(months_active(date(2024, 5, 1), today=date(2024, 1, 1)), 0)


if __name__ == "__main__":
    unittest.main()
