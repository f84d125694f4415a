import unittest

from finance.models import CashboxEntry
from tests.base import VSLATestCase


class TestCashbox(VSLATestCase):

    def setUp(self):
        super().setUp()
        self.group = self.make_group()
        self.login_admin()

    def _entry(self, amount, ttype):
        return self.client.post("/api/cashbox", json={
            "group_id": self.group.id, "amount": amount, "transaction_type": ttype,
            "description": "Counted at meeting",
        })

    def test_deposit_then_withdraw(self):
        self.assertEqual(self._entry(5000, "deposit").status_code, 201)
        resp = self._entry(2000, "withdrawal")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.get_json()["recorded_by"], self.admin.id)

        balance = self.client.get(f"/api/cashbox/{self.group.id}/balance").get_json()
        self.assertEqual(balance, {"group_id": self.group.id, "balance": 3000})

    def test_withdrawal_beyond_balance(self):
        self._entry(1000, "deposit")
        resp = self._entry(1500, "withdrawal")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()["details"], {"balance": 1000, "requested": 1500})
        self.assertEqual(CashboxEntry.query.count(), 1)

    def test_list_entries_newest_first(self):
        self._entry(1000, "deposit")
        self._entry(300, "withdrawal")
        entries = self.client.get(f"/api/cashbox/{self.group.id}").get_json()
        self.assertEqual([e["transaction_type"] for e in entries], ["withdrawal", "deposit"])

    def test_amount_must_be_positive(self):
        self.assertEqual(self._entry(0, "deposit").status_code, 400)

    def test_unknown_group(self):
        self.assertEqual(self.client.get("/api/cashbox/999/balance").status_code, 404)

    def test_members_cannot_post_entries(self):
        self.make_member(self.group, phone="0772000001", group_role="chairman")
        self.logout()
        self.login_member("0772000001")
        self.assertEqual(self._entry(1000, "deposit").status_code, 403)
        # but can read their group's box
        self.assertEqual(self.client.get(f"/api/cashbox/{self.group.id}/balance").status_code, 200)


class TestAppErrors(VSLATestCase):

    def test_unknown_route(self):
        resp = self.client.get("/api/nowhere")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.get_json()["error"], "Route not found")

    def test_wrong_method(self):
        resp = self.client.delete("/api/health")
        self.assertEqual(resp.status_code, 405)

    def test_health(self):
        self.assertEqual(self.client.get("/api/health").get_json(), {"status": "ok"})


if __name__ == "__main__":
    unittest.main()
