import unittest
from datetime import datetime, timedelta

from extensions import db
from finance import ledger
from finance.models import Transaction
from meetings.models import Meeting, MeetingAttendance
from members.models import Member
from notifications.models import Notification
from tests.base import VSLATestCase
from utils.reminder_service import send_meeting_reminders


class TestMeetingRoutes(VSLATestCase):

    def setUp(self):
        super().setUp()
        self.group = self.make_group(saving_per_share=1000)
        self.member = self.make_member(self.group, phone="0772000001", loan=1000)
        self.absent = self.make_member(self.group, phone="0772000002", first_name="Opio")
        self.login_admin()

    def _schedule(self, when=None, **kw):
        when = when or datetime.utcnow() + timedelta(days=3)
        payload = {"group_id": self.group.id, "date": when.isoformat()}
        payload.update(kw)
        resp = self.client.post("/api/meetings", json=payload)
        self.assertEqual(resp.status_code, 201, resp.get_json())
        return resp.get_json()

    def test_schedule_meeting_defaults_location(self):
        meeting = self._schedule()
        self.assertEqual(meeting["status"], "scheduled")
        self.assertEqual(meeting["location"], "Gulu")
        self.assertEqual(meeting["attendees"], [])

    def test_timezone_aware_dates_are_stored_as_utc(self):
        meeting = self._schedule(when=None, date="2030-06-01T12:00:00+03:00")
        self.assertEqual(meeting["date"], "2030-06-01 09:00:00")

    def test_upcoming_lists_next_24_hours_only(self):
        self._schedule(when=datetime.utcnow() + timedelta(hours=5))
        self._schedule(when=datetime.utcnow() + timedelta(days=3))
        upcoming = self.client.get("/api/meetings/upcoming").get_json()
        self.assertEqual(len(upcoming), 1)

    def test_attendance_posts_collections_through_the_ledger(self):
        meeting = self._schedule()
        resp = self.client.post(f"/api/meetings/{meeting['id']}/attendance", json={"records": [
            {"member_id": self.member.id, "shares_purchased": 2, "welfare_payment": 500, "loan_payment": 1500},
            {"member_id": self.absent.id, "is_present": False},
        ]})
        self.assertEqual(resp.status_code, 200, resp.get_json())
        body = resp.get_json()
        self.assertEqual(body["meeting"]["attendees"], [self.member.id])

        member = db.session.get(Member, self.member.id)
        self.assertEqual(float(member.savings_balance), 2000)
        self.assertEqual(member.total_shares, 2)
        self.assertEqual(float(member.welfare_balance), 500)
        # loan payment capped at what was owed
        self.assertEqual(float(member.current_loan), 0)

        row = MeetingAttendance.query.filter_by(member_id=self.member.id).one()
        self.assertEqual(float(row.loan_payment), 1000)
        self.assertEqual(Transaction.query.count(), 3)
        self.assertEqual(ledger.cashbox_balance(self.group.id), 3500)

    def test_posting_again_adds_to_the_row(self):
        meeting = self._schedule()
        url = f"/api/meetings/{meeting['id']}/attendance"
        self.client.post(url, json={"records": [{"member_id": self.member.id, "shares_purchased": 1}]})
        self.client.post(url, json={"records": [{"member_id": self.member.id, "shares_purchased": 2}]})

        row = MeetingAttendance.query.filter_by(member_id=self.member.id).one()
        self.assertEqual(row.shares_purchased, 3)

    def test_cancelled_meeting_takes_no_attendance(self):
        meeting = self._schedule(status="cancelled")
        resp = self.client.post(f"/api/meetings/{meeting['id']}/attendance",
                                json={"records": [{"member_id": self.member.id}]})
        self.assertEqual(resp.status_code, 400)

    def test_member_of_another_group_rejected(self):
        other = self.make_group(name="Other")
        stranger = self.make_member(other, phone="0772000099")
        meeting = self._schedule()
        resp = self.client.post(f"/api/meetings/{meeting['id']}/attendance",
                                json={"records": [{"member_id": stranger.id}]})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(MeetingAttendance.query.count(), 0)

    def test_reschedule_resets_reminders(self):
        meeting = self._schedule()
        row = db.session.get(Meeting, meeting["id"])
        row.notification_sent_24h = True
        db.session.commit()

        new_date = (datetime.utcnow() + timedelta(days=5)).replace(microsecond=0)
        resp = self.client.put(f"/api/meetings/{meeting['id']}", json={"date": new_date.isoformat()})
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(resp.get_json()["notification_sent_24h"])

    def test_update_rejects_null_date(self):
        meeting = self._schedule()
        for field in ("date", "status"):
            resp = self.client.put(f"/api/meetings/{meeting['id']}", json={field: None})
            self.assertEqual(resp.status_code, 400, field)
        self.assertEqual(db.session.get(Meeting, meeting["id"]).status, "scheduled")

    def test_attendance_payments_must_be_finite(self):
        meeting = self._schedule()
        body = '{"records": [{"member_id": %d, "welfare_payment": Infinity}]}' % self.member.id
        resp = self.client.post(f"/api/meetings/{meeting['id']}/attendance", data=body,
                                content_type="application/json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(MeetingAttendance.query.count(), 0)

    def test_ordinary_member_cannot_record_attendance(self):
        meeting = self._schedule()
        self.logout()
        self.login_member("0772000002")
        resp = self.client.post(f"/api/meetings/{meeting['id']}/attendance",
                                json={"records": [{"member_id": self.member.id}]})
        self.assertEqual(resp.status_code, 403)


class TestReminderService(VSLATestCase):

    def setUp(self):
        super().setUp()
        self.group = self.make_group()
        self.now = datetime(2024, 3, 1, 8, 0)

    def _meeting(self, when):
        meeting = Meeting(group_id=self.group.id, date=when, status="scheduled", created_by=self.admin.id)
        db.session.add(meeting)
        db.session.commit()
        return meeting

    def test_day_before_reminder_is_sent_once(self):
        meeting = self._meeting(self.now + timedelta(hours=20))

        sent = send_meeting_reminders(now=self.now)
        self.assertEqual(len(sent), 1)
        self.assertTrue(sent[0].startswith("Reminder:"))
        self.assertTrue(db.session.get(Meeting, meeting.id).notification_sent_24h)
        # creator and group creator are the same user here
        self.assertEqual(Notification.query.count(), 1)

        self.assertEqual(send_meeting_reminders(now=self.now + timedelta(minutes=1)), [])

    def test_starting_now_reminder(self):
        meeting = self._meeting(self.now + timedelta(minutes=3))

        sent = send_meeting_reminders(now=self.now)
        self.assertEqual(len(sent), 1)
        self.assertIn("starting now", sent[0])
        row = db.session.get(Meeting, meeting.id)
        self.assertTrue(row.notification_sent_now)
        self.assertTrue(row.notification_sent_24h)

    def test_far_meetings_and_cancelled_ones_are_ignored(self):
        self._meeting(self.now + timedelta(days=3))
        cancelled = self._meeting(self.now + timedelta(hours=2))
        cancelled.status = "cancelled"
        db.session.commit()

        self.assertEqual(send_meeting_reminders(now=self.now), [])

    def test_both_reminders_over_time(self):
        when = self.now + timedelta(hours=10)
        self._meeting(when)

        self.assertEqual(len(send_meeting_reminders(now=self.now)), 1)
        self.assertEqual(len(send_meeting_reminders(now=when - timedelta(minutes=2))), 1)
        self.assertEqual(send_meeting_reminders(now=when), [])
        self.assertEqual(Notification.query.count(), 2)


class TestNotificationRoutes(VSLATestCase):

    def test_list_and_mark_read(self):
        group = self.make_group()
        db.session.add(Meeting(group_id=group.id, date=datetime.utcnow() + timedelta(hours=2),
                               status="scheduled", created_by=self.admin.id))
        db.session.commit()
        send_meeting_reminders()

        self.login_admin()
        notes = self.client.get("/api/notifications?unread=1").get_json()
        self.assertEqual(len(notes), 1)

        self.assertEqual(notes[0]["group_id"], group.id)
        self.assertEqual(notes[0]["type"], "reminder")

        resp = self.client.post(f"/api/notifications/{notes[0]['id']}/read")
        self.assertEqual(resp.status_code, 200)
        self.assertIsNotNone(resp.get_json()["read_at"])
        self.assertEqual(self.client.get("/api/notifications?unread=1").get_json(), [])

    def test_read_all(self):
        group = self.make_group()
        for hours in (2, 3):
            db.session.add(Meeting(group_id=group.id, date=datetime.utcnow() + timedelta(hours=hours),
                                   status="scheduled", created_by=self.admin.id))
        db.session.commit()
        send_meeting_reminders()

        self.login_admin()
        resp = self.client.post("/api/notifications/read-all")
        self.assertEqual(resp.get_json()["updated"], 2)
        self.assertEqual(Notification.query.filter_by(is_read=False).count(), 0)

    def test_cannot_read_someone_elses_notification(self):
        other = self.make_user(phone="0700000007", user_code="TD000007")
        note = Notification(user_id=other.id, message="Hello")
        db.session.add(note)
        db.session.commit()

        self.login_admin()
        self.assertEqual(self.client.post(f"/api/notifications/{note.id}/read").status_code, 403)


if __name__ == "__main__":
    unittest.main()
