# utils/reminder_service.py
import logging
from datetime import datetime, timedelta

from extensions import db
from meetings.models import Meeting
from notifications.utils import push_to_many

logger = logging.getLogger(__name__)

REMINDER_WINDOW = timedelta(hours=24)
STARTING_WINDOW = timedelta(minutes=5)


def _recipients(meeting):
    ids = [meeting.created_by]
    if meeting.group and meeting.group.created_by:
        ids.append(meeting.group.created_by)
    return [uid for uid in ids if uid]


def send_meeting_reminders(now=None):
    """
    Two reminders per scheduled meeting, each sent once:
    the day before (within 24h) and when it is about to start (within 5 min).
    Returns the messages queued.
    """
    now = now or datetime.utcnow()
    upcoming = Meeting.query.filter(
        Meeting.status == 'scheduled',
        Meeting.date > now - STARTING_WINDOW,
        Meeting.date <= now + REMINDER_WINDOW,
    ).all()

    reminders_sent = []
    for meeting in upcoming:
        group_name = meeting.group.name if meeting.group else f"group {meeting.group_id}"
        when = meeting.date.strftime('%Y-%m-%d %H:%M')
        meta = {"meeting_id": meeting.id, "group_id": meeting.group_id}

        if not meeting.notification_sent_now and meeting.date - STARTING_WINDOW <= now:
            message = f"Meeting for {group_name} is starting now ({when})."
            push_to_many(_recipients(meeting), message, ntype="reminder", meta=meta)
            meeting.notification_sent_now = True
            # no point sending the day-before reminder after this one
            meeting.notification_sent_24h = True
            reminders_sent.append(message)
        elif not meeting.notification_sent_24h and meeting.date > now:
            message = f"Reminder: {group_name} meets on {when}."
            push_to_many(_recipients(meeting), message, ntype="reminder", meta=meta)
            meeting.notification_sent_24h = True
            reminders_sent.append(message)

    if reminders_sent:
        db.session.commit()
        logger.info("[Reminder Service] %d meeting reminder(s) queued", len(reminders_sent))
    return reminders_sent
