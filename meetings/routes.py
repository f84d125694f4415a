import logging
from datetime import datetime, timezone

from flask import Blueprint, jsonify

from extensions import db
from finance import ledger
from finance.calculations import as_float
from groups.routes import get_group_or_404
from meetings.models import Meeting, MeetingAttendance
from meetings.schemas import AttendanceSheet, MeetingCreate, MeetingUpdate
from members.models import Member
from users.auth import current_actor, ensure_group_access, login_required, staff_required
from utils.audit_logger import audit_actor
from utils.errors import BusinessRuleError, Forbidden, NotFound
from utils.reminder_service import REMINDER_WINDOW
from utils.validation import changes_from, parse_body, query_int

logger = logging.getLogger(__name__)

meetings_bp = Blueprint('meetings', __name__)


def _naive_utc(value):
    # stored timestamps are naive UTC
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def get_meeting_or_404(meeting_id):
    meeting = db.session.get(Meeting, meeting_id)
    if not meeting:
        raise NotFound('Meeting not found')
    ensure_group_access(meeting.group_id)
    return meeting


def _visible(query):
    visible = current_actor().visible_group_ids()
    if visible is not None:
        query = query.filter(Meeting.group_id.in_(visible or [-1]))
    return query


@meetings_bp.route('/meetings', methods=['GET'])
@login_required
def list_meetings():
    query = _visible(Meeting.query)
    group_id = query_int('group_id')
    if group_id:
        ensure_group_access(group_id)
        query = query.filter(Meeting.group_id == group_id)
    meetings = query.order_by(Meeting.date.desc()).all()
    return jsonify([m.to_dict() for m in meetings]), 200


@meetings_bp.route('/meetings/upcoming', methods=['GET'])
@login_required
def upcoming_meetings():
    now = datetime.utcnow()
    meetings = (_visible(Meeting.query)
                .filter(Meeting.status == 'scheduled', Meeting.date > now, Meeting.date <= now + REMINDER_WINDOW)
                .order_by(Meeting.date.asc())
                .all())
    return jsonify([m.to_dict() for m in meetings]), 200


@meetings_bp.route('/meetings', methods=['POST'])
@staff_required()
def schedule_meeting():
    body = parse_body(MeetingCreate)
    group = get_group_or_404(body.group_id)
    ensure_group_access(group.id)

    actor = current_actor()
    meeting = Meeting(
        group_id=group.id,
        date=_naive_utc(body.date),
        location=body.location or group.location,
        agenda=body.agenda,
        minutes=body.minutes,
        status=body.status,
        attendees=[],
        created_by=actor.id,
    )
    db.session.add(meeting)
    db.session.flush()
    audit_actor(actor, "create", "meetings", meeting.id, new=meeting.to_dict())
    db.session.commit()
    return jsonify(meeting.to_dict()), 201


@meetings_bp.route('/meetings/<int:meeting_id>', methods=['GET'])
@login_required
def get_meeting(meeting_id):
    return jsonify(get_meeting_or_404(meeting_id).to_dict()), 200


@meetings_bp.route('/meetings/<int:meeting_id>', methods=['PUT'])
@staff_required()
def update_meeting(meeting_id):
    meeting = get_meeting_or_404(meeting_id)
    changes = changes_from(parse_body(MeetingUpdate))
    before = meeting.to_dict()

    if changes.get('date'):
        changes['date'] = _naive_utc(changes['date'])
        if changes['date'] != meeting.date:
            # rescheduled: remind again
            meeting.notification_sent_24h = False
            meeting.notification_sent_now = False
    for field, value in changes.items():
        setattr(meeting, field, value)

    audit_actor(current_actor(), "update", "meetings", meeting.id, old=before, new=meeting.to_dict())
    db.session.commit()
    return jsonify(meeting.to_dict()), 200


# -----------------------------
# Attendance and collections
# -----------------------------
@meetings_bp.route('/meetings/<int:meeting_id>/attendance', methods=['GET'])
@login_required
def get_attendance(meeting_id):
    meeting = get_meeting_or_404(meeting_id)
    rows = MeetingAttendance.query.filter_by(meeting_id=meeting.id).all()
    return jsonify([r.to_dict() for r in rows]), 200


@meetings_bp.route('/meetings/<int:meeting_id>/attendance', methods=['POST'])
@login_required
def record_attendance(meeting_id):
    """
    Each record marks presence and whatever the member paid at the meeting.
    Payments go through the ledger; posting again for the same member adds
    further payments to the same attendance row.
    """
    meeting = get_meeting_or_404(meeting_id)
    actor = current_actor()
    if actor.is_member and not actor.record.is_leader:
        raise Forbidden('Only group leaders can record attendance')
    if meeting.status == 'cancelled':
        raise BusinessRuleError('Meeting was cancelled')

    sheet = parse_body(AttendanceSheet)
    group = meeting.group
    share_value = as_float(group.saving_per_share)
    recorded_by = actor.record.full_name

    for rec in sheet.records:
        member = db.session.get(Member, rec.member_id)
        if not member or member.group_id != group.id:
            raise BusinessRuleError(f'Member {rec.member_id} does not belong to this group')

        row = MeetingAttendance.query.filter_by(meeting_id=meeting.id, member_id=member.id).first()
        if not row:
            row = MeetingAttendance(meeting_id=meeting.id, member_id=member.id,
                                    shares_purchased=0, welfare_payment=0, loan_payment=0)
            db.session.add(row)
        row.is_present = rec.is_present
        if rec.notes is not None:
            row.notes = rec.notes

        collected = 0.0
        note = f"Meeting #{meeting.id} ({recorded_by})"
        if rec.shares_purchased:
            if share_value <= 0:
                raise BusinessRuleError('Group has no share value set')
            amount = rec.shares_purchased * share_value
            ledger.record_transaction(group, member, 'deposit', amount,
                                      f"{rec.shares_purchased} share(s) bought at {note}", actor)
            row.shares_purchased = (row.shares_purchased or 0) + rec.shares_purchased
            collected += amount
        if rec.welfare_payment:
            ledger.record_transaction(group, member, 'welfare_payment', rec.welfare_payment,
                                      f"Welfare paid at {note}", actor)
            row.welfare_payment = ledger.to_money(as_float(row.welfare_payment) + rec.welfare_payment)
            collected += rec.welfare_payment
        if rec.loan_payment:
            txn = ledger.record_transaction(group, member, 'loan_payment', rec.loan_payment,
                                            f"Loan payment at {note}", actor)
            paid = as_float(txn.amount)
            row.loan_payment = ledger.to_money(as_float(row.loan_payment) + paid)
            collected += paid

        if collected > 0:
            ledger.add_cashbox_entry(group, collected, 'deposit',
                                     f"Collections from {member.full_name} at meeting #{meeting.id}", actor)
        row.recorded_at = datetime.utcnow()

    db.session.flush()
    present = (db.session.query(MeetingAttendance.member_id)
               .filter_by(meeting_id=meeting.id, is_present=True).all())
    meeting.attendees = sorted(mid for (mid,) in present)

    audit_actor(actor, "record_attendance", "meetings", meeting.id,
                new={"records": [r.model_dump() for r in sheet.records]})
    db.session.commit()
    logger.info("Attendance recorded for meeting %s (%d present)", meeting.id, len(meeting.attendees))

    rows = MeetingAttendance.query.filter_by(meeting_id=meeting.id).all()
    return jsonify({'meeting': meeting.to_dict(), 'attendance': [r.to_dict() for r in rows]}), 200
