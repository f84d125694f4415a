# notifications/routes.py
from flask import Blueprint, request, jsonify

from extensions import db
from notifications.models import Notification
from users.auth import current_actor, staff_required
from utils.errors import Forbidden, NotFound
from utils.validation import query_int

notifications_bp = Blueprint("notifications", __name__)


# -------- Notifications for the logged-in staff user --------
@notifications_bp.route("/notifications", methods=["GET"])
@staff_required()
def get_notifications():
    query = Notification.query.filter_by(user_id=current_actor().id)
    if request.args.get("unread") in ("1", "true"):
        query = query.filter_by(is_read=False)
    group_id = query_int("group_id")
    if group_id:
        query = query.filter_by(group_id=group_id)
    notes = query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()
    return jsonify([n.to_dict() for n in notes]), 200


@notifications_bp.route("/notifications/<int:note_id>/read", methods=["POST"])
@staff_required()
def mark_as_read(note_id):
    note = db.session.get(Notification, note_id)
    if not note:
        raise NotFound("Notification not found")
    if note.user_id != current_actor().id:
        raise Forbidden("Forbidden")

    note.mark_read()
    db.session.commit()
    return jsonify(note.to_dict()), 200


@notifications_bp.route("/notifications/read-all", methods=["POST"])
@staff_required()
def mark_all_read():
    notes = Notification.query.filter_by(user_id=current_actor().id, is_read=False).all()
    for note in notes:
        note.mark_read()
    db.session.commit()
    return jsonify({"message": "Notifications marked as read", "updated": len(notes)}), 200
