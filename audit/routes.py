from flask import Blueprint, jsonify, request
from audit.models import AuditLog
from users.auth import admin_required

audit_bp = Blueprint('audit', __name__)


@audit_bp.route('/audit/logs', methods=['GET'])
@admin_required
def get_all_logs():
    query = AuditLog.query
    table = request.args.get("table")
    if table:
        query = query.filter(AuditLog.table_name == table)
    record_id = request.args.get("record_id", type=int)
    if record_id is not None:
        query = query.filter(AuditLog.record_id == record_id)

    limit = min(request.args.get("limit", 200, type=int), 1000)
    logs = query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(limit).all()
    return jsonify([log.to_dict() for log in logs]), 200
