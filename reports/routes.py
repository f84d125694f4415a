from flask import Blueprint, jsonify

from reports import queries
from users.auth import current_actor, ensure_group_access, login_required
from utils.validation import query_date, query_int, query_str

reports_bp = Blueprint('reports', __name__)

REPORT_TYPES = ('groups', 'members', 'financial')


@reports_bp.route('/dashboard/stats', methods=['GET'])
@login_required
def dashboard_stats():
    return jsonify(queries.dashboard_stats(current_actor().visible_group_ids())), 200


@reports_bp.route('/reports/<report_type>', methods=['GET'])
@login_required
def get_report(report_type):
    if report_type not in REPORT_TYPES:
        return jsonify({'error': 'Invalid report type'}), 400

    scope = current_actor().visible_group_ids()
    group_id = query_int('group_id')
    if group_id:
        ensure_group_access(group_id)

    if report_type == 'groups':
        rows = queries.group_report(scope, group_id, query_str('location'),
                                    query_date('date_from'), query_date('date_to'))
    elif report_type == 'members':
        rows = queries.member_report(scope, group_id, query_str('gender'),
                                     query_date('date_from'), query_date('date_to'))
    else:
        rows = queries.financial_report(scope, group_id,
                                        query_date('date_from', as_datetime=True),
                                        query_date('date_to', end_of_day=True))
    return jsonify(rows), 200
