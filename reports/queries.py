# reports/queries.py
"""Read-side aggregations for the dashboards and the reports page."""
from sqlalchemy import func

from extensions import db
from finance.calculations import as_float, calculate_group_financials
from finance.models import Loan, Transaction
from groups.models import Group
from members.models import Member
from utils.currency import format_currency
from utils.errors import NotFound


def _scoped(query, column, group_ids):
    # group_ids None means no restriction
    if group_ids is None:
        return query
    return query.filter(column.in_(group_ids or [-1]))


def group_stats(group_id):
    group = db.session.get(Group, group_id)
    if not group:
        raise NotFound("Group not found")
    members = Member.query.filter_by(group_id=group_id, is_active=True).all()
    loans = Loan.query.filter_by(group_id=group_id).all()
    stats = calculate_group_financials(group, members, loans)
    stats["total_interest"] = stats["total_interest_earned"]
    return stats


def dashboard_stats(group_ids=None):
    groups_q = _scoped(Group.query.filter(Group.is_active.is_(True)), Group.id, group_ids)
    members_q = _scoped(Member.query.filter(Member.is_active.is_(True)), Member.group_id, group_ids)

    def member_sum(column):
        q = _scoped(db.session.query(func.coalesce(func.sum(column), 0)).filter(Member.is_active.is_(True)),
                    Member.group_id, group_ids)
        return as_float(q.scalar())

    total_savings = member_sum(Member.savings_balance)
    total_welfare = member_sum(Member.welfare_balance)
    total_current_loans = member_sum(Member.current_loan)
    available_cash = as_float(
        _scoped(db.session.query(func.coalesce(func.sum(Group.available_cash), 0))
                .filter(Group.is_active.is_(True)), Group.id, group_ids).scalar()
    )

    active_loans = _scoped(Loan.query.filter(Loan.status == "active"), Loan.group_id, group_ids).all()
    total_interest = sum(
        as_float(l.total_amount_due) - as_float(l.amount) if l.total_amount_due is not None
        else as_float(l.amount) * as_float(l.interest_rate) / 100
        for l in active_loans
    )

    return {
        "total_groups": groups_q.count(),
        "total_members": members_q.count(),
        "male_members": members_q.filter(Member.gender == "M").count(),
        "female_members": members_q.filter(Member.gender == "F").count(),
        "total_savings": total_savings,
        "total_welfare": total_welfare,
        "total_cash_in_box": total_savings - total_current_loans + available_cash,
        "active_loans": len(active_loans),
        "total_loans_given": total_current_loans,
        "total_interest": total_interest,
    }


def group_report(group_ids=None, group_id=None, location=None, date_from=None, date_to=None):
    q = (db.session.query(
            Group,
            func.count(Member.id).label("member_count"),
            func.coalesce(func.sum(Member.savings_balance), 0).label("total_savings"))
         .outerjoin(Member, Member.group_id == Group.id)
         .filter(Group.is_active.is_(True)))
    q = _scoped(q, Group.id, group_ids)
    if group_id:
        q = q.filter(Group.id == group_id)
    if location:
        q = q.filter(Group.location == location)
    if date_from:
        q = q.filter(Group.registration_date >= date_from)
    if date_to:
        q = q.filter(Group.registration_date <= date_to)

    rows = []
    for group, member_count, total_savings in q.group_by(Group.id).order_by(Group.name).all():
        rows.append({
            "id": group.id,
            "name": group.name,
            "location": group.location,
            "registration_number": group.registration_number,
            "member_count": member_count,
            "total_savings": as_float(total_savings),
            "total_savings_display": format_currency(total_savings),
            "available_cash": as_float(group.available_cash),
            "cycle_months": group.cycle_months,
            "interest_rate": as_float(group.interest_rate),
            "registration_date": group.registration_date.isoformat() if group.registration_date else None,
        })
    return rows


def member_report(group_ids=None, group_id=None, gender=None, date_from=None, date_to=None):
    q = (db.session.query(Member, Group.name, Group.location)
         .outerjoin(Group, Member.group_id == Group.id)
         .filter(Member.is_active.is_(True)))
    q = _scoped(q, Member.group_id, group_ids)
    if group_id:
        q = q.filter(Member.group_id == group_id)
    if gender:
        q = q.filter(Member.gender == gender)
    if date_from:
        q = q.filter(Member.join_date >= date_from)
    if date_to:
        q = q.filter(Member.join_date <= date_to)

    return [{
        "id": m.id,
        "first_name": m.first_name,
        "last_name": m.last_name,
        "gender": m.gender,
        "phone": m.phone,
        "group_name": group_name,
        "group_location": group_location,
        "savings_balance": as_float(m.savings_balance),
        "savings_balance_display": format_currency(m.savings_balance),
        "join_date": m.join_date.isoformat() if m.join_date else None,
        "is_active": m.is_active,
    } for m, group_name, group_location in q.order_by(Member.last_name, Member.first_name).all()]


def financial_report(group_ids=None, group_id=None, date_from=None, date_to=None):
    q = (db.session.query(
            Transaction.group_id,
            Group.name,
            Transaction.type,
            func.coalesce(func.sum(Transaction.amount), 0),
            func.count(Transaction.id))
         .outerjoin(Group, Transaction.group_id == Group.id))
    q = _scoped(q, Transaction.group_id, group_ids)
    if group_id:
        q = q.filter(Transaction.group_id == group_id)
    if date_from:
        q = q.filter(Transaction.transaction_date >= date_from)
    if date_to:
        q = q.filter(Transaction.transaction_date <= date_to)

    rows = q.group_by(Transaction.group_id, Group.name, Transaction.type).all()
    return [{
        "group_id": gid,
        "group_name": name,
        "transaction_type": ttype,
        "total_amount": as_float(total),
        "total_amount_display": format_currency(total),
        "transaction_count": count,
    } for gid, name, ttype, total, count in rows]
