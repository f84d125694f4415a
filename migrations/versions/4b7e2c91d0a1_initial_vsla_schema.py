"""initial vsla schema

Revision ID: 4b7e2c91d0a1
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4b7e2c91d0a1'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_code', sa.String(8), nullable=False, unique=True),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('phone', sa.String(20), nullable=False, unique=True),
        sa.Column('email', sa.String(120)),
        sa.Column('pin_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('location', sa.String(255)),
        sa.Column('assigned_by', sa.Integer(), sa.ForeignKey('users.id')),
        sa.Column('assigned_groups', sa.JSON()),
        sa.Column('profile_image_url', sa.String(255)),
        sa.Column('last_login', sa.DateTime()),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
    )

    op.create_table(
        'revoked_tokens',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('jti', sa.String(36), nullable=False),
        sa.Column('principal_kind', sa.String(10)),
        sa.Column('principal_id', sa.Integer()),
        sa.Column('revoked_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_revoked_tokens_jti', 'revoked_tokens', ['jti'], unique=True)

    op.create_table(
        'groups',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('location', sa.String(255), nullable=False),
        sa.Column('registration_number', sa.String(100)),
        sa.Column('meeting_frequency', sa.String(20), nullable=False),
        sa.Column('max_members', sa.Integer(), nullable=False),
        sa.Column('saving_per_share', sa.Numeric(12, 2), nullable=False),
        sa.Column('cycle_months', sa.Integer(), nullable=False),
        sa.Column('interest_rate', sa.Numeric(5, 2), nullable=False),
        sa.Column('welfare_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('main_activity', sa.Text()),
        sa.Column('other_activities', sa.Text()),
        sa.Column('registration_date', sa.Date(), nullable=False),
        sa.Column('has_running_business', sa.Boolean(), nullable=False),
        sa.Column('business_name', sa.String(255)),
        sa.Column('business_location', sa.String(255)),
        sa.Column('current_input', sa.Text()),
        sa.Column('available_cash', sa.Numeric(12, 2), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
    )
    op.create_index('ix_groups_is_active', 'groups', ['is_active'])

    op.create_table(
        'members',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('group_id', sa.Integer(), sa.ForeignKey('groups.id'), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('gender', sa.String(10), nullable=False),
        sa.Column('group_role', sa.String(20), nullable=False),
        sa.Column('email', sa.String(255)),
        sa.Column('phone', sa.String(20)),
        sa.Column('address', sa.Text()),
        sa.Column('join_date', sa.Date(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('total_shares', sa.Integer(), nullable=False),
        sa.Column('savings_balance', sa.Numeric(12, 2), nullable=False),
        sa.Column('welfare_balance', sa.Numeric(12, 2), nullable=False),
        sa.Column('current_loan', sa.Numeric(12, 2), nullable=False),
        sa.Column('next_of_kin', sa.String(255)),
        sa.Column('pin_hash', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
    )
    op.create_index('ix_members_group_id', 'members', ['group_id'])
    op.create_index('ix_members_phone', 'members', ['phone'])

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('group_id', sa.Integer(), sa.ForeignKey('groups.id'), nullable=False),
        sa.Column('member_id', sa.Integer(), sa.ForeignKey('members.id'), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('transaction_date', sa.DateTime(), nullable=False),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id')),
        sa.Column('created_by_member_id', sa.Integer(), sa.ForeignKey('members.id', ondelete='SET NULL')),
        sa.Column('created_at', sa.DateTime()),
    )
    op.create_index('ix_transactions_group_id', 'transactions', ['group_id'])
    op.create_index('ix_transactions_member_id', 'transactions', ['member_id'])
    op.create_index('ix_transactions_transaction_date', 'transactions', ['transaction_date'])

    op.create_table(
        'loans',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('group_id', sa.Integer(), sa.ForeignKey('groups.id'), nullable=False),
        sa.Column('member_id', sa.Integer(), sa.ForeignKey('members.id'), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('interest_rate', sa.Numeric(5, 2), nullable=False),
        sa.Column('term_months', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('application_date', sa.DateTime(), nullable=False),
        sa.Column('approval_date', sa.DateTime()),
        sa.Column('disbursement_date', sa.DateTime()),
        sa.Column('due_date', sa.DateTime()),
        sa.Column('remaining_balance', sa.Numeric(12, 2)),
        sa.Column('total_amount_due', sa.Numeric(12, 2)),
        sa.Column('months_overdue', sa.Integer(), nullable=False),
        sa.Column('last_interest_update', sa.DateTime()),
        sa.Column('purpose', sa.Text()),
        sa.Column('approved_by', sa.Integer(), sa.ForeignKey('users.id')),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
    )
    op.create_index('ix_loans_group_id', 'loans', ['group_id'])
    op.create_index('ix_loans_member_id', 'loans', ['member_id'])
    op.create_index('ix_loans_status', 'loans', ['status'])

    op.create_table(
        'meetings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('group_id', sa.Integer(), sa.ForeignKey('groups.id'), nullable=False),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('location', sa.String(255)),
        sa.Column('agenda', sa.Text()),
        sa.Column('minutes', sa.Text()),
        sa.Column('attendees', sa.JSON()),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('notification_sent_24h', sa.Boolean(), nullable=False),
        sa.Column('notification_sent_now', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
    )
    op.create_index('ix_meetings_group_id', 'meetings', ['group_id'])
    op.create_index('ix_meetings_date', 'meetings', ['date'])

    op.create_table(
        'meeting_attendance',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('meeting_id', sa.Integer(), sa.ForeignKey('meetings.id'), nullable=False),
        sa.Column('member_id', sa.Integer(), sa.ForeignKey('members.id'), nullable=False),
        sa.Column('is_present', sa.Boolean(), nullable=False),
        sa.Column('shares_purchased', sa.Integer(), nullable=False),
        sa.Column('welfare_payment', sa.Numeric(12, 2), nullable=False),
        sa.Column('loan_payment', sa.Numeric(12, 2), nullable=False),
        sa.Column('notes', sa.Text()),
        sa.Column('recorded_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('meeting_id', 'member_id', name='uq_meeting_member'),
    )
    op.create_index('ix_meeting_attendance_meeting_id', 'meeting_attendance', ['meeting_id'])
    op.create_index('ix_meeting_attendance_member_id', 'meeting_attendance', ['member_id'])

    op.create_table(
        'cashbox',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('group_id', sa.Integer(), sa.ForeignKey('groups.id'), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('transaction_type', sa.String(20), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('recorded_by', sa.Integer(), sa.ForeignKey('users.id')),
        sa.Column('recorded_by_member_id', sa.Integer(), sa.ForeignKey('members.id', ondelete='SET NULL')),
        sa.Column('recorded_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_cashbox_group_id', 'cashbox', ['group_id'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('group_id', sa.Integer(), sa.ForeignKey('groups.id', ondelete='CASCADE')),
        sa.Column('message', sa.String(500), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('meta', sa.JSON()),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('read_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_group_id', 'notifications', ['group_id'])
    op.create_index('ix_notifications_is_read', 'notifications', ['is_read'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer()),
        sa.Column('actor_kind', sa.String(10), nullable=False),
        sa.Column('action', sa.String(255), nullable=False),
        sa.Column('table_name', sa.String(100), nullable=False),
        sa.Column('record_id', sa.Integer()),
        sa.Column('old_value', sa.JSON()),
        sa.Column('new_value', sa.JSON()),
        sa.Column('timestamp', sa.DateTime()),
    )
    op.create_index('ix_audit_logs_timestamp', 'audit_logs', ['timestamp'])


def downgrade():
    op.drop_index('ix_audit_logs_timestamp', table_name='audit_logs')
    op.drop_table('audit_logs')
    op.drop_index('ix_notifications_created_at', table_name='notifications')
    op.drop_index('ix_notifications_is_read', table_name='notifications')
    op.drop_index('ix_notifications_group_id', table_name='notifications')
    op.drop_index('ix_notifications_user_id', table_name='notifications')
    op.drop_table('notifications')
    op.drop_index('ix_cashbox_group_id', table_name='cashbox')
    op.drop_table('cashbox')
    op.drop_index('ix_meeting_attendance_member_id', table_name='meeting_attendance')
    op.drop_index('ix_meeting_attendance_meeting_id', table_name='meeting_attendance')
    op.drop_table('meeting_attendance')
    op.drop_index('ix_meetings_date', table_name='meetings')
    op.drop_index('ix_meetings_group_id', table_name='meetings')
    op.drop_table('meetings')
    op.drop_index('ix_loans_status', table_name='loans')
    op.drop_index('ix_loans_member_id', table_name='loans')
    op.drop_index('ix_loans_group_id', table_name='loans')
    op.drop_table('loans')
    op.drop_index('ix_transactions_transaction_date', table_name='transactions')
    op.drop_index('ix_transactions_member_id', table_name='transactions')
    op.drop_index('ix_transactions_group_id', table_name='transactions')
    op.drop_table('transactions')
    op.drop_index('ix_members_phone', table_name='members')
    op.drop_index('ix_members_group_id', table_name='members')
    op.drop_table('members')
    op.drop_index('ix_groups_is_active', table_name='groups')
    op.drop_table('groups')
    op.drop_index('ix_revoked_tokens_jti', table_name='revoked_tokens')
    op.drop_table('revoked_tokens')
    op.drop_table('users')
