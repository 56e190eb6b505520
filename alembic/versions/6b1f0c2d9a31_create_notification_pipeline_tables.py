"""Create profiles, orders, washers and notification pipeline tables

Revision ID: 6b1f0c2d9a31
Revises:
Create Date: 2026-10-19 09:12:04.118342

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import sqlmodel


# revision identifiers, used by Alembic.
revision: str = '6b1f0c2d9a31'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

STR = sqlmodel.sql.sqltypes.AutoString()

profile_role = sa.Enum('customer', 'operator', 'admin', name='profilerole')
channel = sa.Enum('email', 'sms', 'push', name='channel')
notification_status = sa.Enum('pending', 'sent', 'failed', name='notificationstatus')
campaign_status = sa.Enum('draft', 'active', 'paused', 'completed', name='campaignstatus')
trigger_type = sa.Enum('inactivity', 'post_order', 'milestone', 'abandoned_cart', name='triggertype')
deletion_status = sa.Enum('pending', 'completed', 'cancelled', name='deletionstatus')


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'profiles',
        sa.Column('id', STR, primary_key=True),
        sa.Column('first_name', STR, nullable=True),
        sa.Column('last_name', STR, nullable=True),
        sa.Column('email', STR, nullable=True),
        sa.Column('phone', STR, nullable=True),
        sa.Column('role', profile_role, nullable=False),
        sa.Column('opt_in_email', sa.Boolean(), nullable=False),
        sa.Column('opt_in_sms', sa.Boolean(), nullable=False),
        sa.Column('account_disabled', sa.Boolean(), nullable=False),
        sa.Column('pending_deletion', sa.Boolean(), nullable=False),
        sa.Column('deletion_requested_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_profiles_email', 'profiles', ['email'])

    op.create_table(
        'orders',
        sa.Column('id', STR, primary_key=True),
        sa.Column('order_number', STR, nullable=True),
        sa.Column('customer_id', STR, sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('operator_id', STR, sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('status', STR, nullable=False),
        sa.Column('current_step', sa.Integer(), nullable=True),
        sa.Column('service_name', STR, nullable=True),
        sa.Column('zip_code', STR, nullable=True),
        sa.Column('is_express', sa.Boolean(), nullable=False),
        sa.Column('total_amount_cents', sa.Integer(), nullable=False),
        sa.Column('operator_earnings_cents', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('claimed_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_orders_order_number', 'orders', ['order_number'])
    op.create_index('ix_orders_customer_id', 'orders', ['customer_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])

    op.create_table(
        'order_events',
        sa.Column('id', STR, primary_key=True),
        sa.Column('order_id', STR, sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('event_type', STR, nullable=False),
        sa.Column('from_status', STR, nullable=True),
        sa.Column('to_status', STR, nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('created_by', STR, nullable=False),
    )
    op.create_index('ix_order_events_order_id', 'order_events', ['order_id'])
    op.create_index('ix_order_events_event_type', 'order_events', ['event_type'])

    op.create_table(
        'washers',
        sa.Column('id', STR, primary_key=True),
        sa.Column('user_id', STR, sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('zip_codes', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_online', sa.Boolean(), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.Column('notifications_enabled', sa.Boolean(), nullable=False),
        sa.Column('push_notification_token', STR, nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_washers_user_id', 'washers', ['user_id'])

    op.create_table(
        'notification_templates',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('notification_type', STR, nullable=False),
        sa.Column('channel', channel, nullable=False),
        sa.Column('trigger_step', sa.Integer(), nullable=True),
        sa.Column('name', STR, nullable=True),
        sa.Column('subject', STR, nullable=True),
        sa.Column('message', STR, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_deleted', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_notification_templates_notification_type', 'notification_templates', ['notification_type'])
    op.create_index('ix_notification_templates_trigger_step', 'notification_templates', ['trigger_step'])

    op.create_table(
        'notification_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_id', STR, nullable=True),
        sa.Column('customer_id', STR, nullable=True),
        sa.Column('notification_type', channel, nullable=False),
        sa.Column('recipient', STR, nullable=True),
        sa.Column('message_content', STR, nullable=False),
        sa.Column('status', notification_status, nullable=False),
        sa.Column('error_message', STR, nullable=True),
        sa.Column('provider_message_id', STR, nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_notification_logs_order_id', 'notification_logs', ['order_id'])
    op.create_index('ix_notification_logs_customer_id', 'notification_logs', ['customer_id'])

    op.create_table(
        'notification_delivery_log',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('customer_id', STR, nullable=False),
        sa.Column('campaign_id', STR, nullable=True),
        sa.Column('template_id', sa.Integer(), nullable=True),
        sa.Column('notification_type', channel, nullable=False),
        sa.Column('recipient', STR, nullable=True),
        sa.Column('subject', STR, nullable=True),
        sa.Column('message_content', STR, nullable=False),
        sa.Column('status', notification_status, nullable=False),
        sa.Column('delivery_provider', STR, nullable=True),
        sa.Column('provider_message_id', STR, nullable=True),
        sa.Column('error_message', STR, nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_notification_delivery_log_customer_id', 'notification_delivery_log', ['customer_id'])
    op.create_index('ix_notification_delivery_log_campaign_id', 'notification_delivery_log', ['campaign_id'])
    op.create_index('ix_notification_delivery_log_created_at', 'notification_delivery_log', ['created_at'])

    op.create_table(
        'marketing_campaigns',
        sa.Column('id', STR, primary_key=True),
        sa.Column('name', STR, nullable=False),
        sa.Column('status', campaign_status, nullable=False),
        sa.Column('template_id', sa.Integer(), sa.ForeignKey('notification_templates.id'), nullable=True),
        sa.Column('target_segment', STR, nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'customer_segments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', STR, nullable=False),
        sa.Column('conditions', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
    )
    op.create_index('ix_customer_segments_name', 'customer_segments', ['name'])

    op.create_table(
        'campaign_triggers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('trigger_type', trigger_type, nullable=False),
        sa.Column('conditions', sa.JSON(), nullable=True),
        sa.Column('campaign_id', STR, sa.ForeignKey('marketing_campaigns.id'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('delay_minutes', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_campaign_triggers_campaign_id', 'campaign_triggers', ['campaign_id'])

    op.create_table(
        'campaign_analytics',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('campaign_id', STR, sa.ForeignKey('marketing_campaigns.id'), nullable=False),
        sa.Column('day', sa.Date(), nullable=False),
        sa.Column('sent_count', sa.Integer(), nullable=False),
        sa.Column('delivered_count', sa.Integer(), nullable=False),
        sa.UniqueConstraint('campaign_id', 'day'),
    )
    op.create_index('ix_campaign_analytics_campaign_id', 'campaign_analytics', ['campaign_id'])

    op.create_table(
        'account_deletion_requests',
        sa.Column('id', STR, primary_key=True),
        sa.Column('user_id', STR, sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('reason', STR, nullable=True),
        sa.Column('status', deletion_status, nullable=False),
        sa.Column('data_export_requested', sa.Boolean(), nullable=False),
        sa.Column('confirmation_token', STR, nullable=True),
        sa.Column('scheduled_deletion_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_account_deletion_requests_user_id', 'account_deletion_requests', ['user_id'])

    op.create_table(
        'data_export_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', STR, sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('export_type', STR, nullable=False),
        sa.Column('status', STR, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_data_export_logs_user_id', 'data_export_logs', ['user_id'])


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        'data_export_logs',
        'account_deletion_requests',
        'campaign_analytics',
        'campaign_triggers',
        'customer_segments',
        'marketing_campaigns',
        'notification_delivery_log',
        'notification_logs',
        'notification_templates',
        'washers',
        'order_events',
        'orders',
        'profiles',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum in (deletion_status, trigger_type, campaign_status,
                 notification_status, channel, profile_role):
        enum.drop(bind, checkfirst=True)
