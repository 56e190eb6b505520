from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import SQLModel, Field

from freshdrop.notifications.channels import Channel


class NotificationStatus(str, Enum):
    pending = "pending"
    sent = "sent"
    failed = "failed"


class NotificationTemplate(SQLModel, table=True):
    __tablename__ = "notification_templates"

    id: Optional[int] = Field(default=None, primary_key=True)

    # an order status ("claimed", "completed", ...) or an operator
    # message type ("new_order", "broadcast")
    notification_type: str = Field(index=True)
    channel: Channel = Channel.email
    trigger_step: Optional[int] = Field(default=None, index=True)

    name: Optional[str] = None
    subject: Optional[str] = None
    message: str

    is_active: bool = Field(default=True)
    is_deleted: bool = Field(default=False)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None


class NotificationLog(SQLModel, table=True):
    """One row per transactional send attempt (order updates, operator alerts)."""

    __tablename__ = "notification_logs"

    id: Optional[int] = Field(default=None, primary_key=True)

    order_id: Optional[str] = Field(default=None, index=True)
    customer_id: Optional[str] = Field(default=None, index=True)

    notification_type: Channel
    recipient: Optional[str] = None
    message_content: str = ""

    status: NotificationStatus = NotificationStatus.pending
    error_message: Optional[str] = None
    provider_message_id: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    sent_at: Optional[datetime] = None


class NotificationDeliveryLog(SQLModel, table=True):
    """One row per campaign send attempt; also the cooldown ledger."""

    __tablename__ = "notification_delivery_log"

    id: Optional[int] = Field(default=None, primary_key=True)

    customer_id: str = Field(index=True)
    campaign_id: Optional[str] = Field(default=None, index=True)
    template_id: Optional[int] = None

    notification_type: Channel = Channel.email
    recipient: Optional[str] = None
    subject: Optional[str] = None
    message_content: str = ""

    status: NotificationStatus = NotificationStatus.pending
    delivery_provider: Optional[str] = None
    provider_message_id: Optional[str] = None
    error_message: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    sent_at: Optional[datetime] = None
