from datetime import date, datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlmodel import SQLModel, Field, UniqueConstraint
from sqlalchemy import Column, JSON


class CampaignStatus(str, Enum):
    draft = "draft"
    active = "active"
    paused = "paused"
    completed = "completed"


class TriggerType(str, Enum):
    inactivity = "inactivity"
    post_order = "post_order"
    milestone = "milestone"
    abandoned_cart = "abandoned_cart"


class MarketingCampaign(SQLModel, table=True):
    __tablename__ = "marketing_campaigns"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    name: str
    status: CampaignStatus = CampaignStatus.draft

    template_id: Optional[int] = Field(
        default=None, foreign_key="notification_templates.id"
    )
    # name of a CustomerSegment; None targets every customer
    target_segment: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)


class CustomerSegment(SQLModel, table=True):
    __tablename__ = "customer_segments"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    conditions: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    is_active: bool = Field(default=True)


class CampaignTrigger(SQLModel, table=True):
    __tablename__ = "campaign_triggers"

    id: Optional[int] = Field(default=None, primary_key=True)
    trigger_type: TriggerType
    # validated into a typed condition by services.behavioral_triggers
    conditions: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    campaign_id: str = Field(foreign_key="marketing_campaigns.id", index=True)
    is_active: bool = Field(default=True)
    delay_minutes: int = 0

    created_at: datetime = Field(default_factory=datetime.utcnow)


class CampaignAnalytics(SQLModel, table=True):
    __tablename__ = "campaign_analytics"
    __table_args__ = (UniqueConstraint("campaign_id", "day"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    campaign_id: str = Field(foreign_key="marketing_campaigns.id", index=True)
    day: date

    sent_count: int = 0
    delivered_count: int = 0
