"""
Behavioral campaign triggers.

A periodic scan (``jobs.behavioral_triggers``) walks every active
CampaignTrigger, finds the customers its condition matches and dispatches
the trigger's campaign to each of them, unless the customer already got
that campaign inside the cooldown window.

The cooldown check and the send are not atomic: two scans running at the
same moment can both pass the check and send twice. Scans are scheduled
far enough apart that this is tolerated rather than locked against.

A trigger with a ``delay_minutes`` setting sleeps that long (capped at
``settings.max_dispatch_delay_minutes``) before each matched customer, one
customer after another. A scan that matches many customers can run for
hours, so the HTTP route blocks for as long as the scan runs. Large
delayed triggers belong in the cron job, not the route.
"""

import logging
import time
from datetime import datetime, timedelta
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from sqlalchemy import func
from sqlmodel import Session, select

from freshdrop.exceptions import FreshDropError
from freshdrop.models.marketing import CampaignTrigger, TriggerType
from freshdrop.models.order import Order
from freshdrop.services.campaign_dispatcher import active_customers, dispatch_campaign
from freshdrop.services.email_service import EmailClient
from freshdrop.services.notification_logger import ever_sent, was_recently_sent

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN_DAYS = {
    TriggerType.inactivity: 7,
    TriggerType.post_order: 1,
    TriggerType.milestone: 30,
    TriggerType.abandoned_cart: 1,
}

COMPLETED_STATUSES = ["completed", "delivered"]


class _Condition(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    cooldown_days: Optional[int] = Field(default=None, alias="cooldownDays", ge=0)


class InactivityCondition(_Condition):
    kind: Literal["inactivity"] = "inactivity"
    inactive_days: int = Field(default=14, alias="inactiveDays", gt=0)


class PostOrderCondition(_Condition):
    kind: Literal["post_order"] = "post_order"
    hours_after_delivery: int = Field(default=2, alias="hoursAfterDelivery", ge=0)
    window_hours: int = Field(default=1, alias="windowHours", gt=0)


class MilestoneCondition(_Condition):
    kind: Literal["milestone"] = "milestone"
    order_count: int = Field(default=5, alias="orderCount", gt=0)
    # "crossing": reached the count and never got the campaign
    # "exact": count equals the threshold
    match: Literal["crossing", "exact"] = "crossing"


class AbandonedCartCondition(_Condition):
    kind: Literal["abandoned_cart"] = "abandoned_cart"


TriggerCondition = Annotated[
    Union[
        InactivityCondition,
        PostOrderCondition,
        MilestoneCondition,
        AbandonedCartCondition,
    ],
    Field(discriminator="kind"),
]

condition_adapter = TypeAdapter(TriggerCondition)


def parse_conditions(trigger: CampaignTrigger):
    """Typed condition for a trigger row; raises pydantic.ValidationError."""
    data = dict(trigger.conditions or {})
    data["kind"] = TriggerType(trigger.trigger_type).value
    return condition_adapter.validate_python(data)


def cooldown_for(trigger: CampaignTrigger, condition) -> int:
    if condition.cooldown_days is not None:
        return condition.cooldown_days
    return DEFAULT_COOLDOWN_DAYS[TriggerType(trigger.trigger_type)]


def inactive_customers(session: Session, condition: InactivityCondition, now: datetime) -> List[str]:
    cutoff = now - timedelta(days=condition.inactive_days)
    recent = set(
        session.exec(
            select(Order.customer_id).where(Order.created_at > cutoff).distinct()
        ).all()
    )
    return [p.id for p in active_customers(session) if p.id not in recent]


def post_order_customers(session: Session, condition: PostOrderCondition, now: datetime) -> List[str]:
    start = now - timedelta(hours=condition.hours_after_delivery)
    end = start + timedelta(hours=condition.window_hours)

    orders = session.exec(
        select(Order)
        .where(Order.status == "completed")
        .where(Order.completed_at >= start)
        .where(Order.completed_at < end)
        .order_by(Order.completed_at)
    ).all()

    return [o.customer_id for o in orders]


def completed_order_counts(session: Session) -> dict:
    rows = session.exec(
        select(Order.customer_id, func.count(Order.id))
        .where(Order.status.in_(COMPLETED_STATUSES))
        .group_by(Order.customer_id)
    ).all()
    return {customer_id: count for customer_id, count in rows}


def milestone_customers(
    session: Session, condition: MilestoneCondition, campaign_id: str
) -> List[str]:
    counts = completed_order_counts(session)
    eligible = {p.id for p in active_customers(session)}
    matched = []

    for customer_id, count in sorted(counts.items()):
        if customer_id not in eligible:
            continue
        if condition.match == "exact":
            if count == condition.order_count:
                matched.append(customer_id)
        elif count >= condition.order_count and not ever_sent(session, customer_id, campaign_id):
            matched.append(customer_id)

    return matched


def match_customers(session: Session, trigger: CampaignTrigger, condition, now: datetime) -> List[str]:
    if isinstance(condition, InactivityCondition):
        return inactive_customers(session, condition, now)
    if isinstance(condition, PostOrderCondition):
        return post_order_customers(session, condition, now)
    if isinstance(condition, MilestoneCondition):
        return milestone_customers(session, condition, trigger.campaign_id)
    if isinstance(condition, AbandonedCartCondition):
        logger.info(f"Abandoned cart trigger {trigger.id} checked, cart tracking not available")
        return []
    raise TypeError(f"Unhandled trigger condition: {condition!r}")


def run_trigger(
    session: Session,
    email_client: EmailClient,
    trigger: CampaignTrigger,
    now: datetime,
    sleep=time.sleep,
) -> dict:
    summary = {
        "trigger_id": trigger.id,
        "trigger_type": TriggerType(trigger.trigger_type).value,
        "matched": 0,
        "dispatched": 0,
        "skipped": 0,
        "errors": 0,
    }

    try:
        condition = parse_conditions(trigger)
    except ValidationError as e:
        logger.error(f"Trigger {trigger.id} has invalid conditions: {e}")
        summary["errors"] += 1
        summary["error"] = "Invalid trigger conditions"
        return summary

    cooldown = cooldown_for(trigger, condition)
    campaign_id = trigger.campaign_id

    seen = set()
    for customer_id in match_customers(session, trigger, condition, now):
        if customer_id in seen:
            continue
        seen.add(customer_id)
        summary["matched"] += 1

        if was_recently_sent(session, customer_id, campaign_id, cooldown, now=now):
            summary["skipped"] += 1
            continue

        try:
            result = dispatch_campaign(
                session,
                email_client,
                campaign_id=campaign_id,
                customer_id=customer_id,
                delay_minutes=trigger.delay_minutes,
                sleep=sleep,
            )
        except FreshDropError as e:
            session.rollback()
            logger.error(f"Trigger {trigger.id} dispatch to {customer_id} failed: {e}")
            summary["errors"] += 1
            continue
        except Exception:
            session.rollback()
            logger.exception(f"Trigger {trigger.id} dispatch to {customer_id} raised")
            summary["errors"] += 1
            continue

        if result["sent"]:
            summary["dispatched"] += 1
        elif result["failed"]:
            summary["errors"] += 1
        else:
            summary["skipped"] += 1

    logger.info(
        f"Trigger {trigger.id} ({summary['trigger_type']}): matched={summary['matched']} "
        f"dispatched={summary['dispatched']} skipped={summary['skipped']} errors={summary['errors']}"
    )
    return summary


def run_behavioral_triggers(
    session: Session,
    email_client: EmailClient,
    *,
    trigger_type: Optional[str] = None,
    now: Optional[datetime] = None,
    sleep=time.sleep,
) -> dict:
    now = now or datetime.utcnow()

    query = select(CampaignTrigger).where(CampaignTrigger.is_active == True)  # noqa: E712
    if trigger_type:
        query = query.where(CampaignTrigger.trigger_type == TriggerType(trigger_type))

    triggers = session.exec(query.order_by(CampaignTrigger.id)).all()
    logger.info(f"Running {len(triggers)} behavioral triggers")

    summaries = [run_trigger(session, email_client, t, now, sleep=sleep) for t in triggers]

    return {
        "success": True,
        "message": "Behavioral triggers processed",
        "triggers": summaries,
    }
