"""
Marketing campaign fan-out.

Recipients are resolved from a single customer id or from the campaign's
target segment. Each recipient gets a personalized email and its own row
in ``notification_delivery_log``. A failure for one recipient is recorded
on that recipient's result and row only.

Provider calls run concurrently on a bounded thread pool and are awaited
together. Database writes stay on the calling thread.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import List, Optional

from sqlmodel import Session, select

from freshdrop.config import settings
from freshdrop.exceptions import CampaignNotFound
from freshdrop.models.marketing import (
    CampaignAnalytics,
    CampaignStatus,
    CustomerSegment,
    MarketingCampaign,
)
from freshdrop.models.notifications import NotificationTemplate
from freshdrop.models.profile import Profile, ProfileRole
from freshdrop.notifications.channels import Channel
from freshdrop.notifications.email_handlers import plain_message_html
from freshdrop.notifications.templates import customer_context, render
from freshdrop.services.delivery import DeliveryResult
from freshdrop.services.email_service import EmailClient
from freshdrop.services.notification_logger import log_delivery, record_result

logger = logging.getLogger(__name__)

DELIVERY_PROVIDER = "resend"


def active_customers(session: Session) -> List[Profile]:
    return list(
        session.exec(
            select(Profile)
            .where(Profile.role == ProfileRole.customer)
            .where(Profile.account_disabled == False)  # noqa: E712
            .where(Profile.email != None)  # noqa: E711
            .order_by(Profile.created_at, Profile.id)
        ).all()
    )


def segment_customers(session: Session, segment: CustomerSegment) -> List[Profile]:
    # TODO: evaluate segment.conditions (order counts, zip codes) once the
    # admin segment builder stores a stable condition format
    return active_customers(session)


def resolve_recipients(
    session: Session, campaign: MarketingCampaign, customer_id: Optional[str] = None
) -> List[Profile]:
    if customer_id:
        profile = session.get(Profile, customer_id)
        if profile is None or not profile.email or profile.account_disabled:
            return []
        return [profile]

    if campaign.target_segment:
        segment = session.exec(
            select(CustomerSegment)
            .where(CustomerSegment.name == campaign.target_segment)
            .where(CustomerSegment.is_active == True)  # noqa: E712
        ).first()
        if segment is not None:
            return segment_customers(session, segment)
        logger.warning(
            f"Segment '{campaign.target_segment}' not found or inactive, "
            f"targeting all customers"
        )

    return active_customers(session)


def _safe_send(email_client: EmailClient, to: str, subject: str, html: str) -> DeliveryResult:
    try:
        return email_client.send(to, subject, html, from_email=settings.marketing_mail_from)
    except Exception as e:
        logger.exception(f"Campaign email to {to} raised")
        return DeliveryResult.failed(str(e) or e.__class__.__name__)


def record_analytics(session: Session, campaign_id: str, sent: int, delivered: int):
    today = date.today()
    analytics = session.exec(
        select(CampaignAnalytics)
        .where(CampaignAnalytics.campaign_id == campaign_id)
        .where(CampaignAnalytics.day == today)
    ).first()

    if analytics is None:
        analytics = CampaignAnalytics(campaign_id=campaign_id, day=today)

    analytics.sent_count += sent
    analytics.delivered_count += delivered
    session.add(analytics)


def dispatch_campaign(
    session: Session,
    email_client: EmailClient,
    *,
    campaign_id: str,
    customer_id: Optional[str] = None,
    delay_minutes: int = 0,
    sleep=time.sleep,
) -> dict:
    campaign = session.get(MarketingCampaign, campaign_id)
    if campaign is None:
        raise CampaignNotFound("Campaign not found")

    if campaign.status != CampaignStatus.active:
        logger.info(f"Campaign {campaign_id} is {campaign.status}, nothing sent")
        return {
            "success": True,
            "message": "Campaign not active",
            "sent": 0,
            "failed": 0,
            "results": [],
        }

    template = (
        session.get(NotificationTemplate, campaign.template_id)
        if campaign.template_id
        else None
    )
    if template is None or template.is_deleted:
        raise CampaignNotFound("Campaign template not found")

    recipients = resolve_recipients(session, campaign, customer_id)
    logger.info(f"Campaign {campaign.name}: {len(recipients)} recipients")

    if delay_minutes and delay_minutes > 0:
        delay = min(delay_minutes, settings.max_dispatch_delay_minutes)
        logger.info(f"Waiting {delay} minutes before sending campaign {campaign_id}")
        sleep(delay * 60)

    prepared = []
    for profile in recipients:
        context = customer_context(profile)
        subject = render(template.subject or campaign.name, context)
        message = render(template.message, context)
        row = log_delivery(
            session,
            customer_id=profile.id,
            campaign_id=campaign.id,
            template_id=template.id,
            channel=Channel.email,
            recipient=profile.email,
            subject=subject,
            content=message,
            delivery_provider=DELIVERY_PROVIDER,
        )
        prepared.append((profile, row, subject, plain_message_html(message)))
    session.commit()

    outcomes = []
    if prepared:
        workers = max(1, min(settings.dispatch_max_workers, len(prepared)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [
                pool.submit(_safe_send, email_client, profile.email, subject, html)
                for profile, _, subject, html in prepared
            ]
            outcomes = [f.result() for f in futures]

    results = []
    for (profile, row, _, _), outcome in zip(prepared, outcomes):
        record_result(session, row, outcome)
        entry = {"success": outcome.success, "recipient": profile.email}
        if not outcome.success:
            entry["error"] = outcome.error
        results.append(entry)

    sent = sum(1 for r in results if r["success"])
    failed = len(results) - sent

    if results:
        record_analytics(session, campaign.id, sent + failed, sent)
    session.commit()

    logger.info(f"Campaign {campaign.name} completed: {sent} sent, {failed} failed")

    return {
        "success": True,
        "sent": sent,
        "failed": failed,
        "results": results,
    }
