from datetime import datetime, timedelta
from typing import Optional

from sqlmodel import Session, select

from freshdrop.models.notifications import (
    NotificationDeliveryLog,
    NotificationLog,
    NotificationStatus,
)
from freshdrop.notifications.channels import Channel
from freshdrop.services.delivery import DeliveryResult


def log_notification(
    session: Session,
    *,
    channel: Channel,
    recipient: Optional[str],
    content: str,
    status: NotificationStatus = NotificationStatus.pending,
    order_id: Optional[str] = None,
    customer_id: Optional[str] = None,
    error: Optional[str] = None,
    provider_message_id: Optional[str] = None,
) -> NotificationLog:
    """
    Append-only audit row for a transactional send attempt
    """
    row = NotificationLog(
        order_id=order_id,
        customer_id=customer_id,
        notification_type=channel,
        recipient=recipient,
        message_content=content,
        status=status,
        error_message=error,
        provider_message_id=provider_message_id,
        sent_at=datetime.utcnow() if status == NotificationStatus.sent else None,
    )
    session.add(row)
    session.flush()
    return row


def log_delivery(
    session: Session,
    *,
    customer_id: str,
    campaign_id: Optional[str],
    template_id: Optional[int],
    recipient: Optional[str],
    subject: Optional[str],
    content: str,
    channel: Channel = Channel.email,
    status: NotificationStatus = NotificationStatus.pending,
    delivery_provider: Optional[str] = None,
    error: Optional[str] = None,
    provider_message_id: Optional[str] = None,
) -> NotificationDeliveryLog:
    """
    Append-only audit row for a campaign send attempt
    """
    row = NotificationDeliveryLog(
        customer_id=customer_id,
        campaign_id=campaign_id,
        template_id=template_id,
        notification_type=channel,
        recipient=recipient,
        subject=subject,
        message_content=content,
        status=status,
        delivery_provider=delivery_provider,
        error_message=error,
        provider_message_id=provider_message_id,
        sent_at=datetime.utcnow() if status == NotificationStatus.sent else None,
    )
    session.add(row)
    session.flush()
    return row


def _ensure_pending(row):
    if row.status != NotificationStatus.pending:
        raise ValueError(
            f"Log row {row.id} is already {row.status}; only pending rows can change"
        )


def mark_sent(session: Session, row, provider_message_id: Optional[str] = None):
    _ensure_pending(row)
    row.status = NotificationStatus.sent
    row.provider_message_id = provider_message_id
    row.sent_at = datetime.utcnow()
    session.add(row)
    return row


def mark_failed(session: Session, row, error: Optional[str]):
    _ensure_pending(row)
    row.status = NotificationStatus.failed
    row.error_message = error or "Unknown error"
    session.add(row)
    return row


def record_result(session: Session, row, result: DeliveryResult):
    if result.success:
        return mark_sent(session, row, result.provider_message_id)
    return mark_failed(session, row, result.error)


def was_recently_sent(
    session: Session,
    customer_id: str,
    campaign_id: str,
    within_days: int,
    now: Optional[datetime] = None,
) -> bool:
    """
    True when the campaign reached (or is being sent to) the customer
    inside the window. Failed attempts do not count.
    """
    cutoff = (now or datetime.utcnow()) - timedelta(days=within_days)

    row = session.exec(
        select(NotificationDeliveryLog)
        .where(NotificationDeliveryLog.customer_id == customer_id)
        .where(NotificationDeliveryLog.campaign_id == campaign_id)
        .where(NotificationDeliveryLog.created_at >= cutoff)
        .where(
            NotificationDeliveryLog.status.in_(
                [NotificationStatus.sent, NotificationStatus.pending]
            )
        )
    ).first()

    return row is not None


def ever_sent(session: Session, customer_id: str, campaign_id: str) -> bool:
    row = session.exec(
        select(NotificationDeliveryLog)
        .where(NotificationDeliveryLog.customer_id == customer_id)
        .where(NotificationDeliveryLog.campaign_id == campaign_id)
        .where(NotificationDeliveryLog.status != NotificationStatus.failed)
    ).first()
    return row is not None
