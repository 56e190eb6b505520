import logging
from typing import Callable, Optional

from sqlmodel import Session

from freshdrop.models.notifications import NotificationStatus
from freshdrop.notifications.channels import Channel
from freshdrop.services.delivery import DeliveryResult
from freshdrop.services.notification_logger import log_notification, record_result

logger = logging.getLogger(__name__)


def channel_result(channel, success, error=None, log_id=None, requested=True):
    return {
        "channel": channel.value,
        "requested": requested,
        "success": success,
        "error": error,
        "log_id": log_id,
    }


def not_requested(channel: Channel):
    return channel_result(channel, success=True, requested=False)


def deliver(
    session: Session,
    *,
    channel: Channel,
    recipient: str,
    content: str,
    send: Callable[[], DeliveryResult],
    order_id: Optional[str] = None,
    customer_id: Optional[str] = None,
):
    """
    Single send attempt on one channel.

    Writes a pending log row, calls the provider, then moves the row to
    sent or failed. Provider exceptions are recorded on the row and
    returned as a failed channel result.
    """
    row = log_notification(
        session,
        channel=channel,
        recipient=recipient,
        content=content,
        order_id=order_id,
        customer_id=customer_id,
    )

    try:
        result = send()
    except Exception as e:
        logger.exception(f"{channel.value} send to {recipient} raised")
        result = DeliveryResult.failed(str(e) or e.__class__.__name__)

    record_result(session, row, result)

    if not result.success:
        logger.error(f"{channel.value} to {recipient} failed: {result.error}")

    return channel_result(channel, result.success, result.error, row.id)


def record_skipped(
    session: Session,
    *,
    channel: Channel,
    recipient: Optional[str],
    content: str,
    error: str,
    order_id: Optional[str] = None,
    customer_id: Optional[str] = None,
):
    """Attempt that failed before reaching a provider (no template, no credentials)."""
    row = log_notification(
        session,
        channel=channel,
        recipient=recipient,
        content=content,
        status=NotificationStatus.failed,
        error=error,
        order_id=order_id,
        customer_id=customer_id,
    )
    logger.warning(f"{channel.value} notification not sent: {error}")
    return channel_result(channel, False, error, row.id)


def aggregate_success(*results) -> bool:
    return any(r["requested"] and r["success"] for r in results)
