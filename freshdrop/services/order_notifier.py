"""
Customer notifications for order status changes and order chat messages.

Each enabled channel is attempted on its own and gets exactly one row in
``notification_logs`` whatever the outcome. A missing template, missing
provider credentials or a provider error fail that channel only.
"""

import logging
from typing import Optional

from sqlmodel import Session, select

from freshdrop.exceptions import RecipientNotFound
from freshdrop.models.notifications import NotificationTemplate
from freshdrop.models.order import Order
from freshdrop.models.profile import Profile
from freshdrop.notifications.channels import Channel
from freshdrop.notifications.dispatcher import (
    aggregate_success,
    deliver,
    not_requested,
    record_skipped,
)
from freshdrop.notifications.email_handlers import order_message_html, order_update_html
from freshdrop.notifications.events import NotificationEvent
from freshdrop.notifications.rules import channel_enabled
from freshdrop.notifications.templates import DEFAULT_ORDER_MESSAGES, render
from freshdrop.services.email_service import EmailClient
from freshdrop.services.sms_service import SmsClient

logger = logging.getLogger(__name__)


def find_template(
    session: Session,
    channel: Channel,
    status: Optional[str] = None,
    step: Optional[int] = None,
) -> Optional[NotificationTemplate]:
    base = (
        select(NotificationTemplate)
        .where(NotificationTemplate.is_active == True)  # noqa: E712
        .where(NotificationTemplate.is_deleted == False)  # noqa: E712
        .where(NotificationTemplate.channel == channel)
        .order_by(NotificationTemplate.id.desc())
    )

    if step:
        template = session.exec(
            base.where(NotificationTemplate.trigger_step == step)
        ).first()
        if template:
            return template

    if status:
        return session.exec(
            base.where(NotificationTemplate.notification_type == status)
        ).first()

    return None


def resolve_message(session, channel, status, step=None):
    """(subject, message) for the channel, or None when nothing applies."""
    template = find_template(session, channel, status=status, step=step)
    if template:
        return template.subject or "", template.message

    default = DEFAULT_ORDER_MESSAGES.get(status)
    if default:
        return default["subject"], default["message"]

    return None


def sms_body(subject, message, order_number):
    return f"FreshDrop: {subject}. {message} Order: {order_number}"


def notify_order_status(
    session: Session,
    email_client: EmailClient,
    sms_client: SmsClient,
    *,
    order_id: str,
    customer_id: str,
    status: str,
    step: Optional[int] = None,
    customer_email: Optional[str] = None,
    customer_phone: Optional[str] = None,
    customer_name: Optional[str] = None,
    order_number: Optional[str] = None,
    channels: Optional[dict] = None,
) -> dict:
    channels = channels or {}

    profile = session.get(Profile, customer_id)
    order = session.get(Order, order_id)

    email = customer_email or (profile.email if profile else None)
    phone = customer_phone or (profile.phone if profile else None)
    name = customer_name or (profile.full_name if profile else None)

    if order is not None:
        order_number = order_number or order.order_number
    order_number = order_number or order_id

    email_wanted = (
        channel_enabled(NotificationEvent.ORDER_UPDATE, Channel.email)
        and channels.get("email") is not False
        and bool(email)
        and (profile is None or profile.opt_in_email)
    )
    # an explicit sms override counts as consent for this call
    sms_wanted = (
        channel_enabled(NotificationEvent.ORDER_UPDATE, Channel.sms)
        and channels.get("sms") is not False
        and bool(phone)
        and (channels.get("sms") is True or (profile is not None and profile.opt_in_sms))
    )

    context = {"customerName": name, "orderId": order_id, "orderNumber": order_number}
    missing_template = f"No active template for status '{status}'"

    email_result = not_requested(Channel.email)
    if email_wanted:
        resolved = resolve_message(session, Channel.email, status, step)
        if resolved is None:
            email_result = record_skipped(
                session,
                channel=Channel.email,
                recipient=email,
                content="",
                error=missing_template,
                order_id=order_id,
                customer_id=customer_id,
            )
        else:
            subject = render(resolved[0], context)
            message = render(resolved[1], context)
            html = order_update_html(
                subject=subject,
                message=message,
                customer_name=render("{customerName}", context),
                order_number=order_number,
                status=status,
            )
            email_result = deliver(
                session,
                channel=Channel.email,
                recipient=email,
                content=message,
                send=lambda: email_client.send(email, subject, html),
                order_id=order_id,
                customer_id=customer_id,
            )

    sms_result = not_requested(Channel.sms)
    if sms_wanted:
        resolved = resolve_message(session, Channel.sms, status, step)
        if resolved is None:
            sms_result = record_skipped(
                session,
                channel=Channel.sms,
                recipient=phone,
                content="",
                error=missing_template,
                order_id=order_id,
                customer_id=customer_id,
            )
        else:
            body = sms_body(
                render(resolved[0], context), render(resolved[1], context), order_number
            )
            if not sms_client.is_configured:
                sms_result = record_skipped(
                    session,
                    channel=Channel.sms,
                    recipient=phone,
                    content=body,
                    error="Twilio credentials missing",
                    order_id=order_id,
                    customer_id=customer_id,
                )
            else:
                sms_result = deliver(
                    session,
                    channel=Channel.sms,
                    recipient=phone,
                    content=body,
                    send=lambda: sms_client.send(phone, body),
                    order_id=order_id,
                    customer_id=customer_id,
                )

    session.commit()

    success = aggregate_success(email_result, sms_result)
    logger.info(
        f"Order {order_id} '{status}' notification: "
        f"email={email_result['success'] if email_wanted else '-'} "
        f"sms={sms_result['success'] if sms_wanted else '-'}"
    )

    return {
        "success": success,
        "emailSent": email_result["requested"] and email_result["success"],
        "smsSent": sms_result["requested"] and sms_result["success"],
        "channels": {"email": email_result, "sms": sms_result},
    }


def notify_order_message(
    session: Session,
    email_client: EmailClient,
    *,
    customer_id: Optional[str],
    operator_id: Optional[str],
    order_id: Optional[str],
    subject: Optional[str],
    message: Optional[str],
    sender_name: Optional[str],
) -> dict:
    # the operator is the recipient when one is set and differs from the sender
    recipient_id = customer_id
    if operator_id and operator_id != customer_id:
        recipient_id = operator_id

    if not recipient_id:
        raise RecipientNotFound("No recipient ID provided")

    profile = session.get(Profile, recipient_id)
    if profile is None or not profile.email:
        raise RecipientNotFound("Recipient email not found")

    if not channel_enabled(NotificationEvent.ORDER_MESSAGE, Channel.email):
        return {"success": False, "emailSent": False, "error": "Email disabled for order messages"}

    order = session.get(Order, order_id) if order_id else None
    order_number = (order.order_number if order else None) or order_id or ""

    body = message or "No message content"
    html = order_message_html(
        message=body,
        recipient_name=profile.full_name,
        sender_name=sender_name,
        order_number=order_number,
    )

    result = deliver(
        session,
        channel=Channel.email,
        recipient=profile.email,
        content=body,
        send=lambda: email_client.send(profile.email, subject or "New Message", html),
        order_id=order_id,
        customer_id=recipient_id,
    )
    session.commit()

    return {"success": result["success"], "emailSent": result["success"], "error": result["error"]}
