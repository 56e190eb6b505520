import logging
from typing import List, Optional

from sqlmodel import Session, select

from freshdrop.models.notifications import NotificationStatus, NotificationTemplate
from freshdrop.models.order import Order
from freshdrop.models.profile import Profile
from freshdrop.models.washer import Washer
from freshdrop.notifications.channels import Channel
from freshdrop.notifications.dispatcher import deliver, record_skipped
from freshdrop.notifications.email_handlers import plain_message_html
from freshdrop.notifications.events import NotificationEvent
from freshdrop.notifications.rules import channel_enabled
from freshdrop.notifications.templates import (
    DEFAULT_OPERATOR_TEMPLATES,
    operator_order_context,
    render,
)
from freshdrop.services.email_service import EmailClient
from freshdrop.services.notification_logger import log_notification
from freshdrop.services.sms_service import SmsClient

logger = logging.getLogger(__name__)


def find_operators(session: Session, event: NotificationEvent, zip_codes=None) -> List[Washer]:
    query = (
        select(Washer)
        .where(Washer.is_active == True)  # noqa: E712
        .where(Washer.notifications_enabled == True)  # noqa: E712
    )

    if event == NotificationEvent.NEW_ORDER:
        if not zip_codes:
            return []
        query = query.where(Washer.is_online == True)  # noqa: E712
        # JSON overlap is checked in Python to stay portable across backends
        return [w for w in session.exec(query).all() if w.serves(zip_codes)]

    return list(session.exec(query).all())


def operator_template(session: Session, event: NotificationEvent, channel: Channel):
    template = session.exec(
        select(NotificationTemplate)
        .where(NotificationTemplate.notification_type == event.value)
        .where(NotificationTemplate.channel == channel)
        .where(NotificationTemplate.is_active == True)  # noqa: E712
        .where(NotificationTemplate.is_deleted == False)  # noqa: E712
        .order_by(NotificationTemplate.id.desc())
    ).first()

    if template:
        return template.subject or "", template.message

    default = DEFAULT_OPERATOR_TEMPLATES.get((event.value, channel.value))
    if default:
        return default["subject"], default["message"]
    return None


def order_for_request(session, order_id, order_data) -> Optional[Order]:
    order = session.get(Order, order_id) if order_id else None
    if order is not None or order_data is None:
        return order

    # unsaved stand-in so request-only order data renders the same tokens
    return Order(
        id=order_id or "",
        customer_id="",
        service_name=order_data.serviceName,
        zip_code=order_data.zipCode,
        total_amount_cents=order_data.totalAmount or 0,
        is_express=order_data.isExpress,
    )


def notify_operators(
    session: Session,
    email_client: EmailClient,
    sms_client: SmsClient,
    *,
    event: NotificationEvent,
    title: str,
    message: str,
    zip_codes=None,
    order_id: Optional[str] = None,
    order_data=None,
) -> dict:
    operators = find_operators(session, event, zip_codes)
    logger.info(f"Found {len(operators)} operators to notify for {event.value}")

    order = order_for_request(session, order_id, order_data)

    results = []
    successful = 0
    failed = 0

    for washer in operators:
        profile = session.get(Profile, washer.user_id)
        context = operator_order_context(order, profile, message=message)
        sent = []
        errors = []

        if washer.push_notification_token and channel_enabled(event, Channel.push):
            # push delivery is not wired up yet; the attempt is recorded
            log_notification(
                session,
                channel=Channel.push,
                recipient=washer.push_notification_token,
                content=message,
                status=NotificationStatus.sent,
                order_id=order_id,
                customer_id=washer.user_id,
            )
            sent.append(Channel.push.value)

        if (
            profile is not None
            and profile.opt_in_sms
            and profile.phone
            and channel_enabled(event, Channel.sms)
        ):
            result = _send_sms(session, sms_client, event, profile, context, title, order_id)
            if result["success"]:
                sent.append(Channel.sms.value)
            else:
                errors.append(result["error"])

        if profile is not None and profile.email and channel_enabled(event, Channel.email):
            result = _send_email(session, email_client, event, profile, context, title, order_id)
            if result["success"]:
                sent.append(Channel.email.value)
            else:
                errors.append(result["error"])

        if errors and not sent:
            failed += 1
        else:
            successful += 1

        results.append(
            {"operatorId": washer.user_id, "notificationsSent": sent, "errors": errors}
        )

    session.commit()

    logger.info(
        f"Operator notifications completed: {successful} successful, {failed} failed"
    )

    return {
        "success": True,
        "operatorsNotified": len(operators),
        "successfulNotifications": successful,
        "failedNotifications": failed,
        "results": results,
    }


def _send_sms(session, sms_client, event, profile, context, title, order_id):
    resolved = operator_template(session, event, Channel.sms)
    body = render(resolved[1], context) if resolved else title

    if not sms_client.is_configured:
        return record_skipped(
            session,
            channel=Channel.sms,
            recipient=profile.phone,
            content=body,
            error="Twilio credentials missing",
            order_id=order_id,
            customer_id=profile.id,
        )

    return deliver(
        session,
        channel=Channel.sms,
        recipient=profile.phone,
        content=body,
        send=lambda: sms_client.send(profile.phone, body),
        order_id=order_id,
        customer_id=profile.id,
    )


def _send_email(session, email_client, event, profile, context, title, order_id):
    resolved = operator_template(session, event, Channel.email)
    if resolved:
        subject, message = render(resolved[0], context), render(resolved[1], context)
    else:
        subject, message = title, context.get("message") or ""

    html = plain_message_html(message, heading=subject)
    return deliver(
        session,
        channel=Channel.email,
        recipient=profile.email,
        content=message,
        send=lambda: email_client.send(profile.email, subject, html),
        order_id=order_id,
        customer_id=profile.id,
    )
