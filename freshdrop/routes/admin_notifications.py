from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from freshdrop.database import get_session
from freshdrop.dependencies.admin import require_admin
from freshdrop.models.notifications import (
    NotificationDeliveryLog,
    NotificationLog,
    NotificationStatus,
)
from freshdrop.models.profile import Profile
from freshdrop.notifications.channels import Channel

router = APIRouter()


def log_to_dict(row: NotificationLog):
    return {
        "id": row.id,
        "order_id": row.order_id,
        "customer_id": row.customer_id,
        "notification_type": row.notification_type,
        "recipient": row.recipient,
        "message_content": row.message_content,
        "status": row.status,
        "error_message": row.error_message,
        "provider_message_id": row.provider_message_id,
        "created_at": row.created_at,
        "sent_at": row.sent_at,
    }


def delivery_to_dict(row: NotificationDeliveryLog):
    return {
        "id": row.id,
        "customer_id": row.customer_id,
        "campaign_id": row.campaign_id,
        "template_id": row.template_id,
        "recipient": row.recipient,
        "subject": row.subject,
        "status": row.status,
        "delivery_provider": row.delivery_provider,
        "provider_message_id": row.provider_message_id,
        "error_message": row.error_message,
        "created_at": row.created_at,
        "sent_at": row.sent_at,
    }


@router.get("/logs")
def list_notification_logs(
    channel: Optional[Channel] = None,
    status: Optional[NotificationStatus] = None,
    order_id: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    session: Session = Depends(get_session),
    admin: Profile = Depends(require_admin),
):
    query = select(NotificationLog)

    if channel:
        query = query.where(NotificationLog.notification_type == channel)
    if status:
        query = query.where(NotificationLog.status == status)
    if order_id:
        query = query.where(NotificationLog.order_id == order_id)

    rows = session.exec(
        query.order_by(NotificationLog.created_at.desc(), NotificationLog.id.desc()).limit(limit)
    ).all()

    return [log_to_dict(r) for r in rows]


@router.get("/logs/{log_id}")
def view_notification_log(
    log_id: int,
    session: Session = Depends(get_session),
    admin: Profile = Depends(require_admin),
):
    row = session.get(NotificationLog, log_id)

    if not row:
        raise HTTPException(404, "Notification log not found")

    return log_to_dict(row)


@router.get("/delivery-logs")
def list_delivery_logs(
    campaign_id: Optional[str] = None,
    customer_id: Optional[str] = None,
    status: Optional[NotificationStatus] = None,
    limit: int = Query(50, ge=1, le=500),
    session: Session = Depends(get_session),
    admin: Profile = Depends(require_admin),
):
    query = select(NotificationDeliveryLog)

    if campaign_id:
        query = query.where(NotificationDeliveryLog.campaign_id == campaign_id)
    if customer_id:
        query = query.where(NotificationDeliveryLog.customer_id == customer_id)
    if status:
        query = query.where(NotificationDeliveryLog.status == status)

    rows = session.exec(
        query.order_by(
            NotificationDeliveryLog.created_at.desc(), NotificationDeliveryLog.id.desc()
        ).limit(limit)
    ).all()

    return [delivery_to_dict(r) for r in rows]
