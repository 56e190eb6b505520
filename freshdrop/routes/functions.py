from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from freshdrop.database import get_session
from freshdrop.dependencies.admin import require_admin, require_admin_or_service
from freshdrop.models.profile import Profile
from freshdrop.notifications.events import NotificationEvent
from freshdrop.schemas.account_schemas import AccountDeletionCreate, OperatorApprovalRequest
from freshdrop.schemas.marketing_schemas import (
    BehavioralTriggersRequest,
    MarketingAutomationRequest,
)
from freshdrop.schemas.notification_schemas import (
    NotifyOperatorsRequest,
    OrderNotificationRequest,
)
from freshdrop.services.account_deletion import request_account_deletion
from freshdrop.services.behavioral_triggers import run_behavioral_triggers
from freshdrop.services.campaign_dispatcher import dispatch_campaign
from freshdrop.services.email_service import EmailClient, get_email_client
from freshdrop.services.operator_approval import approve_operator
from freshdrop.services.operator_notifier import notify_operators
from freshdrop.services.order_notifier import notify_order_message, notify_order_status
from freshdrop.services.sms_service import SmsClient, get_sms_client
from freshdrop.utils.token import Principal, get_current_principal, get_current_user

router = APIRouter()


@router.post("/send-order-notifications")
def send_order_notifications(
    data: OrderNotificationRequest,
    session: Session = Depends(get_session),
    email_client: EmailClient = Depends(get_email_client),
    sms_client: SmsClient = Depends(get_sms_client),
    principal: Principal = Depends(get_current_principal),
):
    if data.notification_type == NotificationEvent.ORDER_MESSAGE.value:
        return notify_order_message(
            session,
            email_client,
            customer_id=data.customer_id,
            operator_id=data.operator_id,
            order_id=data.order_id,
            subject=data.subject,
            message=data.message,
            sender_name=data.sender_name,
        )

    if not data.orderId or not data.customerId or not data.status:
        raise HTTPException(400, "Missing required fields for order notification")

    channels = data.channels.model_dump(exclude_none=True) if data.channels else {}

    return notify_order_status(
        session,
        email_client,
        sms_client,
        order_id=data.orderId,
        customer_id=data.customerId,
        status=data.status,
        step=data.step or data.currentStep,
        customer_email=data.customerEmail,
        customer_phone=data.customerPhone,
        customer_name=data.customerName,
        order_number=data.orderNumber,
        channels=channels,
    )


@router.post("/notify-operators")
def notify_operators_route(
    data: NotifyOperatorsRequest,
    session: Session = Depends(get_session),
    email_client: EmailClient = Depends(get_email_client),
    sms_client: SmsClient = Depends(get_sms_client),
    principal: Principal = Depends(require_admin_or_service),
):
    try:
        event = NotificationEvent(data.type)
    except ValueError:
        raise HTTPException(400, f"Unsupported notification type: {data.type}")

    if event not in (NotificationEvent.NEW_ORDER, NotificationEvent.BROADCAST):
        raise HTTPException(400, f"Unsupported notification type: {data.type}")

    zip_codes = data.zipCodes
    if not zip_codes and data.orderData and data.orderData.zipCode:
        zip_codes = [data.orderData.zipCode]

    return notify_operators(
        session,
        email_client,
        sms_client,
        event=event,
        title=data.title,
        message=data.message,
        zip_codes=zip_codes,
        order_id=data.orderId,
        order_data=data.orderData,
    )


@router.post("/marketing-automation")
def marketing_automation(
    data: MarketingAutomationRequest,
    session: Session = Depends(get_session),
    email_client: EmailClient = Depends(get_email_client),
    principal: Principal = Depends(require_admin_or_service),
):
    if data.delay < 0:
        raise HTTPException(400, "delay must not be negative")

    return dispatch_campaign(
        session,
        email_client,
        campaign_id=data.campaignId,
        customer_id=data.customerId,
        delay_minutes=data.delay,
    )


@router.post("/behavioral-triggers")
def behavioral_triggers(
    data: BehavioralTriggersRequest = BehavioralTriggersRequest(),
    session: Session = Depends(get_session),
    email_client: EmailClient = Depends(get_email_client),
    principal: Principal = Depends(require_admin_or_service),
):
    trigger_type = data.triggerType.value if data.triggerType else None
    return run_behavioral_triggers(session, email_client, trigger_type=trigger_type)


@router.post("/request-account-deletion")
def request_account_deletion_route(
    data: AccountDeletionCreate = AccountDeletionCreate(),
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
):
    return request_account_deletion(
        session,
        current_user,
        reason=data.reason,
        request_data_export=data.requestDataExport,
    )


@router.post("/operator-approval-notification")
def operator_approval_notification(
    data: OperatorApprovalRequest,
    session: Session = Depends(get_session),
    email_client: EmailClient = Depends(get_email_client),
    admin: Profile = Depends(require_admin),
):
    return approve_operator(session, email_client, data.approval_data)
