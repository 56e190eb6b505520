from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from freshdrop.database import get_session
from freshdrop.dependencies.admin import require_operator
from freshdrop.exceptions import InvalidStatusTransition
from freshdrop.models.order import Order
from freshdrop.models.profile import Profile, ProfileRole
from freshdrop.schemas.order_schemas import OrderStatusUpdate, ProgressResponse
from freshdrop.services.email_service import EmailClient, get_email_client
from freshdrop.services.order_notifier import notify_order_status
from freshdrop.services.order_progress import apply_status_change, get_progress, step_label
from freshdrop.services.sms_service import SmsClient, get_sms_client
from freshdrop.utils.token import get_current_user

router = APIRouter()


def progress_payload(order: Order) -> dict:
    info = get_progress(order.status, order.current_step)
    return ProgressResponse(
        order_id=order.id,
        status=order.status,
        step=order.current_step,
        step_label=step_label(order.current_step),
        **info.to_dict(),
    ).model_dump()


@router.get("/{order_id}/progress")
def get_order_progress(
    order_id: str,
    session: Session = Depends(get_session),
    current_user: Profile = Depends(get_current_user),
):
    order = session.get(Order, order_id)
    if not order:
        raise HTTPException(404, "Order not found")

    allowed = (
        current_user.role == ProfileRole.admin
        or order.customer_id == current_user.id
        or order.operator_id == current_user.id
    )
    if not allowed:
        raise HTTPException(403, "Not authorized to view this order")

    return progress_payload(order)


@router.patch("/{order_id}/status")
def update_order_status(
    order_id: str,
    data: OrderStatusUpdate,
    session: Session = Depends(get_session),
    email_client: EmailClient = Depends(get_email_client),
    sms_client: SmsClient = Depends(get_sms_client),
    current_user: Profile = Depends(require_operator),
):
    order = session.get(Order, order_id)
    if not order:
        raise HTTPException(404, "Order not found")

    if current_user.role != ProfileRole.admin:
        if order.operator_id is None and data.status == "claimed":
            order.operator_id = current_user.id
        elif order.operator_id != current_user.id:
            raise HTTPException(403, "Order is assigned to another operator")

    old_status = order.status
    try:
        apply_status_change(
            session, order, data.status, step=data.step, changed_by=current_user.id
        )
    except InvalidStatusTransition as e:
        session.rollback()
        raise HTTPException(400, e.message)

    session.commit()
    session.refresh(order)

    notification = None
    if data.notify and order.status != old_status:
        notification = notify_order_status(
            session,
            email_client,
            sms_client,
            order_id=order.id,
            customer_id=order.customer_id,
            status=order.status,
            step=data.step,
        )

    return {
        "success": True,
        "order": progress_payload(order),
        "notification": notification,
    }
