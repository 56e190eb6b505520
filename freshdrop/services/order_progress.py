import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Optional

from sqlmodel import Session

from freshdrop.constants.order_status import (
    ORDER_STEPS,
    STATUS_PROGRESS,
    STEP_PHASES,
    TOTAL_STEPS,
    UNKNOWN_PROGRESS,
    can_transition,
)
from freshdrop.exceptions import InvalidStatusTransition
from freshdrop.models.order import Order
from freshdrop.services.order_event_service import log_order_event

logger = logging.getLogger(__name__)


@dataclass
class ProgressInfo:
    progress: float
    label: str
    description: str
    icon: str
    animate: bool = False

    def to_dict(self):
        return asdict(self)


def get_progress(status: Optional[str], step: Optional[int] = None) -> ProgressInfo:
    """
    Customer-facing progress for an order.

    A step number above 1 wins over the status. Without one the coarse
    status table applies, and unknown statuses report 0%.
    """
    if step and step > 1:
        step = min(step, TOTAL_STEPS)
        percent = min(step / TOTAL_STEPS * 100, 100)

        for last_step, label, description, floor, icon, animate in STEP_PHASES:
            if step <= last_step:
                progress = 100 if step == TOTAL_STEPS else max(percent, floor)
                return ProgressInfo(progress, label, description, icon.value, animate)

    progress, label, description, icon, animate = STATUS_PROGRESS.get(
        status, UNKNOWN_PROGRESS
    )
    return ProgressInfo(progress, label, description, icon.value, animate)


def step_label(step: Optional[int]) -> Optional[str]:
    return ORDER_STEPS.get(step) if step else None


def apply_status_change(
    session: Session,
    order: Order,
    new_status: str,
    step: Optional[int] = None,
    changed_by: str = "system",
) -> Order:
    """Move an order forward. Regressions and skipped-over terminals are rejected."""
    old_status = order.status

    if new_status != old_status and not can_transition(old_status, new_status):
        raise InvalidStatusTransition(
            f"Cannot change order status from '{old_status}' to '{new_status}'"
        )

    if step is not None:
        if step < 1 or step > TOTAL_STEPS:
            raise InvalidStatusTransition(f"Step must be between 1 and {TOTAL_STEPS}")
        if order.current_step and step < order.current_step:
            raise InvalidStatusTransition(
                f"Cannot move order back from step {order.current_step} to {step}"
            )

    if new_status == old_status and (step is None or step == order.current_step):
        raise InvalidStatusTransition(f"Order is already '{old_status}'")

    now = datetime.utcnow()
    order.status = new_status
    if step is not None:
        order.current_step = step
    if new_status == "claimed" and order.claimed_at is None:
        order.claimed_at = now
    if new_status in ("completed", "delivered") and order.completed_at is None:
        order.completed_at = now
    order.updated_at = now
    session.add(order)

    log_order_event(
        session,
        order_id=order.id,
        event_type="status_changed",
        from_status=old_status,
        to_status=new_status,
        created_by=changed_by,
        meta={"step": order.current_step},
    )

    logger.info(f"Order {order.id} moved {old_status} -> {new_status} (step {order.current_step})")
    return order
