from datetime import datetime
from typing import Optional
from uuid import uuid4
from sqlmodel import Session
from freshdrop.models.order_event import OrderEvent


def log_order_event(
    session: Session,
    order_id: str,
    event_type: str,
    from_status: Optional[str] = None,
    to_status: Optional[str] = None,
    created_by: str = "system",
    meta: Optional[dict] = None,
):
    """
    Append-only event log for the order timeline
    """

    event = OrderEvent(
        id=str(uuid4()),
        order_id=order_id,
        event_type=event_type,
        from_status=from_status,
        to_status=to_status,
        meta=meta,
        created_by=created_by,
        created_at=datetime.utcnow(),
    )

    session.add(event)
    return event
