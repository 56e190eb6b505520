import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlmodel import Session, func, select

from freshdrop.constants.order_status import ACTIVE_STATUSES
from freshdrop.exceptions import ActiveOrdersError
from freshdrop.models.account_deletion import (
    AccountDeletionRequest,
    DataExportLog,
    DeletionStatus,
)
from freshdrop.models.order import Order
from freshdrop.models.profile import Profile

logger = logging.getLogger(__name__)

DELETION_GRACE_DAYS = 7


def count_active_orders(session: Session, user_id: str) -> int:
    return session.exec(
        select(func.count(Order.id))
        .where(Order.customer_id == user_id)
        .where(Order.status.in_(ACTIVE_STATUSES))
    ).one()


def disable_account(session: Session, profile: Profile, now: datetime):
    profile.account_disabled = True
    profile.pending_deletion = True
    profile.deletion_requested_at = now
    session.add(profile)


def request_account_deletion(
    session: Session,
    profile: Profile,
    *,
    reason: Optional[str] = None,
    request_data_export: bool = False,
    now: Optional[datetime] = None,
) -> dict:
    now = now or datetime.utcnow()

    # checked on every call, including repeats of an existing request
    active = count_active_orders(session, profile.id)
    if active:
        logger.info(f"Deletion blocked for {profile.id}: {active} active orders")
        raise ActiveOrdersError(active)

    existing = session.exec(
        select(AccountDeletionRequest)
        .where(AccountDeletionRequest.user_id == profile.id)
        .where(AccountDeletionRequest.status == DeletionStatus.pending)
    ).first()

    if existing:
        logger.info(f"Existing deletion request {existing.id} for {profile.id}")
        disable_account(session, profile, now)
        session.commit()
        session.refresh(existing)
        return {
            "success": True,
            "message": "Account deletion request processed successfully",
            "scheduledDeletion": existing.scheduled_deletion_at.isoformat(),
            "requestId": existing.id,
            "dataExportRequested": existing.data_export_requested,
        }

    disable_account(session, profile, now)

    deletion = AccountDeletionRequest(
        user_id=profile.id,
        reason=reason or None,
        status=DeletionStatus.pending,
        data_export_requested=request_data_export,
        confirmation_token=secrets.token_urlsafe(32),
        scheduled_deletion_at=now + timedelta(days=DELETION_GRACE_DAYS),
        created_at=now,
    )
    session.add(deletion)
    session.commit()
    session.refresh(deletion)

    if request_data_export:
        try:
            session.add(
                DataExportLog(
                    user_id=profile.id,
                    export_type="account_deletion",
                    status="requested",
                )
            )
            session.commit()
        except Exception:
            # the deletion request stands even if the export log fails
            session.rollback()
            logger.exception(f"Could not record data export for {profile.id}")

    logger.info(
        f"Account deletion requested for {profile.id}, "
        f"scheduled {deletion.scheduled_deletion_at.isoformat()}"
    )

    return {
        "success": True,
        "message": "Account deletion request submitted successfully",
        "scheduledDeletion": deletion.scheduled_deletion_at.isoformat(),
        "requestId": deletion.id,
        "dataExportRequested": request_data_export,
    }
