import logging

from sqlmodel import Session, select

from freshdrop.exceptions import DeliveryError, InvalidApplicant
from freshdrop.models.profile import Profile, ProfileRole
from freshdrop.models.washer import Washer
from freshdrop.notifications.channels import Channel
from freshdrop.notifications.dispatcher import deliver
from freshdrop.notifications.email_handlers import operator_approved_html
from freshdrop.services.email_service import EmailClient

logger = logging.getLogger(__name__)

APPROVAL_SUBJECT = "Congratulations! Your FreshDrop Application Has Been Approved"


def approve_operator(session: Session, email_client: EmailClient, approval) -> dict:
    """
    Promote an applicant to operator, open a washer record for their zip
    code and send the approval email. Credentials are issued by the auth
    provider, never emailed.
    """
    profile = session.exec(
        select(Profile).where(Profile.email == approval.email)
    ).first()

    if profile is not None and profile.role == ProfileRole.admin:
        raise InvalidApplicant("Admin accounts cannot be approved as operators")

    if profile is None:
        profile = Profile(
            email=approval.email,
            first_name=approval.first_name,
            last_name=approval.last_name,
            phone=approval.phone,
        )
    profile.role = ProfileRole.operator
    session.add(profile)
    session.flush()

    washer = session.exec(select(Washer).where(Washer.user_id == profile.id)).first()
    if washer is None:
        washer = Washer(
            user_id=profile.id,
            zip_codes=[approval.zip_code] if approval.zip_code else [],
            is_active=True,
            is_verified=False,
        )
        session.add(washer)
    session.commit()
    session.refresh(profile)
    session.refresh(washer)

    html = operator_approved_html(
        first_name=profile.first_name,
        email=profile.email,
        zip_code=approval.zip_code or ", ".join(washer.zip_codes or []),
    )
    result = deliver(
        session,
        channel=Channel.email,
        recipient=profile.email,
        content=APPROVAL_SUBJECT,
        send=lambda: email_client.send(profile.email, APPROVAL_SUBJECT, html),
        customer_id=profile.id,
    )
    session.commit()

    if not result["success"]:
        raise DeliveryError("Failed to send email", details=result["error"])

    logger.info(f"Operator {profile.id} approved, email sent to {profile.email}")

    return {
        "success": True,
        "message": "Operator approved and notified",
        "userId": profile.id,
        "washerId": washer.id,
    }
