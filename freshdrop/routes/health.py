import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlmodel import Session

from freshdrop.database import get_session
from freshdrop.services.email_service import EmailClient, get_email_client
from freshdrop.services.sms_service import SmsClient, get_sms_client

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/check")
def health_check(
    session: Session = Depends(get_session),
    email_client: EmailClient = Depends(get_email_client),
    sms_client: SmsClient = Depends(get_sms_client),
):
    db_status = "ok"

    try:
        session.connection().exec_driver_sql("SELECT 1")
    except Exception:
        logger.exception("Database health check failed")
        db_status = "failed"

    return {
        "status": "ok",
        "database": db_status,
        "email_provider": "configured" if email_client.is_configured else "missing",
        "sms_provider": "configured" if sms_client.is_configured else "missing",
        "timestamp": datetime.utcnow().isoformat()
    }
