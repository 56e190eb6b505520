"""
Cron entrypoint for the behavioral trigger scan.

    python -m freshdrop.jobs.behavioral_triggers [trigger_type]
"""

import logging
import sys

from sqlmodel import Session

from freshdrop.config import settings
from freshdrop.database import engine
from freshdrop.services.behavioral_triggers import run_behavioral_triggers
from freshdrop.services.email_service import build_email_client

logger = logging.getLogger(__name__)


def run_behavioral_triggers_job(trigger_type=None):
    email_client = build_email_client(settings.marketing_mail_from)

    with Session(engine) as session:
        result = run_behavioral_triggers(session, email_client, trigger_type=trigger_type)

    dispatched = sum(t["dispatched"] for t in result["triggers"])
    errors = sum(t["errors"] for t in result["triggers"])
    logger.info(
        f"Behavioral trigger job finished: {len(result['triggers'])} triggers, "
        f"{dispatched} dispatched, {errors} errors"
    )
    return result


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level)
    run_behavioral_triggers_job(sys.argv[1] if len(sys.argv) > 1 else None)
