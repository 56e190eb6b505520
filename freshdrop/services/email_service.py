import logging
import re
from typing import List, Optional, Union

import requests

from freshdrop.config import settings
from freshdrop.services.delivery import DeliveryResult, error_excerpt

logger = logging.getLogger(__name__)


def is_valid_email(email):
    if isinstance(email, list):
        return all(is_valid_email(e) for e in email)

    if not email:
        return False

    return re.match(r"[^@]+@[^@]+\.[^@]+", email) is not None


class EmailClient:
    """Transactional email over the Resend HTTP API."""

    def __init__(
        self,
        api_key: Optional[str],
        from_email: str,
        base_url: str = "https://api.resend.com",
        timeout: float = 10,
    ):
        self.api_key = api_key
        self.from_email = from_email
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def send(
        self,
        to: Union[str, List[str]],
        subject: str,
        html: str,
        from_email: Optional[str] = None,
    ) -> DeliveryResult:
        if not self.is_configured:
            return DeliveryResult.failed("Email provider is not configured")

        recipients = to if isinstance(to, list) else [to]
        if not recipients or not is_valid_email(recipients):
            logger.warning(f"No valid emails found: {to}")
            return DeliveryResult.failed(f"Invalid email address: {to}")

        payload = {
            "from": from_email or self.from_email,
            "to": recipients,
            "subject": subject,
            "html": html,
        }

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        # transport errors propagate; callers record them per recipient
        response = requests.post(
            f"{self.base_url}/emails",
            json=payload,
            headers=headers,
            timeout=self.timeout,
        )

        if response.status_code >= 400:
            logger.error(
                f"Resend email failed ({response.status_code}): {response.text}"
            )
            return DeliveryResult.failed(error_excerpt(response))

        message_id = response.json().get("id")
        logger.info(f"Email sent to {recipients} ({message_id})")
        return DeliveryResult.ok(message_id)


def build_email_client(from_email: Optional[str] = None) -> EmailClient:
    return EmailClient(
        api_key=settings.resend_api_key,
        from_email=from_email or settings.mail_from,
        base_url=settings.resend_api_base_url,
        timeout=settings.http_timeout_seconds,
    )


def get_email_client() -> EmailClient:
    return build_email_client()
