import logging
import re
from typing import Optional

import requests

from freshdrop.config import settings
from freshdrop.services.delivery import DeliveryResult, error_excerpt

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"^\+?[0-9][0-9\s\-().]{6,}$")


def is_valid_phone(phone) -> bool:
    if not phone:
        return False
    return PHONE_PATTERN.match(phone.strip()) is not None


class SmsClient:
    """SMS over the Twilio Messages REST API (form-encoded, basic auth)."""

    def __init__(
        self,
        account_sid: Optional[str],
        auth_token: Optional[str],
        from_phone: Optional[str],
        base_url: str = "https://api.twilio.com",
        timeout: float = 10,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_phone = from_phone
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_phone)

    def send(self, to: str, body: str) -> DeliveryResult:
        if not self.is_configured:
            return DeliveryResult.failed("Twilio credentials missing")

        if not is_valid_phone(to):
            logger.warning(f"Invalid phone number: {to}")
            return DeliveryResult.failed(f"Invalid phone number: {to}")

        endpoint = (
            f"{self.base_url}/2010-04-01/Accounts/{self.account_sid}/Messages.json"
        )

        response = requests.post(
            endpoint,
            data={"From": self.from_phone, "To": to, "Body": body},
            auth=(self.account_sid, self.auth_token),
            timeout=self.timeout,
        )

        if not response.ok:
            logger.error(f"Twilio SMS failed ({response.status_code}): {response.text}")
            return DeliveryResult.failed(error_excerpt(response))

        sid = response.json().get("sid")
        logger.info(f"SMS sent to {to} ({sid})")
        return DeliveryResult.ok(sid)


def get_sms_client() -> SmsClient:
    return SmsClient(
        account_sid=settings.twilio_account_sid,
        auth_token=settings.twilio_auth_token,
        from_phone=settings.twilio_phone_number,
        base_url=settings.twilio_api_base_url,
        timeout=settings.http_timeout_seconds,
    )
