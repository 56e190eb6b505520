from dataclasses import dataclass
from typing import Optional


@dataclass
class DeliveryResult:
    """Outcome of a single provider call."""

    success: bool
    provider_message_id: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, provider_message_id=None):
        return cls(success=True, provider_message_id=provider_message_id)

    @classmethod
    def failed(cls, error):
        return cls(success=False, error=error)


def error_excerpt(response, limit=300):
    return f"HTTP {response.status_code}: {response.text[:limit]}"
