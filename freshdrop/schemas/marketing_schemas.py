from pydantic import BaseModel
from typing import Optional

from freshdrop.models.marketing import TriggerType


class MarketingAutomationRequest(BaseModel):
    campaignId: str
    customerId: Optional[str] = None
    triggerType: Optional[str] = None
    delay: int = 0  # minutes


class BehavioralTriggersRequest(BaseModel):
    triggerType: Optional[TriggerType] = None
