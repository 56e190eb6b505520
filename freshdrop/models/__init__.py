from freshdrop.models.profile import Profile
from freshdrop.models.order import Order
from freshdrop.models.order_event import OrderEvent
from freshdrop.models.washer import Washer
from freshdrop.models.notifications import (
    NotificationTemplate,
    NotificationLog,
    NotificationDeliveryLog,
)
from freshdrop.models.marketing import (
    MarketingCampaign,
    CustomerSegment,
    CampaignTrigger,
    CampaignAnalytics,
)
from freshdrop.models.account_deletion import AccountDeletionRequest, DataExportLog

# add ALL models here
