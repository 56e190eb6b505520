from freshdrop.notifications.events import NotificationEvent
from freshdrop.notifications.channels import Channel


NOTIFICATION_RULES = {

    NotificationEvent.ORDER_UPDATE: {
        Channel.email: True,
        Channel.sms: True,
    },

    NotificationEvent.ORDER_MESSAGE: {
        Channel.email: True,
    },

    NotificationEvent.NEW_ORDER: {
        Channel.push: True,
        Channel.sms: True,
        Channel.email: True,
    },

    NotificationEvent.BROADCAST: {
        Channel.push: True,
        Channel.sms: True,
        Channel.email: True,
    },

}


def channel_enabled(event: NotificationEvent, channel: Channel) -> bool:
    return NOTIFICATION_RULES.get(event, {}).get(channel, False)
