from enum import Enum


class NotificationEvent(str, Enum):
    ORDER_UPDATE = "order_update"
    ORDER_MESSAGE = "message"
    NEW_ORDER = "new_order"
    BROADCAST = "broadcast"
