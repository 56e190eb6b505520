from .channels import Channel
from .events import NotificationEvent
from .templates import render

__all__ = [
    "Channel",
    "NotificationEvent",
    "render",
]
