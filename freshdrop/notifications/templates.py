"""
Placeholder rendering for notification templates stored as data.

Templates use ``{tokenName}`` placeholders. Only the tokens listed in
TOKEN_DEFAULTS are substituted:

- a whitelisted token missing from the context (or set to None) renders
  as its default, which is the empty string except for the greeting
  tokens ``customerName`` and ``firstName``
- anything else in braces is left exactly as written

Rendering never raises on template content.
"""

import re
from typing import Mapping, Optional

TOKEN_DEFAULTS = {
    "operatorName": "",
    "serviceName": "",
    "zipCode": "",
    "earnings": "",
    "orderId": "",
    "orderNumber": "",
    "expressBadge": "",
    "expressText": "",
    "message": "",
    "customerName": "Valued Customer",
    "firstName": "Friend",
    "lastName": "",
}

TOKEN_PATTERN = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


def render(text: Optional[str], context: Optional[Mapping] = None) -> str:
    if not text:
        return ""

    context = context or {}

    def substitute(match):
        token = match.group(1)
        if token not in TOKEN_DEFAULTS:
            return match.group(0)

        value = context.get(token)
        if value is None or value == "":
            return TOKEN_DEFAULTS[token]
        return str(value)

    return TOKEN_PATTERN.sub(substitute, text)


def format_cents(cents: Optional[int]) -> str:
    if cents is None:
        return ""
    return f"{cents / 100:.2f}"


def customer_context(profile=None, **extra) -> dict:
    context = {}
    if profile is not None:
        context["firstName"] = profile.first_name
        context["lastName"] = profile.last_name
        context["customerName"] = profile.first_name
    context.update({k: v for k, v in extra.items() if v is not None})
    return context


def operator_order_context(order=None, operator=None, message=None, **extra) -> dict:
    context = {"message": message}

    if operator is not None:
        context["operatorName"] = operator.full_name or "Operator"

    if order is not None:
        earnings = order.operator_earnings_cents
        if earnings is None:
            earnings = order.total_amount_cents

        context.update(
            {
                "serviceName": order.service_name,
                "zipCode": order.zip_code,
                "earnings": format_cents(earnings),
                "orderId": order.id,
                "orderNumber": order.order_number or order.id,
                "expressBadge": "\n- Express Service" if order.is_express else "",
                "expressText": " (Express)" if order.is_express else "",
            }
        )

    context.update({k: v for k, v in extra.items() if v is not None})
    return context


# Built-in texts used when no active template row exists.

DEFAULT_ORDER_MESSAGES = {
    "unclaimed": {
        "subject": "Order Confirmed - Looking for Operator",
        "message": "Your order has been confirmed! We're finding the perfect operator to handle your laundry.",
    },
    "claimed": {
        "subject": "Order Claimed - Operator Assigned",
        "message": "Great news! An operator has been assigned to your order and will contact you soon.",
    },
    "picked_up": {
        "subject": "Laundry Picked Up",
        "message": "Your laundry has been picked up and is on its way to our facility!",
    },
    "washing": {
        "subject": "Laundry Being Washed",
        "message": "Your laundry is currently being washed with care!",
    },
    "rinsing": {
        "subject": "Rinse Cycle - Fresh Drop",
        "message": "Your laundry is in the rinse cycle, almost ready for drying.",
    },
    "drying": {
        "subject": "Laundry Being Dried",
        "message": "Your laundry has been washed and is now being dried!",
    },
    "folding": {
        "subject": "Folding & Packaging - Fresh Drop",
        "message": "Your clean laundry is being carefully folded and packaged for delivery.",
    },
    "delivering": {
        "subject": "Out for Delivery - Fresh Drop",
        "message": "Your fresh, clean laundry is out for delivery and will arrive soon!",
    },
    "folded": {
        "subject": "Laundry Folded & Ready",
        "message": "Your laundry has been cleaned, dried, and neatly folded!",
    },
    "in_progress": {
        "subject": "Laundry In Progress",
        "message": "Your laundry is currently being processed. We'll notify you when it's ready!",
    },
    "completed": {
        "subject": "Order Complete - Ready for Delivery",
        "message": "Your laundry is clean and ready! It will be delivered to you soon.",
    },
    "delivered": {
        "subject": "Order Delivered",
        "message": "Your clean laundry has been delivered! Thank you for choosing FreshDrop.",
    },
    "cancelled": {
        "subject": "Order Cancelled",
        "message": "Your order has been cancelled. If you have any questions, please contact support.",
    },
}

# keyed by (notification_type, channel)
DEFAULT_OPERATOR_TEMPLATES = {
    ("new_order", "email"): {
        "subject": "New Order Available - {serviceName}",
        "message": (
            "Hello {operatorName},\n\n"
            "A new order is available in your area!\n\n"
            "Order Details:\n"
            "- Service: {serviceName}\n"
            "- Location: {zipCode}\n"
            "- Estimated Earnings: ${earnings}\n"
            "{expressBadge}\n\n"
            "Order ID: {orderId}\n\n"
            "Log into the FreshDrop app to claim this order.\n\n"
            "Best regards,\nFreshDrop Team"
        ),
    },
    ("new_order", "sms"): {
        "subject": "FreshDrop: New Order Available",
        "message": "New order available! {serviceName} in {zipCode} - ${earnings}{expressText}. Order: {orderNumber}",
    },
    ("broadcast", "email"): {
        "subject": "Important Update from FreshDrop",
        "message": "Hello {operatorName},\n\n{message}\n\nBest regards,\nFreshDrop Team",
    },
    ("broadcast", "sms"): {
        "subject": "FreshDrop Update",
        "message": "{message}",
    },
}
