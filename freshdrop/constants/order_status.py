from enum import Enum


class OrderStatus(str, Enum):
    placed = "placed"
    unclaimed = "unclaimed"
    claimed = "claimed"
    picked_up = "picked_up"
    in_progress = "in_progress"
    washed = "washed"
    folded = "folded"
    completed = "completed"
    delivered = "delivered"
    cancelled = "cancelled"


ORDER_STEPS = {
    1: "Order Confirmed",
    2: "Operator Assigned",
    3: "Heading to Pickup",
    4: "Arrived at Pickup",
    5: "Laundry Collected",
    6: "Heading to Facility",
    7: "Washing",
    8: "Drying",
    9: "Folding",
    10: "Packaging",
    11: "Out for Delivery",
    12: "Arrived at Drop-off",
    13: "Delivered",
}

TOTAL_STEPS = len(ORDER_STEPS)


ALLOWED_TRANSITIONS = {
    "placed": ["unclaimed", "claimed", "cancelled"],
    "unclaimed": ["claimed", "cancelled"],
    "claimed": ["picked_up", "in_progress", "cancelled"],
    "picked_up": ["in_progress", "washed", "folded"],
    "in_progress": ["washed", "folded", "completed"],
    "washed": ["folded", "completed"],
    "folded": ["completed", "delivered"],
    "completed": ["delivered"],
    "delivered": [],
    "cancelled": [],
}

# orders in these states block account deletion
ACTIVE_STATUSES = [
    "placed",
    "unclaimed",
    "claimed",
    "picked_up",
    "in_progress",
    "washed",
    "folded",
]


def can_transition(current: str, new: str) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, [])


class ProgressIcon(str, Enum):
    clock = "clock"
    truck = "truck"
    package = "package"
    loader = "loader"
    check_circle = "check-circle"
    x_circle = "x-circle"


DEFAULT_ICON = ProgressIcon.clock


# (last step of phase, label, description, minimum progress, icon, animate)
STEP_PHASES = [
    (3, "Pickup in Progress", "Operator heading to pickup location", 15, ProgressIcon.truck, False),
    (6, "Collecting Laundry", "Operator collecting your items", 35, ProgressIcon.package, False),
    (9, "Washing", "Your items are being washed", 55, ProgressIcon.loader, True),
    (12, "Preparing for Delivery", "Items are ready, preparing delivery", 80, ProgressIcon.package, False),
    (13, "Delivered", "Order complete", 100, ProgressIcon.check_circle, False),
]

# status -> (progress, label, description, icon, animate)
STATUS_PROGRESS = {
    "placed": (10, "Order Placed", "Waiting for pickup", ProgressIcon.clock, False),
    "unclaimed": (10, "Order Placed", "Waiting for pickup", ProgressIcon.clock, False),
    "claimed": (25, "Pickup Assigned", "Operator assigned to your order", ProgressIcon.truck, False),
    "picked_up": (40, "Picked Up", "En route to washing facility", ProgressIcon.truck, False),
    "in_progress": (70, "Processing", "Being washed and processed", ProgressIcon.loader, True),
    "washed": (70, "Processing", "Being washed and processed", ProgressIcon.loader, True),
    "folded": (85, "Ready for Delivery", "Ready for delivery", ProgressIcon.package, False),
    "completed": (100, "Delivered", "Order complete", ProgressIcon.check_circle, False),
    "delivered": (100, "Delivered", "Order complete", ProgressIcon.check_circle, False),
    "cancelled": (0, "Cancelled", "Order cancelled", ProgressIcon.x_circle, False),
}

UNKNOWN_PROGRESS = (0, "Unknown", "Status unknown", DEFAULT_ICON, False)


def _validate_tables():
    missing = [s.value for s in OrderStatus if s.value not in STATUS_PROGRESS]
    if missing:
        raise RuntimeError(f"No progress entry for statuses: {missing}")

    for row in list(STATUS_PROGRESS.values()) + [UNKNOWN_PROGRESS]:
        if not isinstance(row[3], ProgressIcon):
            raise RuntimeError(f"Invalid progress icon: {row[3]!r}")

    covered = []
    previous = 1
    for last_step, _, _, _, icon, _ in STEP_PHASES:
        if not isinstance(icon, ProgressIcon):
            raise RuntimeError(f"Invalid progress icon: {icon!r}")
        covered.extend(range(previous + 1, last_step + 1))
        previous = last_step
    if covered != list(range(2, TOTAL_STEPS + 1)):
        raise RuntimeError("Step phases must cover steps 2..13 in order")

    for status, targets in ALLOWED_TRANSITIONS.items():
        unknown = [t for t in [status] + targets if t not in STATUS_PROGRESS]
        if unknown:
            raise RuntimeError(f"Unknown statuses in transitions: {unknown}")


_validate_tables()
