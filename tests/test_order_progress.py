"""
Tests for the order lifecycle: progress display, status transitions and the
order routes.
"""

import pytest
from sqlmodel import select

from conftest import auth_headers, make_profile
from freshdrop.constants.order_status import (
    ACTIVE_STATUSES,
    ORDER_STEPS,
    STATUS_PROGRESS,
    OrderStatus,
    can_transition,
)
from freshdrop.exceptions import InvalidStatusTransition
from freshdrop.models.notifications import NotificationTemplate
from freshdrop.models.order import Order
from freshdrop.models.order_event import OrderEvent
from freshdrop.models.profile import ProfileRole
from freshdrop.notifications.channels import Channel
from freshdrop.services.order_progress import apply_status_change, get_progress

# ── Progress ──────────────────────────────────────────────────────────


class TestGetProgress:
    def test_every_status_has_an_entry(self):
        assert set(STATUS_PROGRESS) == {s.value for s in OrderStatus}

    def test_status_fallback(self):
        info = get_progress("claimed")
        assert info.progress == 25
        assert info.label == "Pickup Assigned"
        assert info.icon == "truck"

    def test_unknown_status(self):
        info = get_progress("teleported")
        assert info.progress == 0
        assert info.label == "Unknown"
        assert info.icon == "clock"

    def test_step_one_uses_status(self):
        assert get_progress("placed", 1).label == "Order Placed"

    def test_early_step_uses_phase_floor(self):
        info = get_progress("claimed", 2)
        assert info.label == "Pickup in Progress"
        assert info.progress == pytest.approx(2 / 13 * 100)

    def test_washing_phase_animates(self):
        info = get_progress("in_progress", 7)
        assert info.label == "Washing"
        assert info.progress == 55
        assert info.animate is True
        assert info.icon == "loader"

    def test_final_step_is_complete(self):
        info = get_progress("folded", 13)
        assert info.progress == 100
        assert info.icon == "check-circle"

    def test_out_of_range_step_is_clamped(self):
        assert get_progress("folded", 40).progress == 100

    def test_progress_never_decreases_with_step(self):
        values = [get_progress("in_progress", s).progress for s in range(2, 14)]
        assert values == sorted(values)

    def test_thirteen_steps(self):
        assert ORDER_STEPS[1] == "Order Confirmed"
        assert ORDER_STEPS[13] == "Delivered"


# ── Transitions ───────────────────────────────────────────────────────


@pytest.fixture
def order(session, customer):
    order = Order(customer_id=customer.id, order_number="FD-4004", status="placed")
    session.add(order)
    session.commit()
    session.refresh(order)
    return order


class TestTransitions:
    def test_forward_only(self):
        assert can_transition("placed", "claimed")
        assert can_transition("folded", "delivered")
        assert not can_transition("completed", "placed")
        assert not can_transition("delivered", "cancelled")

    def test_active_statuses_exclude_terminal_states(self):
        for status in ("completed", "delivered", "cancelled"):
            assert status not in ACTIVE_STATUSES

    def test_apply_status_change_logs_event(self, session, order):
        apply_status_change(session, order, "claimed", step=2, changed_by="op-1")
        session.commit()

        assert order.claimed_at is not None
        event = session.exec(
            select(OrderEvent).where(OrderEvent.order_id == order.id)
        ).one()
        assert event.from_status == "placed"
        assert event.to_status == "claimed"
        assert event.created_by == "op-1"
        assert event.meta == {"step": 2}

    def test_regression_rejected(self, session, order):
        apply_status_change(session, order, "claimed", step=5)
        with pytest.raises(InvalidStatusTransition):
            apply_status_change(session, order, "claimed", step=3)
        with pytest.raises(InvalidStatusTransition):
            apply_status_change(session, order, "placed")

    def test_step_bounds(self, session, order):
        with pytest.raises(InvalidStatusTransition):
            apply_status_change(session, order, "claimed", step=14)

    def test_same_status_new_step_allowed(self, session, order):
        apply_status_change(session, order, "claimed", step=2)
        apply_status_change(session, order, "claimed", step=3)
        assert order.current_step == 3

    def test_completion_timestamp(self, session, order):
        for status in ("claimed", "in_progress", "completed"):
            apply_status_change(session, order, status)
        assert order.completed_at is not None


# ── HTTP ──────────────────────────────────────────────────────────────


class TestOrderRoutes:
    def test_customer_reads_own_progress(self, client, customer, order):
        response = client.get(f"/orders/{order.id}/progress", headers=auth_headers(customer))
        assert response.status_code == 200
        body = response.json()
        assert body["order_id"] == order.id
        assert body["label"] == "Order Placed"
        assert body["icon"] == "clock"

    def test_strangers_cannot_read_progress(self, client, session, order):
        stranger = make_profile(session, email="x@example.com")
        response = client.get(f"/orders/{order.id}/progress", headers=auth_headers(stranger))
        assert response.status_code == 403

    def test_missing_order(self, client, customer):
        response = client.get("/orders/nope/progress", headers=auth_headers(customer))
        assert response.status_code == 404
        assert response.json() == {"error": "Order not found"}

    def test_operator_claims_and_customer_is_notified(
        self, client, session, operator, order, email_client
    ):
        response = client.patch(
            f"/orders/{order.id}/status",
            json={"status": "claimed", "step": 2},
            headers=auth_headers(operator),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["order"]["status"] == "claimed"
        assert body["order"]["step_label"] == "Operator Assigned"
        assert body["notification"]["emailSent"] is True
        assert email_client.calls[0]["subject"] == "Order Claimed - Operator Assigned"

        session.refresh(order)
        assert order.operator_id == operator.id

    def test_notify_flag_suppresses_notification(self, client, operator, order, email_client):
        response = client.patch(
            f"/orders/{order.id}/status",
            json={"status": "claimed", "notify": False},
            headers=auth_headers(operator),
        )
        assert response.status_code == 200
        assert response.json()["notification"] is None
        assert email_client.calls == []

    def test_invalid_transition_is_400(self, client, session, operator, order):
        order.operator_id = operator.id
        order.status = "delivered"
        session.add(order)
        session.commit()

        response = client.patch(
            f"/orders/{order.id}/status",
            json={"status": "placed"},
            headers=auth_headers(operator),
        )
        assert response.status_code == 400
        assert "Cannot change order status" in response.json()["error"]

    def test_other_operators_order(self, client, session, operator, order):
        rival = make_profile(session, email="rival@example.com", role=ProfileRole.operator)
        order.operator_id = rival.id
        session.add(order)
        session.commit()

        response = client.patch(
            f"/orders/{order.id}/status",
            json={"status": "picked_up"},
            headers=auth_headers(operator),
        )
        assert response.status_code == 403

    def test_customers_cannot_update_status(self, client, customer, order):
        response = client.patch(
            f"/orders/{order.id}/status",
            json={"status": "claimed"},
            headers=auth_headers(customer),
        )
        assert response.status_code == 403

    def test_status_change_without_step_uses_status_template(
        self, client, session, operator, order, email_client
    ):
        order.operator_id = operator.id
        order.status = "folded"
        order.current_step = 7
        session.add(order)
        session.add(
            NotificationTemplate(
                notification_type="washing",
                channel=Channel.email,
                trigger_step=7,
                subject="Laundry Being Washed",
                message="Your clothes are in the wash.",
            )
        )
        session.commit()

        response = client.patch(
            f"/orders/{order.id}/status",
            json={"status": "completed"},
            headers=auth_headers(operator),
        )

        assert response.status_code == 200
        assert [c["subject"] for c in email_client.calls] == [
            "Order Complete - Ready for Delivery"
        ]
