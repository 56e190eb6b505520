"""
Tests for the append-only notification log and cooldown lookups.
"""

from datetime import datetime, timedelta

import pytest

from freshdrop.models.notifications import NotificationStatus
from freshdrop.notifications.channels import Channel
from freshdrop.notifications.dispatcher import aggregate_success, deliver, not_requested
from freshdrop.services.delivery import DeliveryResult
from freshdrop.services.notification_logger import (
    ever_sent,
    log_delivery,
    log_notification,
    mark_failed,
    mark_sent,
    was_recently_sent,
)


def pending_row(session):
    return log_notification(
        session, channel=Channel.email, recipient="a@example.com", content="hi"
    )


class TestStatusTransitions:
    def test_pending_to_sent(self, session):
        row = pending_row(session)
        mark_sent(session, row, "msg_1")
        assert row.status == NotificationStatus.sent
        assert row.provider_message_id == "msg_1"
        assert row.sent_at is not None

    def test_pending_to_failed(self, session):
        row = pending_row(session)
        mark_failed(session, row, "HTTP 500: boom")
        assert row.status == NotificationStatus.failed
        assert row.error_message == "HTTP 500: boom"
        assert row.sent_at is None

    def test_failed_without_message_gets_one(self, session):
        row = pending_row(session)
        mark_failed(session, row, None)
        assert row.error_message

    def test_terminal_rows_cannot_change(self, session):
        row = pending_row(session)
        mark_sent(session, row)
        with pytest.raises(ValueError):
            mark_failed(session, row, "late failure")
        with pytest.raises(ValueError):
            mark_sent(session, row)

    def test_rows_are_written_immediately(self, session):
        row = pending_row(session)
        assert row.id is not None


class TestDeliver:
    def test_success_marks_row_sent(self, session):
        result = deliver(
            session,
            channel=Channel.sms,
            recipient="+15550000000",
            content="body",
            send=lambda: DeliveryResult.ok("SM1"),
        )
        assert result["success"] is True
        assert result["channel"] == "sms"
        assert result["log_id"] is not None

    def test_exception_becomes_failed_row(self, session):
        def boom():
            raise TimeoutError("read timed out")

        result = deliver(
            session,
            channel=Channel.email,
            recipient="a@example.com",
            content="body",
            send=boom,
        )
        assert result["success"] is False
        assert "timed out" in result["error"]

    def test_aggregate_success_ignores_unrequested(self):
        failed = {"requested": True, "success": False}
        assert aggregate_success(not_requested(Channel.email), failed) is False
        assert aggregate_success(not_requested(Channel.email), {"requested": True, "success": True})


class TestCooldownLookups:
    def delivery(self, session, status, created_at, campaign_id="camp-1"):
        row = log_delivery(
            session,
            customer_id="cust-1",
            campaign_id=campaign_id,
            template_id=None,
            recipient="a@example.com",
            subject="s",
            content="c",
            status=status,
        )
        row.created_at = created_at
        session.add(row)
        session.commit()
        return row

    def test_sent_inside_window(self, session):
        now = datetime(2025, 6, 1)
        self.delivery(session, NotificationStatus.sent, now - timedelta(days=2))
        assert was_recently_sent(session, "cust-1", "camp-1", 7, now=now)
        assert not was_recently_sent(session, "cust-1", "camp-1", 1, now=now)

    def test_failed_attempts_do_not_count(self, session):
        now = datetime(2025, 6, 1)
        self.delivery(session, NotificationStatus.failed, now - timedelta(hours=1))
        assert not was_recently_sent(session, "cust-1", "camp-1", 7, now=now)
        assert not ever_sent(session, "cust-1", "camp-1")

    def test_other_campaigns_do_not_count(self, session):
        now = datetime(2025, 6, 1)
        self.delivery(session, NotificationStatus.sent, now, campaign_id="camp-2")
        assert not was_recently_sent(session, "cust-1", "camp-1", 7, now=now)
        assert ever_sent(session, "cust-1", "camp-2")
