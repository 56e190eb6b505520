"""
Tests for the behavioral trigger scan: condition parsing, matching and cooldowns.
"""

from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError
from sqlmodel import select

from conftest import make_profile
from freshdrop.models.marketing import (
    CampaignStatus,
    CampaignTrigger,
    MarketingCampaign,
    TriggerType,
)
from freshdrop.models.notifications import (
    NotificationDeliveryLog,
    NotificationStatus,
    NotificationTemplate,
)
from freshdrop.models.order import Order
from freshdrop.notifications.channels import Channel
from freshdrop.services.behavioral_triggers import (
    InactivityCondition,
    MilestoneCondition,
    cooldown_for,
    parse_conditions,
    run_behavioral_triggers,
)
from freshdrop.services.notification_logger import log_delivery

NOW = datetime(2025, 6, 1, 12, 0, 0)


@pytest.fixture
def campaign(session):
    template = NotificationTemplate(
        notification_type="campaign",
        channel=Channel.email,
        subject="Hello {firstName}",
        message="Thanks for being with us, {customerName}.",
    )
    session.add(template)
    session.commit()
    session.refresh(template)

    campaign = MarketingCampaign(
        name="Lifecycle", status=CampaignStatus.active, template_id=template.id
    )
    session.add(campaign)
    session.commit()
    session.refresh(campaign)
    return campaign


@pytest.fixture
def people(session):
    return {
        name: make_profile(
            session,
            first_name=name,
            email=f"{name.lower()}@example.com",
            created_at=datetime(2025, 1, 1) + timedelta(minutes=i),
        )
        for i, name in enumerate(["Ann", "Ben", "Cat"])
    }


def add_trigger(session, campaign, trigger_type, conditions=None, **fields):
    trigger = CampaignTrigger(
        trigger_type=trigger_type,
        conditions=conditions,
        campaign_id=campaign.id,
        **fields,
    )
    session.add(trigger)
    session.commit()
    session.refresh(trigger)
    return trigger


def add_order(session, customer, **fields):
    order = Order(customer_id=customer.id, **fields)
    session.add(order)
    session.commit()
    return order


def run(session, email_client, **kwargs):
    return run_behavioral_triggers(session, email_client, now=NOW, sleep=lambda s: None, **kwargs)


# ── Condition parsing ─────────────────────────────────────────────────


class TestConditions:
    def test_defaults_per_kind(self, campaign):
        trigger = CampaignTrigger(
            trigger_type=TriggerType.inactivity, campaign_id=campaign.id
        )
        condition = parse_conditions(trigger)
        assert isinstance(condition, InactivityCondition)
        assert condition.inactive_days == 14
        assert cooldown_for(trigger, condition) == 7

    def test_camel_case_keys(self, campaign):
        trigger = CampaignTrigger(
            trigger_type=TriggerType.milestone,
            conditions={"orderCount": 10, "match": "exact", "cooldownDays": 2},
            campaign_id=campaign.id,
        )
        condition = parse_conditions(trigger)
        assert isinstance(condition, MilestoneCondition)
        assert condition.order_count == 10
        assert condition.match == "exact"
        assert cooldown_for(trigger, condition) == 2

    def test_stored_kind_cannot_override_trigger_type(self, campaign):
        trigger = CampaignTrigger(
            trigger_type=TriggerType.post_order,
            conditions={"kind": "inactivity"},
            campaign_id=campaign.id,
        )
        assert parse_conditions(trigger).kind == "post_order"

    def test_invalid_values_rejected(self, campaign):
        trigger = CampaignTrigger(
            trigger_type=TriggerType.inactivity,
            conditions={"inactiveDays": 0},
            campaign_id=campaign.id,
        )
        with pytest.raises(ValidationError):
            parse_conditions(trigger)


# ── Scans ─────────────────────────────────────────────────────────────


class TestInactivity:
    def test_matches_customers_without_recent_orders(
        self, session, email_client, campaign, people
    ):
        add_order(session, people["Ann"], created_at=NOW - timedelta(days=30))
        add_order(session, people["Ben"], created_at=NOW - timedelta(days=2))
        add_trigger(session, campaign, TriggerType.inactivity, {"inactiveDays": 14})

        result = run(session, email_client)

        summary = result["triggers"][0]
        assert summary["matched"] == 2
        assert summary["dispatched"] == 2
        assert sorted(email_client.recipients) == ["ann@example.com", "cat@example.com"]

    def test_cooldown_skips_recent_recipients(self, session, email_client, campaign, people):
        add_order(session, people["Ben"], created_at=NOW - timedelta(days=1))
        add_order(session, people["Cat"], created_at=NOW - timedelta(days=1))
        add_trigger(session, campaign, TriggerType.inactivity)

        row = log_delivery(
            session,
            customer_id=people["Ann"].id,
            campaign_id=campaign.id,
            template_id=campaign.template_id,
            recipient="ann@example.com",
            subject="Hello Ann",
            content="...",
            status=NotificationStatus.sent,
        )
        row.created_at = NOW - timedelta(days=3)
        session.add(row)
        session.commit()

        summary = run(session, email_client)["triggers"][0]

        assert summary["matched"] == 1
        assert summary["skipped"] == 1
        assert summary["dispatched"] == 0
        assert email_client.calls == []

    def test_cooldown_expires(self, session, email_client, campaign, people):
        add_order(session, people["Ben"], created_at=NOW - timedelta(days=1))
        add_order(session, people["Cat"], created_at=NOW - timedelta(days=1))
        add_trigger(session, campaign, TriggerType.inactivity)

        row = log_delivery(
            session,
            customer_id=people["Ann"].id,
            campaign_id=campaign.id,
            template_id=campaign.template_id,
            recipient="ann@example.com",
            subject="Hello Ann",
            content="...",
            status=NotificationStatus.sent,
        )
        row.created_at = NOW - timedelta(days=8)
        session.add(row)
        session.commit()

        summary = run(session, email_client)["triggers"][0]
        assert summary["dispatched"] == 1

    def test_second_scan_is_suppressed(self, session, email_client, campaign, people):
        add_trigger(session, campaign, TriggerType.inactivity)

        first = run(session, email_client)["triggers"][0]
        second = run(session, email_client)["triggers"][0]

        assert first["dispatched"] == 3
        assert second["dispatched"] == 0
        assert second["skipped"] == 3
        assert len(email_client.calls) == 3


class TestPostOrder:
    def test_only_orders_completed_inside_window(self, session, email_client, campaign, people):
        add_order(
            session, people["Ann"], status="completed",
            completed_at=NOW - timedelta(minutes=90),
        )
        add_order(
            session, people["Ben"], status="completed",
            completed_at=NOW - timedelta(hours=3),
        )
        add_order(
            session, people["Cat"], status="folded",
            completed_at=NOW - timedelta(minutes=90),
        )
        add_trigger(
            session, campaign, TriggerType.post_order,
            {"hoursAfterDelivery": 2, "windowHours": 1},
        )

        summary = run(session, email_client)["triggers"][0]

        assert summary["matched"] == 1
        assert email_client.recipients == ["ann@example.com"]

    def test_duplicate_orders_match_once(self, session, email_client, campaign, people):
        for minutes in (70, 100):
            add_order(
                session, people["Ann"], status="completed",
                completed_at=NOW - timedelta(minutes=minutes),
            )
        add_trigger(session, campaign, TriggerType.post_order)

        summary = run(session, email_client)["triggers"][0]
        assert summary["matched"] == 1
        assert len(email_client.calls) == 1


class TestMilestone:
    def seed_counts(self, session, people):
        for _ in range(6):
            add_order(session, people["Ann"], status="completed")
        for _ in range(5):
            add_order(session, people["Ben"], status="delivered")
        for _ in range(4):
            add_order(session, people["Cat"], status="completed")

    def test_crossing_matches_everyone_at_or_past_threshold(
        self, session, email_client, campaign, people
    ):
        self.seed_counts(session, people)
        add_trigger(session, campaign, TriggerType.milestone, {"orderCount": 5})

        summary = run(session, email_client)["triggers"][0]

        assert summary["matched"] == 2
        assert sorted(email_client.recipients) == ["ann@example.com", "ben@example.com"]

    def test_crossing_fires_once_per_customer(self, session, email_client, campaign, people):
        self.seed_counts(session, people)
        add_trigger(
            session, campaign, TriggerType.milestone, {"orderCount": 5, "cooldownDays": 0}
        )

        run(session, email_client)
        summary = run(session, email_client)["triggers"][0]

        assert summary["matched"] == 0
        assert len(email_client.calls) == 2

    def test_exact_matches_only_the_threshold(self, session, email_client, campaign, people):
        self.seed_counts(session, people)
        add_trigger(
            session, campaign, TriggerType.milestone, {"orderCount": 5, "match": "exact"}
        )

        run(session, email_client)

        assert email_client.recipients == ["ben@example.com"]


class TestScanBookkeeping:
    def test_invalid_conditions_reported_not_raised(self, session, email_client, campaign, people):
        add_trigger(session, campaign, TriggerType.inactivity, {"inactiveDays": -3})
        add_trigger(session, campaign, TriggerType.abandoned_cart)

        result = run(session, email_client)

        assert result["success"] is True
        bad, cart = result["triggers"]
        assert bad["errors"] == 1
        assert bad["error"] == "Invalid trigger conditions"
        assert cart["matched"] == 0

    def test_trigger_type_filter(self, session, email_client, campaign, people):
        add_trigger(session, campaign, TriggerType.inactivity)
        add_trigger(session, campaign, TriggerType.milestone)

        result = run(session, email_client, trigger_type="milestone")

        assert [t["trigger_type"] for t in result["triggers"]] == ["milestone"]

    def test_inactive_triggers_ignored(self, session, email_client, campaign, people):
        add_trigger(session, campaign, TriggerType.inactivity, is_active=False)
        assert run(session, email_client)["triggers"] == []

    def test_paused_campaign_counts_as_skipped(self, session, email_client, campaign, people):
        add_trigger(session, campaign, TriggerType.inactivity)
        campaign.status = CampaignStatus.paused
        session.add(campaign)
        session.commit()

        summary = run(session, email_client)["triggers"][0]

        assert summary["matched"] == 3
        assert summary["skipped"] == 3
        assert session.exec(select(NotificationDeliveryLog)).all() == []

    def test_delay_applies_per_matched_customer(self, session, email_client, campaign, people):
        add_trigger(session, campaign, TriggerType.inactivity, delay_minutes=30)
        waits = []

        run_behavioral_triggers(
            session, email_client, now=NOW, sleep=waits.append
        )

        assert waits == [300, 300, 300]
        assert len(email_client.calls) == 3

    def test_route_runs_scan(self, client, service_key, campaign, people, email_client):
        response = client.post(
            "/functions/behavioral-triggers",
            json={"triggerType": "abandoned_cart"},
            headers={"Authorization": f"Bearer {service_key}"},
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Behavioral triggers processed"


def test_cron_job_uses_its_own_session(monkeypatch, engine, session, email_client, campaign, people):
    from freshdrop.jobs import behavioral_triggers as job

    add_trigger(session, campaign, TriggerType.inactivity)
    monkeypatch.setattr(job, "engine", engine)
    monkeypatch.setattr(job, "build_email_client", lambda from_email=None: email_client)

    result = job.run_behavioral_triggers_job("inactivity")

    assert result["triggers"][0]["dispatched"] == 3
    assert len(email_client.calls) == 3
