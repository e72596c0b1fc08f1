"""
Integration tests for full simulated days over the in-memory platform.

These runs wire every component together exactly as the CLI does for a dry
run, including the SQLite audit mirror.
"""

import json
import logging
import random
from datetime import date

import pytest

from pos_datagen.db import SqlAuditSink
from pos_datagen.generators.day_orchestrator import DayOrchestrator
from pos_datagen.generators.payments import is_card_tender, is_gift_card_tender
from pos_datagen.services.memory import InMemoryPlatform
from pos_datagen.shared.exceptions import ApiError

pytestmark = pytest.mark.integration

WEDNESDAY = date(2026, 3, 11)


def build(config, platform=None, audit=None, **kwargs):
    platform = platform or InMemoryPlatform()
    orchestrator = DayOrchestrator(
        config,
        catalog=platform,
        order_gateway=platform,
        payment_gateway=platform,
        refund_gateway=platform,
        gift_card_gateway=platform,
        cash_drawer=platform,
        audit=audit,
        rng=random.Random(config.simulation.seed),
        **kwargs,
    )
    return orchestrator, platform


def with_workers(config, workers):
    simulation = config.simulation.model_copy(update={"max_workers": workers})
    return config.model_copy(update={"simulation": simulation})


def fingerprint(result):
    """Per-order facts decided before any shared platform state is read."""
    return [
        (
            order.meal_period,
            order.order_time,
            order.dining_option,
            order.party_size,
            tuple(line.item.id for line in order.lines),
        )
        for order in result.orders
    ]


class TestRealisticDay:
    """Whole-day runs."""

    def test_day_produces_paid_orders(self, simulator_config):
        """Every returned order is paid on the platform and counted."""
        orchestrator, platform = build(simulator_config)

        result = orchestrator.generate_realistic_day(WEDNESDAY)

        assert 8 <= len(result.orders) + result.stats.abandoned <= 12
        assert not result.empty
        assert result.stats.orders == len(result.orders)
        for order in result.orders:
            assert platform.orders[order.id].state.value in ("paid", "refunded")
            assert order.business_date == WEDNESDAY
            assert sum(p.amount for p in order.payments) == order.subtotal + order.service_charge_amount

    def test_multiplier_scales_count(self, simulator_config):
        """The multiplier is applied to the drawn count and truncated."""
        orchestrator, _ = build(simulator_config)

        result = orchestrator.generate_realistic_day(WEDNESDAY, multiplier=0.0)

        assert result.empty
        assert result.stats.orders == 0

    def test_fixed_count(self, simulator_config):
        orchestrator, _ = build(simulator_config)
        result = orchestrator.generate_for_date(WEDNESDAY, 5)
        assert len(result.orders) + result.stats.abandoned == 5

    def test_same_seed_same_day(self, simulator_config):
        """Two runs with one seed plan the same orders."""
        first, _ = build(simulator_config)
        second, _ = build(simulator_config)

        assert fingerprint(first.generate_realistic_day(WEDNESDAY)) == fingerprint(
            second.generate_realistic_day(WEDNESDAY)
        )

    def test_parallel_matches_sequential(self, simulator_config):
        """Worker threads do not change what each order contains."""
        sequential, _ = build(simulator_config)
        parallel, _ = build(with_workers(simulator_config, 4))

        expected = fingerprint(sequential.generate_realistic_day(WEDNESDAY))
        actual = fingerprint(parallel.generate_realistic_day(WEDNESDAY))

        assert actual == expected

    def test_order_events_carry_run_and_order(self, simulator_config, caplog):
        """Each settled order logs one event under the day's run ID."""
        orchestrator, _ = build(with_workers(simulator_config, 3))

        with caplog.at_level(logging.INFO, logger="pos_datagen.generators.day_orchestrator"):
            result = orchestrator.generate_for_date(WEDNESDAY, 5)

        events = [
            json.loads(r.getMessage())
            for r in caplog.records
            if r.getMessage().startswith("{")
        ]
        settled = [e for e in events if e["event"] == "Order settled"]
        assert sorted(e["order_id"] for e in settled) == sorted(o.id for o in result.orders)
        assert len({e["run_id"] for e in events}) == 1
        assert all(e["business_date"] == "2026-03-11" for e in events)
        assert all(e["merchant_id"] == "TESTMERCHANT" for e in events)

    def test_at_most_one_discount_per_order(self, simulator_config):
        orchestrator, platform = build(simulator_config)
        result = orchestrator.generate_for_date(WEDNESDAY, 12)
        for order in result.orders:
            calls = platform.calls_for("apply_discount", order.id) + platform.calls_for(
                "apply_line_item_discount", order.id
            )
            # A line-scoped discount may touch several lines under one name
            assert len({call.payload["name"] for call in calls}) <= 1

    def test_refunds_follow_percentage(self, simulator_config):
        """Refunds run after the batch at the configured share."""
        config = simulator_config.model_copy(
            update={
                "simulation": simulator_config.simulation.model_copy(
                    update={"refund_percentage": 100.0}
                )
            }
        )
        orchestrator, platform = build(config)

        result = orchestrator.generate_for_date(WEDNESDAY, 4)

        assert len(result.refunds) == len(result.orders)
        assert result.stats.refunds.total == len(result.refunds)
        assert len(platform.refunds) == len(result.refunds)


class TestCatalogPreconditions:
    """Runs refuse to start without the basics."""

    def test_no_employees(self, simulator_config):
        platform = InMemoryPlatform()
        platform.employees = []
        orchestrator, _ = build(simulator_config, platform)

        assert orchestrator.fetch_required_data() is None
        result = orchestrator.generate_for_date(WEDNESDAY, 3)
        assert result.empty
        assert platform.calls_for("create_order") == []

    def test_no_items(self, simulator_config):
        """An empty menu stops the run before any order is created."""
        platform = InMemoryPlatform()
        platform.items = []
        orchestrator, _ = build(simulator_config, platform)

        assert orchestrator.fetch_required_data() is None
        result = orchestrator.generate_for_date(WEDNESDAY, 3)
        assert result.empty
        assert platform.calls_for("create_order") == []

    def test_no_usable_tenders(self, simulator_config):
        """Only card and gift card tenders, with card processing off, is fatal."""
        platform = InMemoryPlatform()
        platform.tenders = [
            t for t in platform.tenders if is_card_tender(t) or is_gift_card_tender(t)
        ]
        assert platform.tenders
        orchestrator, _ = build(simulator_config, platform)

        assert orchestrator.fetch_required_data() is None
        result = orchestrator.generate_realistic_day(WEDNESDAY)
        assert result.empty
        assert platform.calls_for("create_order") == []

    def test_card_tenders_excluded_without_ecommerce(self, simulator_config):
        orchestrator, _ = build(simulator_config)
        data = orchestrator.fetch_required_data()
        labels = {t.label for t in data.tenders}
        assert "Credit Card" not in labels
        assert "Gift Card" not in labels
        assert data.gift_card_tender.label == "Gift Card"

    def test_gift_card_outage_is_tolerated(self, simulator_config):
        """A failing gift card listing does not stop the run."""
        platform = InMemoryPlatform(fail_operations={"fetch_gift_cards"})
        orchestrator, _ = build(simulator_config, platform)

        data = orchestrator.fetch_required_data()

        assert data is not None
        assert data.gift_cards == []

    def test_catalog_outage(self, simulator_config):
        platform = InMemoryPlatform(fail_operations={"get_items"})
        orchestrator, _ = build(simulator_config, platform)
        assert orchestrator.fetch_required_data() is None


class TestAuditMirror:
    """Runs mirrored into a SQLite audit store."""

    def test_day_written_to_audit(self, simulator_config):
        sink = SqlAuditSink.from_url("sqlite:///:memory:")
        try:
            orchestrator, _ = build(simulator_config, audit=sink)
            result = orchestrator.generate_for_date(WEDNESDAY, 6)

            summary = sink.get_daily_summary("TESTMERCHANT", WEDNESDAY)
        finally:
            sink.dispose()

        refunded = sum(1 for r in result.refunds if r.full)
        assert summary["order_count"] == len(result.orders) - refunded
        assert summary["refund_count"] == refunded

    def test_failing_gateway_does_not_raise(self, simulator_config):
        """Gateway errors abandon orders instead of escaping the run."""
        platform = InMemoryPlatform(fail_operations={"process_payment", "process_split_payment"})
        orchestrator, _ = build(simulator_config, platform)

        try:
            result = orchestrator.generate_for_date(WEDNESDAY, 4)
        except ApiError as e:  # pragma: no cover
            pytest.fail(f"gateway error escaped the run: {e}")

        assert result.stats.orders + result.stats.abandoned == 4
