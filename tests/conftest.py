"""
Pytest configuration and fixtures for POS data generator tests.

Provides the in-memory sandbox platform, seeded random sources, forced
probability gates and small builders for order lines.
"""

import json
import random
import sys
from datetime import datetime
from pathlib import Path

import pytest

# Ensure src/ is on sys.path for local test runs without installation
_SRC = Path(__file__).resolve().parents[1] / "src"
if _SRC.exists() and str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

from pos_datagen.config.models import MerchantConfig, SimulationConfig, SimulatorConfig  # noqa: E402
from pos_datagen.generators.base_types import OrderLine, SimulationData  # noqa: E402
from pos_datagen.generators.gates import DiscountGates, OrderGates  # noqa: E402
from pos_datagen.generators.payments import is_card_tender, is_gift_card_tender  # noqa: E402
from pos_datagen.services.memory import InMemoryPlatform  # noqa: E402

POS_ENV_VARS = (
    "POS_CONFIG_FILE",
    "POS_MERCHANT_ID",
    "POS_MERCHANT_NAME",
    "POS_API_TOKEN",
    "POS_ENVIRONMENT",
    "POS_TIMEZONE",
    "POS_TAX_RATE",
    "POS_REFUND_PERCENTAGE",
    "POS_SEED",
    "POS_PUBLIC_TOKEN",
    "POS_PRIVATE_TOKEN",
    "POS_AUDIT_DATABASE_URL",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_pos_environment(monkeypatch):
    """Keep the developer's POS_* variables out of every test."""
    for name in POS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source."""
    return random.Random(42)


@pytest.fixture
def platform() -> InMemoryPlatform:
    """Fresh in-memory sandbox merchant loaded with the default profile."""
    return InMemoryPlatform()


@pytest.fixture
def always_discount() -> DiscountGates:
    return DiscountGates.always()


@pytest.fixture
def never_discount() -> DiscountGates:
    return DiscountGates.never()


@pytest.fixture
def quiet_gates() -> OrderGates:
    """Order gates with every optional branch switched off."""
    return OrderGates(
        customer_attached=0.0,
        vip_customer=0.0,
        quantity_bump=0.0,
        line_note=0.0,
        modifiers=0.0,
        optional_modifier_group=0.0,
        takeout_tip_skipped=0.0,
        gift_card_payment=0.0,
        split_dine_in_group=0.0,
        split_other=0.0,
        small_order_cash=0.0,
        card_tender=0.0,
        full_refund=0.0,
    )


@pytest.fixture
def sim_data(platform) -> SimulationData:
    """Catalog snapshot of the in-memory platform, without card tenders."""
    all_tenders = platform.get_tenders()
    tenders = [
        t
        for t in all_tenders
        if not is_gift_card_tender(t) and not is_card_tender(t)
    ]
    items = platform.get_items()
    return SimulationData(
        items=items,
        employees=platform.get_employees(),
        tenders=tenders,
        customers=platform.get_customers(),
        gift_cards=platform.fetch_gift_cards(),
        gift_card_tender=next((t for t in all_tenders if is_gift_card_tender(t)), None),
        modifier_groups={g.id: g for g in platform.get_modifier_groups()},
        order_types=platform.get_order_types(),
        items_by_category=SimulationData.group_by_category(items),
    )


@pytest.fixture
def make_lines(platform):
    """
    Build order lines on a fresh platform order.

    Usage: ``order_id, lines = make_lines(["ITEM_BURGER", ("ITEM_SODA", 2)])``
    """

    def _make(item_refs):
        order = platform.create_order(employee_id="EMP_SERVER_1")
        items = {item.id: item for item in platform.items}
        lines = []
        for ref in item_refs:
            item_id, quantity = ref if isinstance(ref, tuple) else (ref, 1)
            record = platform.add_line_item(order.id, item_id=item_id, quantity=quantity)
            lines.append(
                OrderLine(line_item_id=record.id, item=items[item_id], quantity=quantity)
            )
        return order.id, lines

    return _make


@pytest.fixture
def happy_hour_time() -> datetime:
    """A Wednesday at 4:30pm."""
    return datetime(2026, 3, 11, 16, 30)


@pytest.fixture
def sample_config_data() -> dict:
    """Sample configuration data for testing."""
    return {
        "merchant": {
            "merchant_id": "MERCHANT123",
            "merchant_name": "Test Bistro",
            "api_token": "test-token",
            "environment": "https://sandbox.example.com",
            "timezone": "UTC",
        },
        "simulation": {
            "refund_percentage": 5.0,
            "seed": 42,
            "order_patterns": {
                "weekday": {"min": 4, "max": 6},
                "friday": {"min": 6, "max": 8},
                "saturday": {"min": 80, "max": 120},
                "sunday": {"min": 5, "max": 7},
            },
        },
        "log_level": "INFO",
    }


@pytest.fixture
def temp_config_file(tmp_path, sample_config_data) -> Path:
    """Write the sample configuration to a temporary config.json."""
    path = tmp_path / "config.json"
    path.write_text(json.dumps(sample_config_data))
    return path


@pytest.fixture
def simulator_config() -> SimulatorConfig:
    """Small, seeded configuration for orchestrator runs."""
    return SimulatorConfig(
        merchant=MerchantConfig(merchant_id="TESTMERCHANT", timezone="UTC"),
        simulation=SimulationConfig(
            seed=7,
            refund_percentage=10.0,
            order_patterns={
                "weekday": {"min": 8, "max": 12},
                "friday": {"min": 8, "max": 12},
                "saturday": {"min": 8, "max": 12},
                "sunday": {"min": 8, "max": 12},
            },
        ),
    )
