"""
Day-level driver for the simulation engine.

``DayOrchestrator`` fetches the catalog snapshot once, plans every order of
the day (meal period, order time, per-order seed) from the run RNG, then
assembles the orders sequentially or on a bounded thread pool. Refunds run
after the batch, and the day's ``DailyStatistics`` is logged and returned in
a ``DayResult``.
"""

import logging
import random
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import date, datetime

from pos_datagen.config.models import SimulatorConfig
from pos_datagen.services.interfaces import (
    AuditSink,
    CashDrawerGateway,
    CatalogProvider,
    GiftCardGateway,
    NullAuditSink,
    OrderGateway,
    PaymentGateway,
    RefundGateway,
)
from pos_datagen.shared.cache import DefinitionCache
from pos_datagen.shared.exceptions import ApiError
from pos_datagen.shared.logging_utils import get_event_logger, order_scope
from pos_datagen.shared.models import GiftCard

from .base_types import RefundResult, SimulatedOrder, SimulationData
from .discounts import DiscountResolver
from .gates import DEFAULT_ORDER_GATES, DiscountGates, OrderGates
from .meal_periods import MealPeriod, MealPeriodScheduler
from .order_assembler import OrderAssembler
from .payments import PaymentRouter, is_card_tender, is_gift_card_tender
from .refunds import RefundProcessor
from .statistics import DailyStatistics

logger = logging.getLogger(__name__)


@dataclass
class DayResult:
    """Orders, statistics and refunds produced by one run."""

    orders: list[SimulatedOrder] = field(default_factory=list)
    stats: DailyStatistics = field(default_factory=DailyStatistics)
    refunds: list[RefundResult] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.orders


@dataclass(frozen=True)
class PlannedOrder:
    period: MealPeriod
    order_time: datetime
    seed: int


class DayOrchestrator:
    """
    Runs a simulated day of orders against the injected gateways.

    All collaborators are passed in; the orchestrator never creates HTTP
    clients itself. The run RNG decides the plan and the refunds, and every
    order is assembled with its own ``random.Random`` seeded from it.
    """

    def __init__(
        self,
        config: SimulatorConfig,
        catalog: CatalogProvider,
        order_gateway: OrderGateway,
        payment_gateway: PaymentGateway,
        refund_gateway: RefundGateway,
        gift_card_gateway: GiftCardGateway | None = None,
        cash_drawer: CashDrawerGateway | None = None,
        audit: AuditSink | None = None,
        rng: random.Random | None = None,
        discount_gates: DiscountGates | None = None,
        order_gates: OrderGates = DEFAULT_ORDER_GATES,
    ):
        self.config = config
        self._catalog = catalog
        self._orders = order_gateway
        self._payments = payment_gateway
        self._refunds = refund_gateway
        self._gift_cards = gift_card_gateway
        self._cash_drawer = cash_drawer
        self._audit = audit or NullAuditSink()
        self._rng = rng or random.Random(config.simulation.seed)
        self.discount_gates = discount_gates or DiscountGates()
        self.order_gates = order_gates
        self.card_processing = config.ecommerce.enabled
        self.definition_cache = DefinitionCache()
        self.scheduler = MealPeriodScheduler(
            self._rng,
            order_patterns=config.simulation.order_patterns,
            timezone=config.merchant.timezone,
        )
        self.events = get_event_logger(__name__, merchant_id=config.merchant.merchant_id)

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    def generate_realistic_day(self, day: date, multiplier: float = 1.0) -> DayResult:
        """Generate a day-of-week sized batch spread across meal periods."""
        total = int(self.scheduler.order_count_for_date(day) * multiplier)
        by_period = self.scheduler.distribute_orders_by_period(total)

        logger.info("=" * 60)
        logger.info(f"REALISTIC DAY: {day.isoformat()} ({day.strftime('%A')}) - {total} orders")
        for period, count in by_period.items():
            logger.info(f"  {period.value:<12} {count} orders")

        plan = [
            self._plan_order(day, period)
            for period, count in by_period.items()
            for _ in range(count)
        ]
        return self._run(day, plan)

    def generate_for_date(self, day: date, count: int) -> DayResult:
        """Generate ``count`` orders with periods drawn by weight."""
        logger.info(f"Generating {count} orders for {day.isoformat()}")
        plan = [
            self._plan_order(day, self.scheduler.weighted_random_period())
            for _ in range(max(0, count))
        ]
        return self._run(day, plan)

    def generate_today(self, count: int | None = None) -> DayResult:
        today = datetime.now(self.scheduler.tzinfo).date()
        if count is None:
            return self.generate_realistic_day(today)
        return self.generate_for_date(today, count)

    # ------------------------------------------------------------------
    # Catalog snapshot
    # ------------------------------------------------------------------

    def fetch_required_data(self) -> SimulationData | None:
        """
        Load everything one run needs from the catalog.

        Returns None (after logging why) when items, employees or usable
        tenders are missing; a run cannot proceed without them.
        """
        try:
            items = self._catalog.get_items()
            employees = self._catalog.get_employees()
            customers = self._catalog.get_customers()
            all_tenders = [t for t in self._catalog.get_tenders() if t.enabled]
            modifier_groups = self._catalog.get_modifier_groups()
            order_types = self._catalog.get_order_types()
        except ApiError as e:
            logger.error(f"Could not load catalog data: {e}")
            return None

        if not items:
            logger.error("No items found. Create catalog items first.")
            return None
        if not employees:
            logger.error("No employees found. Create employees first.")
            return None

        gift_card_tender = next((t for t in all_tenders if is_gift_card_tender(t)), None)
        tenders = [t for t in all_tenders if not is_gift_card_tender(t)]
        if not self.card_processing:
            tenders = [t for t in tenders if not is_card_tender(t)]
        if not tenders:
            logger.error("No usable tenders found. Create cash or custom tenders first.")
            return None

        data = SimulationData(
            items=items,
            employees=employees,
            tenders=tenders,
            customers=customers,
            gift_cards=self._load_gift_cards(),
            gift_card_tender=gift_card_tender,
            modifier_groups={group.id: group for group in modifier_groups},
            order_types=order_types,
            items_by_category=SimulationData.group_by_category(items),
        )
        logger.info(
            f"Loaded {len(items)} items, {len(employees)} employees, "
            f"{len(customers)} customers, {len(tenders)} tenders, "
            f"{len(data.gift_cards)} gift cards"
        )
        return data

    def _load_gift_cards(self) -> list[GiftCard]:
        try:
            if self._gift_cards is not None:
                return self._gift_cards.fetch_gift_cards()
            return self._catalog.get_gift_cards()
        except ApiError as e:
            logger.warning(f"Gift cards unavailable, continuing without them: {e}")
            return []

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def build_assembler(self, rng: random.Random) -> OrderAssembler:
        """Fresh component graph bound to one order's RNG."""
        resolver = DiscountResolver(
            self._catalog,
            self._orders,
            rng,
            gates=self.discount_gates,
            cache=self.definition_cache,
        )
        router = PaymentRouter(
            self._payments,
            rng,
            gift_card_gateway=self._gift_cards,
            cash_drawer=self._cash_drawer,
            card_processing=self.card_processing,
            gates=self.order_gates,
        )
        scheduler = MealPeriodScheduler(
            rng,
            order_patterns=self.config.simulation.order_patterns,
            timezone=self.config.merchant.timezone,
        )
        return OrderAssembler(
            self._orders,
            resolver,
            router,
            scheduler,
            rng,
            tax_rate=self.config.merchant.tax_rate,
            audit=self._audit,
            merchant_id=self.config.merchant.merchant_id,
            gates=self.order_gates,
        )

    def _plan_order(self, day: date, period: MealPeriod) -> PlannedOrder:
        return PlannedOrder(
            period=period,
            order_time=self.scheduler.generate_order_time(day, period),
            seed=self._rng.getrandbits(64),
        )

    def _assemble_planned(
        self, sequence: int, planned: PlannedOrder, data: SimulationData, day: date
    ) -> SimulatedOrder | None:
        with order_scope(sequence=sequence, meal_period=planned.period.value) as context:
            assembler = self.build_assembler(random.Random(planned.seed))
            order = assembler.assemble(planned.period, data, planned.order_time, day)
            if order is None:
                self.events.warning("Order abandoned")
                return None
            context["order_id"] = order.id
            self.events.info(
                "Order settled",
                subtotal=order.subtotal,
                tax=order.tax_amount,
                tip=order.tip_amount,
                discount=order.discount_amount,
                payment_path=order.payment.path.value,
            )
            return order

    def _run(self, day: date, plan: list[PlannedOrder]) -> DayResult:
        stats = DailyStatistics()
        data = self.fetch_required_data()
        if data is None:
            return DayResult(stats=stats)

        with self.events.run_scope(day):
            self.events.info(
                "Simulation run started",
                planned_orders=len(plan),
                max_workers=self.config.simulation.max_workers,
            )

            results = self._execute(plan, data, day)
            orders: list[SimulatedOrder] = []
            for order in results:
                if order is None:
                    stats.record_abandoned()
                    continue
                stats.record_order(order)
                orders.append(order)

            refunds = RefundProcessor(
                self._refunds,
                self._rng,
                refund_percentage=self.config.simulation.refund_percentage,
                audit=self._audit,
                gates=self.order_gates,
            ).process_refunds(orders, stats)

            self._write_daily_summary(day)
            stats.log_summary()
            self.events.info(
                "Simulation run finished",
                orders=stats.orders,
                abandoned=stats.abandoned,
                refunds=stats.refunds.total,
                revenue=stats.revenue,
            )
            return DayResult(orders=orders, stats=stats, refunds=refunds)

    def _execute(
        self, plan: list[PlannedOrder], data: SimulationData, day: date
    ) -> list[SimulatedOrder | None]:
        """Assemble every planned order, keeping results in plan order."""
        workers = self.config.simulation.max_workers
        if workers <= 1 or len(plan) <= 1:
            return [
                self._assemble_planned(index, planned, data, day)
                for index, planned in enumerate(plan)
            ]

        results: list[SimulatedOrder | None] = [None] * len(plan)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_index = {
                executor.submit(self._assemble_planned, index, planned, data, day): index
                for index, planned in enumerate(plan)
            }
            for future in as_completed(future_to_index):
                results[future_to_index[future]] = future.result()
        return results

    def _write_daily_summary(self, day: date) -> None:
        try:
            self._audit.generate_daily_summary(self.config.merchant.merchant_id, day)
        except Exception as e:
            logger.warning(f"Daily audit summary failed for {day.isoformat()}: {e}")
