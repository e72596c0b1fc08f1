"""
CLI entry point for the POS order simulator.

Usage:
    python -m pos_datagen day                       # realistic day, today
    python -m pos_datagen day --date 2026-03-14 --multiplier 1.5
    python -m pos_datagen orders --count 25
    python -m pos_datagen summary --date 2026-03-14
    python -m pos_datagen --dry-run --seed 42 day   # in-memory platform

Exit codes: 0 success, 1 failed or empty run, 2 configuration error.
"""

import argparse
import logging
import random
import sys
from datetime import date

from pydantic import ValidationError

from pos_datagen.config.models import MerchantConfig, SimulatorConfig
from pos_datagen.config.settings import (
    load_config_with_fallback,
    load_merchants_file,
    select_merchant,
)
from pos_datagen.db import SqlAuditSink
from pos_datagen.generators.day_orchestrator import DayOrchestrator, DayResult
from pos_datagen.services.interfaces import AuditSink, NullAuditSink
from pos_datagen.services.memory import InMemoryPlatform
from pos_datagen.services.platform import (
    PlatformCashDrawerGateway,
    PlatformCatalog,
    PlatformClient,
    PlatformGiftCardGateway,
    PlatformOrderGateway,
    PlatformPaymentGateway,
    PlatformRefundGateway,
)
from pos_datagen.shared.exceptions import ConfigurationError
from pos_datagen.shared.logging_config import configure_logging

logger = logging.getLogger("pos_datagen")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2

DRY_RUN_MERCHANT_ID = "DRYRUN000000"


def parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got '{value}'") from e


def resolve_config(args: argparse.Namespace) -> SimulatorConfig:
    """
    Load configuration and apply command-line overrides.

    Dry runs fall back to a placeholder merchant when nothing is configured.

    Raises:
        ConfigurationError: If no usable configuration is found
    """
    try:
        config = load_config_with_fallback(args.config)
    except ConfigurationError:
        if not args.dry_run:
            raise
        config = SimulatorConfig(
            merchant=MerchantConfig(merchant_id=DRY_RUN_MERCHANT_ID, merchant_name="Dry Run")
        )
    except (ValueError, ValidationError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    if args.merchants_file:
        try:
            merchants = load_merchants_file(args.merchants_file)
        except (FileNotFoundError, ValueError) as e:
            raise ConfigurationError(str(e)) from e
        config = select_merchant(config, merchants, merchant_id=args.merchant_id)

    updates = {}
    if args.seed is not None:
        updates["simulation"] = config.simulation.model_copy(update={"seed": args.seed})
    if args.log_level:
        updates["log_level"] = args.log_level.upper()
    if updates:
        config = config.model_copy(update=updates)

    if not args.dry_run and not config.merchant.api_token:
        raise ConfigurationError("API token is required; set POS_API_TOKEN or use --dry-run")
    return config


def build_audit_sink(config: SimulatorConfig) -> AuditSink:
    if not config.audit.enabled:
        return NullAuditSink()
    return SqlAuditSink.from_url(config.audit.database_url, echo=config.audit.echo)


def build_orchestrator(
    config: SimulatorConfig, dry_run: bool, audit: AuditSink
) -> DayOrchestrator:
    """Wire the orchestrator to the in-memory platform or to the REST gateways."""
    rng = random.Random(config.simulation.seed)

    if dry_run:
        platform = InMemoryPlatform()
        logger.info("Dry run: using the in-memory sandbox platform")
        return DayOrchestrator(
            config,
            catalog=platform,
            order_gateway=platform,
            payment_gateway=platform,
            refund_gateway=platform,
            gift_card_gateway=platform,
            cash_drawer=platform,
            audit=audit,
            rng=rng,
        )

    client = PlatformClient(
        config.merchant, config.ecommerce, timeout=config.simulation.http_timeout
    )
    return DayOrchestrator(
        config,
        catalog=PlatformCatalog(client),
        order_gateway=PlatformOrderGateway(client),
        payment_gateway=PlatformPaymentGateway(client, random.Random(rng.getrandbits(64))),
        refund_gateway=PlatformRefundGateway(client),
        gift_card_gateway=PlatformGiftCardGateway(client),
        cash_drawer=PlatformCashDrawerGateway(client),
        audit=audit,
        rng=rng,
    )


def cmd_day(orchestrator: DayOrchestrator, args: argparse.Namespace) -> DayResult:
    if args.date is None:
        if args.multiplier != 1.0:
            today = date.today()
            return orchestrator.generate_realistic_day(today, multiplier=args.multiplier)
        return orchestrator.generate_today()
    return orchestrator.generate_realistic_day(args.date, multiplier=args.multiplier)


def cmd_orders(orchestrator: DayOrchestrator, args: argparse.Namespace) -> DayResult:
    if args.date is None:
        return orchestrator.generate_today(count=args.count)
    return orchestrator.generate_for_date(args.date, args.count)


def cmd_summary(config: SimulatorConfig, args: argparse.Namespace) -> int:
    """Print the audit store's daily summary for one date."""
    if not config.audit.enabled:
        print("ERROR: Audit store is disabled; enable audit.enabled or set POS_AUDIT_DATABASE_URL")
        return EXIT_CONFIG

    sink = SqlAuditSink.from_url(config.audit.database_url, echo=config.audit.echo)
    try:
        summary = sink.generate_daily_summary(config.merchant.merchant_id, args.date)
    finally:
        sink.dispose()
    if summary is None:
        print(f"ERROR: Could not build summary for {args.date.isoformat()}")
        return EXIT_FAILURE

    print(f"\n=== Daily Summary: {summary['merchant_id']} {summary['business_date']} ===\n")
    for key in (
        "order_count",
        "payment_count",
        "refund_count",
        "total_revenue",
        "total_tax",
        "total_tips",
        "total_discounts",
    ):
        print(f"  {key:<16} {summary[key]:,}")
    for name, values in summary["breakdown"].items():
        print(f"\n  {name}:")
        for label, value in values.items():
            print(f"    {label:<20} {value:,}")
    print()
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """
    Main CLI entry point - routes to subcommands.

    Returns:
        Exit code
    """
    args = parse_args(argv)
    if args.command is None:
        print("ERROR: No command specified. Use --help for usage information.")
        return EXIT_FAILURE

    configure_logging(args.log_level or "INFO")
    try:
        config = resolve_config(args)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG
    configure_logging(config.log_level)

    if args.command == "summary":
        return cmd_summary(config, args)

    if args.metrics_port:
        from prometheus_client import start_http_server

        start_http_server(args.metrics_port)
        logger.info(f"Serving metrics on port {args.metrics_port}")

    audit = build_audit_sink(config)
    orchestrator = build_orchestrator(config, args.dry_run, audit)
    try:
        if args.command == "day":
            result = cmd_day(orchestrator, args)
        else:
            result = cmd_orders(orchestrator, args)
    except KeyboardInterrupt:
        logger.warning("Simulation interrupted by user")
        return EXIT_FAILURE
    finally:
        if isinstance(audit, SqlAuditSink):
            audit.dispose()

    if result.empty:
        logger.error("Simulation produced no orders")
        return EXIT_FAILURE
    return EXIT_OK


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Simulate restaurant orders against a POS sandbox merchant",
        prog="python -m pos_datagen",
    )
    parser.add_argument("--config", type=str, help="Path to config.json")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run against the in-memory sandbox instead of the REST API",
    )
    parser.add_argument("--seed", type=int, help="Seed for reproducible runs")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the configured log level",
    )
    parser.add_argument(
        "--metrics-port", type=int, help="Expose Prometheus metrics on this port"
    )
    parser.add_argument(
        "--merchants-file", type=str, help="JSON list of merchant credentials"
    )
    parser.add_argument(
        "--merchant-id", type=str, help="Merchant to pick from --merchants-file"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    day_parser = subparsers.add_parser(
        "day",
        help="Generate a realistic day of orders",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Today, sized by the day of week
  python -m pos_datagen day

  # A busy Saturday
  python -m pos_datagen day --date 2026-03-14 --multiplier 1.5
        """,
    )
    day_parser.add_argument("--date", type=parse_date, help="Business date (YYYY-MM-DD)")
    day_parser.add_argument(
        "--multiplier", type=float, default=1.0, help="Scale the day's order count (default: 1.0)"
    )

    orders_parser = subparsers.add_parser("orders", help="Generate a fixed number of orders")
    orders_parser.add_argument("--count", type=int, required=True, help="Number of orders")
    orders_parser.add_argument("--date", type=parse_date, help="Business date (YYYY-MM-DD)")

    summary_parser = subparsers.add_parser(
        "summary", help="Print the audit daily summary for a date"
    )
    summary_parser.add_argument(
        "--date", type=parse_date, default=date.today(), help="Business date (default: today)"
    )

    return parser.parse_args(argv)


if __name__ == "__main__":
    sys.exit(main())
