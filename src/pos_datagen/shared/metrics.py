"""Prometheus metrics for simulation runs."""
from prometheus_client import REGISTRY, Counter, Histogram


def _get_or_create_metric(metric_class, name: str, doc: str, labelnames=None, **kwargs):
    """Get existing metric or create new one to avoid duplication errors in tests."""
    for collector in list(REGISTRY._collector_to_names.keys()):
        if hasattr(collector, "_name") and collector._name == name:
            return collector
    try:
        if labelnames is not None:
            kwargs["labelnames"] = labelnames
        return metric_class(name, doc, registry=REGISTRY, **kwargs)
    except ValueError as e:
        if "Duplicated timeseries" in str(e):
            for collector in list(REGISTRY._collector_to_names.keys()):
                if hasattr(collector, "_name") and collector._name == name:
                    return collector
        raise


# Order metrics
orders_generated_total = _get_or_create_metric(
    Counter,
    "pos_orders_generated_total",
    "Total number of simulated orders that reached the paid state",
    ["meal_period"],
)

orders_abandoned_total = _get_or_create_metric(
    Counter,
    "pos_orders_abandoned_total",
    "Total number of simulated orders abandoned before payment",
    ["reason"],
)

order_assembly_seconds = _get_or_create_metric(
    Histogram,
    "pos_order_assembly_seconds",
    "Wall time spent assembling one order, including gateway calls",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Discount and payment metrics
discounts_applied_total = _get_or_create_metric(
    Counter,
    "pos_discounts_applied_total",
    "Total number of discounts applied, by waterfall step",
    ["discount_type"],
)

payments_processed_total = _get_or_create_metric(
    Counter,
    "pos_payments_processed_total",
    "Total number of order settlements, by payment path",
    ["payment_path"],
)

refunds_processed_total = _get_or_create_metric(
    Counter,
    "pos_refunds_processed_total",
    "Total number of refunds issued",
    ["refund_kind"],
)

# Failure metrics
gateway_failures_total = _get_or_create_metric(
    Counter,
    "pos_gateway_failures_total",
    "Total number of failed calls to the external platform, by operation",
    ["operation"],
)
