"""
Minor-unit money helpers.

All amounts in the simulator are integers in cents. Percentages are applied
with half-up rounding so results match the platform's own arithmetic
(2297 at 15% is 345, not banker's-rounded 344).
"""

from decimal import ROUND_HALF_UP, Decimal

_ONE = Decimal("1")


def percent_of(amount: int, percentage: float | int | Decimal) -> int:
    """Return ``round(amount * percentage / 100)`` in whole cents, half-up."""
    value = Decimal(int(amount)) * Decimal(str(percentage)) / Decimal(100)
    return int(value.quantize(_ONE, rounding=ROUND_HALF_UP))


def ratio_percent(part: int, whole: int) -> int:
    """Return ``part`` as a whole-number percentage of ``whole``, half-up."""
    if whole <= 0:
        return 0
    value = Decimal(int(part)) * Decimal(100) / Decimal(int(whole))
    return int(value.quantize(_ONE, rounding=ROUND_HALF_UP))


def format_cents(cents: int) -> str:
    """Format cents as a dollar string, e.g. 1234 -> '$12.34'."""
    sign = "-" if cents < 0 else ""
    return f"{sign}${abs(cents) / 100:,.2f}"


def allocate_by_percentages(total: int, percentages: list[int]) -> list[int]:
    """
    Split ``total`` cents by whole-number percentages.

    Every share but the last is ``percent_of(total, pct)``; the last share
    absorbs the remainder so the parts always sum to ``total`` exactly.
    """
    if not percentages:
        return []
    shares = [percent_of(total, pct) for pct in percentages[:-1]]
    shares.append(total - sum(shares))
    return shares


def allocate_proportionally(total: int, weights: list[int]) -> list[int]:
    """
    Spread ``total`` cents over ``weights`` in proportion to each weight.

    Largest-remainder apportionment: every share is the floor of its exact
    part, and leftover cents go to the largest fractions (earliest first on
    ties). Parts sum to ``total`` and never exceed their weight when
    ``total <= sum(weights)``. Non-positive weights get 0.
    """
    positive = [max(0, int(w)) for w in weights]
    whole = sum(positive)
    if whole <= 0:
        return [0] * len(weights)

    shares = []
    remainders = []
    for i, weight in enumerate(positive):
        share, remainder = divmod(int(total) * weight, whole)
        shares.append(share)
        remainders.append((-remainder, i))

    leftover = int(total) - sum(shares)
    for _, i in sorted(remainders)[:leftover]:
        shares[i] += 1
    return shares
