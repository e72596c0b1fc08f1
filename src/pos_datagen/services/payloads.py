"""
Request payload builders shared by every gateway implementation.

The platform reports a zero amount when a percentage-only discount is read
back, so discount payloads always carry a signed absolute amount and never a
bare percentage.
"""

from typing import Any

from pos_datagen.shared.exceptions import InvalidInputError
from pos_datagen.shared.models import DiningOption, PaymentSplit
from pos_datagen.shared.money import allocate_by_percentages, percent_of

AUTO_GRATUITY_NAME = "Auto Gratuity (18%)"
AUTO_GRATUITY_PERCENTAGE = 18.0


def resolve_discount_amount(
    *,
    amount: int | None = None,
    percentage: float | None = None,
    base_amount: int | None = None,
) -> int:
    """
    Return the absolute discount in cents.

    Raises:
        InvalidInputError: if neither amount nor percentage is given, or a
            percentage comes without the base amount it applies to
    """
    if amount is None and percentage is None:
        raise InvalidInputError("discount requires an amount or a percentage")
    if amount is None:
        if base_amount is None:
            raise InvalidInputError(
                "percentage discount requires a base amount", field="base_amount"
            )
        amount = percent_of(base_amount, percentage)
    if amount < 0:
        raise InvalidInputError("discount amount must be positive", field="amount", value=amount)
    return int(amount)


def build_discount_payload(
    name: str,
    *,
    amount: int | None = None,
    percentage: float | None = None,
    base_amount: int | None = None,
    discount_id: str | None = None,
) -> dict[str, Any]:
    """Discount body with a negative ``amount``, optionally referencing a catalog discount."""
    if not name:
        raise InvalidInputError("discount name is required", field="name")

    value = resolve_discount_amount(amount=amount, percentage=percentage, base_amount=base_amount)
    payload: dict[str, Any] = {"name": name, "amount": -value}
    if discount_id:
        payload["discount"] = {"id": discount_id}
    return payload


def build_service_charge_payload(name: str, percentage: float, amount: int) -> dict[str, Any]:
    if not 0 < percentage <= 100:
        raise InvalidInputError(
            "service charge percentage out of range", field="percentage", value=percentage
        )
    if amount < 0:
        raise InvalidInputError("service charge amount must be positive", field="amount", value=amount)
    return {"name": name, "percentage": percentage, "amount": amount}


def validate_dining_option(dining_option: DiningOption | str) -> DiningOption:
    try:
        return DiningOption(dining_option)
    except ValueError as e:
        raise InvalidInputError(
            "invalid dining option", field="dining_option", value=dining_option
        ) from e


def build_split_payments(
    *,
    total_amount: int,
    splits: list[PaymentSplit],
    tip_amount: int = 0,
    tax_amount: int = 0,
) -> list[dict[str, Any]]:
    """
    Allocate a split payment across tenders.

    Amount and tip are split by percentage with the last share absorbing
    rounding; the whole tax rides on the first payment.
    """
    if not splits:
        raise InvalidInputError("split payment requires at least one split", field="splits")
    percentages = [split.percentage for split in splits]
    if sum(percentages) != 100:
        raise InvalidInputError(
            "split percentages must sum to 100", field="splits", value=percentages
        )

    amounts = allocate_by_percentages(total_amount, percentages)
    tips = allocate_by_percentages(tip_amount, percentages)
    return [
        {
            "tender_id": split.tender.id,
            "tender_label": split.tender.label,
            "amount": amounts[i],
            "tip_amount": tips[i],
            "tax_amount": tax_amount if i == 0 else 0,
        }
        for i, split in enumerate(splits)
    ]
