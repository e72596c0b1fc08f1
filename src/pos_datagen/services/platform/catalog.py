"""Catalog reads from the platform, plus the locally shipped discount definitions."""

import logging
from types import ModuleType

from pos_datagen.shared.models import (
    Category,
    ComboDefinition,
    CouponDefinition,
    Customer,
    DiscountDefinition,
    Employee,
    GiftCard,
    Item,
    ModifierGroup,
    OrderType,
    TaxRate,
    Tender,
)

from .client import PlatformClient

logger = logging.getLogger(__name__)


class PlatformCatalog:
    """
    ``CatalogProvider`` over the REST API.

    The platform stores discounts without the typing and eligibility rules
    the resolver needs, and has no notion of combos or coupons, so those
    three definition lists come from a ``sourcedata`` profile.
    """

    def __init__(self, client: PlatformClient, profile: ModuleType | None = None):
        if profile is None:
            from pos_datagen.sourcedata import default as profile
        self._client = client
        self._profile = profile

    def get_items(self) -> list[Item]:
        raw = self._client.get_elements("items", params={"expand": "categories,modifierGroups,taxRates"})
        return [Item.model_validate(item) for item in raw]

    def get_categories(self) -> list[Category]:
        return [Category.model_validate(c) for c in self._client.get_elements("categories")]

    def get_modifier_groups(self) -> list[ModifierGroup]:
        raw = self._client.get_elements("modifier_groups", params={"expand": "modifiers"})
        return [ModifierGroup.model_validate(g) for g in raw]

    def get_discount_definitions(self) -> list[DiscountDefinition]:
        return [DiscountDefinition.model_validate(d) for d in self._profile.DISCOUNT_DEFINITIONS]

    def get_combo_definitions(self) -> list[ComboDefinition]:
        return [ComboDefinition.model_validate(c) for c in self._profile.COMBO_DEFINITIONS]

    def get_coupon_definitions(self) -> list[CouponDefinition]:
        return [CouponDefinition.model_validate(c) for c in self._profile.COUPON_DEFINITIONS]

    def get_tax_rates(self) -> list[TaxRate]:
        return [TaxRate.model_validate(t) for t in self._client.get_elements("tax_rates")]

    def get_tenders(self) -> list[Tender]:
        return [Tender.model_validate(t) for t in self._client.get_elements("tenders")]

    def get_employees(self) -> list[Employee]:
        return [Employee.model_validate(e) for e in self._client.get_elements("employees")]

    def get_customers(self) -> list[Customer]:
        return [Customer.model_validate(c) for c in self._client.get_elements("customers")]

    def get_order_types(self) -> list[OrderType]:
        return [OrderType.model_validate(o) for o in self._client.get_elements("order_types")]

    def get_gift_cards(self) -> list[GiftCard]:
        return [GiftCard.model_validate(g) for g in self._client.get_elements("gift_cards")]
