"""Customer loyalty tiers derived from visit counts."""

from dataclasses import dataclass
from enum import Enum


class LoyaltyTier(str, Enum):
    NONE = "none"
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"


@dataclass(frozen=True)
class LoyaltyTierRule:
    tier: LoyaltyTier
    min_visits: int
    percentage: float


# Highest threshold first; the first rule a customer meets wins
LOYALTY_TIERS: tuple[LoyaltyTierRule, ...] = (
    LoyaltyTierRule(LoyaltyTier.PLATINUM, 50, 20.0),
    LoyaltyTierRule(LoyaltyTier.GOLD, 25, 15.0),
    LoyaltyTierRule(LoyaltyTier.SILVER, 10, 10.0),
    LoyaltyTierRule(LoyaltyTier.BRONZE, 5, 5.0),
)


def loyalty_rule_for(visit_count: int) -> LoyaltyTierRule | None:
    """Return the highest tier rule the visit count qualifies for."""
    for rule in LOYALTY_TIERS:
        if visit_count >= rule.min_visits:
            return rule
    return None


def loyalty_tier_for(visit_count: int) -> LoyaltyTier:
    rule = loyalty_rule_for(visit_count)
    return rule.tier if rule else LoyaltyTier.NONE
