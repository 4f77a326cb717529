"""Loyalty tiers and the weighted score they are derived from.

The score is a pure function of a guest's business metrics:

    value        min(total_value / 10000, 1) * 40
    frequency    min(visit_count / 10, 1)    * 25
    satisfaction (average_rating / 5)        * 20
    referrals    min(referral_count / 5, 1)  * 10
    tenure       min(months / 12, 1)         * 5

A score of 80 or more is platinum, 60 gold, 30 silver, anything lower bronze.
"""

import math
from dataclasses import dataclass
from enum import Enum


class LoyaltyLevel(Enum):
    """Enumeration of guest loyalty tiers."""

    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"

    def __str__(self):
        return self.value

    @property
    def tier(self) -> int:
        return _TIER_ORDER.index(self)

    @property
    def display_name(self) -> str:
        return f"{self.value.capitalize()} Guest"

    @property
    def benefits(self) -> list[str]:
        return list(_BENEFITS[self])

    def can_upgrade_to(self, other: "LoyaltyLevel") -> bool:
        return other.tier > self.tier


# Tier ordering for upgrade validation
_TIER_ORDER = [LoyaltyLevel.BRONZE, LoyaltyLevel.SILVER, LoyaltyLevel.GOLD, LoyaltyLevel.PLATINUM]

_BENEFITS = {
    LoyaltyLevel.PLATINUM: [
        "Dedicated concierge hotline",
        "Complimentary room upgrade",
        "Late checkout until 2 PM",
        "Complimentary airport transfer",
        "Birthday surprise gift",
        "Exclusive welcome amenity",
    ],
    LoyaltyLevel.GOLD: [
        "Priority booking",
        "Premium Wi-Fi",
        "Late checkout until noon",
        "Double points",
        "Complimentary breakfast",
    ],
    LoyaltyLevel.SILVER: [
        "Member-only rates",
        "Points rewards",
        "Complimentary in-room Wi-Fi",
        "Birthday greeting",
    ],
    LoyaltyLevel.BRONZE: [
        "Points accrual",
        "Member newsletter",
        "Promotion alerts",
    ],
}

PLATINUM_THRESHOLD = 80
GOLD_THRESHOLD = 60
SILVER_THRESHOLD = 30


@dataclass(frozen=True)
class LoyaltyMetrics:
    """Inputs of the loyalty score."""

    total_value: float = 0.0
    visit_count: int = 0
    average_rating: float = 0.0
    referral_count: int = 0
    months_since_first_visit: int = 0


def calculate_score(metrics: LoyaltyMetrics) -> int:
    """Weighted loyalty score in [0, 100]."""
    value_score = min(max(metrics.total_value, 0) / 10000, 1) * 40
    frequency_score = min(max(metrics.visit_count, 0) / 10, 1) * 25
    satisfaction_score = (min(max(metrics.average_rating, 0), 5) / 5) * 20
    referral_score = min(max(metrics.referral_count, 0) / 5, 1) * 10
    tenure_score = min(max(metrics.months_since_first_visit, 0) / 12, 1) * 5

    # Half-up rounding
    score = math.floor(value_score + frequency_score + satisfaction_score + referral_score + tenure_score + 0.5)
    return max(0, min(100, score))


def level_for_score(score: float) -> LoyaltyLevel:
    if score >= PLATINUM_THRESHOLD:
        return LoyaltyLevel.PLATINUM
    if score >= GOLD_THRESHOLD:
        return LoyaltyLevel.GOLD
    if score >= SILVER_THRESHOLD:
        return LoyaltyLevel.SILVER
    return LoyaltyLevel.BRONZE


def calculate_level(metrics: LoyaltyMetrics) -> LoyaltyLevel:
    """Loyalty tier for the given metrics. Pure and idempotent."""
    return level_for_score(calculate_score(metrics))
