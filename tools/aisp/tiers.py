# SPDX-License-Identifier: MIT
"""
AISP Quality Tiers

Maps a density value to one of five ordered tiers. Lower bounds are
closed: a delta sitting exactly on a threshold belongs to the higher tier.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Tuple


class Tier(Enum):
    """
    Quality tier taxonomy.

    Each member carries its symbol, ordinal value and display name.
    Members are declared from lowest to highest.
    """

    REJECT = ("⊘", 0, "Reject")
    BRONZE = ("◊⁻", 1, "Bronze")
    SILVER = ("◊", 2, "Silver")
    GOLD = ("◊⁺", 3, "Gold")
    PLATINUM = ("◊⁺⁺", 4, "Platinum")

    def __init__(self, symbol: str, tier_value: int, tier_name: str) -> None:
        self.symbol = symbol
        self.tier_value = tier_value
        self.tier_name = tier_name

    def __str__(self) -> str:
        return self.symbol

    def __lt__(self, other: "Tier") -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.tier_value < other.tier_value

    def __le__(self, other: "Tier") -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.tier_value <= other.tier_value

    def __gt__(self, other: "Tier") -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.tier_value > other.tier_value

    def __ge__(self, other: "Tier") -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.tier_value >= other.tier_value

    @classmethod
    def from_value(cls, value: int) -> "Tier":
        """Look up a tier by ordinal; unknown ordinals are Reject."""
        for tier in cls:
            if tier.tier_value == value:
                return tier
        return cls.REJECT

    def to_dict(self) -> Dict[str, object]:
        return {
            "tier": self.symbol,
            "tier_value": self.tier_value,
            "tier_name": self.tier_name,
        }


# Checked from the top down
TIER_THRESHOLDS: Tuple[Tuple[float, Tier], ...] = (
    (0.75, Tier.PLATINUM),
    (0.60, Tier.GOLD),
    (0.40, Tier.SILVER),
    (0.20, Tier.BRONZE),
)

# Minimum delta a heuristic-mode document needs to pass
MINIMUM_PASSING_DELTA = 0.20


def tier_from_delta(delta: float) -> Tier:
    """
    Classify a density value.

    Args:
        delta: Semantic density in [0, 1]

    Returns:
        The highest tier whose threshold delta reaches
    """
    for threshold, tier in TIER_THRESHOLDS:
        if delta >= threshold:
            return tier
    return Tier.REJECT
