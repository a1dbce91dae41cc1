"""
Rarity tiers and the score classifier.

Rarity is derived exactly once, when a card is minted, from the analysis
score of that moment. It is never recomputed afterwards.
"""

from enum import Enum


class Rarity(str, Enum):
    """Ordinal rarity tier of a card."""

    COMMON = "Common"
    RARE = "Rare"
    LEGENDARY = "Legendary"
    LIMITED = "Limited Edition"

    @property
    def rank(self) -> int:
        """Ordinal position, Common lowest."""
        return _RANKS[self]


_RANKS: dict[Rarity, int] = {
    Rarity.COMMON: 0,
    Rarity.RARE: 1,
    Rarity.LEGENDARY: 2,
    Rarity.LIMITED: 3,
}

# Exclusive lower bounds, checked highest first
LIMITED_THRESHOLD = 90
LEGENDARY_THRESHOLD = 80
RARE_THRESHOLD = 60


def classify_rarity(score: int) -> Rarity:
    """
    Map an analysis score to a rarity tier.

    Scores are nominally 0-100. Out-of-range values fall through the same
    comparisons: below 0 is Common, above 100 is Limited Edition.
    """
    if score > LIMITED_THRESHOLD:
        return Rarity.LIMITED
    if score > LEGENDARY_THRESHOLD:
        return Rarity.LEGENDARY
    if score > RARE_THRESHOLD:
        return Rarity.RARE
    return Rarity.COMMON
