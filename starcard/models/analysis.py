from dataclasses import dataclass
from enum import Enum


class AnalysisSource(str, Enum):
    """Which path produced an analysis result."""

    LIVE = "live"
    FALLBACK = "fallback"
    UNCONFIGURED = "unconfigured"


@dataclass(frozen=True, slots=True)
class CardAnalysis:
    """
    Descriptive metadata for a card image.

    Attributes:
        name: Suggested idol name
        group: Suggested group name
        vibe: Short free-text descriptor
        rarity_score: Nominally 0-100, feeds the rarity classifier
    """

    name: str
    group: str
    vibe: str
    rarity_score: int


FALLBACK_ANALYSIS = CardAnalysis(
    name="Unknown Star",
    group="Solo",
    vibe="Mysterious, Cool",
    rarity_score=50,
)


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    """An analysis together with the path that produced it."""

    analysis: CardAnalysis
    source: AnalysisSource

    @property
    def is_live(self) -> bool:
        return self.source is AnalysisSource.LIVE

    @classmethod
    def fallback(cls) -> "AnalysisResult":
        return cls(analysis=FALLBACK_ANALYSIS, source=AnalysisSource.FALLBACK)

    @classmethod
    def unconfigured(cls) -> "AnalysisResult":
        return cls(analysis=FALLBACK_ANALYSIS, source=AnalysisSource.UNCONFIGURED)
