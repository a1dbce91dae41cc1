from starcard.models.analysis import (
    FALLBACK_ANALYSIS,
    AnalysisResult,
    AnalysisSource,
    CardAnalysis,
)
from starcard.models.card import CARD_LIST_ADAPTER, StarCard, Texture, mint_card
from starcard.models.failure import (
    ApiResponse,
    FailureDetail,
    FailureKind,
    KnownError,
    OutcomeType,
)
from starcard.models.rarity import Rarity, classify_rarity

__all__ = [
    "CARD_LIST_ADAPTER",
    "FALLBACK_ANALYSIS",
    "AnalysisResult",
    "AnalysisSource",
    "ApiResponse",
    "CardAnalysis",
    "FailureDetail",
    "FailureKind",
    "KnownError",
    "OutcomeType",
    "Rarity",
    "StarCard",
    "Texture",
    "classify_rarity",
    "mint_card",
]
