"""
StarCard services.

Business logic for card analysis, storage and the creation flow.
"""

from starcard.services.analysis_gateway import (
    ANALYSIS_PROMPT,
    ANALYSIS_TOOL,
    AnalysisGateway,
    AnalysisResponseError,
    create_analysis_gateway,
    parse_analysis_response,
)
from starcard.services.card_controller import (
    CardController,
    CardNotFoundError,
    CollectionStats,
    CreationInProgressError,
    CreationPhase,
    Draft,
    DraftDiscardedError,
    InvalidDraftEditError,
    NoActiveDraftError,
    NoCardSelectedError,
    ShareOutcome,
    ViewFilter,
)
from starcard.services.card_store import CardStore, DuplicateCardError
from starcard.services.images import ImagePayload, InvalidImageError, load_image
from starcard.services.share import (
    SharePayload,
    ShareTarget,
    WebhookShareTarget,
    build_share_payload,
    create_share_target,
    share_card,
)

__all__ = [
    "ANALYSIS_PROMPT",
    "ANALYSIS_TOOL",
    "AnalysisGateway",
    "AnalysisResponseError",
    "CardController",
    "CardNotFoundError",
    "CardStore",
    "CollectionStats",
    "CreationInProgressError",
    "CreationPhase",
    "Draft",
    "DraftDiscardedError",
    "DuplicateCardError",
    "ImagePayload",
    "InvalidDraftEditError",
    "InvalidImageError",
    "NoActiveDraftError",
    "NoCardSelectedError",
    "SharePayload",
    "ShareOutcome",
    "ShareTarget",
    "WebhookShareTarget",
    "build_share_payload",
    "create_analysis_gateway",
    "create_share_target",
    "load_image",
    "parse_analysis_response",
    "share_card",
]
