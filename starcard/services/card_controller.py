"""
Application Controller — creation flow and browsing state.

Creation flow:
    IDLE --start_creation--> ANALYZING --(analysis resolves)--> REVIEWING
    REVIEWING --confirm_draft--> IDLE (card saved)
    ANALYZING / REVIEWING --cancel_creation--> IDLE (draft discarded)

INVARIANTS:
- Only one draft exists at a time; a second start is refused
- No card is persisted before confirm_draft
- An analysis that resolves after its draft was discarded is dropped
- The in-memory card list is replaced from the store after every mutation

Browsing keeps a view filter and an optional selected card (detail view)
from which favorite, delete and share act.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from starcard.models.analysis import AnalysisResult
from starcard.models.card import StarCard, mint_card, new_card_id, now_ms
from starcard.models.failure import FailureKind, KnownError
from starcard.models.rarity import Rarity, classify_rarity
from starcard.services.analysis_gateway import AnalysisGateway
from starcard.services.card_store import CardStore
from starcard.services.images import load_image
from starcard.services.share import SharePayload, ShareTarget, build_share_payload, share_card

logger = logging.getLogger(__name__)


class CreationPhase(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    REVIEWING = "reviewing"


class ViewFilter(str, Enum):
    ALL = "all"
    FAVORITES = "favorites"


# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================


class CardNotFoundError(KnownError):
    def __init__(self, card_id: str):
        self.card_id = card_id
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message="That card is not in your collection.",
            detail=f"Unknown card id: {card_id}",
            status_code=404,
        )


class NoCardSelectedError(KnownError):
    def __init__(self) -> None:
        super().__init__(
            kind=FailureKind.INVALID_STATE,
            message="Open a card first.",
            detail="No card selected",
            status_code=409,
        )


class CreationInProgressError(KnownError):
    """Raised when a new card is started while another draft is open."""

    def __init__(self, phase: CreationPhase):
        self.phase = phase
        super().__init__(
            kind=FailureKind.INVALID_STATE,
            message="A card is already being created.",
            detail=f"Creation phase: {phase.value}",
            suggestion="Save or cancel the current card first.",
            status_code=409,
        )


class NoActiveDraftError(KnownError):
    def __init__(self, phase: CreationPhase):
        self.phase = phase
        super().__init__(
            kind=FailureKind.INVALID_STATE,
            message="There is no card ready to review.",
            detail=f"Creation phase: {phase.value}",
            suggestion="Upload a photo to start a new card.",
            status_code=409,
        )


class DraftDiscardedError(KnownError):
    """Raised to the starter of an analysis whose draft was cancelled meanwhile."""

    def __init__(self, token: int):
        self.token = token
        super().__init__(
            kind=FailureKind.CONFLICT,
            message="This card was cancelled before its analysis finished.",
            detail=f"Draft {token} discarded",
            status_code=409,
        )


class InvalidDraftEditError(KnownError):
    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(
            kind=FailureKind.MISSING_REQUIRED,
            message=f"The card {field_name} cannot be empty.",
            detail=f"Blank {field_name}",
            status_code=400,
        )


# =============================================================================
# STATE
# =============================================================================


@dataclass
class Draft:
    """
    A card being created, not yet persisted.

    token identifies the creation attempt; name and group start from the
    analysis and may be edited until the draft is confirmed.
    """

    token: int
    image_url: str
    result: AnalysisResult | None = None
    name: str = ""
    group: str = ""

    @property
    def rarity_preview(self) -> Rarity | None:
        if self.result is None:
            return None
        return classify_rarity(self.result.analysis.rarity_score)


@dataclass(frozen=True, slots=True)
class ShareOutcome:
    payload: SharePayload
    available: bool
    shared: bool


@dataclass(frozen=True, slots=True)
class CollectionStats:
    total: int
    favorites: int
    by_rarity: dict[str, int] = field(default_factory=dict)


class CardController:
    """
    Single-session orchestration over the card store and analysis gateway.

    Collaborators are injected so tests can swap in in-memory storage and
    fake gateways.
    """

    def __init__(
        self,
        store: CardStore,
        gateway: AnalysisGateway,
        share_target: ShareTarget | None = None,
        share_url: str = "",
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = new_card_id,
    ) -> None:
        self.store = store
        self.gateway = gateway
        self.share_target = share_target
        self.share_url = share_url
        self._clock = clock
        self._id_factory = id_factory

        self.cards: list[StarCard] = []
        self.view_filter = ViewFilter.ALL
        self.selected: StarCard | None = None

        self.phase = CreationPhase.IDLE
        self.draft: Draft | None = None
        self._generation = 0

    # --- Browsing ---

    def load(self) -> None:
        """Initialize storage and load the card list."""
        self.store.initialize()
        self.refresh()

    def refresh(self) -> list[StarCard]:
        self.cards = self.store.list()
        return self.cards

    @property
    def visible_cards(self) -> list[StarCard]:
        if self.view_filter is ViewFilter.FAVORITES:
            return [card for card in self.cards if card.is_favorite]
        return list(self.cards)

    def set_filter(self, view_filter: ViewFilter) -> list[StarCard]:
        self.view_filter = view_filter
        return self.visible_cards

    def select_card(self, card_id: str) -> StarCard:
        """Open the detail view for a card."""
        card = self.store.get(card_id)
        if card is None:
            raise CardNotFoundError(card_id)
        self.selected = card
        return card

    def close_detail(self) -> bool:
        """Return to browsing. Returns False if no card was open."""
        was_open = self.selected is not None
        self.selected = None
        return was_open

    def toggle_favorite(self, card_id: str) -> StarCard:
        """Flip a card's favorite flag and return the updated card."""
        self.cards = self.store.toggle_favorite(card_id)
        card = next((c for c in self.cards if c.id == card_id), None)
        if card is None:
            raise CardNotFoundError(card_id)

        if self.selected is not None and self.selected.id == card_id:
            self.selected = card
        return card

    def delete_selected(self) -> str:
        """Delete the card in the detail view and return to browsing."""
        if self.selected is None:
            raise NoCardSelectedError()

        card_id = self.selected.id
        self.store.remove(card_id)
        self.refresh()
        self.selected = None
        return card_id

    def delete_card(self, card_id: str) -> str:
        self.select_card(card_id)
        return self.delete_selected()

    async def share_selected(self) -> ShareOutcome:
        """Share the card in the detail view, best-effort."""
        if self.selected is None:
            raise NoCardSelectedError()

        payload = build_share_payload(self.selected, self.share_url)
        shared = await share_card(self.share_target, payload)
        return ShareOutcome(
            payload=payload,
            available=self.share_target is not None,
            shared=shared,
        )

    def stats(self) -> CollectionStats:
        by_rarity = {rarity.value: 0 for rarity in Rarity}
        for card in self.cards:
            by_rarity[card.rarity.value] += 1
        return CollectionStats(
            total=len(self.cards),
            favorites=sum(1 for card in self.cards if card.is_favorite),
            by_rarity=by_rarity,
        )

    # --- Creation flow ---

    async def start_creation(self, image: bytes | str) -> Draft:
        """
        Begin a new card from an image and wait for its analysis.

        Raises:
            CreationInProgressError: If a draft is already open
            InvalidImageError: If the image cannot be decoded
            DraftDiscardedError: If the draft was cancelled while analyzing

        If the analysis is cancelled or raises, the draft is discarded and
        the flow returns to IDLE before the error propagates.
        """
        if self.phase is not CreationPhase.IDLE:
            raise CreationInProgressError(self.phase)

        image_url = load_image(image).to_data_uri()

        self._generation += 1
        draft = Draft(token=self._generation, image_url=image_url)
        self.draft = draft
        self.phase = CreationPhase.ANALYZING

        try:
            result = await self.gateway.analyze(image)
        except BaseException:
            if self.draft is draft:
                logger.warning("Analysis for draft %d did not complete; discarding", draft.token)
                self.draft = None
                self.phase = CreationPhase.IDLE
            raise

        if self.draft is None or self.draft.token != draft.token:
            logger.info("Dropping analysis for discarded draft %d", draft.token)
            raise DraftDiscardedError(draft.token)

        draft.result = result
        draft.name = result.analysis.name
        draft.group = result.analysis.group
        self.phase = CreationPhase.REVIEWING
        logger.debug("Draft %d ready (%s analysis)", draft.token, result.source.value)
        return draft

    def edit_draft(self, name: str | None = None, group: str | None = None) -> Draft:
        draft = self._reviewing_draft()

        if name is not None:
            if not name.strip():
                raise InvalidDraftEditError("name")
            draft.name = name.strip()
        if group is not None:
            if not group.strip():
                raise InvalidDraftEditError("group")
            draft.group = group.strip()
        return draft

    def cancel_creation(self) -> bool:
        """Discard the open draft. Returns False if there was none."""
        if self.phase is CreationPhase.IDLE:
            return False

        if self.draft is not None:
            logger.debug("Draft %d cancelled during %s", self.draft.token, self.phase.value)
        self.draft = None
        self.phase = CreationPhase.IDLE
        return True

    def confirm_draft(self) -> StarCard:
        """
        Mint the reviewed draft into a card and save it.

        On a storage failure the draft stays open for a retry.
        """
        draft = self._reviewing_draft()
        analysis = draft.result.analysis if draft.result else None
        if analysis is None:
            raise NoActiveDraftError(self.phase)

        card = mint_card(
            analysis,
            draft.image_url,
            name=draft.name,
            group=draft.group,
            card_id=self._id_factory(),
            created_at=self._clock(),
        )
        self.store.add(card)

        self.refresh()
        self.draft = None
        self.phase = CreationPhase.IDLE
        return card

    def _reviewing_draft(self) -> Draft:
        if self.phase is not CreationPhase.REVIEWING or self.draft is None:
            raise NoActiveDraftError(self.phase)
        return self.draft
