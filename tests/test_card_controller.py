"""
Tests for the application controller.

INVARIANTS:
- No card is persisted before confirm_draft
- Only one draft at a time
- Results for discarded drafts are dropped
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from starcard.db.storage import InMemoryStorage, StorageWriteError
from starcard.models.analysis import AnalysisResult, AnalysisSource
from starcard.models.card import Texture
from starcard.models.rarity import Rarity
from starcard.services.analysis_gateway import AnalysisGateway
from starcard.services.card_controller import (
    CardController,
    CardNotFoundError,
    CreationInProgressError,
    CreationPhase,
    DraftDiscardedError,
    InvalidDraftEditError,
    NoActiveDraftError,
    NoCardSelectedError,
    ViewFilter,
)
from starcard.services.card_store import CardStore
from starcard.services.images import InvalidImageError


class FlakyStorage(InMemoryStorage):
    """Rejects writes while fail_writes is set."""

    fail_writes = False

    def set_item(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise StorageWriteError(key)
        super().set_item(key, value)


class RecordingShareTarget:
    def __init__(self) -> None:
        self.payloads = []

    async def share(self, payload) -> None:
        self.payloads.append(payload)


class BrokenShareTarget:
    async def share(self, payload) -> None:
        raise RuntimeError("share sheet dismissed")


class BlockingGateway:
    """Gateway whose analysis resolves only when released."""

    def __init__(self) -> None:
        self.release = asyncio.Event()
        self.started = asyncio.Event()

    configured = True

    async def analyze(self, image) -> AnalysisResult:
        self.started.set()
        await self.release.wait()
        return AnalysisResult.fallback()


@pytest.fixture
def controller(store: CardStore, unconfigured_gateway: AnalysisGateway) -> CardController:
    ids = iter(f"id-{n}" for n in range(100))
    controller = CardController(
        store,
        unconfigured_gateway,
        share_url="https://starcard.example/",
        clock=lambda: 1_700_000_000_000,
        id_factory=lambda: next(ids),
    )
    controller.load()
    return controller


class TestCreationFlow:
    async def test_starts_idle(self, controller: CardController) -> None:
        assert controller.phase == CreationPhase.IDLE
        assert controller.draft is None

    async def test_analysis_moves_to_reviewing(
        self, controller: CardController, png_bytes: bytes
    ) -> None:
        draft = await controller.start_creation(png_bytes)

        assert controller.phase == CreationPhase.REVIEWING
        assert draft.result is not None
        assert draft.result.source == AnalysisSource.UNCONFIGURED
        assert draft.name == "Unknown Star"
        assert draft.group == "Solo"
        assert draft.image_url.startswith("data:image/png;base64,")

    async def test_nothing_persisted_before_confirm(
        self, controller: CardController, store: CardStore, png_bytes: bytes
    ) -> None:
        await controller.start_creation(png_bytes)
        assert store.list() == []

    async def test_fallback_card_end_to_end(
        self, controller: CardController, store: CardStore, png_bytes: bytes
    ) -> None:
        """Score 50 fallback yields a Common, glossy, non-favorite card."""
        await controller.start_creation(png_bytes)
        card = controller.confirm_draft()

        assert card.rarity == Rarity.COMMON
        assert card.texture == Texture.GLOSSY
        assert card.is_favorite is False
        assert card.id == "id-0"
        assert card.created_at == 1_700_000_000_000
        assert store.list() == [card]
        assert controller.cards == [card]
        assert controller.phase == CreationPhase.IDLE
        assert controller.draft is None

    async def test_live_analysis_rarity(
        self, store: CardStore, live_gateway: AnalysisGateway, png_bytes: bytes
    ) -> None:
        controller = CardController(store, live_gateway)

        draft = await controller.start_creation(png_bytes)
        card = controller.confirm_draft()

        assert draft.rarity_preview == Rarity.LEGENDARY
        assert card.rarity == Rarity.LEGENDARY
        assert card.name == "Karina"

    async def test_edits_apply_to_saved_card(
        self, controller: CardController, png_bytes: bytes
    ) -> None:
        await controller.start_creation(png_bytes)
        controller.edit_draft(name="  Yuna ", group="ITZY")

        card = controller.confirm_draft()

        assert card.name == "Yuna"
        assert card.group == "ITZY"
        assert card.vibe == "Mysterious, Cool"

    async def test_blank_edit_rejected(self, controller: CardController, png_bytes: bytes) -> None:
        await controller.start_creation(png_bytes)

        with pytest.raises(InvalidDraftEditError):
            controller.edit_draft(name="   ")
        assert controller.draft is not None
        assert controller.draft.name == "Unknown Star"

    async def test_cancel_discards_draft(
        self, controller: CardController, store: CardStore, png_bytes: bytes
    ) -> None:
        await controller.start_creation(png_bytes)

        assert controller.cancel_creation() is True
        assert controller.phase == CreationPhase.IDLE
        assert controller.draft is None
        assert store.list() == []

    async def test_cancel_when_idle(self, controller: CardController) -> None:
        assert controller.cancel_creation() is False

    async def test_confirm_without_draft(self, controller: CardController) -> None:
        with pytest.raises(NoActiveDraftError):
            controller.confirm_draft()

    async def test_edit_without_draft(self, controller: CardController) -> None:
        with pytest.raises(NoActiveDraftError):
            controller.edit_draft(name="x")

    async def test_second_creation_refused_while_reviewing(
        self, controller: CardController, png_bytes: bytes
    ) -> None:
        await controller.start_creation(png_bytes)

        with pytest.raises(CreationInProgressError) as exc_info:
            await controller.start_creation(png_bytes)
        assert exc_info.value.status_code == 409

    async def test_invalid_image_leaves_idle(self, controller: CardController) -> None:
        with pytest.raises(InvalidImageError):
            await controller.start_creation(b"")
        assert controller.phase == CreationPhase.IDLE

    async def test_write_failure_keeps_draft_for_retry(self, png_bytes: bytes) -> None:
        storage = FlakyStorage()
        controller = CardController(CardStore(storage), AnalysisGateway(None))
        await controller.start_creation(png_bytes)

        storage.fail_writes = True
        with pytest.raises(StorageWriteError):
            controller.confirm_draft()
        assert controller.phase == CreationPhase.REVIEWING

        storage.fail_writes = False
        card = controller.confirm_draft()
        assert controller.cards == [card]


class TestSupersededAnalysis:
    async def test_result_dropped_after_cancel(self, store: CardStore, png_bytes: bytes) -> None:
        gateway = BlockingGateway()
        controller = CardController(store, gateway)  # type: ignore[arg-type]

        task = asyncio.create_task(controller.start_creation(png_bytes))
        await gateway.started.wait()
        assert controller.phase == CreationPhase.ANALYZING

        controller.cancel_creation()
        gateway.release.set()

        with pytest.raises(DraftDiscardedError):
            await task
        assert controller.phase == CreationPhase.IDLE
        assert controller.draft is None
        assert store.list() == []

    async def test_second_start_refused_while_analyzing(
        self, store: CardStore, png_bytes: bytes
    ) -> None:
        gateway = BlockingGateway()
        controller = CardController(store, gateway)  # type: ignore[arg-type]

        task = asyncio.create_task(controller.start_creation(png_bytes))
        await gateway.started.wait()

        with pytest.raises(CreationInProgressError):
            await controller.start_creation(png_bytes)

        gateway.release.set()
        draft = await task
        assert draft.result is not None
        assert controller.phase == CreationPhase.REVIEWING

    async def test_stale_result_does_not_overwrite_new_draft(
        self, store: CardStore, png_bytes: bytes, png_data_uri: str
    ) -> None:
        first = BlockingGateway()
        controller = CardController(store, first)  # type: ignore[arg-type]

        stale = asyncio.create_task(controller.start_creation(png_bytes))
        await first.started.wait()
        controller.cancel_creation()

        controller.gateway = AnalysisGateway(None)
        fresh = await controller.start_creation(png_data_uri)

        first.release.set()
        with pytest.raises(DraftDiscardedError):
            await stale
        assert controller.draft is fresh
        assert controller.phase == CreationPhase.REVIEWING

    async def test_cancelled_analysis_returns_to_idle(
        self, store: CardStore, png_bytes: bytes
    ) -> None:
        gateway = BlockingGateway()
        controller = CardController(store, gateway)  # type: ignore[arg-type]

        task = asyncio.create_task(controller.start_creation(png_bytes))
        await gateway.started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert controller.phase == CreationPhase.IDLE
        assert controller.draft is None

        controller.gateway = AnalysisGateway(None)
        draft = await controller.start_creation(png_bytes)
        assert controller.phase == CreationPhase.REVIEWING
        assert controller.draft is draft

    async def test_raising_gateway_returns_to_idle(
        self, store: CardStore, png_bytes: bytes
    ) -> None:
        gateway = AsyncMock()
        gateway.analyze.side_effect = RuntimeError("gateway bug")
        controller = CardController(store, gateway)

        with pytest.raises(RuntimeError):
            await controller.start_creation(png_bytes)

        assert controller.phase == CreationPhase.IDLE
        assert controller.draft is None


class TestBrowsing:
    def test_filter_favorites(self, controller: CardController, store: CardStore, make_card) -> None:
        store.add(make_card("a"))
        store.add(make_card("b", is_favorite=True))
        controller.refresh()

        assert [c.id for c in controller.set_filter(ViewFilter.FAVORITES)] == ["b"]
        assert [c.id for c in controller.set_filter(ViewFilter.ALL)] == ["b", "a"]

    def test_select_unknown_card(self, controller: CardController) -> None:
        with pytest.raises(CardNotFoundError) as exc_info:
            controller.select_card("nope")
        assert exc_info.value.status_code == 404

    def test_toggle_refreshes_list_and_selection(
        self, controller: CardController, store: CardStore, make_card
    ) -> None:
        store.add(make_card("a"))
        controller.select_card("a")

        card = controller.toggle_favorite("a")

        assert card.is_favorite is True
        assert controller.selected == card
        assert controller.cards[0].is_favorite is True

    def test_toggle_unknown_card(self, controller: CardController) -> None:
        with pytest.raises(CardNotFoundError):
            controller.toggle_favorite("nope")

    def test_delete_selected_returns_to_browsing(
        self, controller: CardController, store: CardStore, make_card
    ) -> None:
        store.add(make_card("a"))
        store.add(make_card("b"))
        controller.select_card("a")

        assert controller.delete_selected() == "a"
        assert controller.selected is None
        assert [c.id for c in controller.cards] == ["b"]
        assert [c.id for c in store.list()] == ["b"]

    def test_close_detail_returns_to_browsing(
        self, controller: CardController, store: CardStore, make_card
    ) -> None:
        store.add(make_card("a"))
        controller.select_card("a")

        assert controller.close_detail() is True
        assert controller.selected is None
        assert controller.close_detail() is False

        with pytest.raises(NoCardSelectedError):
            controller.delete_selected()
        assert [c.id for c in store.list()] == ["a"]

    def test_delete_without_selection(self, controller: CardController) -> None:
        with pytest.raises(NoCardSelectedError):
            controller.delete_selected()

    def test_stats(self, controller: CardController, store: CardStore, make_card) -> None:
        store.add(make_card("a", rarity=Rarity.COMMON))
        store.add(make_card("b", rarity=Rarity.LIMITED, is_favorite=True))
        store.add(make_card("c", rarity=Rarity.LIMITED))
        controller.refresh()

        stats = controller.stats()

        assert stats.total == 3
        assert stats.favorites == 1
        assert stats.by_rarity == {
            "Common": 1,
            "Rare": 0,
            "Legendary": 0,
            "Limited Edition": 2,
        }


class TestShare:
    async def test_unavailable_without_target(
        self, controller: CardController, store: CardStore, make_card
    ) -> None:
        store.add(make_card("a", name="Wonyoung"))
        controller.select_card("a")

        outcome = await controller.share_selected()

        assert outcome.available is False
        assert outcome.shared is False
        assert outcome.payload.title == "Wonyoung - StarCard"
        assert outcome.payload.url == "https://starcard.example/"

    async def test_shares_through_target(self, store: CardStore, make_card) -> None:
        target = RecordingShareTarget()
        controller = CardController(store, AnalysisGateway(None), share_target=target)
        store.add(make_card("a", rarity=Rarity.RARE, name="Minji"))
        controller.select_card("a")

        outcome = await controller.share_selected()

        assert outcome.shared is True
        assert target.payloads == [outcome.payload]
        assert outcome.payload.text == "Check out my Rare card of Minji!"

    async def test_share_failure_is_not_raised(self, store: CardStore, make_card) -> None:
        controller = CardController(
            store, AnalysisGateway(None), share_target=BrokenShareTarget()
        )
        store.add(make_card("a"))
        controller.select_card("a")

        outcome = await controller.share_selected()

        assert outcome.available is True
        assert outcome.shared is False

    async def test_share_without_selection(self, controller: CardController) -> None:
        with pytest.raises(NoCardSelectedError):
            await controller.share_selected()


class TestGatewayContract:
    async def test_controller_passes_original_image(self, store: CardStore, png_data_uri) -> None:
        gateway = AsyncMock()
        gateway.analyze.return_value = AnalysisResult.fallback()
        controller = CardController(store, gateway)

        await controller.start_creation(png_data_uri)

        gateway.analyze.assert_awaited_once_with(png_data_uri)
