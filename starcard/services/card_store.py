"""
Card Store — the durable, newest-first card list.

INVARIANTS:
- The whole list lives under one storage key as a JSON array
- Every mutation reads the full list, transforms it, and writes it back
  in a single overwrite; no record is ever partially written
- Card ids are unique within the stored list
- Unreadable or malformed content lists as empty and is never raised

Writes are not guarded against concurrent writers. The store assumes a
single process driving synchronous storage calls.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from starcard.config import CARDS_STORAGE_KEY
from starcard.db.storage import KeyValueStorage, StorageReadError
from starcard.models.card import CARD_LIST_ADAPTER, StarCard
from starcard.models.failure import FailureKind, KnownError

logger = logging.getLogger(__name__)


class DuplicateCardError(KnownError):
    """Raised when adding a card whose id is already stored."""

    def __init__(self, card_id: str):
        self.card_id = card_id
        super().__init__(
            kind=FailureKind.CONFLICT,
            message="A card with this id is already in your collection.",
            detail=f"Duplicate card id: {card_id}",
            status_code=409,
        )


class CardStore:
    """CRUD over the stored card list."""

    def __init__(self, storage: KeyValueStorage, key: str = CARDS_STORAGE_KEY) -> None:
        self._storage = storage
        self._key = key

    @property
    def storage(self) -> KeyValueStorage:
        return self._storage

    @property
    def key(self) -> str:
        return self._key

    def initialize(self) -> None:
        """
        One-time setup at startup.

        Idempotent. Nothing is seeded: an absent key already lists as empty.
        """
        logger.debug("Card store initialized (key=%s)", self._key)

    def list(self) -> list[StarCard]:
        """Return all cards, newest first."""
        try:
            raw = self._storage.get_item(self._key)
        except StorageReadError:
            logger.warning("Failed to read cards; treating as empty", exc_info=True)
            return []

        if raw is None:
            return []

        try:
            return CARD_LIST_ADAPTER.validate_json(raw)
        except ValidationError:
            logger.warning("Stored cards are malformed; treating as empty", exc_info=True)
            return []

    def get(self, card_id: str) -> StarCard | None:
        for card in self.list():
            if card.id == card_id:
                return card
        return None

    def add(self, card: StarCard) -> None:
        """
        Prepend a card and persist the full list.

        Raises:
            DuplicateCardError: If the id is already stored
            StorageWriteError: If the backend rejects the write
        """
        cards = self.list()
        if any(existing.id == card.id for existing in cards):
            raise DuplicateCardError(card.id)

        self._write([card, *cards])
        logger.info("Saved card %s (%s)", card.id, card.rarity.value)

    def remove(self, card_id: str) -> None:
        """Remove the card with card_id. Absent ids are a no-op."""
        cards = self.list()
        remaining = [card for card in cards if card.id != card_id]
        if len(remaining) == len(cards):
            logger.debug("Remove of unknown card %s ignored", card_id)
            return

        self._write(remaining)
        logger.info("Deleted card %s", card_id)

    def toggle_favorite(self, card_id: str) -> list[StarCard]:
        """
        Flip is_favorite on the matching card and persist.

        Returns the updated list so callers can refresh without a second
        read. An unknown id returns the list unchanged.
        """
        cards = self.list()
        updated = [
            card.with_favorite_toggled() if card.id == card_id else card for card in cards
        ]
        if updated == cards:
            return cards

        self._write(updated)
        return updated

    def _write(self, cards: list[StarCard]) -> None:
        payload = CARD_LIST_ADAPTER.dump_json(cards, by_alias=True).decode()
        self._storage.set_item(self._key, payload)
