"""
The persisted card record.

Cards are stored as camelCase JSON records. Apart from the favorite flag,
every field is fixed at the moment the card is minted.
"""

import time
import uuid
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from starcard.models.analysis import CardAnalysis
from starcard.models.rarity import Rarity, classify_rarity


class Texture(str, Enum):
    """Surface finish of a card."""

    GLOSSY = "glossy"
    MATTE = "matte"
    HOLO = "holo"


class StarCard(BaseModel):
    """
    A collectible card.

    Attributes:
        id: Opaque unique identifier, stable for the card's lifetime
        image_url: Data URI or URL of the card image
        name: Idol name
        group: Group name
        vibe: Short descriptor from analysis
        rarity: Tier derived from the analysis score at creation
        created_at: Milliseconds since epoch
        is_favorite: The only field that changes after creation
        texture: Surface finish
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    id: str = Field(..., min_length=1)
    image_url: str
    name: str
    group: str
    vibe: str
    rarity: Rarity
    created_at: int
    is_favorite: bool = False
    texture: Texture = Texture.GLOSSY

    def with_favorite_toggled(self) -> "StarCard":
        """Return a copy with is_favorite flipped."""
        return self.model_copy(update={"is_favorite": not self.is_favorite})


CARD_LIST_ADAPTER = TypeAdapter(list[StarCard])


def now_ms() -> int:
    """Current time in milliseconds since epoch."""
    return int(time.time() * 1000)


def new_card_id() -> str:
    return uuid.uuid4().hex


def mint_card(
    analysis: CardAnalysis,
    image_url: str,
    *,
    name: str | None = None,
    group: str | None = None,
    card_id: str | None = None,
    created_at: int | None = None,
) -> StarCard:
    """
    Build a new card from an accepted analysis.

    name and group default to the analysis values; the caller passes the
    user's edits when the draft was changed. Rarity is classified from the
    analysis score here and nowhere else.
    """
    return StarCard(
        id=card_id or new_card_id(),
        image_url=image_url,
        name=analysis.name if name is None else name,
        group=analysis.group if group is None else group,
        vibe=analysis.vibe,
        rarity=classify_rarity(analysis.rarity_score),
        created_at=now_ms() if created_at is None else created_at,
        is_favorite=False,
        texture=Texture.GLOSSY,
    )
