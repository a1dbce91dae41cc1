"""
Card API endpoints.

Browsing and detail-view operations over the stored collection.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from starcard.api.dependencies import get_controller
from starcard.models.card import StarCard
from starcard.services.card_controller import CardController, ViewFilter

router = APIRouter(prefix="/cards", tags=["cards"])

# Response bodies use camelCase keys, like the card records they carry
CAMEL_CASE = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CardListResponse(BaseModel):
    """Response model for the visible card list."""

    cards: list[StarCard] = Field(default_factory=list)
    count: int = 0
    filter: ViewFilter = ViewFilter.ALL


class CollectionStatsResponse(BaseModel):
    """Response model for collection statistics."""

    model_config = CAMEL_CASE

    total_cards: int = 0
    favorites: int = 0
    by_rarity: dict[str, int] = Field(
        default_factory=dict,
        description="Card counts by rarity (Common, Rare, Legendary, Limited Edition)",
    )


class DeleteResponse(BaseModel):
    """Response model for delete operations."""

    model_config = CAMEL_CASE

    card_id: str
    deleted: bool
    remaining: int


class ShareResponse(BaseModel):
    """Response model for a share attempt."""

    title: str
    text: str
    url: str
    available: bool = Field(
        ...,
        description="False when no share capability is configured",
    )
    shared: bool


class CloseDetailResponse(BaseModel):
    closed: bool


@router.get("", response_model=CardListResponse)
async def list_cards(
    controller: Annotated[CardController, Depends(get_controller)],
    view_filter: Annotated[ViewFilter, Query(alias="filter")] = ViewFilter.ALL,
) -> CardListResponse:
    """
    List cards newest first.

    filter=favorites restricts the list to favorited cards.
    """
    controller.refresh()
    cards = controller.set_filter(view_filter)
    return CardListResponse(cards=cards, count=len(cards), filter=view_filter)


@router.get("/stats", response_model=CollectionStatsResponse)
async def get_collection_stats(
    controller: Annotated[CardController, Depends(get_controller)],
) -> CollectionStatsResponse:
    """Totals, favorites and per-rarity counts for the collection."""
    controller.refresh()
    stats = controller.stats()
    return CollectionStatsResponse(
        total_cards=stats.total,
        favorites=stats.favorites,
        by_rarity=stats.by_rarity,
    )


@router.delete("/selection", response_model=CloseDetailResponse)
async def close_detail(
    controller: Annotated[CardController, Depends(get_controller)],
) -> CloseDetailResponse:
    """Close the detail view. Safe to call with no card open."""
    return CloseDetailResponse(closed=controller.close_detail())


@router.get("/{card_id}", response_model=StarCard)
async def open_card(
    card_id: str,
    controller: Annotated[CardController, Depends(get_controller)],
) -> StarCard:
    """Open a card's detail view."""
    return controller.select_card(card_id)


@router.post("/{card_id}/favorite", response_model=StarCard)
async def toggle_favorite(
    card_id: str,
    controller: Annotated[CardController, Depends(get_controller)],
) -> StarCard:
    """Flip a card's favorite flag."""
    return controller.toggle_favorite(card_id)


@router.delete("/{card_id}", response_model=DeleteResponse)
async def delete_card(
    card_id: str,
    controller: Annotated[CardController, Depends(get_controller)],
) -> DeleteResponse:
    """
    Delete a card.

    Irreversible. Unknown ids return 404.
    """
    deleted_id = controller.delete_card(card_id)
    return DeleteResponse(card_id=deleted_id, deleted=True, remaining=len(controller.cards))


@router.post("/{card_id}/share", response_model=ShareResponse)
async def share(
    card_id: str,
    controller: Annotated[CardController, Depends(get_controller)],
) -> ShareResponse:
    """
    Share a card, best-effort.

    Always returns the share payload; available/shared report whether a
    share capability exists and whether it accepted the card.
    """
    controller.select_card(card_id)
    outcome = await controller.share_selected()
    return ShareResponse(
        title=outcome.payload.title,
        text=outcome.payload.text,
        url=outcome.payload.url,
        available=outcome.available,
        shared=outcome.shared,
    )
