"""
Draft API endpoints.

Drive the card creation flow: upload an image, review and edit the
analysed draft, then confirm or cancel it.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from starcard.api.dependencies import get_controller
from starcard.models.analysis import AnalysisSource
from starcard.models.card import StarCard
from starcard.models.rarity import Rarity
from starcard.services.card_controller import CardController, CreationPhase

router = APIRouter(prefix="/draft", tags=["draft"])


class DraftCreateRequest(BaseModel):
    """Request model for starting a new card."""

    image: str = Field(
        ...,
        min_length=1,
        description="Image as a data URI or bare base64",
        examples=["data:image/jpeg;base64,/9j/4AAQSkZJRg..."],
    )


class DraftUpdateRequest(BaseModel):
    """Request model for editing a draft before it is saved."""

    name: str | None = None
    group: str | None = None


class DraftResponse(BaseModel):
    """Current state of the creation flow."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    phase: CreationPhase
    image_url: str | None = None
    name: str | None = None
    group: str | None = None
    vibe: str | None = None
    rarity_score: int | None = None
    rarity: Rarity | None = Field(
        default=None,
        description="Rarity the card will get when saved",
    )
    analysis_source: AnalysisSource | None = Field(
        default=None,
        description="live, fallback, or unconfigured",
    )


class CancelResponse(BaseModel):
    cancelled: bool


def _draft_response(controller: CardController) -> DraftResponse:
    draft = controller.draft
    if draft is None:
        return DraftResponse(phase=controller.phase)

    response = DraftResponse(phase=controller.phase, image_url=draft.image_url)
    if draft.result is not None:
        response.name = draft.name
        response.group = draft.group
        response.vibe = draft.result.analysis.vibe
        response.rarity_score = draft.result.analysis.rarity_score
        response.rarity = draft.rarity_preview
        response.analysis_source = draft.result.source
    return response


@router.get("", response_model=DraftResponse)
async def get_draft(
    controller: Annotated[CardController, Depends(get_controller)],
) -> DraftResponse:
    """Current creation phase and draft, if any."""
    return _draft_response(controller)


@router.post("", response_model=DraftResponse)
async def start_draft(
    request: DraftCreateRequest,
    controller: Annotated[CardController, Depends(get_controller)],
) -> DraftResponse:
    """
    Start a new card from an image.

    Waits for the analysis and returns the draft ready for review. Analysis
    failures never fail this call; analysis_source reports the fallback.
    """
    await controller.start_creation(request.image)
    return _draft_response(controller)


@router.patch("", response_model=DraftResponse)
async def edit_draft(
    request: DraftUpdateRequest,
    controller: Annotated[CardController, Depends(get_controller)],
) -> DraftResponse:
    """Edit the draft's name and/or group."""
    controller.edit_draft(name=request.name, group=request.group)
    return _draft_response(controller)


@router.post("/confirm", response_model=StarCard, status_code=status.HTTP_201_CREATED)
async def confirm_draft(
    controller: Annotated[CardController, Depends(get_controller)],
) -> StarCard:
    """Save the reviewed draft to the collection."""
    return controller.confirm_draft()


@router.delete("", response_model=CancelResponse)
async def cancel_draft(
    controller: Annotated[CardController, Depends(get_controller)],
) -> CancelResponse:
    """Discard the draft. Safe to call with no draft open."""
    return CancelResponse(cancelled=controller.cancel_creation())
