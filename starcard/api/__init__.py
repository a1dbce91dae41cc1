from starcard.api.cards import router as cards_router
from starcard.api.drafts import router as drafts_router
from starcard.api.health import router as health_router

__all__ = [
    "cards_router",
    "drafts_router",
    "health_router",
]
