import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from starcard.api import cards_router, drafts_router, health_router
from starcard.config import settings
from starcard.db.database import init_db, session_factory
from starcard.db.storage import SqlStorage
from starcard.models.failure import ApiResponse, KnownError
from starcard.services.analysis_gateway import create_analysis_gateway
from starcard.services.card_controller import CardController
from starcard.services.card_store import CardStore
from starcard.services.share import create_share_target

logger = logging.getLogger(__name__)


def build_controller() -> CardController:
    """Wire the controller from settings."""
    return CardController(
        store=CardStore(SqlStorage(session_factory)),
        gateway=create_analysis_gateway(settings),
        share_target=create_share_target(settings),
        share_url=settings.share_url,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    init_db()
    controller = build_controller()
    controller.load()
    app.state.controller = controller
    logger.info("Loaded %d cards", len(controller.cards))
    yield


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("starcard"),
    lifespan=lifespan,
)


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    """Render known failures in the response envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(mode="json"),
    )


@app.exception_handler(Exception)
async def unknown_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Render unexpected failures without leaking internals."""
    logger.exception("Unhandled error")
    return JSONResponse(
        status_code=500,
        content=ApiResponse.unknown_failure(detail=type(exc).__name__).model_dump(mode="json"),
    )


app.include_router(cards_router)
app.include_router(drafts_router)
app.include_router(health_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
