import base64
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from anthropic.types import TextBlock, ToolUseBlock

from starcard.db.storage import InMemoryStorage
from starcard.models.card import StarCard
from starcard.models.rarity import Rarity
from starcard.services.analysis_gateway import ANALYSIS_TOOL_NAME, AnalysisGateway
from starcard.services.card_store import CardStore

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24
PNG_DATA_URI = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


def tool_response(payload: dict[str, Any]) -> MagicMock:
    """A Messages response whose only block is the analysis tool call."""
    response = MagicMock()
    response.content = [
        ToolUseBlock(id="toolu_01", name=ANALYSIS_TOOL_NAME, input=payload, type="tool_use")
    ]
    return response


def text_response(text: str) -> MagicMock:
    response = MagicMock()
    response.content = [TextBlock(text=text, type="text")]
    return response


def mock_anthropic_client(
    response: Any = None,
    side_effect: Any = None,
) -> MagicMock:
    client = MagicMock()
    client.messages.create = AsyncMock(return_value=response, side_effect=side_effect)
    return client


@pytest.fixture
def make_tool_response() -> Callable[[dict[str, Any]], MagicMock]:
    return tool_response


@pytest.fixture
def make_text_response() -> Callable[[str], MagicMock]:
    return text_response


@pytest.fixture
def make_client() -> Callable[..., MagicMock]:
    return mock_anthropic_client


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture
def png_data_uri() -> str:
    return PNG_DATA_URI


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def store(storage: InMemoryStorage) -> CardStore:
    return CardStore(storage)


@pytest.fixture
def unconfigured_gateway() -> AnalysisGateway:
    return AnalysisGateway(None)


@pytest.fixture
def live_payload() -> dict[str, Any]:
    return {"name": "Karina", "group": "aespa", "vibe": "Cyber, Icy", "rarityScore": 88}


@pytest.fixture
def live_gateway(live_payload: dict[str, Any]) -> AnalysisGateway:
    return AnalysisGateway(mock_anthropic_client(tool_response(live_payload)))


@pytest.fixture
def make_card() -> Callable[..., StarCard]:
    """Factory for stored cards with sensible defaults."""

    def _make(card_id: str = "card-1", **overrides: Any) -> StarCard:
        fields: dict[str, Any] = {
            "id": card_id,
            "image_url": PNG_DATA_URI,
            "name": "Wonyoung",
            "group": "IVE",
            "vibe": "Lovely, Bright",
            "rarity": Rarity.RARE,
            "created_at": 1_700_000_000_000,
        }
        fields.update(overrides)
        return StarCard(**fields)

    return _make
