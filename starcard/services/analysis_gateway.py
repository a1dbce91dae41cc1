"""
Analysis Gateway — image in, card metadata out.

Wraps a single Anthropic Messages call. The model is shown the image with a
fixed instruction and is forced to answer through a tool whose input schema
is the analysis shape, so the response is structured JSON.

FAIL-OPEN CONTRACT:
- analyze() never raises
- Any failure of the call or of its response maps to the fixed fallback
- A missing API key short-circuits before any call is attempted
- The result's source tag tells callers which path was taken
"""

import logging
from typing import Any

import anthropic
from anthropic.types import MessageParam, ToolParam, ToolUseBlock
from pydantic import BaseModel, ConfigDict, StrictInt, StrictStr, ValidationError

from starcard.config import Settings
from starcard.models.analysis import AnalysisResult, AnalysisSource, CardAnalysis
from starcard.services.images import InvalidImageError, load_image

logger = logging.getLogger(__name__)

ANALYSIS_TOOL_NAME = "record_card_analysis"

ANALYSIS_PROMPT = """Analyze this K-pop/Idol photocard image.

Identify the idol's name and their group (use "Solo" for soloists), and
describe the card's vibe in two or three words. Rate how rare and striking
the card looks with a rarityScore from 0 to 100.

Record your answer with the record_card_analysis tool."""

ANALYSIS_TOOL: ToolParam = {
    "name": ANALYSIS_TOOL_NAME,
    "description": "Record the aesthetic analysis of a photocard image.",
    "input_schema": {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Idol name"},
            "group": {"type": "string", "description": "Group name, or Solo"},
            "vibe": {"type": "string", "description": "Short vibe descriptor"},
            "rarityScore": {
                "type": "integer",
                "description": "Rarity from 0 to 100",
            },
        },
        "required": ["name", "group", "vibe", "rarityScore"],
    },
}


class AnalysisPayload(BaseModel):
    """Validated tool input returned by the model."""

    model_config = ConfigDict(extra="ignore")

    name: StrictStr
    group: StrictStr
    vibe: StrictStr
    rarityScore: StrictInt  # noqa: N815 - wire field name

    def to_analysis(self) -> CardAnalysis:
        return CardAnalysis(
            name=self.name,
            group=self.group,
            vibe=self.vibe,
            rarity_score=self.rarityScore,
        )


class AnalysisResponseError(Exception):
    """The model answered without a usable analysis."""


def parse_analysis_response(content: list[Any]) -> CardAnalysis:
    """
    Extract the analysis from a Messages response body.

    Raises:
        AnalysisResponseError: If no tool call carries a valid analysis
    """
    for block in content:
        if isinstance(block, ToolUseBlock) and block.name == ANALYSIS_TOOL_NAME:
            try:
                return AnalysisPayload.model_validate(block.input).to_analysis()
            except ValidationError as e:
                raise AnalysisResponseError("Tool input failed validation") from e
    raise AnalysisResponseError("Response has no analysis tool call")


class AnalysisGateway:
    """
    Fail-open client for image analysis.

    Pass client=None when no credentials are configured; every call then
    returns the unconfigured result without touching the network.
    """

    def __init__(
        self,
        client: anthropic.AsyncAnthropic | None,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 512,
    ) -> None:
        self._client = client
        self._model = model
        self._max_tokens = max_tokens

    @property
    def configured(self) -> bool:
        return self._client is not None

    async def analyze(self, image: bytes | str) -> AnalysisResult:
        """Analyze an image. Never raises."""
        if self._client is None:
            logger.info("Analysis skipped: API key not configured")
            return AnalysisResult.unconfigured()

        try:
            payload = load_image(image)
            messages: list[MessageParam] = [
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": payload.mime_type,  # type: ignore[typeddict-item]
                                "data": payload.data,
                            },
                        },
                        {"type": "text", "text": ANALYSIS_PROMPT},
                    ],
                }
            ]
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                tools=[ANALYSIS_TOOL],
                tool_choice={"type": "tool", "name": ANALYSIS_TOOL_NAME},
                messages=messages,
            )
            analysis = parse_analysis_response(response.content)
        except (anthropic.APIError, AnalysisResponseError, InvalidImageError) as e:
            logger.warning("Analysis failed, using fallback: %s", e)
            return AnalysisResult.fallback()
        except Exception:
            logger.exception("Unexpected analysis failure, using fallback")
            return AnalysisResult.fallback()

        return AnalysisResult(analysis=analysis, source=AnalysisSource.LIVE)


def create_analysis_gateway(config: Settings) -> AnalysisGateway:
    """Build a gateway from settings, unconfigured when the key is empty."""
    client = None
    if config.anthropic_api_key:
        client = anthropic.AsyncAnthropic(
            api_key=config.anthropic_api_key,
            timeout=config.analysis_timeout_seconds,
        )
    return AnalysisGateway(
        client,
        model=config.analysis_model,
        max_tokens=config.analysis_max_tokens,
    )
