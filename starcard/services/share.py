"""
Best-effort card sharing.

A share target receives {title, text, url}. Sharing is an optional
platform capability: with no target configured the action is simply
unavailable, and a failing target is logged rather than surfaced.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Protocol

import httpx

from starcard.config import Settings
from starcard.models.card import StarCard

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SharePayload:
    title: str
    text: str
    url: str


def build_share_payload(card: StarCard, url: str) -> SharePayload:
    return SharePayload(
        title=f"{card.name} - StarCard",
        text=f"Check out my {card.rarity.value} card of {card.name}!",
        url=url,
    )


class ShareTarget(Protocol):
    """A platform share capability."""

    async def share(self, payload: SharePayload) -> None: ...


class WebhookShareTarget:
    """Shares by POSTing the payload as JSON to a webhook."""

    def __init__(self, url: str, timeout: float = 10.0) -> None:
        self.url = url
        self.timeout = timeout

    async def share(self, payload: SharePayload) -> None:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(self.url, json=asdict(payload))
            response.raise_for_status()


async def share_card(target: ShareTarget | None, payload: SharePayload) -> bool:
    """
    Invoke target with payload.

    Returns True if the target accepted it, False if no target is
    available or the target failed.
    """
    if target is None:
        return False

    try:
        await target.share(payload)
    except httpx.HTTPError as e:
        logger.warning("Share failed: %s", e)
        return False
    except Exception:
        logger.exception("Share target raised unexpectedly")
        return False

    return True


def create_share_target(config: Settings) -> ShareTarget | None:
    if not config.share_webhook_url:
        return None
    return WebhookShareTarget(config.share_webhook_url)
