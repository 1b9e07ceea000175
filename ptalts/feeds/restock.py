"""
Restock notification feed.
"""

from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict

from shared.config import ClientConfig, DEFAULT_BASE_URL
from shared.metrics import StreamMetrics
from ptalts.feeds.base import BaseFeed
from ptalts.sse.subscriber import Subscription
from ptalts.util.callbacks import Callback

RESTOCK_EVENTS_PATH = "/restock-events"


class RestockEvent(BaseModel):
    """Raw restock frame. ``event`` has only ever been observed as "restock"."""

    model_config = ConfigDict(frozen=True)

    event: str
    stock_type: str
    added_count: int
    new_total: int
    timestamp: str


class RestockFeed(BaseFeed[RestockEvent]):
    """Public restock stream; needs no registration or API key."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        connect_timeout: float = 180.0,
        http_client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[StreamMetrics] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(
            "restock",
            RestockEvent,
            base_url=base_url,
            connect_timeout=connect_timeout,
            http_client=http_client,
            metrics=metrics,
            transport=transport
        )

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs) -> "RestockFeed":
        return cls(base_url=config.api_url, connect_timeout=config.connect_timeout, **kwargs)

    async def subscribe(self, on_event: Callback, on_error: Optional[Callback] = None) -> Subscription:
        """Start listening to restock events."""
        return await self._open(f"{self.base_url}{RESTOCK_EVENTS_PATH}", {}, on_event, on_error)
