"""
Common plumbing for the PTAlts event feeds.
"""

import asyncio
from typing import Dict, Generic, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel

from shared.config import DEFAULT_BASE_URL
from shared.errors import SubscriptionActiveError
from shared.logging import get_logger
from shared.metrics import StreamMetrics
from ptalts.sse.subscriber import StreamSubscriber, Subscription
from ptalts.util.callbacks import Callback

T = TypeVar("T", bound=BaseModel)

EVENT_STREAM_HEADERS = {"Accept": "text/event-stream", "Cache-Control": "no-cache"}


def stream_timeout(connect_timeout: float) -> httpx.Timeout:
    """Timeout for long-lived streams: bounded connect, unbounded reads."""
    return httpx.Timeout(connect_timeout, read=None)


class BaseFeed(Generic[T]):
    """One event feed holding at most one live subscription."""

    def __init__(
        self,
        name: str,
        event_type: Type[T],
        base_url: str = DEFAULT_BASE_URL,
        connect_timeout: float = 180.0,
        http_client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[StreamMetrics] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.name = name
        self.base_url = base_url.rstrip("/")
        self.logger = get_logger(f"ptalts.feeds.{name}")
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(
            timeout=stream_timeout(connect_timeout),
            transport=transport
        )
        self.subscriber: StreamSubscriber[T] = StreamSubscriber(
            self.http_client, event_type, name, metrics=metrics
        )
        self._subscription: Optional[Subscription] = None
        # Held across check-and-connect so concurrent subscribes cannot both connect
        self._open_lock = asyncio.Lock()

    @property
    def subscription(self) -> Optional[Subscription]:
        """The live subscription, if any."""
        if self._subscription is not None and not self._subscription.active:
            self._subscription = None
        return self._subscription

    @property
    def subscribed(self) -> bool:
        return self.subscription is not None

    async def _open(
        self,
        url: str,
        headers: Dict[str, str],
        on_event: Callback,
        on_error: Optional[Callback]
    ) -> Subscription:
        async with self._open_lock:
            if self.subscribed:
                raise SubscriptionActiveError(self.name, details={"url": url})

            request = self.http_client.build_request("GET", url, headers={**EVENT_STREAM_HEADERS, **headers})
            self._subscription = await self.subscriber.subscribe(request, on_event, on_error)
            return self._subscription

    async def unsubscribe(self) -> bool:
        """Close the live subscription. Returns ``False`` if there was none."""
        subscription = self.subscription
        self._subscription = None
        if subscription is None:
            return False
        await subscription.aclose()
        return True

    async def aclose(self):
        """Unsubscribe and release the HTTP client if this feed created it."""
        await self.unsubscribe()
        if self._owns_client:
            await self.http_client.aclose()
