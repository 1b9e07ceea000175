"""
Session lifecycle for a PTAlts client.

``start`` registers the client online, then opens the restock feed and the
order feed. ``stop`` closes the restock feed, deregisters the client and then
closes the order feed. The session is driven from a single task; concurrent
``start``/``stop`` calls are not supported.
"""

from typing import Callable, Optional

import httpx

from shared.config import ClientConfig, get_config
from shared.errors import SessionError, ValidationError
from shared.logging import clear_context, get_logger
from shared.metrics import StreamMetrics
from ptalts.api.client import ApiClient
from ptalts.events.dispatcher import EventDispatcher
from ptalts.feeds.orders import OrderFeed, STATUS_OFFLINE, STATUS_ONLINE
from ptalts.feeds.restock import RestockFeed
from ptalts.sse.subscriber import Subscription


class AltsSession:
    """Owns the API client, both feeds and the event dispatcher."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        client_name: Optional[str] = None,
        config: Optional[ClientConfig] = None,
        restock_feed: Optional[RestockFeed] = None,
        order_feed: Optional[OrderFeed] = None,
        on_connection_error: Optional[Callable[[BaseException], None]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        overrides = {}
        if api_key is not None:
            overrides["api_key"] = api_key
        if client_name is not None:
            overrides["client_name"] = client_name
        self.config = config or get_config(**overrides)
        if not self.config.api_key:
            raise ValidationError("An API key is required", details={"setting": "PTALTS_API_KEY"})

        self.logger = get_logger("ptalts.session")
        self.metrics = StreamMetrics()
        self.api = ApiClient.from_config(self.config, transport=transport)
        self.restock_feed = restock_feed or RestockFeed.from_config(
            self.config, metrics=self.metrics, transport=transport
        )
        self.order_feed = order_feed or OrderFeed.from_config(
            self.config, metrics=self.metrics, transport=transport
        )
        self.events = EventDispatcher()
        self.on_connection_error = on_connection_error

        self.restock_subscription: Optional[Subscription] = None
        self.order_subscription: Optional[Subscription] = None

    @property
    def started(self) -> bool:
        return self.restock_subscription is not None or self.order_subscription is not None

    async def start(self):
        """Register online and open both feeds."""
        if self.started:
            raise SessionError("Session already started")

        status = await self.order_feed.update_status(STATUS_ONLINE)
        try:
            self.restock_subscription = await self.restock_feed.subscribe(
                self.events.on_restock_event, self.handle_connection_error
            )
            self.order_subscription = await self.order_feed.subscribe(
                status.client_id, self.events.on_token_event, self.handle_connection_error
            )
        except Exception:
            self.logger.error("Session start failed, rolling back", client_id=status.client_id)
            await self._rollback()
            raise

        self.logger.info("Session started", client_id=status.client_id)

    async def _rollback(self):
        await self.restock_feed.unsubscribe()
        self.restock_subscription = None
        try:
            await self.order_feed.update_status(STATUS_OFFLINE)
        except Exception as e:
            self.logger.warning("Best-effort offline update failed", error=str(e))
        await self.order_feed.unsubscribe()
        self.order_subscription = None

    async def stop(self):
        """Close the restock feed, deregister, then close the order feed."""
        if self.restock_subscription is not None:
            await self.restock_feed.unsubscribe()
            self.restock_subscription = None

        if self.order_subscription is not None:
            try:
                await self.order_feed.update_status(STATUS_OFFLINE)
            finally:
                await self.order_feed.unsubscribe()
                self.order_subscription = None
                clear_context()

        self.logger.info("Session stopped")

    async def aclose(self):
        """Stop the session and release the feeds' HTTP clients."""
        try:
            await self.stop()
        finally:
            await self.restock_feed.aclose()
            await self.order_feed.aclose()

    async def __aenter__(self) -> "AltsSession":
        try:
            await self.start()
        except BaseException:
            await self.restock_feed.aclose()
            await self.order_feed.aclose()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    def handle_connection_error(self, error: BaseException):
        """Called once when either feed's stream fails while open."""
        self.logger.error("Event stream failed", error=str(error), error_type=type(error).__name__)
        if self.on_connection_error is not None:
            self.on_connection_error(error)
