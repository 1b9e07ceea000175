"""
Order/token delivery feed.

Orders are pushed across clients (for example from the dashboard to a running
client). A client registers itself with ``update_status("online")``, which
yields the ``client_id`` the listen stream is keyed on, and deregisters with
``update_status("offline")``.
"""

from enum import Enum
from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict, field_validator

from shared.config import ClientConfig, DEFAULT_BASE_URL
from shared.errors import ValidationError
from shared.logging import set_session_context
from shared.metrics import StreamMetrics
from ptalts.api.base import API_KEY_HEADER, HttpApi, path_segment
from ptalts.api.models import (
    ClientsStatusResponse,
    ClientStatusRequest,
    ClientStatusResponse,
    PushTokenRequest,
    PushTokenResponse,
)
from ptalts.feeds.base import BaseFeed
from ptalts.sse.subscriber import Subscription
from ptalts.util.callbacks import Callback

CLIENT_STATUS_PATH = "/client/status"
CLIENT_LISTEN_PATH = "/client/listen/{client_id}"
CLIENT_PUSH_TOKEN_PATH = "/client/push-token"

STATUS_ONLINE = "online"
STATUS_OFFLINE = "offline"
CLIENT_STATUSES = (STATUS_ONLINE, STATUS_OFFLINE)


class TokenEventType(str, Enum):
    CONNECTED = "connected"
    HEARTBEAT = "heartbeat"
    TOKEN = "token"


class TokenEvent(BaseModel):
    """Raw frame of the order stream."""

    model_config = ConfigDict(frozen=True)

    event: TokenEventType
    client_id: Optional[str] = None
    order_id: Optional[str] = None
    token: Optional[str] = None
    timestamp: Optional[str] = None

    @field_validator("event", mode="before")
    @classmethod
    def _normalise_event(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @property
    def is_connected(self) -> bool:
        return self.event is TokenEventType.CONNECTED

    @property
    def is_heartbeat(self) -> bool:
        return self.event is TokenEventType.HEARTBEAT

    @property
    def is_token(self) -> bool:
        return self.event is TokenEventType.TOKEN


class OrderFeedState(str, Enum):
    UNREGISTERED = "unregistered"
    REGISTERED = "registered"
    STREAMING = "streaming"
    OFFLINE = "offline"


class OrderFeed(BaseFeed[TokenEvent]):
    """Authenticated order stream plus its client-registration endpoints."""

    def __init__(
        self,
        api_key: str,
        client_name: str,
        base_url: str = DEFAULT_BASE_URL,
        connect_timeout: float = 180.0,
        request_timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[StreamMetrics] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(
            "orders",
            TokenEvent,
            base_url=base_url,
            connect_timeout=connect_timeout,
            http_client=http_client,
            metrics=metrics,
            transport=transport
        )
        self.api_key = api_key
        self.client_name = client_name
        self.http = HttpApi(
            api_key=api_key,
            base_url=base_url,
            timeout=request_timeout,
            logger_name="ptalts.feeds.orders.api",
            transport=transport
        )
        self.client_id: Optional[str] = None
        self.status: Optional[str] = None

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs) -> "OrderFeed":
        return cls(
            config.api_key,
            config.client_name,
            base_url=config.api_url,
            connect_timeout=config.connect_timeout,
            request_timeout=config.request_timeout,
            **kwargs
        )

    @property
    def state(self) -> OrderFeedState:
        if self.client_id is None:
            return OrderFeedState.UNREGISTERED
        if self.subscribed:
            return OrderFeedState.STREAMING if self.status == STATUS_ONLINE else OrderFeedState.OFFLINE
        return OrderFeedState.REGISTERED if self.status == STATUS_ONLINE else OrderFeedState.UNREGISTERED

    async def update_status(self, status: str) -> ClientStatusResponse:
        """Register this client as online or offline.

        The returned ``client_id`` is the session identifier ``subscribe``
        needs.
        """
        if status not in CLIENT_STATUSES:
            raise ValidationError(
                f"Unsupported client status: {status}",
                details={"status": status, "allowed": list(CLIENT_STATUSES)}
            )

        response = await self.http.request(
            "POST",
            CLIENT_STATUS_PATH,
            ClientStatusResponse,
            "update client status",
            payload=ClientStatusRequest(client_name=self.client_name, status=status)
        )

        self.status = status
        if status == STATUS_ONLINE:
            self.client_id = response.client_id
            set_session_context(client_name=self.client_name, session_id=response.client_id)
        elif not self.subscribed:
            self.client_id = None

        self.logger.info(
            "Client status updated",
            client_name=self.client_name,
            status=status,
            client_id=response.client_id
        )
        return response

    async def get_clients_status(self) -> ClientsStatusResponse:
        """Fetch the status of every client registered to this account."""
        return await self.http.request("GET", CLIENT_STATUS_PATH, ClientsStatusResponse, "fetch clients status")

    async def push_order(self, client_id: str, order_id: str) -> PushTokenResponse:
        """Push the tokens of ``order_id`` to the client ``client_id``."""
        response = await self.http.request(
            "POST",
            CLIENT_PUSH_TOKEN_PATH,
            PushTokenResponse,
            "push token to client",
            payload=PushTokenRequest(client_id=client_id, order_id=order_id)
        )
        self.logger.info(
            "Order pushed",
            client_id=client_id,
            order_id=order_id,
            tokens_sent=response.tokens_sent
        )
        return response

    async def subscribe(
        self,
        client_id: str,
        on_event: Callback,
        on_error: Optional[Callback] = None
    ) -> Subscription:
        """Start listening for tokens delivered to ``client_id``."""
        if not client_id:
            raise ValidationError("client_id is required; call update_status('online') first")

        url = f"{self.base_url}{CLIENT_LISTEN_PATH.format(client_id=path_segment(client_id))}"
        subscription = await self._open(url, {API_KEY_HEADER: self.api_key}, on_event, on_error)
        self.client_id = client_id
        if self.status is None:
            self.status = STATUS_ONLINE
        return subscription

    async def unsubscribe(self) -> bool:
        closed = await super().unsubscribe()
        if self.status == STATUS_OFFLINE:
            self.client_id = None
        return closed
