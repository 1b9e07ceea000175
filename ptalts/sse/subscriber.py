"""
Generic server-sent events subscriber.

A subscription connects on the caller's task, then hands the open response to
one consumer task that decodes frames, validates each payload into a typed
event and invokes the listener. The returned ``Subscription`` is the only way
to stop it.
"""

import asyncio
import threading
from enum import Enum
from typing import AsyncIterator, Callable, Generic, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PayloadValidationError

from shared.errors import StreamConnectionError
from shared.logging import get_logger
from shared.metrics import StreamMetrics
from ptalts.sse.decoder import aiter_frames
from ptalts.util.callbacks import Callback, await_if_needed

T = TypeVar("T", bound=BaseModel)


class SubscriptionState(str, Enum):
    """Lifecycle of one open event stream."""
    ACTIVE = "active"
    CLOSING = "closing"
    CLOSED = "closed"


class Subscription:
    """Cancellation handle for one open event stream.

    ``close()`` may be called from any thread and any number of times; only
    the first call that finds the subscription active tears it down.
    """

    def __init__(
        self,
        name: str,
        response: httpx.Response,
        loop: asyncio.AbstractEventLoop,
        on_closed: Optional[Callable[[], None]] = None
    ):
        self.name = name
        self.logger = get_logger(f"ptalts.sse.subscription.{name}")
        self._response = response
        self._loop = loop
        self._on_closed = on_closed
        self._lock = threading.Lock()
        self._state = SubscriptionState.ACTIVE
        self._task: Optional[asyncio.Task] = None
        self._teardown_task: Optional[asyncio.Task] = None
        self._finished = False
        self._closed = asyncio.Event()

    @property
    def state(self) -> SubscriptionState:
        with self._lock:
            return self._state

    @property
    def active(self) -> bool:
        return self.state is SubscriptionState.ACTIVE

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    def _attach(self, task: asyncio.Task):
        self._task = task

    def close(self) -> bool:
        """Stop the stream. Returns ``True`` only for the call that tore it down."""
        with self._lock:
            if self._state is not SubscriptionState.ACTIVE:
                return False
            self._state = SubscriptionState.CLOSING

        self.logger.info("Closing SSE subscription")

        if self._loop.is_closed():
            self._mark_closed()
        elif self._on_loop_thread():
            self._schedule_teardown()
        else:
            self._loop.call_soon_threadsafe(self._schedule_teardown)
        return True

    async def aclose(self):
        """Close the stream and wait until teardown has completed."""
        self.close()
        await self.wait_closed()

    async def wait_closed(self):
        """Wait until the stream has stopped, for whatever reason."""
        await self._closed.wait()

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    def _on_loop_thread(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def _schedule_teardown(self):
        self._teardown_task = self._loop.create_task(self._teardown())

    async def _teardown(self):
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait({task})
        await self._finish()

    async def _finish(self):
        """Release the response and mark the subscription closed (runs once)."""
        if self._finished:
            return
        self._finished = True

        try:
            await self._response.aclose()
        except Exception as e:
            self.logger.debug("Error closing SSE response", error=str(e))
        self._mark_closed()

    def _mark_closed(self):
        with self._lock:
            self._state = SubscriptionState.CLOSED
        self._closed.set()
        if self._on_closed is not None:
            self._on_closed()
            self._on_closed = None
        self.logger.info("SSE subscription closed")


class StreamSubscriber(Generic[T]):
    """Opens event streams and decodes their frames into ``event_type``."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        event_type: Type[T],
        name: str,
        metrics: Optional[StreamMetrics] = None
    ):
        self.http_client = http_client
        self.event_type = event_type
        self.name = name
        self.metrics = metrics or StreamMetrics()
        self.logger = get_logger(f"ptalts.sse.subscriber.{name}")
        self.decode_failures = 0
        self._codec = TypeAdapter(event_type)

    def decode(self, payload: str) -> T:
        """Validate one frame payload into the subscriber's event type."""
        return self._codec.validate_json(payload)

    async def subscribe(
        self,
        request: httpx.Request,
        on_event: Callback,
        on_error: Optional[Callback] = None
    ) -> Subscription:
        """Open ``request`` as an event stream and start consuming it.

        Raises:
            StreamConnectionError: transport failure or non-200 status. No
                consumer task is started in that case.
        """
        try:
            response = await self.http_client.send(request, stream=True)
        except httpx.HTTPError as e:
            self.logger.error("Error establishing SSE connection", url=str(request.url), error=str(e))
            raise StreamConnectionError(
                "Error establishing SSE connection",
                details={"url": str(request.url), "error": str(e)}
            ) from e

        if response.status_code != 200:
            await response.aclose()
            self.logger.warning(
                "SSE connection rejected",
                url=str(request.url),
                status_code=response.status_code
            )
            raise StreamConnectionError(
                f"Failed to establish SSE connection. Status: {response.status_code}",
                details={"url": str(request.url), "status_code": response.status_code}
            )

        loop = asyncio.get_running_loop()
        subscription = Subscription(
            self.name,
            response,
            loop,
            on_closed=lambda: self.metrics.subscription_closed(self.name)
        )
        task = loop.create_task(
            self._consume(subscription, response, on_event, on_error),
            name=f"{self.name}-sse-listener"
        )
        subscription._attach(task)
        self.metrics.subscription_opened(self.name)

        self.logger.info("SSE subscription opened", url=str(request.url))
        return subscription

    async def _lines(self, subscription: Subscription, response: httpx.Response) -> AsyncIterator[str]:
        lines = response.aiter_lines()
        while subscription.active:
            try:
                line = await lines.__anext__()
            except StopAsyncIteration:
                return
            yield line

    async def _consume(
        self,
        subscription: Subscription,
        response: httpx.Response,
        on_event: Callback,
        on_error: Optional[Callback]
    ):
        try:
            async for payload in aiter_frames(self._lines(subscription, response)):
                if not subscription.active:
                    break
                await self._dispatch(payload, on_event)
            if subscription.active:
                self.logger.info("SSE stream ended by server")
        except Exception as e:
            if subscription.active:
                self.metrics.record_stream_error(self.name)
                self.logger.error("SSE stream read failed", error=str(e))
                if on_error is not None:
                    try:
                        await await_if_needed(on_error(e))
                    except Exception:
                        self.logger.exception("SSE error listener raised")
            else:
                self.logger.debug("Suppressed error after close", error=str(e))
        finally:
            await subscription._finish()

    async def _dispatch(self, payload: str, on_event: Callback):
        try:
            event = self.decode(payload)
        except PayloadValidationError as e:
            self.decode_failures += 1
            self.metrics.record_decode_failure(self.name)
            self.logger.debug("Dropped undecodable SSE frame", error_count=e.error_count())
            return

        try:
            await await_if_needed(on_event(event))
        except Exception:
            self.logger.exception("SSE event listener raised", event_type=self.event_type.__name__)
            return
        self.metrics.record_event(self.name)
