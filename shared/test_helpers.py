"""
Test helper functions and factory methods for the PTAlts client.
"""

import asyncio
import json
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx


def sse_frame(payload: Union[str, Dict[str, Any]]) -> str:
    """Encode one payload as a ``data:`` frame closed by a blank line."""
    if not isinstance(payload, str):
        payload = json.dumps(payload)
    return "".join(f"data: {line}\n" for line in payload.split("\n")) + "\n"


class StreamDataFactory:
    """Factory for wire payloads."""

    @staticmethod
    def restock(stock_type: str = "diamond", added_count: int = 5, new_total: int = 42,
                timestamp: str = "t1") -> Dict[str, Any]:
        return {
            "stock_type": stock_type,
            "added_count": added_count,
            "new_total": new_total,
            "event": "restock",
            "timestamp": timestamp
        }

    @staticmethod
    def token(token: Optional[str] = "abc123", client_id: str = "client-1",
              order_id: str = "order-1") -> Dict[str, Any]:
        return {
            "event": "token",
            "client_id": client_id,
            "order_id": order_id,
            "token": token,
            "timestamp": "2026-01-22T10:00:00Z"
        }

    @staticmethod
    def connected(client_id: str = "client-1") -> Dict[str, Any]:
        return {"event": "connected", "client_id": client_id}

    @staticmethod
    def heartbeat() -> Dict[str, Any]:
        return {"event": "heartbeat"}

    @staticmethod
    def client_status(status: str = "online", client_id: str = "client-1",
                      client_name: str = "test-client") -> Dict[str, Any]:
        return {
            "success": True,
            "user_id": "user-123",
            "client": client_name,
            "status": status,
            "client_id": client_id
        }


class FakeEventStream(httpx.AsyncByteStream):
    """Response body that stays open until the test ends or fails it."""

    def __init__(self):
        self._queue: "asyncio.Queue[Union[bytes, BaseException, None]]" = asyncio.Queue()
        self.closed = False

    def push(self, text: str):
        self._queue.put_nowait(text.encode("utf-8"))

    def push_frame(self, payload: Union[str, Dict[str, Any]]):
        self.push(sse_frame(payload))

    def end(self):
        """Finish the body as if the server closed the stream."""
        self._queue.put_nowait(None)

    def fail(self, error: BaseException):
        """Make the next read raise ``error``."""
        self._queue.put_nowait(error)

    async def __aiter__(self):
        while True:
            item = await self._queue.get()
            if item is None:
                return
            if isinstance(item, BaseException):
                raise item
            yield item

    async def aclose(self):
        self.closed = True


Route = Tuple[str, str]
Responder = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class FakeCommerceApi:
    """Route table behind an ``httpx.MockTransport``.

    Unknown routes answer 404 with an ``{"error": ...}`` body.
    """

    def __init__(self, base_url: str = "https://api.test/api"):
        self.base_url = base_url.rstrip("/")
        self.routes: Dict[Route, Responder] = {}
        self.requests: List[httpx.Request] = []
        self.streams: Dict[str, FakeEventStream] = {}

    def add(self, method: str, path: str, responder: Responder):
        self.routes[(method, path)] = responder

    def json(self, method: str, path: str, body: Any, status_code: int = 200):
        self.add(method, path, lambda request: httpx.Response(status_code, json=body))

    def stream(self, path: str, status_code: int = 200) -> FakeEventStream:
        """Serve an event stream at ``GET path``; returns the stream to feed."""
        stream = FakeEventStream()
        self.streams[path] = stream
        if status_code == 200:
            self.add("GET", path, lambda request: httpx.Response(
                200, headers={"content-type": "text/event-stream"}, stream=stream
            ))
        else:
            self.json("GET", path, {"error": "stream unavailable"}, status_code=status_code)
        return stream

    def requests_for(self, method: str, path: str) -> List[httpx.Request]:
        url = f"{self.base_url}{path}"
        return [r for r in self.requests if r.method == method and str(r.url) == url]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        prefix = httpx.URL(self.base_url).path
        if path.startswith(prefix):
            path = path[len(prefix):]

        responder = self.routes.get((request.method, path))
        if responder is None:
            return httpx.Response(404, json={"error": f"No route for {request.method} {path}"})
        if isinstance(responder, httpx.Response):
            return responder
        return responder(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)
