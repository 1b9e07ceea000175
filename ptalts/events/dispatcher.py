"""
Typed fan-out of domain events to registered listeners.
"""

from typing import Any, Dict, List

from shared.errors import InvalidEventKindError
from shared.logging import get_logger
from ptalts.events.models import Event, EventKind, RestockNotice, TokenDelivered
from ptalts.feeds.orders import TokenEvent
from ptalts.feeds.restock import RestockEvent
from ptalts.util.callbacks import Callback, await_if_needed


def _coerce_kind(kind: Any) -> EventKind:
    if isinstance(kind, EventKind):
        return kind
    if isinstance(kind, str):
        try:
            return EventKind(kind)
        except ValueError:
            pass
    raise InvalidEventKindError(kind)


class EventDispatcher:
    """Registry of listeners per ``EventKind``.

    Listeners run in registration order on whichever task calls ``dispatch``
    (the feed's consumer task). A failing listener is logged and does not stop
    delivery to the rest.
    """

    def __init__(self):
        self.logger = get_logger("ptalts.events.dispatcher")
        self.listeners: Dict[EventKind, List[Callback]] = {}

    def register(self, kind: Any, listener: Callback):
        """Add ``listener`` for ``kind``; unsupported kinds raise immediately."""
        event_kind = _coerce_kind(kind)
        self.listeners.setdefault(event_kind, []).append(listener)
        self.logger.debug("Listener registered", kind=event_kind.value, count=len(self.listeners[event_kind]))

    def unregister(self, kind: Any, listener: Callback):
        """Remove the first registration of ``listener`` from ``kind``.

        Compared with ``==`` so a bound method matches a fresh access of the
        same method on the same instance.
        """
        event_kind = _coerce_kind(kind)
        listeners = self.listeners.get(event_kind)
        if not listeners:
            return

        for index, registered in enumerate(listeners):
            if registered == listener:
                del listeners[index]
                break

        if not listeners:
            del self.listeners[event_kind]

    def listener_count(self, kind: Any) -> int:
        return len(self.listeners.get(_coerce_kind(kind), []))

    async def dispatch(self, event: Event) -> int:
        """Deliver ``event`` to its listeners; returns how many succeeded."""
        delivered = 0
        for listener in list(self.listeners.get(event.kind, [])):
            try:
                await await_if_needed(listener(event))
                delivered += 1
            except Exception:
                self.logger.exception("Event listener raised", kind=event.kind.value)
        return delivered

    async def on_restock_event(self, raw: RestockEvent):
        """Translate a restock frame into a ``RestockNotice``."""
        await self.dispatch(RestockNotice(
            product=raw.stock_type,
            quantity=raw.added_count,
            total=raw.new_total
        ))

    async def on_token_event(self, raw: TokenEvent):
        """Translate a token frame into ``TokenDelivered``.

        ``connected`` and ``heartbeat`` frames, and token frames without a
        token, are consumed without dispatch.
        """
        if raw.is_token and raw.token:
            await self.dispatch(TokenDelivered(token=raw.token))
        else:
            self.logger.debug("Token frame consumed", frame=raw.event.value)
