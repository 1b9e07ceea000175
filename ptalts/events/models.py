"""
Caller-facing domain events.
"""

from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict


class EventKind(str, Enum):
    """Closed set of event kinds listeners can register for."""
    RESTOCK = "restock"
    TOKEN_DELIVERED = "token_delivered"


class DomainEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: EventKind


class RestockNotice(DomainEvent):
    """Stock of ``product`` grew by ``quantity`` to ``total``."""

    kind: Literal[EventKind.RESTOCK] = EventKind.RESTOCK
    product: str
    quantity: int
    total: int


class TokenDelivered(DomainEvent):
    """A token was pushed to this client."""

    kind: Literal[EventKind.TOKEN_DELIVERED] = EventKind.TOKEN_DELIVERED
    token: str


Event = Union[RestockNotice, TokenDelivered]
