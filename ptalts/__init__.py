"""
Client for the PTAlts commerce API and its event feeds.
"""

from ptalts.api.client import ApiClient
from ptalts.events.dispatcher import EventDispatcher
from ptalts.events.models import EventKind, RestockNotice, TokenDelivered
from ptalts.feeds.orders import OrderFeed, TokenEvent
from ptalts.feeds.restock import RestockEvent, RestockFeed
from ptalts.session import AltsSession
from ptalts.sse.subscriber import StreamSubscriber, Subscription, SubscriptionState

__version__ = "1.0.0"

__all__ = [
    "AltsSession",
    "ApiClient",
    "EventDispatcher",
    "EventKind",
    "OrderFeed",
    "RestockEvent",
    "RestockFeed",
    "RestockNotice",
    "StreamSubscriber",
    "Subscription",
    "SubscriptionState",
    "TokenDelivered",
    "TokenEvent",
]
