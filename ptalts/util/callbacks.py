"""
Helpers for listener callbacks that may be plain functions or coroutines.
"""

import asyncio
from typing import Any, Awaitable, Callable, Union

Callback = Callable[[Any], Union[None, Awaitable[None]]]


async def await_if_needed(result: Any) -> Any:
    """Await ``result`` when a callback returned an awaitable."""
    if asyncio.iscoroutine(result) or isinstance(result, asyncio.Future):
        return await result
    return result
