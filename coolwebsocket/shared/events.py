"""
MODULE OVERVIEW:
The callback lists behind `on_open`, `on_error`, `on_close` and `on_message`.

WHAT IS HAPPENING HERE:
Each event kind owns one `EventHandler`: an ordered list of callbacks.
Dispatch runs every callback once, in subscription order, before it returns.
There is no queue in between, so a slow callback slows down whoever raised
the event (the receive loop for messages, the caller for everything else).
"""

import inspect
from typing import Any, Awaitable, Callable, List

from loguru import logger

Callback = Callable[..., Awaitable[None] | None]


class EventHandler:
    """
    A minimal ordered pub/sub list for one kind of connection event.
    Subscribers may be plain functions or coroutine functions.
    """
    def __init__(self, name: str):
        self.name = name
        self._subscribers: List[Callback] = []

    def __len__(self) -> int:
        return len(self._subscribers)

    def __call__(self, callback: Callback) -> Callback:
        # Lets the handler double as a decorator: @ws.on_message
        return self.subscribe(callback)

    def subscribe(self, callback: Callback) -> Callback:
        self._subscribers.append(callback)
        return callback

    def unsubscribe(self, callback: Callback) -> None:
        try:
            self._subscribers.remove(callback)
        except ValueError:
            pass

    def clear(self) -> None:
        self._subscribers.clear()

    async def dispatch(self, *args: Any) -> None:
        # Snapshot: callbacks added while dispatching wait for the next event
        for sub in list(self._subscribers):
            try:
                result = sub(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"event={self.name} reason=subscriber_failed callback={sub!r}")
