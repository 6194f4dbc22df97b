# esm_vendor/crawler/channel.py
"""
Result channel: many concurrent producers, one sequential consumer.

Producers call :meth:`ResultChannel.publish` from any number of tasks; the
single consumer pulls items in arrival order, either with ``await pull()`` or
with ``async for``.  The stream is framed by exactly one terminal message:
:meth:`complete` (normal end) or :meth:`fail` (the error is raised once by the
next pull).
"""
from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Deque, Generic, Optional, TypeVar

from esm_vendor.exceptions import ChannelProtocolError

__all__ = ("ResultChannel",)

T = TypeVar("T")


class _Kind(Enum):
    ITEM = "item"
    DONE = "done"
    ERROR = "error"


@dataclass(slots=True)
class _Message:
    kind: _Kind
    value: Any = None


class ResultChannel(Generic[T]):
    """Mailbox with a FIFO of undelivered messages and one waiter slot."""

    def __init__(self) -> None:
        self._queue: Deque[_Message] = deque()
        self._waiter: Optional[asyncio.Future[_Message]] = None
        self._closed = False  # terminal message published
        self._finished = False  # terminal message consumed

    # ------------------------------------------------------------------ #
    # Producer side                                                      #
    # ------------------------------------------------------------------ #

    def publish(self, item: T) -> None:
        if self._closed:
            raise ChannelProtocolError("publish() after the channel was closed")
        self._deliver(_Message(_Kind.ITEM, item))

    def complete(self) -> None:
        """Publish the end-of-stream marker; no-op once closed or failed."""
        if self._closed:
            return
        self._closed = True
        self._deliver(_Message(_Kind.DONE))

    def fail(self, error: BaseException) -> None:
        """Publish a terminal error; the next pull raises *error*."""
        if self._closed:
            return
        self._closed = True
        self._deliver(_Message(_Kind.ERROR, error))

    @property
    def closed(self) -> bool:
        return self._closed

    def _deliver(self, message: _Message) -> None:
        waiter = self._waiter
        if waiter is not None and not waiter.done():
            self._waiter = None
            waiter.set_result(message)
        else:
            self._waiter = None
            self._queue.append(message)

    # ------------------------------------------------------------------ #
    # Consumer side                                                      #
    # ------------------------------------------------------------------ #

    async def pull(self) -> T:
        """Return the next item, raise the failure, or ``StopAsyncIteration``."""
        if self._finished:
            raise StopAsyncIteration
        if self._queue:
            message = self._queue.popleft()
        else:
            if self._waiter is not None:
                raise ChannelProtocolError("pull() called while another pull is pending")
            self._waiter = asyncio.get_running_loop().create_future()
            try:
                message = await self._waiter
            finally:
                self._waiter = None
        return self._unwrap(message)

    def _unwrap(self, message: _Message) -> T:
        if message.kind is _Kind.ITEM:
            return message.value
        if message.kind is _Kind.DONE:
            self._finished = True
            raise StopAsyncIteration
        if message.kind is _Kind.ERROR:
            self._finished = True
            raise message.value
        raise ChannelProtocolError(f"unknown message kind: {message.kind!r}")

    def __aiter__(self) -> ResultChannel[T]:
        return self

    async def __anext__(self) -> T:
        return await self.pull()

    def __repr__(self) -> str:
        return (
            f"<ResultChannel queued={len(self._queue)} "
            f"waiting={self._waiter is not None} closed={self._closed}>"
        )
