"""Append-only output channels for wire frames."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Protocol

from chatwire.errors import TransportClosedError

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Where frames go.

    ``write`` raises :class:`TransportClosedError` when the peer is gone.
    """

    async def write(self, line: str) -> None: ...

    async def close(self) -> None: ...


_EOF = object()


class QueueTransport:
    """Transport that hands frames to a response body through a queue.

    The producer writes; :meth:`lines` is the consuming side, typically
    the body iterator of an HTTP streaming response.  If the consumer
    stops before the stream is closed (client disconnect), the transport
    detaches and every later write raises :class:`TransportClosedError`.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue()
        self.closed = False
        self.detached = False

    async def write(self, line: str) -> None:
        if self.detached:
            raise TransportClosedError("client disconnected")
        if self.closed:
            raise TransportClosedError("transport already closed")
        self._queue.put_nowait(line)

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._queue.put_nowait(_EOF)

    def detach(self) -> None:
        self.detached = True

    async def lines(self) -> AsyncIterator[str]:
        try:
            while True:
                line = await self._queue.get()
                if line is _EOF:
                    return
                yield line
        finally:
            if not self.closed:
                logger.info("Stream consumer went away before the stream closed")
                self.detach()
