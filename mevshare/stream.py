"""
Streaming client for the MEV-Share SSE feed.

The relay publishes every shareable transaction and bundle as a
server-sent event. `subscribe()` turns that connection into an async
iterator of MevShareEvent items. Errors are delivered in-band so a
consumer can log a bad message and keep reading:

- malformed message body: a ResponseDeserializationError item, stream continues
- transport failure: a TransportError item, stream ends

The connection is never re-established; subscribe again to resume.

File: mevshare/stream.py
"""

import asyncio
import json
import logging
from typing import AsyncIterator, Optional, Union

import aiohttp
from aiohttp_sse_client import client as sse_client
from pydantic import ValidationError

from .errors import ResponseDeserializationError, TransportError
from .schemas import MevShareEvent

StreamItem = Union[MevShareEvent, ResponseDeserializationError, TransportError]

MESSAGE_EVENT_TYPE = "message"


def parse_event(data: str) -> MevShareEvent:
    """
    Decode one SSE message body.

    Raises:
        ResponseDeserializationError: Not JSON, or not an event object
    """
    try:
        return MevShareEvent.model_validate(json.loads(data))
    except (json.JSONDecodeError, ValidationError) as e:
        raise ResponseDeserializationError(data, reason=str(e)) from e


class MevShareStream:
    """Subscribes to the SSE endpoint of one MEV-Share network."""

    def __init__(self, stream_url: str, session: Optional[aiohttp.ClientSession] = None):
        self.stream_url = stream_url
        self.session = session
        self.logger = logging.getLogger(f"{__name__}.MevShareStream")

    def _event_source(self) -> sse_client.EventSource:
        event_source = sse_client.EventSource(
            self.stream_url,
            session=self.session,
            max_connect_retry=0,
            on_open=self._on_open,
            on_error=lambda: self._on_error(event_source),
            timeout=aiohttp.ClientTimeout(total=None),
        )
        return event_source

    def _on_open(self) -> None:
        self.logger.info(f"Connected to MEV-Share stream {self.stream_url}")

    def _on_error(self, event_source: sse_client.EventSource) -> None:
        # A dropped connection is reported in CONNECTING state, right before
        # EventSource would reconnect.
        if event_source.ready_state == sse_client.READY_STATE_CONNECTING:
            raise ConnectionError(f"Event stream {self.stream_url} closed by server")

    async def subscribe(self) -> AsyncIterator[StreamItem]:
        """
        Iterate over events until the connection drops.

        Closing the iterator (`aclose()`) or cancelling the consuming task
        closes the connection.
        """
        try:
            async with self._event_source() as event_source:
                async for event in event_source:
                    # frames without an `event:` line arrive with type None
                    if event.type not in (None, MESSAGE_EVENT_TYPE) or not event.data:
                        continue
                    try:
                        yield parse_event(event.data)
                    except ResponseDeserializationError as e:
                        self.logger.debug(f"Skipping malformed stream message: {e}")
                        yield e
        except (
            aiohttp.ClientError,
            ConnectionError,
            asyncio.TimeoutError,
            UnicodeDecodeError,
        ) as e:
            self.logger.info(f"MEV-Share stream ended: {e!r}")
            yield TransportError(f"Event stream {self.stream_url} failed: {e!r}")
            return

        # an event source that ends without an error still lost its connection
        self.logger.info(f"MEV-Share stream {self.stream_url} closed by server")
        yield TransportError(f"Event stream {self.stream_url} closed by server")


__all__ = ["MevShareStream", "StreamItem", "parse_event"]
