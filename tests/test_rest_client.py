"""
Event History REST Client - Test Suite

File: tests/test_rest_client.py
"""

import asyncio
import json
from typing import Any, Dict, List, Optional
from unittest.mock import Mock

import aiohttp
import pytest

from conftest import tx_hash
from mevshare.errors import ResponseDeserializationError, TransportError
from mevshare.rest_client import MevShareRestClient
from mevshare.schemas import GetEventHistoryParams


BASE_URL = "https://mev-share.example/api/v1"


class FakeResponse:

    def __init__(self, text: str, status: int = 200):
        self.status = status
        self._text = text

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise aiohttp.ClientResponseError(Mock(), (), status=self.status, message="error")

    async def text(self) -> str:
        return self._text

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *exc_info) -> bool:
        return False


class FakeSession:

    def __init__(self, body: Any = None, status: int = 200, error: Optional[BaseException] = None):
        self.body = body
        self.status = status
        self.error = error
        self.closed = False
        self.requests: List[Dict[str, Any]] = []

    def get(self, url, params=None):
        self.requests.append({"url": url, "params": params})
        if self.error is not None:
            raise self.error
        text = self.body if isinstance(self.body, str) else json.dumps(self.body)
        return FakeResponse(text, status=self.status)

    async def close(self):
        self.closed = True


class TestEventHistory:

    @pytest.mark.asyncio
    async def test_history_info(self):
        session = FakeSession({
            "minBlock": 1,
            "maxBlock": 2,
            "minTimestamp": 3,
            "maxTimestamp": 4,
            "count": 5,
            "maxLimit": 500,
        })
        client = MevShareRestClient(BASE_URL + "/", session=session)

        info = await client.get_event_history_info()

        assert session.requests[0]["url"] == BASE_URL + "/history/info"
        assert info.max_limit == 500

    @pytest.mark.asyncio
    async def test_history_with_query(self):
        session = FakeSession([
            {"block": 10, "timestamp": 20, "hint": {"hash": tx_hash(1), "gasUsed": 21000, "mevGasPrice": 0}},
            {"block": 11, "timestamp": 32, "hint": {"hash": tx_hash(2), "gasUsed": 42000, "mevGasPrice": 1}},
        ])
        client = MevShareRestClient(BASE_URL, session=session)

        history = await client.get_event_history(GetEventHistoryParams(block_start=10, offset=0, limit=2))

        assert session.requests[0]["url"] == BASE_URL + "/history"
        assert session.requests[0]["params"] == {"blockStart": "10", "offset": "0", "limit": "2"}
        assert [event.block for event in history] == [10, 11]

    @pytest.mark.asyncio
    async def test_history_without_query(self):
        session = FakeSession([])

        history = await MevShareRestClient(BASE_URL, session=session).get_event_history()

        assert history == []
        assert session.requests[0]["params"] is None


class TestErrors:

    @pytest.mark.asyncio
    async def test_http_status_is_transport_error(self):
        session = FakeSession({"error": "not found"}, status=404)

        with pytest.raises(TransportError):
            await MevShareRestClient(BASE_URL, session=session).get_event_history_info()

    @pytest.mark.asyncio
    async def test_connection_failure(self):
        session = FakeSession(error=aiohttp.ClientConnectionError("refused"))

        with pytest.raises(TransportError):
            await MevShareRestClient(BASE_URL, session=session).get("history")

    @pytest.mark.asyncio
    async def test_timeout(self):
        session = FakeSession(error=asyncio.TimeoutError())

        with pytest.raises(TransportError):
            await MevShareRestClient(BASE_URL, session=session).get("history")

    @pytest.mark.asyncio
    async def test_malformed_json(self):
        session = FakeSession("{not json")

        with pytest.raises(ResponseDeserializationError) as exc_info:
            await MevShareRestClient(BASE_URL, session=session).get("history")

        assert exc_info.value.text == "{not json"

    @pytest.mark.asyncio
    async def test_unexpected_shape(self):
        session = FakeSession({"minBlock": "many"})

        with pytest.raises(ResponseDeserializationError):
            await MevShareRestClient(BASE_URL, session=session).get_event_history_info()
