"""
REST client for the MEV-Share event history API.

File: mevshare/rest_client.py
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import aiohttp
from pydantic import ValidationError

from .constants import DEFAULT_HTTP_TIMEOUT_SECONDS, HISTORY_INFO_PATH, HISTORY_PATH
from .errors import ResponseDeserializationError, TransportError
from .schemas import EventHistory, EventHistoryInfo, EventHistoryList, GetEventHistoryParams


class MevShareRestClient:
    """Unauthenticated GET requests against `<stream url>/api/v1`."""

    def __init__(
        self,
        base_url: str,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.logger = logging.getLogger(f"{__name__}.MevShareRestClient")
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def get(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        """
        GET `<base>/<path>` and decode the JSON body.

        Raises:
            TransportError: Connection failure, timeout or non-2xx status
            ResponseDeserializationError: Body is not JSON
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        self.logger.debug(f"GET {url} {params or ''}")

        try:
            async with self._get_session().get(url, params=params) as response:
                response.raise_for_status()
                text = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"GET {url} failed: {e!r}") from e

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise ResponseDeserializationError(text, reason=str(e)) from e

    async def get_event_history_info(self) -> EventHistoryInfo:
        data = await self.get(HISTORY_INFO_PATH)
        try:
            return EventHistoryInfo.model_validate(data)
        except ValidationError as e:
            raise ResponseDeserializationError(json.dumps(data), reason=str(e)) from e

    async def get_event_history(
        self, params: Optional[GetEventHistoryParams] = None
    ) -> List[EventHistory]:
        """Past events matching `params`; the relay caps the page at `maxLimit`."""
        query = params.to_query() if params is not None else None
        data = await self.get(HISTORY_PATH, query)
        try:
            return EventHistoryList.validate_python(data)
        except ValidationError as e:
            raise ResponseDeserializationError(json.dumps(data), reason=str(e)) from e


__all__ = ["MevShareRestClient"]
