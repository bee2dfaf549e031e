"""
Authenticated JSON-RPC Client for the MEV-Share relay

Every request is a JSON-RPC 2.0 envelope posted over HTTP. The serialized
body is signed by the auth key (EIP-191 personal message over the hex
keccak256 of the body) and the signature is sent in the
`X-Flashbots-Signature` header as `<address>:<signature>`. The auth key only
identifies the searcher to the relay; it never holds funds.

File: mevshare/rpc_client.py
"""

import asyncio
import itertools
import json
import logging
from typing import Any, Dict, Optional, Sequence, Type, TypeVar

import aiohttp
from eth_account.messages import encode_defunct
from eth_utils import keccak, to_hex
from pydantic import BaseModel, ValidationError

from .constants import (
    CONTENT_TYPE_JSON,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    JSONRPC_VERSION,
    SIGNATURE_HEADER,
)
from .errors import ResponseDeserializationError, RpcError, SigningError, TransportError
from .schemas import MevShareModel
from .utils import new_request_id_seed

ModelT = TypeVar("ModelT", bound=BaseModel)


def sign_request_body(auth_signer: Any, body: str) -> str:
    """
    Compute the `X-Flashbots-Signature` header value for a request body.

    Args:
        auth_signer: Object with `.address` and `.sign_message(SignableMessage)`
            (e.g. an eth_account LocalAccount)
        body: Exact request body that will be sent

    Returns:
        "<address>:0x<signature>"

    Raises:
        SigningError: If the signer fails
    """
    message = encode_defunct(text=to_hex(keccak(text=body)))
    try:
        signed = auth_signer.sign_message(message)
    except Exception as e:
        raise SigningError(f"Failed to sign request body: {e}") from e
    return f"{auth_signer.address}:{to_hex(signed.signature)}"


class MevShareRpcClient:
    """
    Signed JSON-RPC transport to the relay.

    The aiohttp session is created lazily and closed by `close()`, unless it
    was injected by the caller.
    """

    def __init__(
        self,
        api_url: str,
        auth_signer: Any,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
    ):
        self.api_url = api_url
        self.auth_signer = auth_signer
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.logger = logging.getLogger(f"{__name__}.MevShareRpcClient")

        self._session = session
        self._owns_session = session is None
        # next() on itertools.count cannot interleave with another caller
        self._ids = itertools.count(new_request_id_seed())

    def next_request_id(self) -> int:
        return next(self._ids)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    def build_request(self, method: str, params: Sequence[Any]) -> Dict[str, Any]:
        """JSON-RPC envelope with a fresh id; models are serialized to wire form."""
        return {
            "jsonrpc": JSONRPC_VERSION,
            "id": self.next_request_id(),
            "method": method,
            "params": [
                param.to_rpc() if isinstance(param, MevShareModel) else param
                for param in params
            ],
        }

    async def post(
        self,
        method: str,
        params: Sequence[Any],
        response_model: Optional[Type[ModelT]] = None,
    ) -> Any:
        """
        Send a signed JSON-RPC request.

        Args:
            method: JSON-RPC method name
            params: Positional parameters (models or plain JSON values)
            response_model: Optional pydantic model to validate `result` into

        Returns:
            The `result` member, validated into `response_model` when given

        Raises:
            SigningError: Signing the body failed
            TransportError: Connection failure, timeout or HTTP error
                without a JSON-RPC body
            ResponseDeserializationError: Body is not a JSON-RPC response,
                or `result` does not match `response_model`
            RpcError: The relay returned a JSON-RPC error
        """
        method = getattr(method, "value", method)
        request = self.build_request(method, params)
        body = json.dumps(request)

        headers = {
            "Content-Type": CONTENT_TYPE_JSON,
            SIGNATURE_HEADER: sign_request_body(self.auth_signer, body),
        }

        self.logger.debug(f"-> {method} (id {request['id']})")

        try:
            async with self._get_session().post(
                self.api_url, data=body, headers=headers
            ) as response:
                status = response.status
                text = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"{method} request to {self.api_url} failed: {e!r}") from e

        result = self._parse_response(method, status, text)
        self.logger.debug(f"<- {method} (id {request['id']}) HTTP {status}")

        if response_model is None:
            return result
        try:
            return response_model.model_validate(result)
        except ValidationError as e:
            raise ResponseDeserializationError(text, reason=str(e)) from e

    def _parse_response(self, method: str, status: int, text: str) -> Any:
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            if status >= 400:
                raise TransportError(f"{method}: HTTP {status}: {text[:200]}") from e
            raise ResponseDeserializationError(text, reason=str(e)) from e

        if not isinstance(payload, dict):
            raise ResponseDeserializationError(text, reason="not a JSON-RPC response object")

        if payload.get("error") is not None:
            error = RpcError.from_payload(payload["error"], method)
            self.logger.debug(f"Relay error for {method}: {error}")
            raise error

        if "result" in payload:
            return payload["result"]

        if status >= 400:
            raise TransportError(f"{method}: HTTP {status}: {text[:200]}")
        raise ResponseDeserializationError(text, reason="missing result and error")


__all__ = ["MevShareRpcClient", "sign_request_body"]
