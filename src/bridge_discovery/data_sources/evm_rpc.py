"""
EVM JSON-RPC client for read-only contract calls.

Only ``eth_call`` against ``latest`` is needed by discovery.  Uses
``httpx`` for async HTTP with retry + exponential backoff and an optional
per-endpoint circuit breaker.

Error mapping
-------------
- endpoint unreachable / HTTP failure      → ``ChainTransportError``
- JSON-RPC rate-limit error                → ``ChainTransportError``
- revert, unknown method, undecodable data → ``ContractCallError``
- empty ``0x`` result (no code)            → ``EmptyReturnDataError``
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import httpx
from eth_abi.exceptions import DecodingError

from ._retry import async_rpc_post
from ..abi import ContractInterface
from ..circuit_breaker import CircuitBreaker
from ..errors import ChainTransportError, ContractCallError, EmptyReturnDataError

logger = logging.getLogger(__name__)

# JSON-RPC error codes that signal a node-side capacity problem, not a revert
_TRANSPORT_ERROR_CODES = frozenset({-32005, 429})


class EvmRpcClient:
    """Async EVM JSON-RPC client bound to one network endpoint."""

    def __init__(
        self,
        endpoint: str,
        *,
        network: str = "",
        timeout: int = 15,
        max_retries: int = 3,
        backoff_base: float = 1.5,
        circuit_breaker: CircuitBreaker | None = None,
    ) -> None:
        self._endpoint = endpoint.rstrip("/")
        self._network = network
        self._timeout = timeout
        self._max_retries = max_retries
        self._backoff_base = backoff_base
        self._client: httpx.AsyncClient | None = None
        self._id_counter = 0
        self._cb = circuit_breaker

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"Content-Type": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def call(
        self,
        address: str,
        interface: ContractInterface,
        method: str,
        args: Sequence[Any] = (),
    ) -> tuple[Any, ...]:
        """Invoke a view *method* of *interface* at *address* and decode it."""
        data = interface.encode_call(method, args)
        raw = await self.eth_call(address, data, method=method)
        if not raw and interface.method(method).outputs:
            raise EmptyReturnDataError(
                f"{interface.name}.{method} returned no data",
                network=self._network,
                address=address,
                method=method,
            )
        try:
            return interface.decode_result(method, raw)
        except (DecodingError, ValueError, OverflowError) as exc:
            # short return data: no such method behind this address
            raise ContractCallError(
                f"{interface.name}.{method} returned undecodable data ({len(raw)} bytes)",
                network=self._network,
                address=address,
                method=method,
            ) from exc

    async def eth_call(self, address: str, data: str, *, method: str = "") -> bytes:
        params = [{"to": address, "data": data}, "latest"]
        result = await self._call("eth_call", params, address=address, method=method)
        if not isinstance(result, str):
            raise ContractCallError(
                "eth_call returned a non-hex result",
                network=self._network,
                address=address,
                method=method,
            )
        try:
            return bytes.fromhex(result[2:] if result.startswith("0x") else result)
        except ValueError as exc:
            raise ContractCallError(
                f"eth_call returned malformed hex: {result[:20]!r}",
                network=self._network,
                address=address,
                method=method,
            ) from exc

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _call(
        self,
        rpc_method: str,
        params: list[Any],
        *,
        address: str = "",
        method: str = "",
    ) -> Any:
        if self._cb is not None:
            return await self._cb.call(self._do, rpc_method, params, address, method)
        return await self._do(rpc_method, params, address, method)

    async def _do(self, rpc_method: str, params: list[Any], address: str, method: str) -> Any:
        self._id_counter += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._id_counter,
            "method": rpc_method,
            "params": params,
        }
        client = await self._get_client()
        body = await async_rpc_post(
            client,
            self._endpoint,
            json_payload=payload,
            max_retries=self._max_retries,
            backoff_base=self._backoff_base,
            label=f"RPC {self._network or self._endpoint} {rpc_method}",
        )
        error = body.get("error")
        if error:
            raise _map_rpc_error(error, network=self._network, address=address, method=method)
        return body.get("result")


def _map_rpc_error(error: Any, *, network: str, address: str, method: str) -> Exception:
    """Turn a JSON-RPC ``error`` member into the matching exception."""
    if not isinstance(error, dict):
        return ContractCallError(str(error), network=network, address=address, method=method)
    code = error.get("code")
    message = str(error.get("message", ""))
    revert_data: Optional[str] = error.get("data") if isinstance(error.get("data"), str) else None
    if code in _TRANSPORT_ERROR_CODES or "rate limit" in message.lower():
        return ChainTransportError(
            f"RPC capacity error {code}: {message}",
            network=network,
            address=address,
            method=method,
        )
    logger.debug("%s %s.%s rejected: %s (%s)", network, address, method, message, code)
    return ContractCallError(
        message or f"RPC error {code}",
        network=network,
        address=address,
        method=method,
        revert_data=revert_data,
    )
