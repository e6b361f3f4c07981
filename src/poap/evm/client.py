"""Minimal async JSON-RPC client for EVM chains (read-only)."""

import asyncio
import itertools
from typing import Any

import httpx
from loguru import logger

from src.poap.evm.rate_limiter import RateLimiter
from src.poap.exceptions import RpcResponseError, RpcTransportError

MAX_RETRIES = 2
RETRY_DELAYS = [0.5, 1.5]


class EvmRpcClient:
    """Connection handle for one RPC endpoint.

    Every failure surfaces as an EndpointError subclass so the failover
    driver can move on to the next endpoint.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 15.0,
        rate_limiter: RateLimiter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._rate_limiter = rate_limiter or RateLimiter(0)
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )
        self._ids = itertools.count(1)

    @property
    def url(self) -> str:
        return self._url

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "EvmRpcClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def chain_id(self) -> int:
        result = await self._rpc("eth_chainId", [])
        return _hex_to_int(result, "eth_chainId")

    async def call(self, to: str, data: bytes) -> bytes:
        """eth_call against the latest block, returning raw return data."""
        result = await self._rpc("eth_call", [{"to": to, "data": "0x" + data.hex()}, "latest"])
        if not isinstance(result, str) or not result.startswith("0x"):
            raise RpcResponseError(f"eth_call returned non-hex result: {result!r}")
        try:
            return bytes.fromhex(result[2:])
        except ValueError as e:
            raise RpcResponseError(f"eth_call returned invalid hex: {e}") from e

    async def get_logs(
        self,
        address: str,
        topics: list[str | None],
        *,
        from_block: str = "0x0",
        to_block: str = "latest",
    ) -> list[dict[str, Any]]:
        result = await self._rpc(
            "eth_getLogs",
            [{"address": address, "topics": topics, "fromBlock": from_block, "toBlock": to_block}],
        )
        if not isinstance(result, list):
            raise RpcResponseError(f"eth_getLogs returned {type(result).__name__}, expected list")
        return result

    async def _rpc(self, method: str, params: list[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }

        for attempt in range(MAX_RETRIES + 1):
            await self._rate_limiter.acquire()
            try:
                resp = await self._client.post(self._url, json=payload)
            except httpx.HTTPError as e:
                raise RpcTransportError(f"{method} {type(e).__name__}: {e}") from e

            if resp.status_code == 429:
                if attempt == MAX_RETRIES:
                    break
                delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
                logger.debug(f"[RPC] {self._url} 429 on {method}, retrying in {delay}s")
                await asyncio.sleep(delay)
                continue
            if resp.status_code != 200:
                raise RpcTransportError(f"{method} HTTP {resp.status_code}")

            try:
                data = resp.json()
            except ValueError as e:
                raise RpcResponseError(f"{method} returned non-JSON body") from e

            if not isinstance(data, dict):
                raise RpcResponseError(f"{method} returned malformed envelope")
            if data.get("error"):
                error = data["error"]
                message = error.get("message", error) if isinstance(error, dict) else error
                raise RpcResponseError(f"{method} RPC error: {message}")
            if "result" not in data:
                raise RpcResponseError(f"{method} response has no result")
            return data["result"]

        raise RpcTransportError(f"{method} rate limited after {MAX_RETRIES + 1} attempts")


def _hex_to_int(value: Any, method: str) -> int:
    if not isinstance(value, str):
        raise RpcResponseError(f"{method} returned {value!r}, expected hex quantity")
    try:
        return int(value, 16)
    except ValueError as e:
        raise RpcResponseError(f"{method} returned invalid quantity {value!r}") from e
