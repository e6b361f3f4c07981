"""Display names for matched events.

Static names from configuration win. Unknown ids are looked up once on the
POAP public API; any failure there just yields "Event #<id>".
"""

import asyncio
from collections.abc import Iterable

import httpx
from loguru import logger

FALLBACK_NAME = "Event #{event_id}"


class EventNameResolver:
    """Async client for POAP event names (cosmetic only, never raises)."""

    def __init__(
        self,
        static_names: dict[int, str],
        *,
        api_url: str = "https://api.poap.tech",
        api_key: str = "",
        enabled: bool = True,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._static_names = dict(static_names)
        self._enabled = enabled
        headers = {"Accept": "application/json"}
        if api_key:
            headers["X-API-Key"] = api_key
        self._client = httpx.AsyncClient(
            base_url=api_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def resolve_many(self, event_ids: Iterable[int]) -> dict[int, str]:
        """Map every distinct event id to a display name."""
        unique_ids = list(dict.fromkeys(event_ids))
        names = await asyncio.gather(*(self.resolve(event_id) for event_id in unique_ids))
        return dict(zip(unique_ids, names))

    async def resolve(self, event_id: int) -> str:
        static = self._static_names.get(event_id)
        if static:
            return static
        if self._enabled:
            name = await self._fetch_name(event_id)
            if name:
                return name
        return FALLBACK_NAME.format(event_id=event_id)

    async def _fetch_name(self, event_id: int) -> str | None:
        try:
            response = await self._client.get(f"/events/id/{event_id}")
        except httpx.HTTPError as e:
            logger.debug(f"[NAMES] Lookup for event {event_id} failed: {type(e).__name__}: {e}")
            return None
        if response.status_code != 200:
            logger.debug(f"[NAMES] HTTP {response.status_code} for event {event_id}")
            return None
        try:
            data = response.json()
        except ValueError:
            logger.debug(f"[NAMES] Non-JSON body for event {event_id}")
            return None
        name = data.get("name") if isinstance(data, dict) else None
        return name if isinstance(name, str) and name.strip() else None
