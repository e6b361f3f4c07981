"""Token discovery for one chain through one endpoint.

Flow:
1. balanceOf(address) -- zero means done, nothing else is queried
2. tokenOfOwnerByIndex for the first `enumeration_limit` indexes
3. if enumeration fails (contract deployment without the enumerable
   extension, flaky endpoint), replay Transfer logs to the address instead
4. tokenEvent for every token id; individual failures drop that token only
5. keep tokens whose event id is allow-listed, in discovery order

Failures in steps 1-3 propagate as EndpointError so the failover driver
can try another endpoint.
"""

import asyncio
from collections.abc import Awaitable, Callable, Collection
from typing import Any, Protocol, TypeVar

from loguru import logger

from src.poap.exceptions import EndpointError, PerTokenLookupError
from src.poap.models import OwnedToken
from src.utils.aio import gather_or_fail

T = TypeVar("T")

DEFAULT_ENUMERATION_LIMIT = 50


class TokenSource(Protocol):
    async def balance_of(self, owner: str) -> int: ...

    async def token_of_owner_by_index(self, owner: str, index: int) -> int: ...

    async def token_event(self, token_id: int) -> int: ...

    async def transferred_token_ids(self, owner: str) -> list[int]: ...


async def resolve_owned_tokens(
    contract: TokenSource,
    address: str,
    target_event_ids: Collection[int],
    *,
    chain: str = "",
    enumeration_limit: int = DEFAULT_ENUMERATION_LIMIT,
    max_concurrency: int = 8,
) -> list[OwnedToken]:
    """Return the allow-listed POAPs held by address, via one endpoint."""
    tag = f"[RESOLVER] [{chain}]" if chain else "[RESOLVER]"
    semaphore = asyncio.Semaphore(max(1, max_concurrency))

    async def bounded(fetch: Callable[..., Awaitable[T]], *args: Any) -> T:
        async with semaphore:
            return await fetch(*args)

    balance = await contract.balance_of(address)
    logger.debug(f"{tag} Balance: {balance}")
    if balance == 0:
        return []

    limit = min(balance, enumeration_limit)
    try:
        token_ids = await gather_or_fail(
            bounded(contract.token_of_owner_by_index, address, index) for index in range(limit)
        )
        logger.debug(f"{tag} Enumerated {len(token_ids)}/{balance} token ids")
    except EndpointError as e:
        logger.info(f"{tag} Enumeration failed ({e}), scanning Transfer logs")
        token_ids = await contract.transferred_token_ids(address)
        logger.debug(f"{tag} Log scan found {len(token_ids)} token ids")

    token_ids = list(dict.fromkeys(token_ids))

    async def lookup(token_id: int) -> OwnedToken | None:
        try:
            event_id = await bounded(contract.token_event, token_id)
        except EndpointError as e:
            logger.warning(f"{tag} {PerTokenLookupError(token_id, e)}")
            return None
        return OwnedToken(token_id=token_id, event_id=event_id, chain=chain)

    looked_up = await asyncio.gather(*(lookup(token_id) for token_id in token_ids))

    targets = set(target_event_ids)
    found = [token for token in looked_up if token is not None and token.event_id in targets]
    logger.debug(f"{tag} {len(found)} matching POAP(s) out of {len(token_ids)} tokens")
    return found

