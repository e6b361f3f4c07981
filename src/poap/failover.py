"""Endpoint failover for one chain.

Walks the chain's endpoint pool in order, for up to `retry_rounds` rounds.
Each attempt = fresh connection handle + chain id check + token resolution,
all under one `attempt_timeout`. First success wins and ends the walk.
A timed-out attempt is cancelled, so its sub-requests stop with it.
"""

import asyncio
from collections.abc import Callable, Collection
from typing import Protocol

from loguru import logger

from src.poap.evm.contract import open_poap_contract
from src.poap.exceptions import (
    AttemptTimeoutError,
    ChainExhaustedError,
    ChainMismatchError,
    EndpointError,
)
from src.poap.models import ChainConfig, ChainResult, CheckerConfig, OwnedToken
from src.poap.notifier import Notifier
from src.poap.resolver import TokenSource, resolve_owned_tokens


class EndpointHandle(TokenSource, Protocol):
    async def network_id(self) -> int: ...

    async def close(self) -> None: ...


HandleFactory = Callable[[ChainConfig, str, CheckerConfig], EndpointHandle]


class EndpointFailover:
    """Failover driver for a single chain. run() never raises EndpointError."""

    def __init__(
        self,
        chain: ChainConfig,
        config: CheckerConfig,
        notifier: Notifier,
        *,
        handle_factory: HandleFactory = open_poap_contract,
    ) -> None:
        self._chain = chain
        self._config = config
        self._notifier = notifier
        self._handle_factory = handle_factory

    async def run(self, address: str, target_event_ids: Collection[int]) -> ChainResult:
        name = self._chain.name
        try:
            tokens = await self._walk_pool(address, target_event_ids)
        except ChainExhaustedError as e:
            logger.error(f"[FAILOVER] {e}")
            self._notifier.error(
                f"Could not connect to {name} network after {e.rounds} "
                f"attempt round(s). Some results may be missing."
            )
            return ChainResult(chain=name, reachable=False)
        return ChainResult(chain=name, tokens=tuple(tokens))

    async def _walk_pool(
        self, address: str, target_event_ids: Collection[int]
    ) -> list[OwnedToken]:
        name = self._chain.name
        rounds = max(1, self._config.retry_rounds)
        attempts = 0

        for retry_round in range(rounds):
            for url in self._chain.endpoints:
                attempts += 1
                logger.info(f"[FAILOVER] [{name}] Trying {url} (round {retry_round + 1}/{rounds})")
                try:
                    tokens = await self._attempt(url, address, target_event_ids)
                except EndpointError as e:
                    logger.warning(f"[FAILOVER] [{name}] {url} failed: {e}")
                    continue
                logger.info(f"[FAILOVER] [{name}] {url} OK, {len(tokens)} matching POAP(s)")
                return tokens

            if retry_round < rounds - 1:
                self._notifier.status(
                    f"Retrying {name} network ({retry_round + 2}/{rounds})..."
                )
                await asyncio.sleep(self._config.retry_backoff)

        raise ChainExhaustedError(name, rounds, attempts)

    async def _attempt(
        self, url: str, address: str, target_event_ids: Collection[int]
    ) -> list[OwnedToken]:
        handle = self._handle_factory(self._chain, url, self._config)
        try:
            return await asyncio.wait_for(
                self._verify_and_resolve(handle, address, target_event_ids),
                timeout=self._config.attempt_timeout,
            )
        except asyncio.TimeoutError as e:
            raise AttemptTimeoutError(
                f"no result within {self._config.attempt_timeout}s"
            ) from e
        finally:
            await handle.close()

    async def _verify_and_resolve(
        self, handle: EndpointHandle, address: str, target_event_ids: Collection[int]
    ) -> list[OwnedToken]:
        name = self._chain.name
        self._notifier.status(f"Connecting to {name} network...")
        chain_id = await handle.network_id()
        if chain_id != self._chain.chain_id:
            raise ChainMismatchError(
                f"endpoint reports chain id {chain_id}, expected {self._chain.chain_id}"
            )

        self._notifier.status(f"Fetching POAPs on {name}...")
        return await resolve_owned_tokens(
            handle,
            address,
            target_event_ids,
            chain=name,
            enumeration_limit=self._config.enumeration_limit,
            max_concurrency=self._config.max_concurrency,
        )
