"""Shared test fixtures: in-memory contract handles and run configs."""

import asyncio
from decimal import Decimal

import pytest

from src.poap.exceptions import RpcResponseError, RpcTransportError
from src.poap.models import ChainConfig, CheckerConfig, ScoringRules, TargetEvent

WALLET = "0x1234567890abcdef1234567890abcdef12345678"
EVENT_A = 210723
EVENT_B = 214291
OTHER_EVENT = 999


class FakeContract:
    """EndpointHandle double. Knobs cover every failure mode of an attempt."""

    def __init__(
        self,
        *,
        chain_id: int = 100,
        balance: int = 0,
        enumerated: list[int] | None = None,
        enumeration_fails: bool = False,
        logged: list[int] | None = None,
        log_scan_fails: bool = False,
        events: dict[int, int] | None = None,
        failing_events: set[int] | None = None,
        chain_id_error: Exception | None = None,
        chain_id_delay: float = 0.0,
        chain_id_gate: asyncio.Event | None = None,
        on_chain_id: asyncio.Event | None = None,
        balance_error: Exception | None = None,
    ) -> None:
        self.chain_id = chain_id
        self.balance = balance
        self.enumerated = enumerated or []
        self.enumeration_fails = enumeration_fails
        self.logged = logged or []
        self.log_scan_fails = log_scan_fails
        self.events = events or {}
        self.failing_events = failing_events or set()
        self.chain_id_error = chain_id_error
        self.chain_id_delay = chain_id_delay
        self.chain_id_gate = chain_id_gate
        self.on_chain_id = on_chain_id
        self.balance_error = balance_error

        self.balance_calls = 0
        self.index_calls: list[int] = []
        self.log_scans = 0
        self.event_lookups: list[int] = []
        self.closed = False

    async def network_id(self) -> int:
        if self.on_chain_id is not None:
            self.on_chain_id.set()
        if self.chain_id_gate is not None:
            await self.chain_id_gate.wait()
        if self.chain_id_delay:
            await asyncio.sleep(self.chain_id_delay)
        if self.chain_id_error is not None:
            raise self.chain_id_error
        return self.chain_id

    async def balance_of(self, owner: str) -> int:
        self.balance_calls += 1
        if self.balance_error is not None:
            raise self.balance_error
        return self.balance

    async def token_of_owner_by_index(self, owner: str, index: int) -> int:
        self.index_calls.append(index)
        if self.enumeration_fails:
            raise RpcResponseError("tokenOfOwnerByIndex RPC error: execution reverted")
        return self.enumerated[index]

    async def transferred_token_ids(self, owner: str) -> list[int]:
        self.log_scans += 1
        if self.log_scan_fails:
            raise RpcResponseError("eth_getLogs RPC error: query returned more than 10000 results")
        return list(self.logged)

    async def token_event(self, token_id: int) -> int:
        self.event_lookups.append(token_id)
        if token_id in self.failing_events:
            raise RpcTransportError("eth_call ReadTimeout: timed out")
        return self.events[token_id]

    async def close(self) -> None:
        self.closed = True


class HandleFactory:
    """Maps endpoint URL -> FakeContract (or a list, one per successive attempt)."""

    def __init__(self, handles: dict[str, FakeContract | list[FakeContract]]) -> None:
        self._handles = {
            url: list(h) if isinstance(h, list) else [h] for url, h in handles.items()
        }
        self.opened: list[str] = []

    def __call__(self, chain: ChainConfig, url: str, config: CheckerConfig) -> FakeContract:
        self.opened.append(url)
        queue = self._handles[url]
        return queue.pop(0) if len(queue) > 1 else queue[0]


def build_config(
    chains: tuple[ChainConfig, ...] | None = None,
    **overrides,
) -> CheckerConfig:
    if chains is None:
        chains = (
            ChainConfig(name="gnosis", chain_id=100, endpoints=("https://g1", "https://g2")),
            ChainConfig(name="base", chain_id=8453, endpoints=("https://b1", "https://b2")),
        )
    params = dict(
        chains=chains,
        contract_address="0x22C1f6050E56d2876009903609a2cC3fEf83B415",
        target_events=(
            TargetEvent(id=EVENT_A, name="Intervention @ UNamur"),
            TargetEvent(id=EVENT_B, name="Stablecoins et Monnaie Programmable"),
        ),
        scoring=ScoringRules(Decimal("0.33"), 3, Decimal("1")),
        attempt_timeout=1.0,
        retry_rounds=1,
        retry_backoff=0.0,
        max_rps=0,
        enable_name_lookup=False,
    )
    params.update(overrides)
    return CheckerConfig(**params)


@pytest.fixture
def fake_contract() -> type[FakeContract]:
    return FakeContract


@pytest.fixture
def handle_factory() -> type[HandleFactory]:
    return HandleFactory


@pytest.fixture
def config_factory():
    return build_config
