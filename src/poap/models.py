"""Data model for the POAP wallet check.

Configuration types are frozen dataclasses built once per run and passed
down explicitly. Token-level records are immutable pydantic models.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from config.settings import Settings

COLLECTOR_TOKEN_URL = "https://collectors.poap.xyz/token/{token_id}"


class TargetEvent(BaseModel):
    """One allow-listed POAP event."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str = ""


class OwnedToken(BaseModel):
    """A token held by the wallet whose event is in the allow-list."""

    model_config = ConfigDict(frozen=True)

    token_id: int  # uint256, Python int keeps full precision
    event_id: int
    chain: str = ""


class PoapEntry(BaseModel):
    """OwnedToken plus display data, handed to the presentation layer."""

    model_config = ConfigDict(frozen=True)

    token_id: int
    event_id: int
    chain: str
    display_name: str
    points: Decimal

    @property
    def collector_url(self) -> str:
        return COLLECTOR_TOKEN_URL.format(token_id=self.token_id)


@dataclass(frozen=True)
class ChainConfig:
    """A chain and its ordered endpoint pool."""

    name: str
    chain_id: int
    endpoints: tuple[str, ...]


@dataclass(frozen=True)
class ScoringRules:
    points_per_match: Decimal = Decimal("0.33")
    special_count: int = 3
    special_points: Decimal = Decimal("1")


@dataclass(frozen=True)
class CheckerConfig:
    """Immutable run configuration for one wallet check."""

    chains: tuple[ChainConfig, ...]
    contract_address: str
    target_events: tuple[TargetEvent, ...]
    scoring: ScoringRules = field(default_factory=ScoringRules)
    attempt_timeout: float = 20.0
    retry_rounds: int = 2
    retry_backoff: float = 1.0
    http_timeout: float = 15.0
    max_rps: float = 20.0
    enumeration_limit: int = 50
    max_concurrency: int = 8
    poap_api_url: str = "https://api.poap.tech"
    poap_api_key: str = ""
    enable_name_lookup: bool = True

    @property
    def target_event_ids(self) -> frozenset[int]:
        return frozenset(event.id for event in self.target_events)

    @property
    def event_names(self) -> dict[int, str]:
        return {event.id: event.name for event in self.target_events if event.name}

    @classmethod
    def from_settings(cls, settings: Settings) -> "CheckerConfig":
        chains = (
            ChainConfig(
                name="gnosis",
                chain_id=settings.gnosis_chain_id,
                endpoints=_split_urls(settings.gnosis_rpc_urls),
            ),
            ChainConfig(
                name="base",
                chain_id=settings.base_chain_id,
                endpoints=_split_urls(settings.base_rpc_urls),
            ),
        )
        return cls(
            chains=chains,
            contract_address=settings.poap_contract_address,
            target_events=parse_target_events(settings.poap_events),
            scoring=ScoringRules(
                points_per_match=Decimal(settings.points_per_poap),
                special_count=settings.special_poap_count,
                special_points=Decimal(settings.special_poap_points),
            ),
            attempt_timeout=settings.rpc_attempt_timeout_sec,
            retry_rounds=settings.rpc_retry_rounds,
            retry_backoff=settings.rpc_retry_backoff_sec,
            http_timeout=settings.rpc_http_timeout_sec,
            max_rps=settings.rpc_max_rps,
            enumeration_limit=settings.enumeration_limit,
            max_concurrency=settings.lookup_concurrency,
            poap_api_url=settings.poap_api_url,
            poap_api_key=settings.poap_api_key,
            enable_name_lookup=settings.enable_name_lookup,
        )


@dataclass(frozen=True)
class ChainResult:
    """Matches found on one chain.

    An unreachable chain yields no tokens and reachable=False, so callers
    can tell "no matches" apart from "no data".
    """

    chain: str
    tokens: tuple[OwnedToken, ...] = ()
    reachable: bool = True


@dataclass(frozen=True)
class AggregateResult:
    """All chain results, in chain declaration order."""

    chain_results: tuple[ChainResult, ...] = ()

    @property
    def tokens(self) -> list[OwnedToken]:
        return [token for result in self.chain_results for token in result.tokens]

    @property
    def unreachable_chains(self) -> list[str]:
        return [result.chain for result in self.chain_results if not result.reachable]

    def __len__(self) -> int:
        return sum(len(result.tokens) for result in self.chain_results)


@dataclass(frozen=True)
class WalletCheck:
    """Final outcome of check_wallet()."""

    address: str
    entries: tuple[PoapEntry, ...]
    score: Decimal
    unreachable_chains: tuple[str, ...] = ()


def parse_target_events(raw: str) -> tuple[TargetEvent, ...]:
    """Parse "id:name,id:name" into TargetEvents. Name is optional."""
    events: list[TargetEvent] = []
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        event_id, _, name = chunk.partition(":")
        events.append(TargetEvent(id=int(event_id.strip()), name=name.strip()))
    return tuple(events)


def _split_urls(raw: str) -> tuple[str, ...]:
    return tuple(url.strip() for url in raw.split(",") if url.strip())
