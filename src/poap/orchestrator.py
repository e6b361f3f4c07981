"""Wallet check across all configured chains.

check_wallet() is the single entry point for presentation code: it validates
the address, runs every chain's failover driver concurrently, resolves
display names and computes the score. Progress and warnings go through the
Notifier; the return value is only produced once everything has settled.
"""

from eth_utils import is_address
from loguru import logger

from src.poap.event_names import EventNameResolver
from src.poap.evm.contract import open_poap_contract
from src.poap.exceptions import UnexpectedCheckError, ValidationError
from src.poap.failover import EndpointFailover, HandleFactory
from src.poap.models import AggregateResult, CheckerConfig, PoapEntry, WalletCheck
from src.poap.notifier import GENERIC_ERROR, INVALID_ADDRESS, Notifier
from src.poap.scoring import score_for
from src.utils.aio import gather_or_fail


async def check_all(
    address: str,
    config: CheckerConfig,
    notifier: Notifier,
    *,
    handle_factory: HandleFactory = open_poap_contract,
) -> AggregateResult:
    """Run every chain concurrently; an unreachable chain contributes nothing."""
    target_ids = config.target_event_ids
    drivers = [
        EndpointFailover(chain, config, notifier, handle_factory=handle_factory)
        for chain in config.chains
    ]
    results = await gather_or_fail(driver.run(address, target_ids) for driver in drivers)
    aggregate = AggregateResult(chain_results=tuple(results))
    logger.info(
        f"[CHECK] {address}: {len(aggregate)} matching POAP(s), "
        f"unreachable chains: {aggregate.unreachable_chains or 'none'}"
    )
    return aggregate


async def check_wallet(
    address: str,
    config: CheckerConfig,
    notifier: Notifier,
    *,
    handle_factory: HandleFactory = open_poap_contract,
    name_resolver: EventNameResolver | None = None,
) -> WalletCheck:
    """Check one wallet on every configured chain and score its matching POAPs.

    Raises ValidationError for a malformed address (before any network call)
    and UnexpectedCheckError for anything the pipeline cannot recover from.
    Unreachable chains do not raise; they show up in unreachable_chains.
    """
    address = address.strip()
    if not is_address(address):
        notifier.error(INVALID_ADDRESS)
        raise ValidationError(f"invalid address: {address!r}")

    owns_resolver = name_resolver is None
    if name_resolver is None:
        name_resolver = EventNameResolver(
            config.event_names,
            api_url=config.poap_api_url,
            api_key=config.poap_api_key,
            enabled=config.enable_name_lookup,
        )

    try:
        aggregate = await check_all(address, config, notifier, handle_factory=handle_factory)

        notifier.status("Calculating score...")
        tokens = aggregate.tokens
        names = await name_resolver.resolve_many(token.event_id for token in tokens)
        points = config.scoring.points_per_match
        entries = tuple(
            PoapEntry(
                token_id=token.token_id,
                event_id=token.event_id,
                chain=token.chain,
                display_name=names[token.event_id],
                points=points,
            )
            for token in tokens
        )
        score = score_for(len(entries), config.scoring)
    except Exception as e:
        logger.exception(f"[CHECK] Unexpected failure for {address}: {e}")
        notifier.error(GENERIC_ERROR)
        raise UnexpectedCheckError(GENERIC_ERROR) from e
    finally:
        if owns_resolver:
            await name_resolver.close()

    return WalletCheck(
        address=address,
        entries=entries,
        score=score,
        unreachable_chains=tuple(aggregate.unreachable_chains),
    )
