"""Tests for the per-chain endpoint failover driver."""

import asyncio

import pytest

from src.poap.exceptions import RpcTransportError
from src.poap.failover import EndpointFailover
from src.poap.models import ChainConfig
from src.poap.notifier import RecordingNotifier

WALLET = "0x1234567890abcdef1234567890abcdef12345678"
TARGETS = {210723, 214291}
GNOSIS = ChainConfig(name="gnosis", chain_id=100, endpoints=("https://g1", "https://g2"))


def _down(fake_contract):
    return fake_contract(chain_id_error=RpcTransportError("ConnectError: refused"))


class TestEndpointOrder:
    @pytest.mark.asyncio
    async def test_first_success_short_circuits(
        self, fake_contract, handle_factory, config_factory
    ) -> None:
        """First working endpoint wins; later endpoints are never opened."""
        first = fake_contract(balance=1, enumerated=[7], events={7: 210723})
        factory = handle_factory({"https://g1": first, "https://g2": fake_contract()})
        driver = EndpointFailover(
            GNOSIS, config_factory(retry_rounds=3), RecordingNotifier(), handle_factory=factory
        )

        result = await driver.run(WALLET, TARGETS)

        assert result.reachable
        assert [t.token_id for t in result.tokens] == [7]
        assert factory.opened == ["https://g1"]
        assert first.closed

    @pytest.mark.asyncio
    async def test_falls_through_to_next_endpoint(
        self, fake_contract, handle_factory, config_factory
    ) -> None:
        """A failed chain id check moves on to the next endpoint."""
        bad = _down(fake_contract)
        good = fake_contract(balance=1, enumerated=[7], events={7: 214291})
        factory = handle_factory({"https://g1": bad, "https://g2": good})
        driver = EndpointFailover(
            GNOSIS, config_factory(), RecordingNotifier(), handle_factory=factory
        )

        result = await driver.run(WALLET, TARGETS)

        assert [t.event_id for t in result.tokens] == [214291]
        assert factory.opened == ["https://g1", "https://g2"]
        assert bad.closed and good.closed

    @pytest.mark.asyncio
    async def test_wrong_chain_id_is_endpoint_failure(
        self, fake_contract, handle_factory, config_factory
    ) -> None:
        """An endpoint on the wrong chain is skipped before any reads."""
        wrong = fake_contract(chain_id=1, balance=1, enumerated=[7], events={7: 210723})
        good = fake_contract(balance=0)
        factory = handle_factory({"https://g1": wrong, "https://g2": good})
        driver = EndpointFailover(
            GNOSIS, config_factory(), RecordingNotifier(), handle_factory=factory
        )

        result = await driver.run(WALLET, TARGETS)

        assert result.reachable
        assert result.tokens == ()
        assert wrong.balance_calls == 0


class TestTimeout:
    @pytest.mark.asyncio
    async def test_late_result_does_not_win(
        self, fake_contract, handle_factory, config_factory
    ) -> None:
        """A result arriving after the timeout is discarded and the attempt cancelled."""
        slow = fake_contract(chain_id_delay=0.5, balance=1, enumerated=[1], events={1: 210723})
        fast = fake_contract(balance=1, enumerated=[2], events={2: 214291})
        factory = handle_factory({"https://g1": slow, "https://g2": fast})
        driver = EndpointFailover(
            GNOSIS,
            config_factory(attempt_timeout=0.05),
            RecordingNotifier(),
            handle_factory=factory,
        )

        result = await driver.run(WALLET, TARGETS)
        await asyncio.sleep(0.6)

        assert [t.token_id for t in result.tokens] == [2]
        # The slow attempt was cancelled, not left running in the background
        assert slow.balance_calls == 0
        assert slow.closed


class TestRetryRounds:
    @pytest.mark.asyncio
    async def test_succeeds_in_second_round(
        self, fake_contract, handle_factory, config_factory
    ) -> None:
        """A later round can recover after every endpoint failed once."""
        recovered = fake_contract(balance=1, enumerated=[3], events={3: 210723})
        factory = handle_factory({
            "https://g1": [_down(fake_contract), recovered],
            "https://g2": _down(fake_contract),
        })
        notifier = RecordingNotifier()
        driver = EndpointFailover(
            GNOSIS, config_factory(retry_rounds=2), notifier, handle_factory=factory
        )

        result = await driver.run(WALLET, TARGETS)

        assert [t.token_id for t in result.tokens] == [3]
        assert factory.opened == ["https://g1", "https://g2", "https://g1"]
        assert any(s.startswith("Retrying gnosis") for s in notifier.statuses)
        assert notifier.errors == []

    @pytest.mark.asyncio
    async def test_exhaustion_returns_unreachable_and_one_error(
        self, fake_contract, handle_factory, config_factory
    ) -> None:
        """Exhausting all rounds returns an unreachable result and one warning."""
        factory = handle_factory({
            "https://g1": _down(fake_contract),
            "https://g2": _down(fake_contract),
        })
        notifier = RecordingNotifier()
        driver = EndpointFailover(
            GNOSIS, config_factory(retry_rounds=3), notifier, handle_factory=factory
        )

        result = await driver.run(WALLET, TARGETS)

        assert not result.reachable
        assert result.tokens == ()
        assert len(factory.opened) == 6
        assert len(notifier.errors) == 1
        assert "gnosis" in notifier.errors[0]
        assert "3" in notifier.errors[0]
        # Retry status only between rounds, never after the last one
        assert sum(s.startswith("Retrying") for s in notifier.statuses) == 2

    @pytest.mark.asyncio
    async def test_unexpected_errors_are_not_swallowed(
        self, fake_contract, handle_factory, config_factory
    ) -> None:
        """Non-endpoint errors propagate instead of triggering failover."""
        broken = fake_contract(balance_error=ValueError("bad parse"))
        factory = handle_factory({"https://g1": broken, "https://g2": fake_contract()})
        driver = EndpointFailover(
            GNOSIS, config_factory(), RecordingNotifier(), handle_factory=factory
        )

        with pytest.raises(ValueError):
            await driver.run(WALLET, TARGETS)
        assert broken.closed
