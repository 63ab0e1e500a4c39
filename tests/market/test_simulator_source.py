"""Integration tests for SimulatorSource."""

import asyncio
from unittest.mock import MagicMock

import pytest

from quoteboard.config import Setting, SimulatorOptions
from quoteboard.errors import InitError, SubscribeError
from quoteboard.market.simulator import SimulatorSource


async def _recv(source):
    return await asyncio.wait_for(source.recv(), timeout=2.0)


@pytest.mark.asyncio
class TestSimulatorSource:
    """Integration tests for the SimulatorSource."""

    async def test_create_consumes_setting(self):
        setting = Setting(simulator=SimulatorOptions(update_interval=0.1))
        source = await SimulatorSource.create(setting)
        assert setting.simulator is None
        assert source._interval == 0.1
        await source.close()

    async def test_create_without_block_fails(self):
        with pytest.raises(InitError):
            await SimulatorSource.create(Setting())

    async def test_subscribe_pushes_seed_quote(self):
        """The first push for a symbol is its seed quote."""
        source = SimulatorSource(update_interval=60.0)
        source.start()
        await source.subscribe("AAPL.US")

        record = await _recv(source)
        assert record.symbol == "AAPL.US"
        assert record.last_done == record.open
        await source.close()

    async def test_quotes_arrive_over_time(self):
        source = SimulatorSource(update_interval=0.01)
        source.start()
        await source.subscribe("AAPL")
        await source.subscribe("MSFT")

        symbols = [(await _recv(source)).symbol for _ in range(6)]
        assert set(symbols) == {"AAPL", "MSFT"}
        await source.close()

    async def test_unsubscribe_stops_updates(self):
        source = SimulatorSource(update_interval=0.01)
        source.start()
        await source.subscribe("AAPL")
        await source.subscribe("TSLA")
        await source.unsubscribe("TSLA")
        assert source.get_symbols() == ["AAPL"]

        # Drain the two seed quotes, then only AAPL keeps coming
        await _recv(source)
        await _recv(source)
        for _ in range(5):
            assert (await _recv(source)).symbol == "AAPL"
        await source.close()

    async def test_close_ends_channel(self):
        """After close(), queued quotes drain and then recv() returns None."""
        source = SimulatorSource(update_interval=60.0)
        source.start()
        await source.subscribe("AAPL")
        await source.close()

        assert (await _recv(source)).symbol == "AAPL"
        assert await _recv(source) is None
        assert source.closed
        assert await _recv(source) is None

    async def test_close_is_idempotent(self):
        source = SimulatorSource(update_interval=0.1)
        source.start()
        await source.close()
        await source.close()

    async def test_subscribe_after_close_fails(self):
        source = SimulatorSource(update_interval=0.1)
        source.start()
        await source.close()
        await _recv(source)
        with pytest.raises(SubscribeError):
            await source.subscribe("AAPL")

    async def test_subscribe_before_start_fails(self):
        source = SimulatorSource(update_interval=0.1)
        with pytest.raises(SubscribeError):
            await source.subscribe("AAPL")

    async def test_loop_survives_step_errors(self):
        source = SimulatorSource(update_interval=0.01)
        source.start()
        await source.subscribe("AAPL")
        source._sim.step = MagicMock(side_effect=RuntimeError("boom"))
        await asyncio.sleep(0.05)

        assert source._task is not None
        assert not source._task.done()
        await source.close()
