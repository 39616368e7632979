"""Tests for the debounced writer."""

import asyncio

from setpace.services.debounce import DebouncedWriter


class TestDebouncedWriter:
    """Tests for DebouncedWriter."""

    def test_burst_coalesces_into_one_write(self):
        """Test that repeated scheduling produces a single write."""
        calls = []

        async def write():
            calls.append(len(calls))

        async def run():
            writer = DebouncedWriter(write, delay=0.05)
            for _ in range(5):
                writer.schedule()
                await asyncio.sleep(0.01)
            assert calls == []
            await asyncio.sleep(0.1)
            await writer.wait()

        asyncio.run(run())
        assert calls == [0]

    def test_write_reads_state_at_fire_time(self):
        """Test that the write sees changes made after scheduling."""
        state = {"value": 1}
        seen = []

        async def write():
            seen.append(state["value"])

        async def run():
            writer = DebouncedWriter(write, delay=0.02)
            writer.schedule()
            state["value"] = 2
            await asyncio.sleep(0.05)
            await writer.wait()

        asyncio.run(run())
        assert seen == [2]

    def test_flush_cancels_pending_write(self):
        """Test that flush writes immediately and drops the scheduled write."""
        calls = []

        async def write():
            calls.append("write")

        async def run():
            writer = DebouncedWriter(write, delay=0.05)
            writer.schedule()
            assert writer.pending
            await writer.flush()
            assert not writer.pending
            await asyncio.sleep(0.1)

        asyncio.run(run())
        assert calls == ["write"]

    def test_flush_waits_for_in_flight_write(self):
        """Test that a slow in-flight write finishes before the flush write."""
        order = []

        async def write():
            order.append("start")
            await asyncio.sleep(0.03)
            order.append("end")

        async def run():
            writer = DebouncedWriter(write, delay=0)
            writer.schedule()
            await asyncio.sleep(0.01)
            await writer.flush()

        asyncio.run(run())
        assert order == ["start", "end", "start", "end"]

    def test_failures_are_swallowed(self):
        """Test that a failing write is logged and does not propagate."""

        async def write():
            raise RuntimeError("disk full")

        async def run():
            writer = DebouncedWriter(write, delay=0)
            await writer.flush()
            writer.schedule()
            await asyncio.sleep(0.01)
            await writer.wait()

        asyncio.run(run())
