import pytest

from core.context import RunContext
from core.errors import PersistenceFailure
from storage.writer import write_all
from tests.helpers import make_signal


class TestWriteAll:
    """Sequential persistence with per-item results"""

    @pytest.mark.asyncio
    async def test_one_result_per_signal_in_order(self, signal_store):
        signals = [make_signal(s, signal_id=f"{s}-1") for s in ["BTC", "ETH", "SOL"]]

        results = await write_all(signals, signal_store.insert)

        assert [(r.symbol, r.success) for r in results] == [
            ("BTC", True),
            ("ETH", True),
            ("SOL", True),
        ]
        assert len(signal_store.latest(limit=0)) == 3

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_later_writes(self, settings):
        persisted = []

        def persist(signal):
            if signal.symbol == "ETH":
                raise OSError("disk full")
            persisted.append(signal.symbol)

        signals = [make_signal(s, signal_id=f"{s}-1") for s in ["BTC", "ETH", "SOL"]]
        ctx = RunContext.boot(settings, "job_test")

        results = await write_all(signals, persist, ctx=ctx)

        assert [r.success for r in results] == [True, False, True]
        assert "disk full" in results[1].error
        assert persisted == ["BTC", "SOL"]
        assert ctx.metrics.num_saved == 2
        assert ctx.metrics.num_save_failed == 1

    @pytest.mark.asyncio
    async def test_duplicate_id_is_a_failed_result(self, signal_store):
        first = make_signal("BTC", signal_id="BTC-1")
        duplicate = make_signal("BTC", confidence=10, signal_id="BTC-1")

        results = await write_all([first, duplicate], signal_store.insert)

        assert [r.success for r in results] == [True, False]
        assert signal_store.get("BTC-1").confidence == first.confidence

    @pytest.mark.asyncio
    async def test_progress_reported_after_each_success(self):
        calls = []

        async def persist(signal):
            if signal.symbol == "ETH":
                raise PersistenceFailure("rejected", signal.id)

        signals = [make_signal(s, signal_id=f"{s}-1") for s in ["BTC", "ETH", "SOL"]]

        await write_all(signals, persist, on_progress=lambda done, total: calls.append((done, total)))

        assert calls == [(1, 3), (3, 3)]
