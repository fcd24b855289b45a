"""Unit tests for the bounded concurrent sync driver."""

import asyncio

import pytest

from groupsync.application.concurrency import concurrent_sync, default_worker_count
from groupsync.domain.exceptions import AggregateError, GroupSyncError


class TestConcurrentSync:
    """Tests for concurrent_sync()."""

    @pytest.mark.asyncio
    async def test_syncs_every_id_once(self, mock_batch_probe):
        calls: list[str] = []

        async def sync_one(item_id: str) -> None:
            calls.append(item_id)

        await concurrent_sync(
            ["a", "b", "c", "b"], sync_one, max_workers=2, probe=mock_batch_probe
        )

        assert sorted(calls) == ["a", "b", "c"]
        mock_batch_probe.duplicate_ids_skipped.assert_called_once_with(["b"])
        mock_batch_probe.batch_started.assert_called_once_with(3, 2)
        mock_batch_probe.batch_completed.assert_called_once_with(3, [])

    @pytest.mark.asyncio
    async def test_distinct_ids_report_no_duplicates(self, mock_batch_probe):
        async def sync_one(item_id: str) -> None:
            pass

        await concurrent_sync(["a", "b"], sync_one, probe=mock_batch_probe)

        mock_batch_probe.duplicate_ids_skipped.assert_not_called()

    @pytest.mark.asyncio
    async def test_does_not_fail_fast(self, mock_batch_probe):
        """Every ID is attempted even when the first ones fail."""
        calls: list[str] = []

        async def sync_one(item_id: str) -> None:
            calls.append(item_id)
            if item_id in ("a", "c"):
                raise RuntimeError(f"{item_id} broke")

        with pytest.raises(AggregateError) as exc_info:
            await concurrent_sync(
                ["a", "b", "c", "d"], sync_one, max_workers=1, probe=mock_batch_probe
            )

        assert calls == ["a", "b", "c", "d"]
        errors = exc_info.value.errors
        assert [str(e) for e in errors] == [
            "failed to sync id a: a broke",
            "failed to sync id c: c broke",
        ]
        assert all(isinstance(e, GroupSyncError) for e in errors)
        assert isinstance(errors[0].__cause__, RuntimeError)
        mock_batch_probe.batch_completed.assert_called_once_with(4, ["a", "c"])
        assert mock_batch_probe.item_failed.call_count == 2

    @pytest.mark.asyncio
    async def test_single_failure_is_still_aggregated(self):
        async def sync_one(item_id: str) -> None:
            raise RuntimeError("boom")

        with pytest.raises(AggregateError) as exc_info:
            await concurrent_sync(["only"], sync_one)

        assert len(exc_info.value.errors) == 1
        assert "failed to sync id only: boom" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_errors_follow_submission_order(self):
        """Errors are reported in ID order even when they finish out of order."""

        async def sync_one(item_id: str) -> None:
            await asyncio.sleep(0.01 if item_id == "first" else 0)
            raise RuntimeError(item_id)

        with pytest.raises(AggregateError) as exc_info:
            await concurrent_sync(["first", "second"], sync_one, max_workers=2)

        assert [str(e) for e in exc_info.value.errors] == [
            "failed to sync id first: first",
            "failed to sync id second: second",
        ]

    @pytest.mark.asyncio
    async def test_bounds_concurrency(self):
        """No more than max_workers syncs run at once."""
        running = 0
        peak = 0

        async def sync_one(item_id: str) -> None:
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0)
            running -= 1

        await concurrent_sync([str(i) for i in range(20)], sync_one, max_workers=3)

        assert 1 <= peak <= 3

    @pytest.mark.asyncio
    async def test_cancellation_skips_queued_ids(self):
        """Cancelling the batch stops in-flight syncs and skips queued IDs.

        Syncs that completed before the cancellation stay applied.
        """
        written: list[str] = []
        blocked = asyncio.Event()

        async def sync_one(item_id: str) -> None:
            if item_id == "b":
                blocked.set()
                await asyncio.Event().wait()
            written.append(item_id)

        task = asyncio.create_task(
            concurrent_sync(["a", "b", "c", "d"], sync_one, max_workers=1)
        )
        await blocked.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert written == ["a"]
        assert task.cancelled()

    @pytest.mark.asyncio
    async def test_empty_ids(self, mock_batch_probe):
        async def sync_one(item_id: str) -> None:
            raise AssertionError("should not be called")

        await concurrent_sync([], sync_one, probe=mock_batch_probe)

        mock_batch_probe.batch_started.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejects_non_positive_workers(self):
        async def sync_one(item_id: str) -> None:
            pass

        with pytest.raises(ValueError):
            await concurrent_sync(["a"], sync_one, max_workers=0)


def test_default_worker_count_is_positive():
    assert default_worker_count() >= 1
