"""Bounded-concurrency driver for batches of independent group syncs.

A fixed pool of worker tasks drains a queue of IDs instead of starting one
task per ID, so rate-limited backends see at most ``max_workers`` concurrent
syncs. One ID failing never prevents the others from being attempted.
"""

from __future__ import annotations

import asyncio
import os
from collections import Counter
from collections.abc import Awaitable, Callable, Iterable

from groupsync.application.observability import (
    ConcurrentSyncProbe,
    DefaultConcurrentSyncProbe,
)
from groupsync.domain.exceptions import AggregateError, GroupSyncError

SyncOne = Callable[[str], Awaitable[object]]


def default_worker_count() -> int:
    """Number of workers when none is configured: the available CPUs."""
    return os.cpu_count() or 1


async def concurrent_sync(
    ids: Iterable[str],
    sync_one: SyncOne,
    *,
    max_workers: int | None = None,
    probe: ConcurrentSyncProbe | None = None,
) -> None:
    """Run ``sync_one`` for every ID on a bounded pool of workers.

    Every distinct ID is attempted exactly once, whatever happens to the
    others. Failures are collected without blocking the workers and raised
    together once all workers are done.

    Cancelling the calling task cancels the workers: in-flight calls see the
    cancellation and queued IDs are skipped. Writes already applied are not
    rolled back.

    Args:
        ids: IDs to sync; duplicates are attempted once and reported to
            the probe
        sync_one: Coroutine function syncing a single ID
        max_workers: Size of the worker pool, defaults to the CPU count
        probe: Optional domain probe for observability

    Raises:
        AggregateError: If any ID failed. Each underlying GroupSyncError reads
            ``failed to sync id <id>: <cause>``.
        ValueError: If ``max_workers`` is less than 1
    """
    if max_workers is not None and max_workers < 1:
        raise ValueError(f"max_workers must be at least 1, got {max_workers}")
    probe = probe or DefaultConcurrentSyncProbe()

    submitted = list(ids)
    unique_ids = list(dict.fromkeys(submitted))
    if not unique_ids:
        return
    if len(unique_ids) < len(submitted):
        probe.duplicate_ids_skipped(
            [item_id for item_id, count in Counter(submitted).items() if count > 1]
        )

    queue: asyncio.Queue[tuple[int, str]] = asyncio.Queue()
    for item in enumerate(unique_ids):
        queue.put_nowait(item)

    failures: dict[int, GroupSyncError] = {}

    async def worker() -> None:
        while True:
            try:
                index, item_id = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                await sync_one(item_id)
            except Exception as e:
                error = GroupSyncError(f"failed to sync id {item_id}: {e}")
                error.__cause__ = e
                failures[index] = error
                probe.item_failed(item_id, str(e))

    worker_count = min(max_workers or default_worker_count(), len(unique_ids))
    probe.batch_started(len(unique_ids), worker_count)

    async with asyncio.TaskGroup() as tg:
        for _ in range(worker_count):
            tg.create_task(worker())

    failed = [failures[index] for index in sorted(failures)]
    probe.batch_completed(
        len(unique_ids), [unique_ids[index] for index in sorted(failures)]
    )
    if failed:
        raise AggregateError("failed to sync one or more ids", failed)
