"""Team-Link command line entry point.

    teamlink sync --group-mapping groups.json --user-mapping users.json \\
        --source source.json --target target.json [--mode source|target]
    teamlink version

Exit status is 0 on success, 1 when one or more groups failed to sync and
2 when the configuration or input files are invalid.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from groupsync.application.concurrency import concurrent_sync
from groupsync.application.observability import (
    ConcurrentSyncProbe,
    DefaultConcurrentSyncProbe,
    DefaultGroupSyncProbe,
)
from groupsync.application.services import GroupSyncService
from groupsync.domain.exceptions import AggregateError, ConfigurationError
from groupsync.domain.observability import DefaultDescendantResolverProbe
from groupsync.domain.services import (
    Reconciliation,
    ResolutionPolicy,
    casefold_id,
    member_id,
    metadata_changed,
)
from groupsync.infrastructure.config import load_group_mappers, load_user_mapper
from groupsync.infrastructure.in_memory import InMemoryGroupReadWriter
from groupsync.infrastructure.snapshot import load_snapshot, save_snapshot
from infrastructure.logging import configure_logging
from infrastructure.settings import SyncSettings, get_settings
from infrastructure.version import __version__
from shared_kernel import ObservationContext

EXIT_OK = 0
EXIT_SYNC_FAILED = 1
EXIT_CONFIG_ERROR = 2

console = Console()
error_console = Console(stderr=True)


class SyncMode(StrEnum):
    """Which side of the group mapping drives a batch."""

    SOURCE = "source"
    TARGET = "target"


@dataclass(frozen=True)
class SyncResult:
    """One applied (or, on a dry run, computed) reconciliation."""

    source_group_id: str
    target_group_id: str
    reconciliation: Reconciliation


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="teamlink",
        description="Synchronize group memberships from a source system to a target system",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser(
        "sync",
        help="Sync target group memberships from source groups",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    sync_parser.add_argument(
        "--group-mapping",
        type=Path,
        required=True,
        help="JSON file mapping source group IDs to target group IDs",
    )
    sync_parser.add_argument(
        "--user-mapping",
        type=Path,
        required=True,
        help="JSON file mapping source user IDs to target user IDs",
    )
    sync_parser.add_argument(
        "--source",
        type=Path,
        required=True,
        help="Snapshot of the source group system",
    )
    sync_parser.add_argument(
        "--target",
        type=Path,
        required=True,
        help="Snapshot of the target group system, rewritten after the sync",
    )
    sync_parser.add_argument(
        "--mode",
        type=SyncMode,
        choices=list(SyncMode),
        default=SyncMode.SOURCE,
        help="Sync by source group (fan-out) or by target group (union of sources)",
    )
    sync_parser.add_argument(
        "--group",
        action="append",
        default=[],
        metavar="ID",
        help="Only sync this group (source or target ID depending on --mode); repeatable",
    )
    sync_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Reconcile and report without writing the target snapshot",
    )
    sync_parser.add_argument(
        "--max-workers",
        type=int,
        default=None,
        help="Number of groups synced concurrently (default: TEAMLINK_MAX_WORKERS)",
    )
    sync_parser.add_argument(
        "--best-effort",
        action="store_true",
        help="Keep walking nested groups past unreadable subgroups to report all failures",
    )

    subparsers.add_parser("version", help="Show the version and exit")
    return parser


def build_service(
    args: argparse.Namespace, settings: SyncSettings, context: ObservationContext
) -> tuple[GroupSyncService, InMemoryGroupReadWriter]:
    """Load every input file and wire the sync service.

    Returns:
        (service, target read writer)

    Raises:
        ConfigurationError: If an input file is invalid
    """
    member_key = casefold_id if settings.case_insensitive_ids else member_id
    policy = (
        ResolutionPolicy.BEST_EFFORT if args.best_effort else settings.resolution_policy
    )

    group_mapper, inverse_group_mapper = load_group_mappers(args.group_mapping)
    user_mapper = load_user_mapper(args.user_mapping)
    source = load_snapshot(args.source, policy=policy)
    target = load_snapshot(args.target, member_key=member_key, policy=policy)

    service = GroupSyncService(
        source,
        target,
        group_mapper,
        user_mapper,
        inverse_group_mapper=inverse_group_mapper,
        member_key=member_key,
        change_detector=metadata_changed,
        policy=policy,
        dry_run=args.dry_run or settings.dry_run,
        max_workers=args.max_workers or settings.max_workers,
        probe=DefaultGroupSyncProbe().with_context(context),
        batch_probe=DefaultConcurrentSyncProbe().with_context(context),
        resolver_probe=DefaultDescendantResolverProbe().with_context(context),
    )
    return service, target


async def run_sync(
    service: GroupSyncService,
    mode: SyncMode,
    group_ids: list[str],
    *,
    max_workers: int,
    probe: ConcurrentSyncProbe | None = None,
) -> tuple[list[SyncResult], AggregateError | None]:
    """Run a batch and collect the result of every group that succeeded.

    Returns:
        (results sorted by source then target, batch error if any group failed)
    """
    results: list[SyncResult] = []

    async def sync_source(source_group_id: str) -> None:
        def record(target_group_id: str, reconciliation: Reconciliation) -> None:
            results.append(SyncResult(source_group_id, target_group_id, reconciliation))

        await service.sync(source_group_id, on_applied=record)

    async def sync_target(target_group_id: str) -> None:
        reconciliation = await service.sync_target(target_group_id)
        source_ids = ",".join(service.source_group_ids_of(target_group_id))
        results.append(SyncResult(source_ids, target_group_id, reconciliation))

    if mode is SyncMode.SOURCE:
        ids = group_ids or service.source_group_ids()
        sync_one = sync_source
    else:
        ids = group_ids or service.target_group_ids()
        sync_one = sync_target

    error: AggregateError | None = None
    try:
        await concurrent_sync(ids, sync_one, max_workers=max_workers, probe=probe)
    except AggregateError as e:
        error = e

    results.sort(key=lambda result: (result.source_group_id, result.target_group_id))
    return results, error


def render_summary(results: list[SyncResult], dry_run: bool) -> Table:
    title = "Sync summary (dry run)" if dry_run else "Sync summary"
    table = Table(title=title, show_header=True, box=box.SIMPLE, padding=(0, 1))
    table.add_column("Source")
    table.add_column("Target")
    table.add_column("Added", justify="right", style="green")
    table.add_column("Removed", justify="right", style="red")
    table.add_column("Updated", justify="right", style="yellow")
    table.add_column("Unchanged", justify="right", style="dim")
    for result in results:
        reconciliation = result.reconciliation
        table.add_row(
            result.source_group_id,
            result.target_group_id,
            str(len(reconciliation.add)),
            str(len(reconciliation.remove)),
            str(len(reconciliation.update)),
            str(len(reconciliation.persist) - len(reconciliation.update)),
        )
    return table


def sync_command(args: argparse.Namespace) -> int:
    try:
        settings = get_settings()
    except ValidationError as e:
        error_console.print(f"[bold red]Invalid settings:[/] {escape(str(e))}")
        return EXIT_CONFIG_ERROR
    configure_logging(settings.log_level)

    if args.max_workers is not None and args.max_workers < 1:
        error_console.print("[bold red]Error:[/] --max-workers must be at least 1")
        return EXIT_CONFIG_ERROR

    context = ObservationContext.for_run(
        source_system=args.source.stem, target_system=args.target.stem
    )
    try:
        service, target = build_service(args, settings, context)
    except ConfigurationError as e:
        error_console.print(f"[bold red]Configuration error:[/] {escape(str(e))}")
        return EXIT_CONFIG_ERROR

    dry_run = args.dry_run or settings.dry_run
    results, error = asyncio.run(
        run_sync(
            service,
            args.mode,
            args.group,
            max_workers=args.max_workers or settings.max_workers,
            probe=DefaultConcurrentSyncProbe().with_context(context),
        )
    )

    console.print(render_summary(results, dry_run))
    if not dry_run:
        save_snapshot(target, args.target)
        console.print(f"[green]✓[/] Wrote [bold]{args.target}[/]")

    if error is not None:
        error_console.print(f"[bold red]{escape(error.message)}:[/]")
        for failure in error.errors:
            error_console.print(f"  [red]•[/] {escape(str(failure))}")
        return EXIT_SYNC_FAILED
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    if args.command == "version":
        console.print(f"teamlink {__version__}")
        return EXIT_OK
    return sync_command(args)


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        error_console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
