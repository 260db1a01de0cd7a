"""Offline mode CLI commands."""
import asyncio
from datetime import datetime, timezone

import click

from moneytracker.core.errors import MoneyTrackerError
from moneytracker.offline import MutationQueue

from .common import build_synchronizer, get_settings, get_storage, parse_json_arg, remote_reachable
from .output import print_error, print_json, print_success, table


@click.group()
def offline():
    """Offline queue commands."""
    pass


@offline.command()
@click.pass_context
def status(ctx):
    """Show offline queue status."""
    queue = MutationQueue(get_storage(ctx))
    pending = queue.snapshot()
    print_json({
        "pending_count": len(pending),
        "oldest": pending[0].enqueued_at if pending else None,
        "connected": remote_reachable(get_settings(ctx)),
    })


@offline.command("queue")
@click.option("--limit", "-n", default=10, help="Number of mutations to show")
@click.pass_context
def show_queue(ctx, limit: int):
    """List pending mutations, oldest first."""
    queue = MutationQueue(get_storage(ctx))
    pending = queue.snapshot()

    if not pending:
        click.echo("Queue is empty")
        return

    click.echo(f"Showing {min(limit, len(pending))} of {len(pending)} pending mutations:\n")
    rows = []
    for m in pending[:limit]:
        ts = datetime.fromtimestamp(m.enqueued_at / 1000, tz=timezone.utc).isoformat()
        rows.append([m.id, m.kind.value, m.target.value, ts])
    table(["id", "kind", "table", "enqueued"], rows)


@offline.command("add")
@click.argument("table_name")
@click.argument("record")
@click.option("--offline", "force_offline", is_flag=True, help="Queue even if the remote is reachable")
@click.pass_context
def add(ctx, table_name: str, record: str, force_offline: bool):
    """Insert RECORD (JSON or @file) into TABLE_NAME, queueing it when offline."""
    data = parse_json_arg(record, "record")
    online = not force_offline and remote_reachable(get_settings(ctx))
    try:
        sync = build_synchronizer(ctx, online)
        result = asyncio.run(sync.offline_insert(table_name, data, optimistic=True))
    except MoneyTrackerError as e:
        print_error(str(e))
        ctx.exit(1)

    if online:
        print_success("Inserted")
    else:
        print_success(f"Queued ({sync.pending_count} pending)")
    print_json(result)


@offline.command("sync")
@click.option("--force", is_flag=True, help="Attempt sync even if the remote looks unreachable")
@click.pass_context
def do_sync(ctx, force: bool):
    """Replay the offline queue against the remote store."""
    if not force and not remote_reachable(get_settings(ctx)):
        print_error("Not connected. Use --force to attempt anyway.")
        ctx.exit(1)

    try:
        sync = build_synchronizer(ctx, online=True)
        result = asyncio.run(sync.drain(notify=False))
    except MoneyTrackerError as e:
        print_error(f"Sync failed: {e}")
        ctx.exit(1)

    print_json({
        "success_count": result.success_count,
        "failed_count": result.failed_count,
        "skipped": result.skipped,
        "pending_count": sync.pending_count,
    })
    if result.failed_count:
        ctx.exit(1)


@offline.command()
@click.pass_context
def watch(ctx):
    """Drain now and then every sync interval until interrupted.

    Reachability is checked before every tick, so coming back online
    triggers a drain.
    """
    settings = get_settings(ctx)
    try:
        sync = build_synchronizer(ctx, online=remote_reachable(settings))
        asyncio.run(sync.run_forever(reachability=lambda: remote_reachable(settings)))
    except MoneyTrackerError as e:
        print_error(str(e))
        ctx.exit(1)
    except KeyboardInterrupt:
        click.echo("Stopped")


@offline.command()
@click.pass_context
def clear(ctx):
    """Discard every pending mutation."""
    queue = MutationQueue(get_storage(ctx))
    size = queue.size
    if size == 0:
        click.echo("Queue already empty")
        return

    if click.confirm(f"Discard {size} pending mutations?"):
        queue.clear()
        print_success("Queue cleared")


@offline.command()
@click.pass_context
def connected(ctx):
    """Check if the remote store is reachable."""
    is_connected = remote_reachable(get_settings(ctx))
    print_json({
        "connected": is_connected,
        "status": "online" if is_connected else "offline",
    })
