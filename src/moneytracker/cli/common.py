"""Wiring shared by CLI commands: settings, storage and the synchronizer."""
import json
from urllib.parse import urlparse

import click

from moneytracker.config import Settings
from moneytracker.core.errors import MoneyTrackerError
from moneytracker.notify import ClickNotifier
from moneytracker.offline import (
    CacheStore,
    ConnectivityTracker,
    FileStorage,
    MutationQueue,
    Synchronizer,
    probe,
)
from moneytracker.remote import RestStore


def get_settings(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]


def get_storage(ctx: click.Context) -> FileStorage:
    return FileStorage(get_settings(ctx).data_dir)


def remote_reachable(settings: Settings, timeout: float = 5.0) -> bool:
    """TCP probe of the configured remote store."""
    if not settings.remote_url:
        return False
    parsed = urlparse(settings.remote_url)
    port = parsed.port or (443 if parsed.scheme == "https" else 80)
    return probe(parsed.hostname or "", port, timeout)


def build_synchronizer(ctx: click.Context, online: bool) -> Synchronizer:
    """Synchronizer over the configured REST store and local file storage.

    Offline sessions only queue, so they do not need a remote store.

    Raises:
        MoneyTrackerError: If online and no remote store is configured
    """
    settings = get_settings(ctx)
    if online and not settings.remote_url:
        raise MoneyTrackerError("No remote store configured (set MONEYTRACKER_REMOTE_URL)")

    storage = get_storage(ctx)
    remote = RestStore(
        settings.remote_url,
        settings.api_key,
        access_token=settings.access_token or None,
        timeout=settings.request_timeout_seconds,
    )
    return Synchronizer(
        remote,
        MutationQueue(storage),
        ConnectivityTracker(initial_online=online),
        ClickNotifier(),
        cache=CacheStore(storage, max_entries=settings.cache_max_entries),
        interval=settings.sync_interval_seconds,
    )


def parse_json_arg(value: str, what: str = "JSON"):
    """Parse a JSON argument; a leading @ reads it from a file."""
    try:
        if value.startswith("@"):
            with open(value[1:], encoding="utf-8") as f:
                return json.load(f)
        return json.loads(value)
    except (OSError, ValueError) as e:
        raise click.BadParameter(f"Invalid {what}: {e}")
