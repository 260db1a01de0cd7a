"""Local cache CLI commands."""
import click

from moneytracker.offline import CacheStore

from .common import get_settings, get_storage, parse_json_arg
from .output import print_json, print_success


def _cache(ctx) -> CacheStore:
    return CacheStore(get_storage(ctx), max_entries=get_settings(ctx).cache_max_entries)


@click.group()
def cache():
    """Offline cache commands."""
    pass


@cache.command("list")
@click.pass_context
def list_keys(ctx):
    """List cached keys."""
    keys = _cache(ctx).keys()
    if not keys:
        click.echo("Cache is empty")
        return
    for key in keys:
        click.echo(key)


@cache.command("get")
@click.argument("key")
@click.option("--max-age", type=float, default=None, help="Maximum age in seconds")
@click.pass_context
def get_key(ctx, key: str, max_age: float | None):
    """Print the cached value for KEY."""
    data = _cache(ctx).get_from_cache(key, max_age)
    if data is None:
        click.echo("No usable cache")
        ctx.exit(1)
    print_json(data)


@cache.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def set_key(ctx, key: str, value: str):
    """Store VALUE (JSON or @file) under KEY."""
    entry = _cache(ctx).cache_data(key, parse_json_arg(value, "value"))
    print_success(f"Cached {entry.key}")


@cache.command("drop")
@click.argument("key")
@click.pass_context
def drop_key(ctx, key: str):
    """Remove KEY from the cache."""
    if _cache(ctx).invalidate(key):
        print_success(f"Dropped {key}")
    else:
        click.echo(f"{key} was not cached")
