"""Main CLI entry point for mongocache.

Provides command-line inspection and maintenance of a cache collection.
"""

import sys
from datetime import datetime, timezone
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from mongocache.config import CacheConfig
from mongocache.store import CacheStore
from mongocache.tags import CleaningMode
from mongocache.validation import current_timestamp

# Global console for Rich output
console = Console()


def open_store(
    server: Optional[str] = None,
    database: Optional[str] = None,
    collection: Optional[str] = None,
) -> CacheStore:
    """Open a cache store from environment config plus CLI overrides.

    Priority:
    1. Explicit --server/--database/--collection flags
    2. MONGOCACHE_* environment variables
    3. Built-in defaults
    """
    config = CacheConfig.from_env()
    if server:
        config.server = server
    if database:
        config.database = database
    if collection:
        config.collection = collection
    return CacheStore(config)


def format_timestamp(timestamp: int) -> str:
    if not timestamp:
        return "never"
    dt = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return dt.strftime("%Y-%m-%d %H:%M:%S UTC")


def _store(ctx) -> CacheStore:
    return open_store(
        ctx.obj.get("server"), ctx.obj.get("database"), ctx.obj.get("collection")
    )


@click.group()
@click.option("--server", "-s", help="MongoDB URI (default: MONGOCACHE_SERVER)")
@click.option("--database", "-d", help="Database name (default: cache)")
@click.option("--collection", "-c", help="Collection name (default: cache)")
@click.pass_context
def cli(ctx, server, database, collection):
    """mongocache CLI - Inspect and maintain a MongoDB cache collection.

    Connection settings come from MONGOCACHE_* environment variables unless
    overridden by the options above.
    """
    ctx.ensure_object(dict)
    ctx.obj["server"] = server
    ctx.obj["database"] = database
    ctx.obj["collection"] = collection


@cli.command("ids")
@click.option(
    "--tag",
    "-t",
    multiple=True,
    help="Only entries carrying this tag (can be used multiple times)",
)
@click.option(
    "--any", "match_any", is_flag=True, help="Match any of the tags instead of all"
)
@click.pass_context
def list_ids(ctx, tag, match_any):
    """List cache ids.

    Example:
        mongocache ids
        mongocache ids -t users -t profile
        mongocache ids -t users -t orders --any
    """
    try:
        tags = list(tag)
        with _store(ctx) as store:
            if not tags:
                cache_ids = store.get_ids()
            elif match_any:
                cache_ids = store.get_ids_matching_any_tags(tags)
            else:
                cache_ids = store.get_ids_matching_tags(tags)

            # Entries removed since the id listing are skipped
            entries = [store.get_entry(cache_id) for cache_id in sorted(cache_ids)]
            entries = [entry for entry in entries if entry is not None]

        if not entries:
            console.print("[yellow]No cache entries found[/yellow]")
            return

        now = current_timestamp()
        table = Table(title=f"Cache entries ({len(entries)})")
        table.add_column("Id", style="cyan", no_wrap=True)
        table.add_column("Expires", style="blue")
        table.add_column("Valid", justify="center")
        table.add_column("Tags", style="magenta")

        for entry in entries:
            tags_str = ", ".join(entry.tags)
            table.add_row(
                entry.id,
                format_timestamp(entry.expire_time),
                "[green]yes[/green]" if entry.is_valid(now) else "[red]no[/red]",
                (tags_str[:30] + "...") if len(tags_str) > 30 else tags_str,
            )

        console.print(table)

    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)


@cli.command("tags")
@click.pass_context
def list_tags(ctx):
    """List every tag in use.

    Example:
        mongocache tags
    """
    try:
        with _store(ctx) as store:
            tags = sorted(store.get_tags())

        if not tags:
            console.print("[yellow]No tags found[/yellow]")
            return

        console.print(f"[bold]Tags ({len(tags)}):[/bold]")
        for tag in tags:
            console.print(f"  • {tag}")

    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)


@cli.command("show")
@click.argument("cache_id")
@click.pass_context
def show(ctx, cache_id):
    """Show metadata of one cache entry.

    Example:
        mongocache show user_42
    """
    try:
        with _store(ctx) as store:
            entry = store.get_entry(cache_id)
        if entry is None:
            console.print(f"[red]✗[/red] Cache entry '{cache_id}' not found", style="red")
            sys.exit(1)

        status = entry.get_status(current_timestamp())

        console.print(f"\n[bold cyan]Cache entry: {cache_id}[/bold cyan]")
        console.print("=" * 60)
        console.print(f"[bold]Expires:[/bold] {format_timestamp(status['expire_time'])}")
        remaining = status["lifetime_remaining"]
        console.print(
            f"[bold]Remaining:[/bold] "
            f"{'infinite' if remaining is None else f'{remaining}s'}"
        )
        console.print(
            f"[bold]Valid:[/bold] {'[green]yes[/green]' if status['valid'] else '[red]no[/red]'}"
        )
        console.print(
            f"[bold]Modified:[/bold] {format_timestamp(status['last_modified'])}"
        )
        console.print(f"[bold]Size:[/bold] {status['size']} bytes")
        if status["tags"]:
            console.print(f"[bold]Tags:[/bold] {', '.join(status['tags'])}")

    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)


@cli.command("remove")
@click.argument("cache_id")
@click.pass_context
def remove(ctx, cache_id):
    """Remove one cache entry.

    Example:
        mongocache remove user_42
    """
    try:
        with _store(ctx) as store:
            store.remove(cache_id)
        console.print(f"[green]✓[/green] Removed cache entry '{cache_id}'")

    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)


@cli.command("touch")
@click.argument("cache_id")
@click.argument("seconds", type=int)
@click.pass_context
def touch(ctx, cache_id, seconds):
    """Extend the lifetime of a cache entry.

    Example:
        mongocache touch user_42 3600
    """
    try:
        with _store(ctx) as store:
            touched = store.touch(cache_id, seconds)
        if not touched:
            console.print(f"[red]✗[/red] Cache entry '{cache_id}' not found", style="red")
            sys.exit(1)
        console.print(f"[green]✓[/green] Extended '{cache_id}' by {seconds}s")

    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)


@cli.command("clean")
@click.option(
    "--mode",
    "-m",
    type=click.Choice([mode.value for mode in CleaningMode]),
    default=CleaningMode.OLD.value,
    show_default=True,
    help="Cleaning mode",
)
@click.option(
    "--tag",
    "-t",
    multiple=True,
    help="Tag for tag-based modes (can be used multiple times)",
)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def clean(ctx, mode, tag, yes):
    """Clean cache entries.

    Example:
        mongocache clean
        mongocache clean -m matchingTag -t users
        mongocache clean -m all -y
    """
    try:
        mode = CleaningMode(mode)
        tags = list(tag)

        if mode.uses_tags and not tags:
            raise click.UsageError(f"Mode '{mode.value}' requires at least one --tag")

        if mode is CleaningMode.ALL and not yes:
            if not click.confirm("Remove every cache entry?"):
                console.print("[yellow]Cancelled[/yellow]")
                return

        with _store(ctx) as store:
            cleaned = store.clean(mode, tags)
        if cleaned:
            console.print(f"[green]✓[/green] Cleaned cache (mode: {mode.value})")
        else:
            console.print(
                f"[yellow]Cleaned cache with failures (mode: {mode.value})[/yellow]"
            )
            sys.exit(1)

    except click.UsageError:
        raise
    except Exception as e:
        console.print(f"[red]✗[/red] Error: {e}", style="red")
        sys.exit(1)


if __name__ == "__main__":
    cli()
