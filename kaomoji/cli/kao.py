#!/usr/bin/env python3
"""
Command-line kaomoji picker.

Usage:
    kao search "query"          - List matching kaomoji
    kao copy "query"            - Copy the best match to the clipboard
    kao add GLYPH -t tag -c Cat - Add or edit a user kaomoji
    kao recents                 - Show copy history
    kao favorites               - Show favourites
    kao fav GLYPH               - Toggle a favourite
    kao browse                  - Interactive grid picker

Queries accept cat:<category> and tag:<tag> filters, e.g. "cat:joy blush".
"""

import asyncio
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List, Optional, Tuple
import click
from rich.console import Console
from rich.table import Table
from rich.markup import escape
from rich.text import Text
from loguru import logger

from kaomoji.picker.bus import Event
from kaomoji.picker.clipboard import SystemClipboard
from kaomoji.picker.config import PickerConfig
from kaomoji.picker.log import setup_logging
from kaomoji.picker.models import Entry
from kaomoji.picker.selection import NavKey
from kaomoji.picker.session import PickerSession
from kaomoji.picker.store import EntryStore, StoreError

console = Console()

# Width of one grid cell in the browser, in terminal columns
CELL_WIDTH = 18


@click.group()
@click.option("--config", "-c", "config_path", type=click.Path(exists=True, path_type=Path),
              help="Config file path")
@click.option("--data-dir", type=click.Path(file_okay=False, path_type=Path),
              help="Override the data directory")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def cli(ctx, config_path: Optional[Path], data_dir: Optional[Path], verbose: bool):
    """Kaomoji picker CLI."""
    config = PickerConfig.load(config_path)
    if data_dir is not None:
        config = PickerConfig.model_validate({**config.model_dump(), "data_dir": data_dir})
    setup_logging(config, level="DEBUG" if verbose else "WARNING")
    ctx.obj = config


@asynccontextmanager
async def open_session(config: PickerConfig):
    """Start a session with user entries merged, and stop it afterwards."""
    store = EntryStore(config.data_dir, config.recents.history_capacity)
    session = PickerSession(config, store, SystemClipboard())
    await session.start()
    await session.wait_ready()
    try:
        yield session
    finally:
        await session.stop()


def first_line(glyph: str) -> str:
    lines = glyph.splitlines() or [glyph]
    return lines[0] + (" …" if len(lines) > 1 else "")


def display_entries(entries: List[Entry], title: str, favorites=frozenset()):
    """Display entries in a table."""
    if not entries:
        console.print("[yellow]No results found[/yellow]")
        return

    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Kaomoji", style="cyan", no_wrap=True)
    table.add_column("Category", style="magenta")
    table.add_column("Tags")

    for i, entry in enumerate(entries):
        mark = " ★" if entry.glyph in favorites else ""
        table.add_row(
            str(i),
            Text(first_line(entry.glyph) + mark),
            Text(entry.category),
            Text(", ".join(entry.tags))
        )

    console.print(table)


@cli.command()
@click.argument("query", default="")
@click.option("--limit", "-l", default=20, help="Max results")
@click.pass_obj
def search(config: PickerConfig, query: str, limit: int):
    """Search the catalog."""
    asyncio.run(search_catalog(config, query, limit))


async def search_catalog(config: PickerConfig, query: str, limit: int):
    async with open_session(config) as session:
        results = session.set_query(query)
        display_entries(
            results[:limit],
            f"Results for '{escape(query)}' ({len(results)})",
            session.favorites
        )


@cli.command()
@click.argument("query")
@click.option("--index", "-i", default=0, help="Result index to copy")
@click.pass_obj
def copy(config: PickerConfig, query: str, index: int):
    """Copy a search result to the clipboard."""
    if not asyncio.run(copy_result(config, query, index)):
        sys.exit(1)


async def copy_result(config: PickerConfig, query: str, index: int) -> bool:
    async with open_session(config) as session:
        session.set_query(query)
        if not session.results:
            console.print("[yellow]No results found[/yellow]")
            return False
        session.select(index)
        outcome = await session.commit_selected()
        entry = session.selected

    if outcome.succeeded:
        console.print(f"[green]✓[/green] Copied: {escape(entry.glyph)}")
        return True
    console.print("[red]Failed to copy to clipboard[/red]")
    return False


@cli.command()
@click.argument("glyph")
@click.option("--tag", "-t", "tags", multiple=True, help="Tag (repeatable)")
@click.option("--category", "-c", default="", help="Category")
@click.pass_obj
def add(config: PickerConfig, glyph: str, tags: Tuple[str, ...], category: str):
    """Add a kaomoji, or update the one with the same glyph."""
    if not asyncio.run(add_entry(config, Entry(glyph=glyph, tags=list(tags), category=category))):
        sys.exit(1)


async def add_entry(config: PickerConfig, entry: Entry) -> bool:
    async with open_session(config) as session:
        existed = entry.glyph.strip() in session.catalog
        saved = await session.save_entry(entry)

    if not saved:
        console.print(f"[red]Failed to save[/red] {escape(repr(entry.glyph))}")
        return False
    action = "Updated" if existed else "Added"
    console.print(f"[green]✓[/green] {action}: {escape(entry.glyph.strip())}")
    return True


@cli.command()
@click.pass_obj
def recents(config: PickerConfig):
    """Show the copy history."""
    store = EntryStore(config.data_dir, config.recents.history_capacity)
    try:
        entries = asyncio.run(store.load_recents())
    except StoreError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    display_entries(entries, "Recently copied")


@cli.command()
@click.pass_obj
def favorites(config: PickerConfig):
    """Show favourite kaomoji."""
    store = EntryStore(config.data_dir, config.recents.history_capacity)
    try:
        entries = asyncio.run(store.load_favorites())
    except StoreError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    display_entries(entries, "Favorites")


@cli.command()
@click.argument("glyph")
@click.pass_obj
def fav(config: PickerConfig, glyph: str):
    """Toggle a kaomoji as favourite."""
    if not asyncio.run(toggle_favorite(config, glyph)):
        sys.exit(1)


async def toggle_favorite(config: PickerConfig, glyph: str) -> bool:
    async with open_session(config) as session:
        entry = session.catalog.get(glyph)
        if entry is None:
            console.print(f"[yellow]Not in catalog:[/yellow] {escape(glyph)}")
            return False
        is_favorite = await session.toggle_favorite(entry)

    if is_favorite is None:
        console.print("[red]Failed to update favorites[/red]")
        return False
    state = "Added to" if is_favorite else "Removed from"
    console.print(f"[green]✓[/green] {state} favorites: {escape(glyph)}")
    return True


# Key decoding for the browser: (action, payload)
ARROW_KEYS = {
    "\x1b[A": NavKey.UP, "\x1b[B": NavKey.DOWN,
    "\x1b[C": NavKey.RIGHT, "\x1b[D": NavKey.LEFT,
    "\x1b[H": NavKey.HOME, "\x1b[F": NavKey.END,
    "\x1bOA": NavKey.UP, "\x1bOB": NavKey.DOWN,
    "\x1bOC": NavKey.RIGHT, "\x1bOD": NavKey.LEFT,
    "\xe0H": NavKey.UP, "\xe0P": NavKey.DOWN,
    "\xe0M": NavKey.RIGHT, "\xe0K": NavKey.LEFT,
    "\xe0G": NavKey.HOME, "\xe0O": NavKey.END,
}


def decode_key(key: str) -> Tuple[str, object]:
    """Map a raw key string to a browser action."""
    if key in ARROW_KEYS:
        return "nav", ARROW_KEYS[key]
    if key in ("\r", "\n"):
        return "commit", None
    if key in ("\x1b", "\x03", "\x04"):
        return "quit", None
    if key in ("\x7f", "\x08"):
        return "backspace", None
    if key == "\x06":
        return "favorite", None
    if key.isprintable():
        return "type", key
    return "ignore", None


def render(session: PickerSession, notice: str) -> None:
    """Draw the query line and the result grid."""
    console.clear()
    console.print(f"[bold]Search:[/bold] {escape(session.raw_query)}[blink]▏[/blink]")

    columns = session.selection.columns
    grid = Table.grid(padding=(0, 1))
    for _ in range(columns):
        grid.add_column(width=CELL_WIDTH - 1, no_wrap=True, overflow="ellipsis")

    cells = []
    for i, entry in enumerate(session.results):
        style = "reverse bold" if i == session.cursor else ""
        if entry.glyph in session.favorites:
            style += " yellow"
        cells.append(Text(first_line(entry.glyph), style=style.strip()))
        if len(cells) == columns:
            grid.add_row(*cells)
            cells = []
    if cells:
        grid.add_row(*cells)
    console.print(grid)

    selected = session.selected
    if selected is not None:
        console.print(f"[dim]{escape(selected.category)} · {escape(', '.join(selected.tags))}[/dim]")
    if notice:
        console.print(notice)
    console.print("[dim]arrows move · enter copies · ctrl-f favourite · esc quits[/dim]")


@cli.command()
@click.pass_obj
def browse(config: PickerConfig):
    """Interactive picker."""
    asyncio.run(browse_loop(config))


async def browse_loop(config: PickerConfig):
    notice = {"text": ""}

    def on_copy(event: Event):
        if event.type == "copy.succeeded":
            notice["text"] = f"[green]Copied[/green] {escape(first_line(event.data['glyph']))}"
        else:
            notice["text"] = "[red]Copy failed[/red]"

    store = EntryStore(config.data_dir, config.recents.history_capacity)
    session = PickerSession(config, store, SystemClipboard())
    session.event_bus.subscribe("copy.*", on_copy)
    await session.start()
    try:
        while True:
            session.set_columns(max(1, console.width // CELL_WIDTH))
            render(session, notice["text"])
            notice["text"] = ""

            key = await asyncio.to_thread(click.getchar)
            action, payload = decode_key(key)

            if action == "quit":
                break
            if action == "nav":
                session.navigate(payload)
            elif action == "type":
                session.set_query(session.raw_query + payload)
            elif action == "backspace":
                session.set_query(session.raw_query[:-1])
            elif action == "commit":
                await session.commit_selected()
                await session.event_bus.drain()
            elif action == "favorite" and session.selected is not None:
                await session.toggle_favorite(session.selected)
    except KeyboardInterrupt:
        logger.debug("Browser interrupted")
    finally:
        await session.stop()
        console.clear()


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
