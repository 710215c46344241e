#!/usr/bin/env python3
"""
Linkshelf - personal bookmark manager

Command-line interface. One-shot commands work on the durable store;
categories and priority markers are session state, so use `linkshelf shell`
to work with them.
"""
import sys
import argparse
import asyncio
import json
import logging
import webbrowser
from dataclasses import asdict
from pathlib import Path
from typing import List
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from linkshelf.config import init_config, get_config
from linkshelf.constants import DISPLAY_TITLE_WIDTH
from linkshelf.projection import ProjectedBookmark, SortMode, display_order
from linkshelf.service import BookmarkService

logger = logging.getLogger(__name__)


console = Console()


def format_bookmark(item: ProjectedBookmark, format: str = "plain") -> str:
    """Format a projected bookmark for output."""
    if format == "json":
        return json.dumps(bookmark_to_dict(item))
    elif format == "urls":
        return item.url
    else:  # plain
        meta = item.metadata
        return f"[{item.id}] {meta.priority.value} {item.title}\n    {item.url}\n    #{meta.category}"


def bookmark_to_dict(item: ProjectedBookmark) -> dict:
    return {
        **item.bookmark.to_dict(),
        "category": item.metadata.category,
        "priority": item.metadata.priority.name.lower(),
    }


def bookmark_table(items: List[ProjectedBookmark], title: str = "Bookmarks") -> Table:
    """Rich table of projected bookmarks."""
    table = Table(title=title)
    table.add_column("ID", style="cyan")
    table.add_column("", style="red")
    table.add_column("Title", style="green")
    table.add_column("Domain", style="blue")
    table.add_column("Category", style="yellow")

    for item in items:
        table.add_row(
            str(item.id),
            item.metadata.priority.value,
            escape(item.title[:DISPLAY_TITLE_WIDTH]),
            item.bookmark.domain,
            item.metadata.category,
        )
    return table


def output_bookmarks(items: List[ProjectedBookmark], format: str = "table", title: str = "Bookmarks"):
    """Output projected bookmarks in the specified format."""
    if format == "table":
        console.print(bookmark_table(items, title=title))
    elif format == "json":
        print(json.dumps([bookmark_to_dict(item) for item in items], indent=2))
    elif format == "urls":
        for item in items:
            print(item.url)
    else:
        for item in items:
            print(format_bookmark(item, format))


def cmd_add(args):
    """Add a new bookmark."""
    async def run():
        async with BookmarkService.from_config() as service:
            result = await service.add(args.title, args.url)
            result.raise_for_status()
            return result.bookmark

    bookmark = asyncio.run(run())

    if args.quiet:
        print(bookmark.id)
    else:
        console.print(f"[green]Added bookmark {bookmark.id}:[/green] {escape(bookmark.title)} ({bookmark.url})")


def cmd_list(args):
    """List bookmarks."""
    async def run():
        async with BookmarkService.from_config() as service:
            changes = {}
            if args.search:
                changes["query"] = args.search
            if args.sort:
                changes["sort"] = SortMode.parse(args.sort)
            criteria = service.set_criteria(**changes)
            if args.oldest_first or criteria.sort is not SortMode.RECENCY:
                criteria = service.set_criteria(reverse=False)
            view = await service.load()
            return display_order(view, criteria)

    output_bookmarks(asyncio.run(run()), args.output)


def cmd_delete(args):
    """Delete bookmarks by id."""
    async def run():
        deleted_count = 0
        async with BookmarkService.from_config() as service:
            await service.load()
            for bookmark_id in args.ids:
                item = service.get(bookmark_id)
                if item is not None and await service.delete(item.bookmark):
                    deleted_count += 1
                    if not args.quiet:
                        console.print(f"[green]Deleted bookmark {bookmark_id}[/green]")
                else:
                    console.print(f"[yellow]Bookmark not found: {bookmark_id}[/yellow]")
        return deleted_count

    deleted_count = asyncio.run(run())
    if args.quiet:
        print(deleted_count)


def cmd_open(args):
    """Open a bookmark in the default browser."""
    async def run():
        async with BookmarkService.from_config() as service:
            await service.load()
            return service.get(args.id)

    item = asyncio.run(run())
    if item is None:
        console.print(f"[red]Bookmark not found: {args.id}[/red]")
        sys.exit(1)
    webbrowser.open(item.url)
    if not args.quiet:
        console.print(f"[cyan]Opened {item.url}[/cyan]")


def cmd_shell(args):
    """Launch interactive bookmark shell."""
    from linkshelf.shell import LinkshelfShell

    shell = LinkshelfShell()
    try:
        shell.cmdloop()
    except KeyboardInterrupt:
        console.print("\n[cyan]Interrupted. Goodbye![/cyan]")
    finally:
        shell.close()


def cmd_config(args):
    """Manage configuration."""
    config = get_config()

    if args.action == "show":
        if args.key:
            if not hasattr(config, args.key):
                console.print(f"[red]Unknown config key: {args.key}[/red]")
                sys.exit(1)
            print(getattr(config, args.key))
        else:
            print(json.dumps(asdict(config), indent=2))

    elif args.action == "set":
        if not args.key or args.value is None:
            console.print("[red]Usage: linkshelf config set KEY VALUE[/red]")
            sys.exit(1)
        config.set_value(args.key, args.value)
        config.save()
        if not args.quiet:
            console.print(f"[green]Set {args.key} = {args.value}[/green]")

    elif args.action == "init":
        config_path = Path.home() / ".config" / "linkshelf" / "config.toml"
        config.save(config_path)
        console.print(f"[green]Created config at {config_path}[/green]")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="linkshelf",
        description="Linkshelf - a personal bookmark manager",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  linkshelf add example.com --title "Example"
  linkshelf list --search python --sort title
  linkshelf list --output urls | xargs -n1 curl -sI
  linkshelf delete 3 4
  linkshelf open 7
  linkshelf shell

Configuration:
  Default database: ./linkshelf.db or from config
  Config file: ~/.config/linkshelf/config.toml
  Environment: LINKSHELF_DATABASE, LINKSHELF_OUTPUT_FORMAT
        """
    )

    # Global options
    parser.add_argument("--db", help="Database file (default: linkshelf.db)")
    parser.add_argument("--config", help="Config file path")
    parser.add_argument("-q", "--quiet", action="store_true", help="Minimal output")
    parser.add_argument("-o", "--output", choices=["table", "json", "plain", "urls"],
                        help="Output format")

    subparsers = parser.add_subparsers(dest="command", required=True, help="Commands")

    add_parser = subparsers.add_parser("add", help="Add a bookmark")
    add_parser.add_argument("url", help="URL to bookmark (https:// is assumed)")
    add_parser.add_argument("--title", "-t", required=True, help="Bookmark title")
    add_parser.set_defaults(func=cmd_add)

    list_parser = subparsers.add_parser("list", help="List bookmarks")
    list_parser.add_argument("--search", "-s", help="Filter by text in title or URL")
    list_parser.add_argument("--sort", choices=[mode.value for mode in SortMode],
                             help="Sort order (default: from config)")
    list_parser.add_argument("--oldest-first", action="store_true",
                             help="Show oldest bookmarks first")
    list_parser.set_defaults(func=cmd_list)

    delete_parser = subparsers.add_parser("delete", help="Delete bookmarks")
    delete_parser.add_argument("ids", nargs="+", type=int, help="Bookmark IDs")
    delete_parser.set_defaults(func=cmd_delete)

    open_parser = subparsers.add_parser("open", help="Open a bookmark in the browser")
    open_parser.add_argument("id", type=int, help="Bookmark ID")
    open_parser.set_defaults(func=cmd_open)

    shell_parser = subparsers.add_parser("shell", help="Interactive bookmark shell")
    shell_parser.set_defaults(func=cmd_shell)

    config_parser = subparsers.add_parser("config", help="Manage configuration")
    config_parser.add_argument("action", choices=["show", "set", "init"],
                               help="Config action")
    config_parser.add_argument("key", nargs="?", help="Config key")
    config_parser.add_argument("value", nargs="?", help="Config value (for set)")
    config_parser.set_defaults(func=cmd_config)

    return parser


def main(argv=None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config_args = {}
    if args.output:
        config_args["output_format"] = args.output
    if args.config:
        config_args["config_file"] = Path(args.config)

    config = init_config(database=args.db, **config_args)

    logging.basicConfig(level=config.log_level.upper(), format='%(levelname)s: %(message)s')
    console.no_color = not config.color_output

    if not args.output:
        args.output = config.output_format

    try:
        args.func(args)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
