#!/usr/bin/env python3
"""
Linkshelf Shell - an interactive session over the live bookmark view.

Categories and priority markers are kept for as long as the shell runs.

Viewing:
- ls                    List bookmarks with the active filter and sort
- find <text>           Filter by text in title or URL (no text clears)
- filter <category>     Show one category, or All (no argument shows counts)
- sort <mode>           recency, title or priority
- reverse               Flip the display order

Editing:
- add <url> <title> [@category]   Add a bookmark
- rm <id>               Delete a bookmark
- undo                  Restore the last deleted bookmark
- priority <id> <mark>  Set the priority marker (🔥 🚀 ⭐ 📌 ❤️ 💤 or hot, rocket, ...)
- category <id> <name>  Move a bookmark to another category

Links:
- open <id>             Open in the default browser
- url <id>              Print the bare URL (for copying)

Utilities:
- help [cmd]            Show help for command
- exit, quit            Exit shell
"""
import asyncio
import cmd
import shlex
import webbrowser
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from linkshelf.cli import bookmark_table
from linkshelf.config import get_config
from linkshelf.constants import ALL_CATEGORIES, CATEGORIES
from linkshelf.errors import LinkshelfError
from linkshelf.metadata import Priority, resolve_category
from linkshelf.models import Bookmark
from linkshelf.projection import ProjectedBookmark, SortMode, display_order
from linkshelf.service import BookmarkService

# Seconds to wait for the view to reflect a store write
SETTLE_TIMEOUT = 2.0


class LinkshelfShell(cmd.Cmd):
    """
    Interactive shell around a BookmarkService.

    The shell owns an event loop. A feed task keeps self.view current from
    service.observe(); the loop runs while a command is being executed.
    """

    intro = "\nLinkshelf shell. Type 'help' for commands, 'exit' to leave.\n"
    prompt = "linkshelf> "

    def __init__(
        self,
        service: Optional[BookmarkService] = None,
        console: Optional[Console] = None,
        settle_timeout: float = SETTLE_TIMEOUT
    ):
        super().__init__()
        self.console = console or Console(no_color=not get_config().color_output)
        self.settle_timeout = settle_timeout
        self.loop = asyncio.new_event_loop()
        self.service = service or BookmarkService.from_config()
        self.newest_first = get_config().newest_first if service is None else self.service.criteria.reverse
        self.view: List[ProjectedBookmark] = []
        self._changed = asyncio.Event()
        self._deleted: List[Bookmark] = []
        self._feed = self.loop.create_task(self._follow())
        self._settle()

    async def _follow(self):
        async for view in self.service.observe():
            self.view = view
            self._changed.set()

    async def _wait_for_change(self):
        try:
            await asyncio.wait_for(self._changed.wait(), self.settle_timeout)
        except asyncio.TimeoutError:
            pass

    def _run(self, coro):
        return self.loop.run_until_complete(coro)

    def _settle(self):
        """Let the feed task catch up with the latest change."""
        self._run(self._wait_for_change())
        self._changed.clear()

    def close(self):
        """Unsubscribe, stop the service and close the loop."""
        if self.loop.is_closed():
            return
        self._feed.cancel()
        self._run(asyncio.gather(self._feed, return_exceptions=True))
        self._run(self.service.close())
        self._run(self.loop.shutdown_asyncgens())
        self.loop.close()

    def _lookup(self, arg: str) -> Optional[ProjectedBookmark]:
        token = arg.strip().split()[0] if arg.strip() else ""
        try:
            bookmark_id = int(token)
        except ValueError:
            self.console.print("[red]Expected a bookmark ID[/red]")
            return None
        item = self.service.get(bookmark_id)
        if item is None:
            self.console.print(f"[red]Bookmark not found: {bookmark_id}[/red]")
        return item

    # ------------------------------------------------------------------
    # Viewing

    def do_ls(self, arg):
        """List bookmarks with the active filter and sort."""
        criteria = self.service.criteria
        items = display_order(self.view, criteria)
        if not items:
            self.console.print("[yellow]No bookmarks[/yellow]")
            return
        title = f"Bookmarks ({criteria.category}, by {criteria.sort.value})"
        if criteria.query:
            title += f" matching '{escape(criteria.query)}'"
        self.console.print(bookmark_table(items, title=title))

    def do_find(self, arg):
        """Filter by text in title or URL.

        Usage:
            find python
            find            (clear the search)
        """
        self.service.set_criteria(query=arg.strip())
        self._settle()
        self.do_ls("")

    def do_filter(self, arg):
        """Show one category, or All.

        Usage:
            filter Work
            filter All
            filter          (show bookmark counts per category)
        """
        if not arg.strip():
            counts = self.service.categories()
            for label in CATEGORIES:
                self.console.print(f"  {label}: {counts.get(label, 0)}")
            return
        if arg.strip().lower() == ALL_CATEGORIES.lower():
            label = ALL_CATEGORIES
        else:
            try:
                label = resolve_category(arg)
            except LinkshelfError as e:
                self.console.print(f"[red]{escape(str(e))}[/red]")
                return
        self.service.set_criteria(category=label)
        self._settle()
        self.do_ls("")

    def do_sort(self, arg):
        """Sort by recency, title or priority.

        Usage:
            sort priority
        """
        try:
            mode = SortMode.parse(arg or "")
        except ValueError as e:
            self.console.print(f"[red]{escape(str(e))}[/red]")
            return
        self.service.set_criteria(sort=mode, reverse=self.newest_first and mode is SortMode.RECENCY)
        self._settle()
        self.do_ls("")

    def do_reverse(self, arg):
        """Flip the display order."""
        self.service.set_criteria(reverse=not self.service.criteria.reverse)
        self._settle()
        self.do_ls("")

    # ------------------------------------------------------------------
    # Editing

    def do_add(self, arg):
        """Add a bookmark.

        Usage:
            add example.com Example
            add docs.python.org "Python docs" @Study
            add arxiv.org Papers @"Read Later"
        """
        try:
            tokens = shlex.split(arg)
        except ValueError as e:
            self.console.print(f"[red]{escape(str(e))}[/red]")
            return
        category = None
        if tokens and tokens[-1].startswith("@"):
            category = tokens.pop()[1:]
        if len(tokens) < 2:
            self.console.print("[yellow]Usage: add <url> <title> \\[@category][/yellow]")
            return

        result = self._run(self.service.add(" ".join(tokens[1:]), tokens[0], category))
        if not result.ok:
            try:
                result.raise_for_status()
            except LinkshelfError as e:
                self.console.print(f"[red]Not added: {escape(str(e))}[/red]")
            return
        self._settle()
        bookmark = result.bookmark
        self.console.print(f"[green]Added {bookmark.id}:[/green] {escape(bookmark.title)} ({bookmark.url})")

    def do_rm(self, arg):
        """Delete a bookmark (undo restores it).

        Usage:
            rm 12
        """
        item = self._lookup(arg)
        if item is None:
            return
        if self._run(self.service.delete(item.bookmark)):
            self._deleted.append(item.bookmark)
            self._settle()
            self.console.print(f"[green]Deleted {item.id}:[/green] {escape(item.title)} [dim](undo to restore)[/dim]")
        else:
            self.console.print(f"[yellow]Bookmark already gone: {item.id}[/yellow]")

    def do_undo(self, arg):
        """Restore the last deleted bookmark."""
        if not self._deleted:
            self.console.print("[yellow]Nothing to undo[/yellow]")
            return
        bookmark = self._deleted.pop()
        self._run(self.service.restore(bookmark))
        self._settle()
        self.console.print(f"[green]Restored {bookmark.id}:[/green] {escape(bookmark.title)}")

    def do_priority(self, arg):
        """Set a bookmark's priority marker.

        Usage:
            priority 12 🔥
            priority 12 sleep
        """
        parts = arg.split()
        if len(parts) != 2:
            markers = " ".join(f"{p.value} ({p.name.lower()})" for p in Priority)
            self.console.print(f"[yellow]Usage: priority <id> <marker>[/yellow]\n  {markers}")
            return
        item = self._lookup(parts[0])
        if item is None:
            return
        try:
            self.service.set_priority(item.id, parts[1])
        except LinkshelfError as e:
            self.console.print(f"[red]{escape(str(e))}[/red]")
            return
        self._settle()
        self.console.print(f"[green]{item.id} is now {self.service.get(item.id).metadata.priority.value}[/green]")

    def do_category(self, arg):
        """Move a bookmark to another category.

        Usage:
            category 12 Work
            category 12 read later
        """
        parts = arg.split(maxsplit=1)
        if len(parts) != 2:
            self.console.print(f"[yellow]Usage: category <id> <{'|'.join(CATEGORIES)}>[/yellow]")
            return
        item = self._lookup(parts[0])
        if item is None:
            return
        try:
            self.service.set_category(item.id, parts[1])
        except LinkshelfError as e:
            self.console.print(f"[red]{escape(str(e))}[/red]")
            return
        self._settle()
        self.console.print(f"[green]{item.id} moved to {self.service.get(item.id).metadata.category}[/green]")

    # ------------------------------------------------------------------
    # Links

    def do_open(self, arg):
        """Open a bookmark in the default browser."""
        item = self._lookup(arg)
        if item is not None:
            webbrowser.open(item.url)

    def do_url(self, arg):
        """Print a bookmark's bare URL."""
        item = self._lookup(arg)
        if item is not None:
            print(item.url)

    # ------------------------------------------------------------------
    # Utilities

    def do_exit(self, arg):
        """Exit the shell."""
        self.console.print("\n[cyan]Goodbye![/cyan]\n")
        return True

    def do_quit(self, arg):
        """Exit the shell."""
        return self.do_exit(arg)

    def do_EOF(self, arg):
        """Handle Ctrl+D."""
        self.console.print()
        return self.do_exit(arg)

    def emptyline(self):
        """Do nothing on empty line."""
        pass

    def default(self, line):
        """Handle unknown commands."""
        self.console.print(f"[red]Unknown command: {line}[/red]")
        self.console.print("[dim]Type 'help' for available commands[/dim]")
