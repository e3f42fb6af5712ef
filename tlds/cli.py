"""tlds CLI - show the current list of top-level domains."""

import argparse
import logging
import sys

from rich.console import Console
from rich.table import Table
from rich.text import Text

from tlds import get_default_cache
from tlds.cache import TopLevelDomainCache
from tlds.log import setup_logging
from tlds.snapshot import Snapshot

console = Console()


def display_domains(snapshot: Snapshot, comments: bool = False, output_console: Console | None = None) -> None:
    """Print the domains (or comment lines) of a snapshot as a table."""
    out = output_console or console
    lines = snapshot.comments if comments else snapshot.domains

    table = Table(title="Comments" if comments else "Top-Level Domains", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Comment" if comments else "Domain", style="bold")
    for i, line in enumerate(lines, start=1):
        table.add_row(str(i), line)
    out.print(table)
    out.print(Text(f"Total: {len(lines):,}", style="bold"))


def display_status(snapshot: Snapshot, refresh_in_flight: bool, output_console: Console | None = None) -> None:
    """Print the fetch metadata of a snapshot."""
    out = output_console or console

    success_text = (
        Text("yes", style="bold green") if snapshot.last_fetch_succeeded else Text("no", style="red")
    )
    table = Table(title="TLD Snapshot Status", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Domains", f"{len(snapshot.domains):,}")
    table.add_row("Last updated", snapshot.fetched_at.isoformat())
    table.add_row("Bootstrap", "yes" if snapshot.is_bootstrap else "no")
    table.add_row("Last update successful", success_text)
    table.add_row("Last successful update", snapshot.last_success_at.isoformat())
    table.add_row("Next refresh not before", snapshot.next_refresh_not_before.isoformat())
    table.add_row("Refresh in progress", "yes" if refresh_in_flight else "no")
    out.print(table)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tlds",
        description="Show the self-updating list of top-level domains.",
    )
    parser.add_argument(
        "--wait",
        action="store_true",
        help="Wait for a background update to finish before printing",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log cache and update activity",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List all top-level domains")
    list_parser.add_argument(
        "--comments",
        action="store_true",
        help="List the comment lines of the source file instead",
    )

    lookup_parser = subparsers.add_parser("lookup", help="Find a domain case-insensitively")
    lookup_parser.add_argument("label", help="Label to look up (e.g., com)")

    subparsers.add_parser("status", help="Show when the list was last updated")
    return parser


def main(
    argv: list[str] | None = None,
    cache: TopLevelDomainCache | None = None,
    output_console: Console | None = None,
) -> int:
    args = build_parser().parse_args(argv)
    out = output_console or console

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    cache = cache or get_default_cache()
    snapshot = cache.get_snapshot()
    if args.wait:
        cache.wait_for_refresh()
        snapshot = cache.get_snapshot()

    if args.command == "list":
        display_domains(snapshot, comments=args.comments, output_console=out)
    elif args.command == "lookup":
        found = snapshot.get_by_label(args.label)
        if found is None:
            out.print(Text(f"{args.label}: not found", style="red"))
            return 1
        out.print(Text(found, style="bold green"))
    else:
        display_status(snapshot, cache.refresh_in_flight, output_console=out)
    return 0


if __name__ == "__main__":
    sys.exit(main())
