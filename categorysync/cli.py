# categorysync/cli.py
"""
Category Sync Developer CLI

Quick access to the categories backend while integrating against it.
Run: python -m categorysync [command]

Commands:
    list                    - List categories
    methods                 - Show which HTTP methods the backend advertises
    scan                    - Sweep candidate category routes (safe verbs only)
    update ID [--name N] [--image-url U]
                            - Update a category through the strategy chain
    watch                   - Keep the list fresh and print change toasts
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .client import CategoryClient
from .config import CategorySyncConfig, initialize_config
from .exceptions import CategorySyncError, ExhaustedStrategies
from .lifecycle import AppStateSignal
from .notifications import Toast, ToastCenter, ToastType
from .relay import UpdateRelay
from .views import CategoryListView, edited_category

logger = logging.getLogger(__name__)

console = Console()

TOAST_STYLES = {
    ToastType.SUCCESS: "green",
    ToastType.ERROR: "red",
    ToastType.INFO: "cyan",
}


def print_header(title: str):
    """Print a header."""
    console.print(f"\n[bold blue]═══ {title} ═══[/bold blue]\n")


async def cmd_list(client: CategoryClient, args) -> int:
    print_header("Categories")
    table = Table(box=box.ROUNDED)
    table.add_column("ID", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Image", style="green")
    for category in await client.fetch_categories():
        table.add_row(str(category.id), escape(category.name), escape(category.image_url) or "(no image)")
    console.print(table)
    return 0


async def cmd_methods(client: CategoryClient, args) -> int:
    print_header("Available methods")
    methods = await client.check_api_methods()
    console.print("  " + (", ".join(sorted(methods)) or "[yellow](none discovered)[/yellow]"))
    return 0


async def cmd_scan(client: CategoryClient, args) -> int:
    print_header("Endpoint scan")
    table = Table(box=box.ROUNDED)
    table.add_column("Verb", style="cyan")
    table.add_column("Path")
    table.add_column("Status", justify="right")
    for (verb, path), status in (await client.scan_endpoints()).items():
        table.add_row(verb, path, str(status) if status is not None else "[red]no response[/red]")
    console.print(table)
    return 0


async def cmd_update(client: CategoryClient, args) -> int:
    current = await client.fetch_category(args.id)
    try:
        edited = edited_category(
            current,
            args.name if args.name is not None else current.name,
            args.image_url if args.image_url is not None else current.image_url,
        )
    except ValidationError as e:
        console.print(f"[red]Invalid category: {e.errors()[0]['msg']}[/red]")
        return 1

    try:
        stored = await client.update_category(edited)
    except ExhaustedStrategies as e:
        print_header("Update failed")
        table = Table(box=box.ROUNDED)
        table.add_column("Strategy", style="cyan")
        table.add_column("Outcome")
        for attempt in e.attempts:
            outcome = "skipped" if attempt.skipped else str(attempt.status_code or attempt.error)
            table.add_row(attempt.strategy, outcome)
        console.print(table)
        return 1

    print_header("Updated")
    console.print(f"  [cyan]{stored.id}[/cyan]  {escape(stored.name)}  {escape(stored.image_url)}")
    console.print(f"  via {client.updater.last_run.current}")
    return 0


async def cmd_watch(client: CategoryClient, args, config: CategorySyncConfig) -> int:
    toasts = ToastCenter()

    def show(toast: Toast):
        style = TOAST_STYLES[toast.toast_type]
        stamp = escape(f"[{toast.created_at:%H:%M:%S}]")
        console.print(f"{stamp} [{style}]{escape(toast.message)}[/{style}]")

    toasts.add_listener(show)
    view = CategoryListView(
        client,
        UpdateRelay(),
        AppStateSignal(),
        toasts=toasts,
        refresh_interval=args.interval or config.refresh_interval,
    )
    await view.mount()
    print_header(f"Watching {client.api_url} (Ctrl-C to stop)")
    try:
        while True:
            await asyncio.sleep(3600)
    finally:
        await view.unmount()


COMMANDS = {
    "list": cmd_list,
    "methods": cmd_methods,
    "scan": cmd_scan,
    "update": cmd_update,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="categorysync", description="Categories backend developer CLI")
    parser.add_argument("--config-dir", default="config", help="Directory with default.yaml / <env>.yaml")
    parser.add_argument("--api-url", help="Override the backend URL")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="List categories")
    sub.add_parser("methods", help="Show advertised HTTP methods")
    sub.add_parser("scan", help="Sweep candidate routes with safe verbs")

    update = sub.add_parser("update", help="Update a category")
    update.add_argument("id", type=int)
    update.add_argument("--name")
    update.add_argument("--image-url")

    watch = sub.add_parser("watch", help="Poll the list and print changes")
    watch.add_argument("--interval", type=float, help="Seconds between refreshes")
    return parser


async def run(args, config: CategorySyncConfig) -> int:
    async with CategoryClient.from_config(config) as client:
        if args.command == "watch":
            return await cmd_watch(client, args, config)
        return await COMMANDS[args.command](client, args)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = initialize_config(args.config_dir)
    if args.api_url:
        config = config.model_copy(update={"api_url": args.api_url})

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return asyncio.run(run(args, config))
    except KeyboardInterrupt:
        return 130
    except CategorySyncError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1
