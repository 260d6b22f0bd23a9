"""Account Maps CLI — operator commands over the local account store.

Usage:
    account-maps maps list                      # Maps with account counts
    account-maps maps create "EU West"          # Create a map
    account-maps maps delete "EU West"          # Delete a map and its accounts
    account-maps accounts list "EU West"        # Accounts of a map
    account-maps accounts add "EU West" user:pw # Add one account
    account-maps accounts import "EU West" f    # Bulk import lines from file
    account-maps accounts show 12 --reveal      # Show one account
    account-maps accounts remove "EU West" user # Remove by login
"""

from __future__ import annotations

import argparse
import logging
import sys

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from accountmaps.application import Application, create_application
from accountmaps.constants import (
    APP_NAME,
    APP_VERSION,
    DEFAULT_ACCOUNT_LIST_LIMIT,
    OPTION_LABEL_MAX_LENGTH,
)
from accountmaps.core.formatting import mask, truncate
from accountmaps.errors import AccountMapsError, NotFoundError, ValidationError
from accountmaps.models.catalog import Map

console = Console()


def print_error(text: str):
    """Print error message."""
    console.print(f"[red]Error:[/red] {escape(text)}")


def print_success(text: str):
    """Print success message."""
    console.print(f"[green]✓[/green] {escape(text)}")


def _require_map(app: Application, name: str) -> Map:
    found = app.maps.get_map_by_name(name)
    if found is None:
        raise NotFoundError(f"Map not found: {name.strip()}")
    return found


def _format_time(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else ""


# ── Maps ─────────────────────────────────────────────────────────────

def cmd_maps_list(app: Application, args):
    table = Table(title="Maps")
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Accounts", justify="right")
    table.add_column("Created")

    count = 0
    for m in app.maps.list_maps_with_account_counts():
        table.add_row(str(m.id), escape(m.name), str(m.account_count), _format_time(m.created_at))
        count += 1

    if count:
        console.print(table)
    else:
        console.print("[dim]No maps yet.[/dim]")


def cmd_maps_create(app: Application, args):
    map_id = app.maps.create_map(args.name)
    print_success(f"Created map '{args.name.strip()}' (id {map_id})")


def cmd_maps_delete(app: Application, args):
    target = _require_map(app, args.name)
    app.maps.delete_map(target.id)
    print_success(f"Deleted map '{target.name}' and all of its accounts")


# ── Accounts ─────────────────────────────────────────────────────────

def cmd_accounts_list(app: Application, args):
    target = _require_map(app, args.map)
    accounts = app.accounts.list_accounts_by_map(target.id, args.limit)

    if not accounts:
        console.print(f"[dim]No accounts in '{escape(target.name)}'.[/dim]")
        return

    table = Table(title=f"Accounts in '{escape(target.name)}'")
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Label", style="cyan")
    table.add_column("Login", style="green")
    table.add_column("Password")
    for a in accounts:
        table.add_row(
            str(a.id),
            escape(truncate(a.display_label, OPTION_LABEL_MAX_LENGTH)),
            escape(truncate(a.login or "", OPTION_LABEL_MAX_LENGTH)),
            escape(a.password or "") if args.reveal else mask(a.password),
        )
    console.print(table)


def cmd_accounts_add(app: Application, args):
    target = _require_map(app, args.map)
    account_id = app.accounts.add_account_pair(target.id, args.pair, args.label)
    print_success(f"Added account {account_id} to '{target.name}'")


def cmd_accounts_import(app: Application, args):
    target = _require_map(app, args.map)
    if args.file == "-":
        text = sys.stdin.read()
    else:
        try:
            with open(args.file, "r", encoding="utf-8") as f:
                text = f.read()
        except UnicodeDecodeError as exc:
            raise ValidationError(f"Not UTF-8 text: {args.file}") from exc

    result = app.importer.import_pairs(target.id, text)
    print_success(
        f"Import into '{target.name}': {result.added} added, "
        f"{result.duplicates} duplicates, {len(result.errors)} errors"
    )
    for err in result.errors:
        console.print(f"  [yellow]•[/yellow] {escape(err.message)}: [dim]{escape(err.line)}[/dim]")


def cmd_accounts_show(app: Application, args):
    account = app.accounts.get_account_by_id(args.id)
    if account is None:
        raise NotFoundError(f"Account not found: {args.id}")
    owner = app.maps.get_map_by_id(account.map_id)

    console.print(Panel.fit(
        f"[bold]Map:[/bold] {escape(owner.name) if owner else account.map_id}\n"
        f"[bold]Login:[/bold] {escape(account.login or '')}\n"
        f"[bold]Password:[/bold] {escape(account.password or '') if args.reveal else mask(account.password)}\n"
        f"[bold]Created:[/bold] {_format_time(account.created_at)}",
        title=escape(account.display_label),
    ))


def cmd_accounts_remove(app: Application, args):
    if args.id is not None:
        removed = app.accounts.remove_account_by_id(args.id)
        subject = f"account {args.id}"
    else:
        if not args.map or not args.login:
            raise ValidationError("Give a map and a login, or --id")
        target = _require_map(app, args.map)
        removed = app.accounts.remove_account_by_login(target.id, args.login)
        subject = f"'{args.login.strip()}' in '{target.name}'"

    if removed:
        print_success(f"Removed {subject}")
    else:
        console.print(f"[yellow]Nothing removed:[/yellow] {escape(subject)} not found")


# ── Entry point ──────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="account-maps",
        description=f"{APP_NAME} - manage maps of credential records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--db", help="Path to the SQLite store (default: ./accounts.sqlite)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Maps
    maps_parser = subparsers.add_parser("maps", help="Map management")
    maps_sub = maps_parser.add_subparsers(dest="maps_command")
    maps_sub.add_parser("list", help="List maps with account counts")
    maps_create = maps_sub.add_parser("create", help="Create a map")
    maps_create.add_argument("name", help="Map name")
    maps_delete = maps_sub.add_parser("delete", help="Delete a map and its accounts")
    maps_delete.add_argument("name", help="Map name")

    # Accounts
    acc_parser = subparsers.add_parser("accounts", help="Account management")
    acc_sub = acc_parser.add_subparsers(dest="accounts_command")

    acc_list = acc_sub.add_parser("list", help="List accounts of a map")
    acc_list.add_argument("map", help="Map name")
    acc_list.add_argument("-l", "--limit", type=int, default=DEFAULT_ACCOUNT_LIST_LIMIT,
                          help=f"Max accounts (default: {DEFAULT_ACCOUNT_LIST_LIMIT})")
    acc_list.add_argument("--reveal", action="store_true", help="Show passwords")

    acc_add = acc_sub.add_parser("add", help="Add one login:password pair")
    acc_add.add_argument("map", help="Map name")
    acc_add.add_argument("pair", help="LOGIN:PASSWORD")
    acc_add.add_argument("--label", help="Display label")

    acc_import = acc_sub.add_parser("import", help="Bulk import login:password lines")
    acc_import.add_argument("map", help="Map name")
    acc_import.add_argument("file", help="Text file, one pair per line ('-' for stdin)")

    acc_show = acc_sub.add_parser("show", help="Show one account")
    acc_show.add_argument("id", type=int, help="Account ID")
    acc_show.add_argument("--reveal", action="store_true", help="Show the password")

    acc_remove = acc_sub.add_parser("remove", help="Remove an account")
    acc_remove.add_argument("map", nargs="?", help="Map name")
    acc_remove.add_argument("login", nargs="?", help="Login to remove")
    acc_remove.add_argument("--id", type=int, help="Remove by account ID instead")

    return parser


_COMMANDS = {
    ("maps", "list"): cmd_maps_list,
    ("maps", "create"): cmd_maps_create,
    ("maps", "delete"): cmd_maps_delete,
    ("accounts", "list"): cmd_accounts_list,
    ("accounts", "add"): cmd_accounts_add,
    ("accounts", "import"): cmd_accounts_import,
    ("accounts", "show"): cmd_accounts_show,
    ("accounts", "remove"): cmd_accounts_remove,
}


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point. Returns the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    sub = getattr(args, f"{args.command}_command", None) if args.command else None
    handler = _COMMANDS.get((args.command, sub))
    if handler is None:
        parser.print_help()
        return 2

    try:
        with create_application(args.db) as app:
            handler(app, args)
    except (AccountMapsError, OSError) as exc:
        print_error(str(exc))
        return 1
    return 0
