#!/usr/bin/env python3
"""
Pengaduan CLI - Main Entry Point

Usage:
    pengaduan login                       # Login with email and password
    pengaduan track REG-20240115-A1B2C3   # Public status lookup
    pengaduan complaints --status pending # List complaints you may see
    pengaduan notifications               # Your inbox
    pengaduan stats                       # Dashboard counts (admin)
"""

import argparse
import asyncio
import sys
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from cli.auth import CLIAuthManager
from cli.client import PortalAPIError
from cli.config import CLIConfig

STATUSES = ["pending", "reviewing", "approved", "revision", "completed", "rejected"]

STATUS_STYLES = {
    "pending": "yellow",
    "reviewing": "cyan",
    "approved": "green",
    "revision": "magenta",
    "completed": "bold green",
    "rejected": "red",
}


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI"""
    parser = argparse.ArgumentParser(
        prog="pengaduan",
        description="Command line client for the public service complaint portal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pengaduan login                              Login to your account
  pengaduan whoami                             Show the stored account
  pengaduan track REG-20240115-A1B2C3          Track a complaint without logging in
  pengaduan complaints --status reviewing      Filter your complaints by status
  pengaduan notifications --mark-all-read      Show and clear your inbox
  pengaduan stats                              Complaint statistics (admin only)
        """
    )

    parser.add_argument(
        "--server-url",
        dest="server_url",
        default=None,
        help="API base URL (default: http://localhost:8000/api/v1 or $PENGADUAN_API_URL)"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show full errors")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    login_parser = subparsers.add_parser("login", help="Login to the portal")
    login_parser.add_argument("--email", "-e", help="Account email (prompted when omitted)")
    login_parser.add_argument("--password", "-p", help="Account password (prompted when omitted)")

    subparsers.add_parser("logout", help="Logout and forget the stored token")
    subparsers.add_parser("whoami", help="Show current user info")

    track_parser = subparsers.add_parser("track", help="Track a complaint by registration number")
    track_parser.add_argument("registration_number", help="e.g. REG-20240115-A1B2C3")

    complaints_parser = subparsers.add_parser("complaints", help="List complaints")
    complaints_parser.add_argument("--status", "-s", choices=STATUSES, help="Filter by status")
    complaints_parser.add_argument("--search", help="Substring of the registration number")
    complaints_parser.add_argument("--page", type=int, default=1)

    notifications_parser = subparsers.add_parser("notifications", help="Show your notifications")
    notifications_parser.add_argument("--page", type=int, default=1)
    notifications_parser.add_argument("--mark-all-read", action="store_true", help="Mark everything as read afterwards")

    subparsers.add_parser("stats", help="Complaint statistics (admin only)")

    return parser


def _status_text(status: str) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status}[/{style}]"


def _short_date(value: Optional[str]) -> str:
    return (value or "")[:10] or "-"


def render_tracking(console: Console, complaint: Dict[str, Any]) -> None:
    service = complaint.get("service") or {}
    console.print(Panel(
        f"[bold]Nomor Registrasi:[/bold] {complaint['registration_number']}\n"
        f"[bold]Layanan:[/bold] {service.get('name', '-')}\n"
        f"[bold]Status:[/bold] {_status_text(complaint['status'])}\n"
        f"[bold]Catatan:[/bold] {complaint.get('notes') or '-'}\n"
        f"[bold]Diajukan:[/bold] {_short_date(complaint.get('created_at'))}",
        title="Status Pengaduan",
        border_style="cyan"
    ))

    histories: List[Dict[str, Any]] = complaint.get("status_histories") or []
    if histories:
        table = Table(title="Riwayat Status")
        table.add_column("Tanggal")
        table.add_column("Status")
        table.add_column("Catatan")
        for entry in histories:
            table.add_row(_short_date(entry.get("created_at")), _status_text(entry["status"]), entry.get("notes") or "")
        console.print(table)


def render_complaints(console: Console, page: Dict[str, Any]) -> None:
    table = Table(title=f"Complaints (page {page['current_page']} of {page['last_page']}, {page['total']} total)")
    table.add_column("Registration")
    table.add_column("Applicant")
    table.add_column("Service")
    table.add_column("Status")
    table.add_column("Submitted")
    for complaint in page["data"]:
        service = complaint.get("service") or {}
        table.add_row(
            complaint["registration_number"],
            complaint["applicant_name"],
            service.get("name", "-"),
            _status_text(complaint["status"]),
            _short_date(complaint.get("created_at")),
        )
    console.print(table)


def render_notifications(console: Console, page: Dict[str, Any], unread: int) -> None:
    table = Table(title=f"Notifications ({unread} unread)")
    table.add_column("")
    table.add_column("Type")
    table.add_column("Registration")
    table.add_column("Status")
    table.add_column("Received")
    for item in page["data"]:
        data = item.get("data") or {}
        status = data.get("new_status") or data.get("status") or ""
        table.add_row(
            "" if item.get("is_read") else "[bold blue]*[/bold blue]",
            item["type"],
            data.get("registration_number", "-"),
            _status_text(status) if status else "-",
            _short_date(item.get("created_at")),
        )
    console.print(table)


def render_statistics(console: Console, stats: Dict[str, Any]) -> None:
    table = Table(title="Complaint Statistics")
    table.add_column("Metric")
    table.add_column("Count", justify="right")
    table.add_row("[bold]Total[/bold]", str(stats["total"]))
    for status in STATUSES:
        table.add_row(_status_text(status), str(stats.get(status, 0)))
    table.add_row("This month", str(stats["this_month"]))
    table.add_row("This year", str(stats["this_year"]))
    console.print(table)


async def run(args: argparse.Namespace, config: CLIConfig, console: Console) -> int:
    """Execute one parsed command; returns the process exit code"""
    auth_manager = CLIAuthManager(config, console)

    if args.command == "login":
        if args.email and args.password:
            success = await auth_manager.login_with_credentials(args.email, args.password)
        else:
            success = await auth_manager.interactive_login()
        if success:
            console.print("\n[green]✓ Login successful![/green]")
            console.print(f"Welcome, [bold]{auth_manager.credentials.name}[/bold]!")
        else:
            console.print("\n[red]✗ Login failed[/red]")
        return 0 if success else 1

    if args.command == "logout":
        await auth_manager.logout()
        return 0

    if args.command == "whoami":
        auth_manager.show_status()
        return 0

    if args.command == "track":
        # Tracking is public and never sends the stored token
        client = auth_manager.client()
        client.token = None
        render_tracking(console, await client.track(args.registration_number))
        return 0

    # Everything below needs an account
    if not auth_manager.is_authenticated():
        console.print("\n[red]✗ Authentication required[/red]")
        console.print("Please login first: [cyan]pengaduan login[/cyan]")
        return 1

    client = auth_manager.client()

    if args.command == "complaints":
        render_complaints(console, await client.complaints(page=args.page, status=args.status, search=args.search))
    elif args.command == "notifications":
        page = await client.notifications(page=args.page)
        render_notifications(console, page, await client.unread_count())
        if args.mark_all_read:
            await client.mark_all_read()
            console.print("[green]All notifications marked as read[/green]")
    elif args.command == "stats":
        render_statistics(console, await client.statistics())
    return 0


def main():
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(0)

    config = CLIConfig.load_default()
    if args.server_url:
        config.api_base_url = args.server_url.rstrip("/")
    config.verbose = config.verbose or args.verbose

    console = Console()

    try:
        sys.exit(asyncio.run(run(args, config, console)))
    except KeyboardInterrupt:
        console.print("\nCancelled.")
        sys.exit(130)
    except PortalAPIError as e:
        if e.status_code == 401:
            console.print("[red]Session expired or invalid. Please login again: [cyan]pengaduan login[/cyan][/red]")
        else:
            console.print(f"[red]✗ {e.message}[/red]")
            for field, messages in e.errors.items():
                console.print(f"  [red]{field}:[/red] {' '.join(messages)}")
        if config.verbose:
            console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()
