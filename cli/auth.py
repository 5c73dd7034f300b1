"""
Pengaduan CLI Authentication Module
===================================

  pengaduan login     Email/password login, token stored locally
  pengaduan logout    Forget the stored token
  pengaduan whoami    Show the stored account

Token is stored in ~/.pengaduan/credentials.json (mode 0600).
"""

import os
import json
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional, Dict

from rich.console import Console
from rich.prompt import Prompt
from rich.panel import Panel

from cli.client import PortalClient, PortalAPIError
from cli.config import CLIConfig


@dataclass
class UserCredentials:
    """Stored user credentials"""
    user_id: str
    email: str
    name: str
    role: str
    access_token: str
    refresh_token: Optional[str] = None


class CLIAuthManager:
    """Loads, saves and clears the credentials file"""

    def __init__(self, config: CLIConfig, console: Optional[Console] = None):
        self.config = config
        self.console = console or Console()
        self.credentials: Optional[UserCredentials] = None
        self._load_credentials()

    @property
    def credentials_file(self) -> Path:
        return self.config.credentials_file

    def _load_credentials(self) -> bool:
        """Load credentials from file"""
        if self.credentials_file.exists():
            try:
                with open(self.credentials_file, 'r') as f:
                    self.credentials = UserCredentials(**json.load(f))
                    return True
            except (OSError, ValueError, TypeError) as e:
                self.console.print(f"[yellow]Warning: Could not load credentials: {e}[/yellow]")
        return False

    def _save_credentials(self):
        """Save credentials to file"""
        if not self.credentials:
            return
        self.credentials_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.credentials_file, 'w') as f:
            json.dump(asdict(self.credentials), f, indent=2)
        # Secure the file (Unix only)
        try:
            os.chmod(self.credentials_file, 0o600)
        except OSError:
            pass

    def _clear_credentials(self):
        self.credentials = None
        if self.credentials_file.exists():
            self.credentials_file.unlink()

    def is_authenticated(self) -> bool:
        return bool(self.credentials and self.credentials.access_token)

    @property
    def token(self) -> Optional[str]:
        return self.credentials.access_token if self.credentials else None

    def client(self) -> PortalClient:
        return PortalClient(self.config.api_base_url, token=self.token, timeout=self.config.timeout)

    async def login_with_credentials(self, email: str, password: str, client: Optional[PortalClient] = None) -> bool:
        """Login using email and password"""
        client = client or PortalClient(self.config.api_base_url, timeout=self.config.timeout)
        try:
            data = await client.login(email, password)
        except PortalAPIError as e:
            self.console.print(f"[red]Login failed: {e.message}[/red]")
            for field, messages in e.errors.items():
                self.console.print(f"  [red]{field}:[/red] {' '.join(messages)}")
            return False

        user: Dict = data.get("user", {})
        self.credentials = UserCredentials(
            user_id=str(user.get("id", "")),
            email=user.get("email", email),
            name=user.get("name", ""),
            role=user.get("role", "user"),
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
        )
        self._save_credentials()
        return True

    async def interactive_login(self) -> bool:
        self.console.print(Panel(
            "[bold cyan]Layanan Pengaduan - Login[/bold cyan]\n\n"
            "Login using your registered account.",
            border_style="cyan"
        ))
        email = Prompt.ask("Email")
        password = Prompt.ask("Password", password=True)
        return await self.login_with_credentials(email, password)

    async def logout(self):
        """Tell the server, then forget the token regardless of the answer"""
        if self.is_authenticated():
            try:
                await self.client().logout()
            except PortalAPIError:
                pass
        self._clear_credentials()
        self.console.print("[green]Logged out successfully[/green]")

    def show_status(self):
        """Show current authentication status"""
        if self.is_authenticated():
            self.console.print(Panel(
                f"[green]Authenticated[/green]\n\n"
                f"[bold]User:[/bold] {self.credentials.name}\n"
                f"[bold]Email:[/bold] {self.credentials.email}\n"
                f"[bold]Role:[/bold] {self.credentials.role}\n"
                f"[bold]Server:[/bold] {self.config.api_base_url}",
                title="Authentication Status",
                border_style="green"
            ))
        else:
            self.console.print(Panel(
                "[red]Not authenticated[/red]\n\n"
                "Please login using: [cyan]pengaduan login[/cyan]",
                title="Authentication Status",
                border_style="red"
            ))
