"""
gatehouse-ctl CLI for user administration.
"""

import asyncio
import inspect
import json
import sys
from typing import Any, Optional
import typer
import yaml
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from gatehouse.adapters.providers import UserProvider
from gatehouse.adapters.impl.memory_provider import InMemoryUserProvider
from gatehouse.adapters.impl.memory_state import MemoryCookieStore, MemorySessionState
from gatehouse.core.config import Settings, load_merged_config
from gatehouse.core.dependencies import create_user_provider
from gatehouse.core.exceptions import AuthError, InvalidRememberDuration
from gatehouse.core.guard import SessionGuard

app = typer.Typer(
    name="gatehouse-ctl",
    help="gatehouse user administration CLI",
    add_completion=False
)

console = Console()


def _run(result: Any) -> Any:
    """Resolve provider calls that may or may not be coroutines."""
    if inspect.isawaitable(result):
        return asyncio.run(result)
    return result


def load_settings(
    config: Optional[str] = None,
    provider: Optional[str] = None,
    users_file: Optional[str] = None,
    database: Optional[str] = None
) -> Settings:
    """Load settings and apply CLI overrides."""
    settings = load_merged_config(config)
    if provider:
        settings.user_provider = provider
    if users_file:
        settings.users_file = users_file
    if database:
        settings.database_path = database
    return settings


def open_provider(settings: Settings) -> UserProvider:
    """Build the configured provider, refusing a memory provider with nothing to persist to."""
    user_provider = create_user_provider(settings)
    if isinstance(user_provider, InMemoryUserProvider) and not settings.users_file:
        console.print("[red]✗[/red] The memory provider needs --users-file to persist users")
        sys.exit(1)
    return user_provider


def persist(user_provider: UserProvider, settings: Settings) -> None:
    if isinstance(user_provider, InMemoryUserProvider):
        user_provider.save_file(settings.users_file)


def parse_remember_option(value: Optional[str]) -> Any:
    """Map ``--remember`` flag words onto booleans; anything else is a duration string."""
    if value is None:
        return None
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes"):
        return True
    if lowered in ("0", "false", "no"):
        return False
    return value


def _field(user: Any, name: str) -> Any:
    if isinstance(user, dict):
        return user.get(name)
    return getattr(user, name, None)


ConfigOption = typer.Option(None, "--config", "-c", help="Config file path")
ProviderOption = typer.Option(None, "--provider", help="User provider: memory, sqlite")
UsersFileOption = typer.Option(None, "--users-file", help="YAML users file (memory provider)")
DatabaseOption = typer.Option(None, "--database", help="SQLite database path (sqlite provider)")


@app.command("add-user")
def add_user(
    username: str = typer.Option(..., "--username", "-u", help="Username"),
    email: Optional[str] = typer.Option(None, "--email", "-e", help="Email address"),
    password: Optional[str] = typer.Option(None, "--password", "-p", help="Password (will prompt if not provided)"),
    config: Optional[str] = ConfigOption,
    provider: Optional[str] = ProviderOption,
    users_file: Optional[str] = UsersFileOption,
    database: Optional[str] = DatabaseOption
):
    """Create a user."""
    if not password:
        password = typer.prompt("Password", hide_input=True, confirmation_prompt=True)

    if len(password) < 8:
        console.print("[red]✗[/red] Password must be at least 8 characters")
        sys.exit(1)

    settings = load_settings(config, provider, users_file, database)
    user_provider = open_provider(settings)

    try:
        user = _run(user_provider.create_user(username, password, email=email))
    except ValueError as e:
        console.print(f"[red]✗[/red] {e}")
        sys.exit(1)

    persist(user_provider, settings)
    console.print(f"[green]✓[/green] User '{username}' created with id {user_provider.get_id(user)}")


@app.command("users")
def list_users(
    output: str = typer.Option("table", "-o", help="Output format: table, json, yaml"),
    config: Optional[str] = ConfigOption,
    provider: Optional[str] = ProviderOption,
    users_file: Optional[str] = UsersFileOption,
    database: Optional[str] = DatabaseOption
):
    """List users."""
    settings = load_settings(config, provider, users_file, database)
    user_provider = open_provider(settings)
    users = _run(user_provider.list_users())

    rows = [
        {
            "id": user_provider.get_id(user),
            "username": _field(user, "username"),
            "email": _field(user, "email"),
            "updated_at": str(_field(user, "updated_at")),
        }
        for user in users
    ]

    if output == "json":
        print(json.dumps(rows, indent=2))
    elif output == "yaml":
        print(yaml.dump(rows, default_flow_style=False))
    else:  # table
        if not rows:
            console.print("[yellow]No users found[/yellow]")
            return

        table = Table(title="Users")
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Username", style="green")
        table.add_column("Email", style="blue")
        table.add_column("Updated", style="yellow")

        for row in rows:
            table.add_row(str(row["id"]), row["username"], row["email"] or "", row["updated_at"])

        console.print(table)


@app.command("delete-user")
def delete_user(
    user_id: int = typer.Argument(..., help="User ID to delete"),
    yes: bool = typer.Option(False, "-y", "--yes", help="Skip confirmation"),
    config: Optional[str] = ConfigOption,
    provider: Optional[str] = ProviderOption,
    users_file: Optional[str] = UsersFileOption,
    database: Optional[str] = DatabaseOption
):
    """Delete a user."""
    if not yes:
        if not typer.confirm(f"Delete user {user_id}?"):
            console.print("Aborted.")
            return

    settings = load_settings(config, provider, users_file, database)
    user_provider = open_provider(settings)

    if not _run(user_provider.delete_user(user_id)):
        console.print(f"[red]✗[/red] User {user_id} not found")
        sys.exit(1)

    persist(user_provider, settings)
    console.print(f"[green]✓[/green] User {user_id} deleted successfully")


@app.command()
def verify(
    uid: str = typer.Argument(..., help="Email or username"),
    password: Optional[str] = typer.Option(None, "--password", "-p", help="Password (will prompt if not provided)"),
    remember: Optional[str] = typer.Option(None, "--remember", help="Remember-me duration, e.g. '2 days', or 'true' for five years"),
    config: Optional[str] = ConfigOption,
    provider: Optional[str] = ProviderOption,
    users_file: Optional[str] = UsersFileOption,
    database: Optional[str] = DatabaseOption
):
    """Run a login through the session guard without an HTTP server."""
    if not password:
        password = typer.prompt("Password", hide_input=True)

    settings = load_settings(config, provider, users_file, database)
    user_provider = open_provider(settings)

    session = MemorySessionState()
    cookies = MemoryCookieStore()
    guard = SessionGuard(
        user_provider,
        session,
        cookies,
        name=settings.guard_name,
        session_key=settings.session_key,
        remember_token_key=settings.remember_token_key,
        uid_field=settings.uid_field
    )

    try:
        user = asyncio.run(guard.attempt(uid, password, remember=parse_remember_option(remember)))
    except (AuthError, InvalidRememberDuration) as e:
        console.print(f"[red]✗[/red] Login failed: {e}")
        sys.exit(1)

    persist(user_provider, settings)

    token = cookies.issued.get(settings.remember_token_key)
    panel = Panel.fit(
        f"[cyan]User:[/cyan] {_field(user, 'username')} (id {user_provider.get_id(user)})\n"
        f"[cyan]Session key:[/cyan] {settings.session_key} = {session.get(settings.session_key)}\n"
        f"[cyan]Remember token:[/cyan] {'expires ' + token.expires_at.isoformat() if token else 'not issued'}",
        title="Login successful"
    )
    console.print(panel)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Host to bind to"),
    port: Optional[int] = typer.Option(None, "--port", help="Port to bind to"),
    config: Optional[str] = ConfigOption
):
    """Run the gatehouse HTTP service."""
    import uvicorn
    from gatehouse.main import create_app

    settings = load_settings(config)
    if host:
        settings.host = host
    if port:
        settings.port = port

    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )


def main():
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
