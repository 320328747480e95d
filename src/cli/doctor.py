"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.availability_check import UsernameAvailabilityChecker
from adapters.breach_check import PwnedPasswordsChecker
from core.config import AppSettings, write_user_env_vars
from core.domain.errors import APIError

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()

_PROBE_USERNAME = "doctor"
_PROBE_PREFIX = "5BAA6"


async def _check_availability(settings: AppSettings) -> tuple[bool, str]:
    try:
        available = await UsernameAvailabilityChecker(settings).check(_PROBE_USERNAME)
    except APIError as exc:
        return False, f"{exc.kind.value}: {exc.description}"
    return True, f"isAvailable={available} for {_PROBE_USERNAME!r}"


async def _check_breach(settings: AppSettings) -> tuple[bool, str]:
    try:
        body = await PwnedPasswordsChecker(settings).fetch_range(_PROBE_PREFIX)
    except Exception as exc:
        return False, str(exc) or exc.__class__.__name__
    return True, f"{len(body.splitlines())} suffixes for prefix {_PROBE_PREFIX}"


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="signup-guard Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    table.add_row("Availability base_url", "OK", settings.availability_base_url)
    table.add_row("Breach base_url", "OK", settings.breach_base_url)
    table.add_row("HTTP timeout", "OK", f"{settings.http_timeout_seconds:g}s")
    table.add_row("Username debounce", "OK", f"{settings.username_debounce_seconds:g}s")

    # Connectivity (best-effort)
    ok_availability, detail_availability = asyncio.run(_check_availability(settings))
    table.add_row(
        "Availability service",
        "OK" if ok_availability else "FAIL",
        detail_availability,
    )
    ok_breach, detail_breach = asyncio.run(_check_breach(settings))
    table.add_row("Pwned Passwords API", "OK" if ok_breach else "FAIL", detail_breach)

    _console.print(table)

    if not ok_availability:
        _console.print(
            "\n[yellow]Note:[/yellow] While the availability service is unreachable, "
            "usernames are treated as available (transport errors fail open)."
        )
    if not ok_breach:
        _console.print(
            "\n[yellow]Note:[/yellow] While the breach API is unreachable, "
            "passwords are treated as not breached."
        )


@app.command(name="setup-endpoints")
def setup_endpoints() -> None:
    """Interactive endpoint setup (stores config in the user config .env)."""

    settings = AppSettings()

    availability = typer.prompt(
        "Availability service base URL",
        default=settings.availability_base_url,
        show_default=True,
    ).strip()
    breach = typer.prompt(
        "Pwned Passwords base URL",
        default=settings.breach_base_url,
        show_default=True,
    ).strip()

    for value in (availability, breach):
        if not value.startswith(("http://", "https://")):
            raise typer.BadParameter(f"not an http(s) URL: {value!r}")

    env_path = write_user_env_vars(
        {
            "SIGNUP_GUARD_AVAILABILITY_BASE_URL": availability,
            "SIGNUP_GUARD_BREACH_BASE_URL": breach,
        }
    )

    _console.print(f"[green]Saved endpoint config to:[/green] {env_path}")
