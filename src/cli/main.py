"""CLI principal (Typer).

Por qué una CLI:
- Es la capa de presentación más fina posible sobre `SignupPipeline`: lee
  los campos, espera a que el pipeline se estabilice y muestra el resultado.
- `replay` reproduce ediciones con retardo para ver debounce y cancelación.
"""

from __future__ import annotations

import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from adapters.availability_check import UsernameAvailabilityChecker
from adapters.breach_check import PwnedPasswordsChecker
from adapters.json_exporter import export_state_json, state_to_json
from cli.doctor import app as doctor_app
from cli.ui_components import build_snapshot_panel, build_state_table, print_banner
from core.config import AppSettings
from core.domain.errors import APIError
from core.domain.models import FormFields, SignupState, ValidationSnapshot
from core.hashing import range_key
from core.services.signup_pipeline import PipelineHooks, SignupPipeline

app = typer.Typer(
    no_args_is_help=True,
    help="Reactive sign-up form validation: username availability and breached-password checks.",
)
app.add_typer(doctor_app, name="doctor")

_console = Console()

_FIELD_ALIASES = {
    "username": "username",
    "user": "username",
    "password": "password",
    "confirm_password": "confirm_password",
    "confirm-password": "confirm_password",
    "confirm": "confirm_password",
}


def configure_logging(level: str) -> None:
    """Instala un `RichHandler` en stderr al nivel pedido."""

    logging.basicConfig(
        level=level.upper(),
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log pipeline activity at DEBUG level."),
) -> None:
    settings = AppSettings()
    configure_logging("DEBUG" if verbose else settings.log_level)


def _build_pipeline(settings: AppSettings, hooks: PipelineHooks | None = None) -> SignupPipeline:
    return SignupPipeline(
        settings,
        availability_checker=UsernameAvailabilityChecker(settings),
        breach_checker=PwnedPasswordsChecker(settings),
        hooks=hooks,
    )


async def _run_validation(settings: AppSettings, fields: FormFields) -> SignupState:
    async with _build_pipeline(settings) as pipeline:
        pipeline.update(
            username=fields.username,
            password=fields.password,
            confirm_password=fields.confirm_password,
        )
        await pipeline.settle()
        return pipeline.state()


@app.command()
def validate(
    username: str = typer.Option(..., "--username", "-u", help="Username to validate."),
    password: str = typer.Option("", "--password", "-p", help="Password to validate."),
    confirm_password: Optional[str] = typer.Option(
        None, "--confirm-password", "-c", help="Confirmation (defaults to --password)."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the state as JSON."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Also write the state as JSON."),
) -> None:
    """Validate one set of form values; exit code 0 when the form is valid."""

    # Un único valor por campo: no hay ráfaga de tecleo que agrupar.
    settings = AppSettings().model_copy(update={"username_debounce_seconds": 0.0})
    fields = FormFields(
        username=username,
        password=password,
        confirm_password=password if confirm_password is None else confirm_password,
    )
    state = asyncio.run(_run_validation(settings, fields))

    if as_json:
        typer.echo(state_to_json(state), nl=False)
    else:
        _console.print(build_state_table(state))
        _console.print(build_snapshot_panel(state.snapshot))
    if output is not None:
        export_state_json(state=state, output_path=output)

    raise typer.Exit(code=0 if state.snapshot.is_form_valid else 1)


def parse_edit_events(text: str) -> list[tuple[str, str]]:
    """Parsea líneas `campo: valor` (vacías y `#` se ignoran)."""

    events: list[tuple[str, str]] = []
    for number, raw_line in enumerate(text.splitlines(), start=1):
        if not raw_line.strip() or raw_line.lstrip().startswith("#"):
            continue
        key, sep, value = raw_line.partition(":")
        field = _FIELD_ALIASES.get(key.strip().lower())
        if not sep or field is None:
            raise typer.BadParameter(f"line {number}: expected '<field>: <value>', got {raw_line!r}")
        if value.startswith(" "):
            value = value[1:]
        events.append((field, value))
    return events


async def _replay(settings: AppSettings, events: list[tuple[str, str]], interval: float) -> SignupState:
    started = time.monotonic()

    def stamp() -> str:
        return f"[dim]{time.monotonic() - started:6.2f}s[/dim]"

    def on_check(edge: str, value: str) -> None:
        label = f" {value!r}" if value else ""
        _console.print(f"{stamp()} checking {edge}{label}…")

    def on_discard(edge: str, sequence: int) -> None:
        _console.print(f"{stamp()} dropped stale {edge} response #{sequence}")

    def on_snapshot(snapshot: ValidationSnapshot) -> None:
        status = "[green]valid[/green]" if snapshot.is_form_valid else "[red]invalid[/red]"
        _console.print(f"{stamp()} form {status} {snapshot.error_message}")

    hooks = PipelineHooks(check_started=on_check, check_discarded=on_discard)
    async with _build_pipeline(settings, hooks) as pipeline:
        pipeline.subscribe(on_snapshot)
        setters = {
            "username": pipeline.set_username,
            "password": pipeline.set_password,
            "confirm_password": pipeline.set_confirm_password,
        }
        for field, value in events:
            shown = value if field == "username" else "*" * len(value)
            _console.print(f"{stamp()} {field} = {shown!r}")
            setters[field](value)
            await asyncio.sleep(interval)
        await pipeline.settle()
        return pipeline.state()


@app.command()
def replay(
    events_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="File with one 'field: value' edit per line."
    ),
    interval: float = typer.Option(0.2, "--interval", "-i", min=0.0, help="Seconds between edits."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Skip the banner."),
) -> None:
    """Replay field edits through the pipeline, printing every snapshot."""

    events = parse_edit_events(events_file.read_text(encoding="utf-8"))
    if not quiet:
        print_banner(_console)
    state = asyncio.run(_replay(AppSettings(), events, interval))
    _console.print(build_state_table(state))
    _console.print(build_snapshot_panel(state.snapshot))
    raise typer.Exit(code=0 if state.snapshot.is_form_valid else 1)


@app.command(name="check-username")
def check_username(username: str = typer.Argument(..., help="Username to look up.")) -> None:
    """Ask the availability service about one username."""

    checker = UsernameAvailabilityChecker(AppSettings())
    try:
        available = asyncio.run(checker.check(username))
    except APIError as exc:
        _console.print(f"  [red]ERROR[/red]     '{username}' -- {exc.kind.value}: {exc.description}")
        raise typer.Exit(code=2)

    if available:
        _console.print(f"  [green]Available[/green] '{username}'")
        raise typer.Exit(code=0)
    _console.print(f"  [red]Taken[/red]     '{username}'")
    raise typer.Exit(code=1)


@app.command(name="check-password")
def check_password(
    passwords: List[str] = typer.Argument(..., help="Passwords to check (only a 5-char hash prefix is sent)."),
) -> None:
    """Report how often each password appears in known breaches."""

    checker = PwnedPasswordsChecker(AppSettings())

    async def count_all() -> list[tuple[str, int | None, str | None]]:
        results: list[tuple[str, int | None, str | None]] = []
        for password in passwords:
            prefix = "?????"
            try:
                prefix, _ = range_key(password)
                results.append((prefix, await checker.breach_count(password), None))
            except Exception as exc:
                results.append((prefix, None, str(exc) or exc.__class__.__name__))
        return results

    breached = False
    failed = False
    for prefix, count, error in asyncio.run(count_all()):
        label = f"hash {prefix}…"
        if error is not None:
            failed = True
            _console.print(f"  [yellow]ERROR[/yellow]     {label} -- {error}")
        elif count:
            breached = True
            _console.print(f"  [red]BREACHED[/red]  {label} -- found {count:,} times")
        else:
            _console.print(f"  [green]Safe[/green]      {label} -- not found in any known breaches")

    if breached:
        raise typer.Exit(code=1)
    if failed:
        raise typer.Exit(code=2)


def run() -> None:
    # Workaround for UnicodeEncodeError on Windows terminals (cp1252 vs utf-8).
    if sys.platform == "win32":
        sys.stdout.reconfigure(encoding="utf-8")
        sys.stderr.reconfigure(encoding="utf-8")
    app()
