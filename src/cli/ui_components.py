"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en `validate`, `replay` y `doctor`.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import PasswordCheck, SignupState, ValidationSnapshot


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida.

    Por qué aquí:
    - Evita dependencias circulares (main <-> doctor).
    - Permite desactivar banner en modos no interactivos (JSON/pipelines).
    """

    title = Text("signup-guard", style="bold cyan")
    subtitle = Text("Username disponible • Contraseña no filtrada • Validación reactiva", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def _yes_no(value: bool | None, *, invert: bool = False) -> Text:
    if value is None:
        return Text("pending", style="yellow")
    ok = (not value) if invert else value
    return Text("yes" if value else "no", style="green" if ok else "red")


def build_state_table(state: SignupState) -> Table:
    """Tabla con cada señal derivada del formulario."""

    table = Table(title="Sign-up form")
    table.add_column("Signal", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")

    table.add_row("Username", state.username or "—")
    table.add_row("Username valid", _yes_no(state.is_username_valid))
    available = _yes_no(state.is_username_available)
    if state.availability_error is not None:
        available.append(f" ({state.availability_error.value} error)", style="dim")
    table.add_row("Username available", available)
    check_style = "green" if state.password_check is PasswordCheck.VALID else "red"
    table.add_row("Password check", Text(state.password_check.value, style=check_style))
    table.add_row("Password breached", _yes_no(state.is_password_breached, invert=True))
    table.add_row("Form valid", _yes_no(state.snapshot.is_form_valid))
    return table


def build_snapshot_panel(snapshot: ValidationSnapshot) -> Panel:
    """Panel con el mensaje de error (o el OK) a mostrar al usuario."""

    if snapshot.is_form_valid:
        return Panel(Text("Ready to sign up", style="bold green"), border_style="green")
    message = snapshot.error_message or "Checking…"
    return Panel(Text(message, style="bold red"), title="Error", border_style="red")
