"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (HTTP) y el pipeline lean config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "signup-guard"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "signup-guard"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "signup-guard"
    return Path.home() / ".config" / "signup-guard"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], *, env_path: Path | None = None) -> Path:
    """Escribe/actualiza variables en el .env global del usuario.

    Las claves existentes que no aparecen en `values` se conservan.
    """

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# signup-guard user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters/pipeline.
    """

    model_config = SettingsConfigDict(
        env_prefix="SIGNUP_GUARD_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    availability_base_url: str = Field(
        default="http://127.0.0.1:8080",
        min_length=1,
        description="Base URL del servicio local que responde /isUserNameAvailable.",
    )
    breach_base_url: str = Field(
        default="https://api.pwnedpasswords.com",
        min_length=1,
        description="Base URL de la API range de Pwned Passwords (k-anonymity).",
    )

    http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout por request (segundos). Un timeout cuenta como error de transporte.",
    )
    user_agent: str = Field(
        default="signup-guard/0.1 (+https://local)",
        min_length=1,
        description="User-Agent para las peticiones HTTP.",
    )

    username_debounce_seconds: float = Field(
        default=0.8,
        ge=0,
        description="Ventana de quietud antes de consultar la disponibilidad del username.",
    )
    username_min_length: int = Field(
        default=3,
        ge=1,
        description="Longitud mínima de un username válido.",
    )
    password_min_length: int = Field(
        default=6,
        ge=1,
        description="Longitud mínima de una contraseña válida.",
    )

    log_level: str = Field(
        default="WARNING",
        description="Nivel de logging para la CLI (DEBUG/INFO/WARNING/ERROR).",
    )
