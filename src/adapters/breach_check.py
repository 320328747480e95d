"""Consulta de contraseñas filtradas (Pwned Passwords, API range).

k-anonymity:
- Solo viajan los 5 primeros caracteres hex del SHA-1; el sufijo se busca
  localmente en la lista `SUFIJO:CONTEO` que devuelve el servidor.

Dos sabores:
- `is_breached`: fail-open, lo usa el pipeline. Cualquier fallo -> `False`.
- `breach_count`: fail-closed, para la CLI (propaga el error).
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from adapters.http_client import client_session
from core.config import AppSettings
from core.hashing import range_key

logger = logging.getLogger("signup_guard.breach")


class PwnedPasswordsChecker:
    """Implementa `core.interfaces.BreachChecker` sobre la API range."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._client = client

    def range_url(self, prefix: str) -> str:
        return f"{self._settings.breach_base_url.rstrip('/')}/range/{prefix}"

    async def fetch_range(self, prefix: str) -> str:
        """Descarga la lista de sufijos para `prefix` (lanza ante cualquier fallo)."""

        async with client_session(self._settings, self._client) as client:
            response = await client.get(self.range_url(prefix))
        response.raise_for_status()
        return response.content.decode("utf-8")

    async def is_breached(self, password: str) -> bool:
        prefix = "?????"
        try:
            prefix, suffix = range_key(password)
            body = await self.fetch_range(prefix)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("breach check for prefix %s failed, treating as not breached: %s", prefix, exc)
            return False
        return suffix in body

    async def breach_count(self, password: str) -> int:
        """Veces que la contraseña aparece en filtraciones (0 si no aparece)."""

        prefix, suffix = range_key(password)
        body = await self.fetch_range(prefix)
        for line in body.splitlines():
            hash_suffix, _, count = line.strip().partition(":")
            if hash_suffix.upper() == suffix:
                try:
                    return int(count)
                except ValueError:
                    return 0
        return 0
