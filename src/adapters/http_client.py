"""Cliente HTTP compartido por las dos comprobaciones remotas.

- `build_async_client` fija timeout, redirects y cabeceras a partir de
  `AppSettings`.
- `client_session` entrega el cliente inyectado (tests con
  `httpx.MockTransport`) o abre uno efímero por petición.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx

from core.config import AppSettings

_ACCEPT = "application/json, text/plain;q=0.9, */*;q=0.8"


def build_async_client(settings: AppSettings | None = None) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` configurado.

    El timeout acota el estado "comprobando": al vencer, httpx lanza una
    `httpx.TimeoutException` (subclase de `httpx.TransportError`).
    """

    settings = settings or AppSettings()
    headers = {"User-Agent": settings.user_agent, "Accept": _ACCEPT}
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
    )


@asynccontextmanager
async def client_session(
    settings: AppSettings,
    client: httpx.AsyncClient | None = None,
) -> AsyncIterator[httpx.AsyncClient]:
    """Cede `client` sin cerrarlo, o uno propio que se cierra al salir."""

    if client is not None:
        yield client
        return
    async with build_async_client(settings) as owned:
        yield owned
