"""Comprobación de disponibilidad de username contra el servicio local.

Contrato HTTP:
- `GET {base}/isUserNameAvailable?userName=<valor>`
- 2xx: `{"isAvailable": bool, "userName": str}`
- 400: `{"error": bool, "reason": str}`

Cada fallo se traduce a una subclase de `APIError`; la política (qué cuenta
como disponible) es del combinador, no de este adaptador.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError as PayloadValidationError

from adapters.http_client import client_session
from core.config import AppSettings
from core.domain import errors
from core.domain.models import APIErrorMessage, UsernameAvailableMessage

logger = logging.getLogger("signup_guard.availability")


class UsernameAvailabilityChecker:
    """Implementa `core.interfaces.AvailabilityChecker` sobre HTTP."""

    _path = "/isUserNameAvailable"

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._client = client

    def build_url(self, username: str) -> httpx.URL:
        """Construye la URL de consulta; falla sin tocar la red si no es válida."""

        base = self._settings.availability_base_url.rstrip("/")
        try:
            url = httpx.URL(base + self._path, params={"userName": username})
        except (httpx.InvalidURL, TypeError, ValueError) as exc:
            raise errors.InvalidRequestError("URL invalid") from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise errors.InvalidRequestError("URL invalid")
        return url

    async def check(self, username: str) -> bool:
        url = self.build_url(username)
        logger.debug("availability request for %r", username)

        try:
            async with client_session(self._settings, self._client) as client:
                response = await client.get(url)
        except httpx.TransportError as exc:
            raise errors.TransportError(exc) from exc
        except httpx.HTTPError as exc:
            logger.debug("unusable response envelope: %s", exc)
            raise errors.InvalidResponseError() from exc

        available = parse_availability_response(response)
        logger.debug("availability for %r: %s", username, available)
        return available


def parse_availability_response(response: httpx.Response) -> bool:
    """Mapea status + cuerpo a un booleano o a un `APIError` clasificado."""

    status = response.status_code

    if 200 <= status < 300:
        try:
            message = UsernameAvailableMessage.model_validate_json(response.content)
        except PayloadValidationError as exc:
            raise errors.DecodingError(exc) from exc
        return message.is_available

    if status == 400:
        try:
            api_error = APIErrorMessage.model_validate_json(response.content)
        except PayloadValidationError as exc:
            raise errors.DecodingError(exc) from exc
        raise errors.ValidationError(api_error.reason)

    reason: str | None = None
    try:
        reason = APIErrorMessage.model_validate_json(response.content).reason
    except PayloadValidationError:
        # Cuerpo sin formato de error: el status basta.
        reason = None
    raise errors.ServerError(
        status_code=status,
        reason=reason,
        retry_after=response.headers.get("Retry-After"),
    )
