"""Taxonomía de errores de las comprobaciones remotas.

Por qué en el dominio:
- El combinador decide la política (fail-open solo para transporte) mirando
  el *tipo* de error, no detalles de httpx.
- Los adaptadores traducen excepciones de I/O a estas clases en el borde.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Clasificación estable de fallos de la comprobación de disponibilidad."""

    INVALID_REQUEST = "invalid_request"
    TRANSPORT = "transport"
    INVALID_RESPONSE = "invalid_response"
    VALIDATION = "validation"
    DECODING = "decoding"
    SERVER = "server"


class APIError(Exception):
    """Error clasificado de una llamada remota.

    `description` es el texto que se muestra al usuario cuando el error llega
    al mensaje de validación.
    """

    kind: ErrorKind

    @property
    def description(self) -> str:
        return str(self)


class InvalidRequestError(APIError):
    """No se pudo construir la petición; no se llegó a usar la red."""

    kind = ErrorKind.INVALID_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(f"Invalid request: {message}")
        self.message = message


class TransportError(APIError):
    """Fallo de conectividad (DNS, TLS, conexión rechazada, timeout)."""

    kind = ErrorKind.TRANSPORT

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Transport error: {cause}")
        self.cause = cause


class InvalidResponseError(APIError):
    """La respuesta no es un sobre HTTP utilizable."""

    kind = ErrorKind.INVALID_RESPONSE

    def __init__(self) -> None:
        super().__init__("Invalid response")


class ValidationError(APIError):
    """HTTP 400 con un motivo estructurado del servidor."""

    kind = ErrorKind.VALIDATION

    def __init__(self, reason: str) -> None:
        super().__init__(f"Validation Error: {reason}")
        self.reason = reason


class DecodingError(APIError):
    """El cuerpo no tiene la forma esperada."""

    kind = ErrorKind.DECODING

    def __init__(self, cause: BaseException | None = None) -> None:
        super().__init__("The server returned data in an unexpected format. Try updating the app.")
        self.cause = cause


class ServerError(APIError):
    """Cualquier otro estado no-2xx."""

    kind = ErrorKind.SERVER

    def __init__(
        self,
        status_code: int,
        reason: str | None = None,
        retry_after: str | None = None,
    ) -> None:
        super().__init__(
            f"Server error with code {status_code}, "
            f"reason: {reason or 'no reason given'}, "
            f"retry after: {retry_after or 'no retry after provided'}"
        )
        self.status_code = status_code
        self.reason = reason
        self.retry_after = retry_after
