"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- Los payloads del servicio de disponibilidad se decodifican con los mismos
  modelos que documentan el contrato.

Nota:
- Todos los valores son efímeros: se recalculan desde las entradas actuales,
  nada se persiste.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from core.domain.errors import APIError, ErrorKind


class PasswordCheck(str, Enum):
    """Resultado de las reglas locales de contraseña (exactamente uno a la vez)."""

    VALID = "valid"
    EMPTY = "empty"
    NO_MATCH = "no_match"
    TOO_SHORT = "too_short"


class AuthenticationState(str, Enum):
    """Estado de autenticación del formulario.

    Nada en el pipeline de validación lo modifica; el envío del formulario
    no está conectado.
    """

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class FormFields(BaseModel):
    """Valores actuales de los tres campos editables."""

    model_config = ConfigDict(frozen=True)

    username: str = Field(default="", description="Username candidato.")
    password: str = Field(default="", repr=False, description="Contraseña en claro.")
    confirm_password: str = Field(default="", repr=False, description="Confirmación de la contraseña.")


class UsernameAvailableMessage(BaseModel):
    """Cuerpo 2xx de `GET /isUserNameAvailable`."""

    model_config = ConfigDict(populate_by_name=True)

    is_available: bool = Field(..., alias="isAvailable", strict=True)
    user_name: str = Field(..., alias="userName")


class APIErrorMessage(BaseModel):
    """Cuerpo de error (HTTP 400) del servicio de disponibilidad."""

    error: bool = Field(...)
    reason: str = Field(...)


class AvailabilityOutcome(BaseModel):
    """Resultado de una comprobación de disponibilidad ya resuelta.

    Exactamente uno de `available` / `error` está presente. `username` es el
    valor al que responde; el combinador ignora resultados cuyo username ya
    no coincide con el campo.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    username: str = Field(..., description="Username consultado.")
    available: bool | None = Field(default=None, description="Respuesta del servidor (si no hubo error).")
    error: APIError | None = Field(default=None, description="Error clasificado (si lo hubo).")

    @classmethod
    def success(cls, username: str, available: bool) -> "AvailabilityOutcome":
        return cls(username=username, available=available)

    @classmethod
    def failure(cls, username: str, error: APIError) -> "AvailabilityOutcome":
        return cls(username=username, error=error)

    @property
    def is_transport_error(self) -> bool:
        return self.error is not None and self.error.kind is ErrorKind.TRANSPORT


class BreachOutcome(BaseModel):
    """Resultado (fail-open) de la consulta de contraseñas filtradas."""

    model_config = ConfigDict(frozen=True)

    password: str = Field(..., repr=False, description="Contraseña a la que responde.")
    breached: bool = Field(default=False)


class ValidationSnapshot(BaseModel):
    """Salida del pipeline: validez global y mensaje a mostrar."""

    model_config = ConfigDict(frozen=True)

    is_form_valid: bool = Field(default=False)
    error_message: str = Field(default="")


class SignupState(BaseModel):
    """Vista completa de las señales derivadas, para la capa de presentación."""

    username: str
    is_username_valid: bool
    is_username_available: bool | None = Field(
        default=None,
        description="None mientras no hay resultado para el username actual.",
    )
    availability_error: ErrorKind | None = None
    password_check: PasswordCheck
    is_password_breached: bool
    authentication_state: AuthenticationState = AuthenticationState.UNAUTHENTICATED
    snapshot: ValidationSnapshot
