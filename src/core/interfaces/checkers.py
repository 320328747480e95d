"""Contratos de las comprobaciones remotas.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- El pipeline depende de estas abstracciones; los adaptadores HTTP y los
  dobles de test son intercambiables.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class AvailabilityChecker(Protocol):
    """Consulta si un username sigue libre.

    Reglas de diseño:
    - `check` es asíncrono porque hace I/O (HTTP).
    - Los fallos se señalan con subclases de `core.domain.errors.APIError`.
    """

    async def check(self, username: str) -> bool:
        """Devuelve `True` si el servidor considera el username disponible."""

        ...


@runtime_checkable
class BreachChecker(Protocol):
    """Consulta si una contraseña aparece en filtraciones conocidas.

    Contrato fail-open: nunca lanza (salvo cancelación); ante cualquier fallo
    devuelve `False`.
    """

    async def is_breached(self, password: str) -> bool:
        ...
