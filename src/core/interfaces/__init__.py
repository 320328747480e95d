"""Interfaces/abstracciones del Core.

Por qué:
- Define contratos (Protocol) que implementan adaptadores concretos.
- Permite invertir dependencias: el Core depende de abstracciones.
"""

from core.interfaces.checkers import AvailabilityChecker, BreachChecker

__all__ = ["AvailabilityChecker", "BreachChecker"]
