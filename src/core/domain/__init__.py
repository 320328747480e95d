"""Dominio del formulario de alta.

- `models`: campos, veredictos de contraseña, resultados de las comprobaciones
  remotas y el snapshot que ve la UI (Pydantic v2).
- `errors`: taxonomía `APIError` de la comprobación de disponibilidad.
"""
