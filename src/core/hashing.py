"""SHA-1 para la consulta k-anonymity de Pwned Passwords.

SHA-1 se usa solo porque es lo que publica el protocolo de la API range; no
es una elección criptográfica.
"""

from __future__ import annotations

import hashlib

RANGE_PREFIX_LENGTH = 5


def sha1_hex(password: str) -> str:
    """SHA-1 de los bytes UTF-8 de *password*, en hex mayúsculas (40 chars)."""

    return hashlib.sha1(password.encode("utf-8")).hexdigest().upper()  # nosec


def split_hash(digest: str) -> tuple[str, str]:
    """Divide un digest en (prefijo de 5 caracteres, resto)."""

    if len(digest) <= RANGE_PREFIX_LENGTH:
        raise ValueError(f"digest too short for a range query: {len(digest)} chars")
    return digest[:RANGE_PREFIX_LENGTH], digest[RANGE_PREFIX_LENGTH:]


def range_key(password: str) -> tuple[str, str]:
    """Prefijo que viaja por la red y sufijo que nunca sale del cliente."""

    return split_hash(sha1_hex(password))
