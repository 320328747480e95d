"""Exportación JSON del estado de validación.

Por qué JSON:
- Permite integrar la CLI en scripts/CI sin parsear la tabla Rich.
- Nunca incluye la contraseña: `SignupState` no la contiene.
"""

from __future__ import annotations

import json
from pathlib import Path

from core.domain.models import SignupState


def state_to_json(state: SignupState) -> str:
    payload = state.model_dump(mode="json")
    return json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n"


def export_state_json(*, state: SignupState, output_path: Path) -> Path:
    """Exporta `SignupState` a JSON UTF-8 con formato estable."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(state_to_json(state), encoding="utf-8")
    return output_path
