"""Atajo de desarrollo: `python main.py validate -u alice -p ...`.

Equivale al script `signup-guard` instalado, pero sin `pip install -e .`:
añade `src/` al path antes de importar la CLI.
"""

from __future__ import annotations

import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parent / "src"

if __name__ == "__main__":
    if str(SRC_DIR) not in sys.path:
        sys.path.insert(0, str(SRC_DIR))

    from cli.main import run  # noqa: E402

    run()
