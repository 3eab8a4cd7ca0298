"""
Resolución de rutas de estado y proyecto.

- state_root(): directorio canónico del estado (ORBITA_STATE_ROOT o ~/.orbita/state).
- state_file(stack): archivo de estado de un stack.
- project_base(): directorio que contiene .orbita (para cargar .env del proyecto).

Este módulo no escribe en disco; solo expone rutas.
"""

import os
import re
from pathlib import Path
from typing import Optional

DEFAULT_STATE_ROOT = Path("~/.orbita/state")


def state_root() -> Path:
    explicit = os.environ.get("ORBITA_STATE_ROOT", "").strip()
    if explicit:
        return Path(explicit).expanduser().resolve()
    return DEFAULT_STATE_ROOT.expanduser()


def state_file(stack: str) -> Path:
    """Archivo de estado de un stack; el nombre se normaliza para ser seguro en paths."""
    safe = re.sub(r"[^A-Za-z0-9_\-.]", "_", stack) or "default"
    return state_root() / f"{safe}.state.json"


def project_base() -> Optional[Path]:
    """
    Directorio base del proyecto (donde existe .orbita).
    Resolución: ORBITA_PROJECT_ROOT → cwd y sus padres; si no, None.
    """
    explicit = os.environ.get("ORBITA_PROJECT_ROOT", "").strip()
    if explicit:
        return Path(explicit).expanduser().resolve()

    for d in [Path.cwd()] + list(Path.cwd().parents):
        if (d / ".orbita").exists():
            return d.resolve()
    return None
