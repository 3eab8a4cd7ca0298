"""
Runtime: rutas de estado, configuración y State Store.

El estado real nunca vive dentro del repo; por defecto se escribe en ~/.orbita/state/.
"""

from orbita.core.runtime.resolver import state_root, state_file, project_base
from orbita.core.runtime.settings import ReconcileSettings, load_settings
from orbita.core.runtime.state import (
    ActualStateRecord,
    JsonStateStore,
    MemoryStateStore,
    StateStore,
)

__all__ = [
    "state_root",
    "state_file",
    "project_base",
    "ReconcileSettings",
    "load_settings",
    "ActualStateRecord",
    "JsonStateStore",
    "MemoryStateStore",
    "StateStore",
]
