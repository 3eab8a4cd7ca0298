"""
Core: lógica de reconciliación.

ENFORCEMENT (arquitectura limpia):
- Este paquete NO debe importar: orbita.cli ni orbita.providers.* (implementaciones).
- Permitido: typing, pathlib.Path, pydantic, yaml, tenacity, orbita.core.*.
- Los providers y la CLI importan desde core; nunca al revés.
"""

from orbita.core.errors import (
    OrbitaError,
    ValidationError,
    ConfigError,
    GraphError,
    CycleDetected,
    DanglingReference,
    DuplicateId,
    StoreCorrupt,
    UnresolvableOrder,
    ProviderError,
    TransientProviderError,
    PermanentProviderError,
    NotFound,
)

__all__ = [
    "OrbitaError",
    "ValidationError",
    "ConfigError",
    "GraphError",
    "CycleDetected",
    "DanglingReference",
    "DuplicateId",
    "StoreCorrupt",
    "UnresolvableOrder",
    "ProviderError",
    "TransientProviderError",
    "PermanentProviderError",
    "NotFound",
]
