"""
Base opcional para clientes de provider: estados comunes y operaciones por defecto.

Los providers pueden heredar de aquí o implementar solo el contrato (Protocol).
"""

from typing import Any, Dict, FrozenSet, Optional, Tuple

from orbita.core.errors import PermanentProviderError
from orbita.core.graph.models import ResourceKind

STATUS_ATTRIBUTE = "status"
TERMINAL_STATUSES: FrozenSet[str] = frozenset({"available", "active", "running", "attached", "in-service"})
FAILED_STATUSES: FrozenSet[str] = frozenset({"failed", "error", "terminated"})


def status_of(attributes: Optional[Dict[str, Any]]) -> Optional[str]:
    if not attributes:
        return None
    status = attributes.get(STATUS_ATTRIBUTE)
    return str(status).lower() if status is not None else None


def is_terminal(attributes: Optional[Dict[str, Any]]) -> bool:
    """Sin atributo status se asume que el provider responde de forma síncrona."""
    status = status_of(attributes)
    return status is None or status in TERMINAL_STATUSES


def is_failed(attributes: Optional[Dict[str, Any]]) -> bool:
    return status_of(attributes) in FAILED_STATUSES


class BaseProvider:
    """Base opcional para providers; no obligatorio usar herencia."""

    name: str = "base"
    kinds: FrozenSet[ResourceKind] = frozenset(ResourceKind)

    def supports(self, kind: ResourceKind) -> bool:
        return ResourceKind(kind) in self.kinds

    def _unsupported(self, kind: ResourceKind, action: str) -> PermanentProviderError:
        return PermanentProviderError(f"{self.name}: {action} no soportado para {ResourceKind(kind).value}")

    def create(self, kind: ResourceKind, attributes: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
        raise self._unsupported(kind, "create")

    def update(self, kind: ResourceKind, provider_id: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        raise self._unsupported(kind, "update")

    def delete(self, kind: ResourceKind, provider_id: str) -> None:
        raise self._unsupported(kind, "delete")

    def describe(self, kind: ResourceKind, provider_id: str) -> Dict[str, Any]:
        raise self._unsupported(kind, "describe")
