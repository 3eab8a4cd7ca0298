"""
Contratos que deben implementar los clientes de provider (nube).

El core solo define interfaces; la implementación vive en orbita/providers/*
o en módulos externos cargados con --provider module:factory.
"""

from typing import Any, Dict, Optional, Protocol, Tuple

from orbita.core.errors import ConfigError
from orbita.core.graph.models import ResourceKind


class ProviderClient(Protocol):
    """
    Cliente autorizado contra la API del provider.
    Las credenciales ya vienen resueltas; el core nunca las ve.
    """

    @property
    def name(self) -> str:
        ...

    def create(self, kind: ResourceKind, attributes: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
        """Crea el recurso; devuelve (provider_id, atributos)."""
        ...

    def update(self, kind: ResourceKind, provider_id: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        """Actualiza in-place; devuelve atributos."""
        ...

    def delete(self, kind: ResourceKind, provider_id: str) -> None:
        ...

    def describe(self, kind: ResourceKind, provider_id: str) -> Dict[str, Any]:
        """Atributos actuales; lanza NotFound si no existe."""
        ...


class ProviderRegistry:
    """kind → cliente. Un cliente por defecto atiende los kinds no registrados."""

    def __init__(self, default: Optional[ProviderClient] = None):
        self.default = default
        self._clients: Dict[ResourceKind, ProviderClient] = {}

    def register(self, kind: ResourceKind, client: ProviderClient) -> "ProviderRegistry":
        self._clients[ResourceKind(kind)] = client
        return self

    def client_for(self, kind: ResourceKind) -> ProviderClient:
        client = self._clients.get(ResourceKind(kind), self.default)
        if client is None:
            raise ConfigError(f"No hay cliente de provider para {ResourceKind(kind).value}")
        return client
