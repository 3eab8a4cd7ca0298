"""
Providers: implementaciones del contrato de cliente de nube.

- "mock": MockCloud persistido junto al estado (mock-cloud.json).
- "paquete.modulo:factory": factory externa que devuelve un ProviderRegistry
  o un cliente único; las credenciales son cosa de esa factory.
"""

import importlib
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from orbita.core.errors import ConfigError
from orbita.core.infra.contracts import ProviderRegistry
from orbita.providers.mock import MockCloud

MOCK_STATE_FILE = "mock-cloud.json"


def load_factory(spec: str) -> ProviderRegistry:
    module_name, _, attr = spec.partition(":")
    if not module_name or not attr:
        raise ConfigError(f"Provider inválido '{spec}': usa 'mock' o 'paquete.modulo:factory'")
    try:
        module = importlib.import_module(module_name)
        factory = getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise ConfigError(f"No se pudo cargar el provider '{spec}': {e}") from e
    provided = factory()
    if isinstance(provided, ProviderRegistry):
        return provided
    return ProviderRegistry(default=provided)


@contextmanager
def provider_session(spec: str, state_dir: Path, pending_polls: int = 0) -> Iterator[ProviderRegistry]:
    """Abre el provider; para el mock, guarda la nube simulada al salir."""
    if spec != "mock":
        yield load_factory(spec)
        return
    path = Path(state_dir) / MOCK_STATE_FILE
    cloud = MockCloud.load(path, pending_polls=pending_polls)
    try:
        yield ProviderRegistry(default=cloud)
    finally:
        cloud.save(path)


__all__ = ["MockCloud", "load_factory", "provider_session"]
