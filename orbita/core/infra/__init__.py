"""
Contratos y base para clientes de provider.

Los providers (mock, clientes reales externos) implementan estos contratos;
el core no depende de ningún provider concreto.
"""

from orbita.core.infra.contracts import ProviderClient, ProviderRegistry
from orbita.core.infra.base import BaseProvider, is_failed, is_terminal, status_of

__all__ = [
    "ProviderClient",
    "ProviderRegistry",
    "BaseProvider",
    "is_failed",
    "is_terminal",
    "status_of",
]
