"""
Errores de orbita.

El core solo define excepciones; las capas (CLI) se encargan del formato de salida.
"""

from typing import List, Optional, Sequence


class OrbitaError(Exception):
    """Error base de orbita."""
    pass


class ValidationError(OrbitaError):
    """Error de validación de la descripción o de los modelos."""
    pass


class ConfigError(OrbitaError):
    """Error de configuración (archivo faltante, formato inválido, variable mal definida)."""
    pass


# --- Construcción del grafo (fatales, antes de cualquier llamada al provider) ---

class GraphError(OrbitaError):
    """Error al construir el grafo de recursos."""
    pass


class DuplicateId(GraphError):
    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Id de recurso duplicado: '{node_id}'")


class DanglingReference(GraphError):
    def __init__(self, node_id: str, target: str):
        self.node_id = node_id
        self.target = target
        super().__init__(f"'{node_id}' referencia a '{target}', que no existe en el grafo")


class CycleDetected(GraphError):
    def __init__(self, cycle: Sequence[str]):
        self.cycle: List[str] = list(cycle)
        super().__init__("Ciclo de dependencias: " + " → ".join(self.cycle))


# --- Estado ---

class StoreCorrupt(OrbitaError):
    """El estado persistido no se puede interpretar."""

    def __init__(self, path: Optional[str], detail: str):
        self.path = path
        self.detail = detail
        where = f" ({path})" if path else ""
        super().__init__(f"Estado corrupto{where}: {detail}")


# --- Planificación ---

class UnresolvableOrder(OrbitaError):
    """El changeset combinado con las dependencias contiene un ciclo."""

    def __init__(self, blocked: Sequence[str]):
        self.blocked: List[str] = list(blocked)
        super().__init__(
            "No se puede ordenar el plan; operaciones bloqueadas: " + ", ".join(self.blocked)
        )


# --- Provider ---

class ProviderError(OrbitaError):
    """Error delegado desde un provider (cliente de la nube)."""
    pass


class TransientProviderError(ProviderError):
    """Error transitorio (throttling, timeouts de red); se reintenta con backoff."""
    pass


class PermanentProviderError(ProviderError):
    """Error permanente (atributo inválido, cuota excedida); aborta el resto del plan."""
    pass


class NotFound(ProviderError):
    """El provider no conoce el identificador solicitado."""

    def __init__(self, provider_id: str):
        self.provider_id = provider_id
        super().__init__(f"Recurso no encontrado en el provider: {provider_id}")
