"""
Refresh: sincroniza el State Store con lo que el provider reporta hoy.

Los registros que el provider ya no conoce se eliminan (se recrearán en el
diff); los demás actualizan sus outputs. No toca atributos deseados ni
fingerprints, así que no oculta drift de la descripción.
"""

import logging
from typing import List

from orbita.core.errors import NotFound, TransientProviderError
from orbita.core.infra.contracts import ProviderRegistry
from orbita.core.runtime.state import StateStore

logger = logging.getLogger(__name__)


def refresh_state(store: StateStore, registry: ProviderRegistry) -> List[str]:
    """Devuelve los ids eliminados del estado porque ya no existen."""
    dropped: List[str] = []
    for node_id, record in sorted(store.load().items()):
        client = registry.client_for(record.kind)
        try:
            attributes = client.describe(record.kind, record.provider_id)
        except NotFound:
            logger.warning("%s (%s) ya no existe en el provider; se quitará del estado", node_id, record.provider_id)
            store.delete(node_id)
            dropped.append(node_id)
            continue
        except TransientProviderError as e:
            logger.warning("No se pudo refrescar %s: %s", node_id, e)
            continue
        if attributes != record.outputs:
            store.put(node_id, record.model_copy(update={"outputs": dict(attributes)}))
    return dropped
