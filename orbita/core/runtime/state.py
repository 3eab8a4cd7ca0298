"""
State Store: último estado real conocido entre ejecuciones.

Solo se escribe tras una respuesta confirmada del provider. JsonStateStore
persiste cada cambio con escritura a temporal + rename, de modo que un
fallo a mitad de escritura deja intacta la instantánea anterior.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Union

import pydantic
from pydantic import BaseModel, Field

from orbita.core.errors import StoreCorrupt
from orbita.core.graph.models import ResourceKind

logger = logging.getLogger(__name__)

STATE_FORMAT_VERSION = 1


class ActualStateRecord(BaseModel):
    node_id: str
    kind: ResourceKind
    provider_id: str = Field(..., description="Identificador asignado por el provider")
    applied: Dict[str, Any] = Field(default_factory=dict, description="Atributos deseados en el último apply")
    outputs: Dict[str, Any] = Field(default_factory=dict, description="Atributos confirmados por el provider")
    fingerprint: str = Field(..., description="Hash de los atributos deseados aplicados")
    dependencies: List[str] = Field(default_factory=list, description="Dependencias en el último apply")
    dependency_ids: Dict[str, str] = Field(
        default_factory=dict, description="Id de provider de cada recurso referenciado, tal como se resolvió"
    )
    tainted: bool = Field(False, description="Creado pero sin confirmar; se recrea en la próxima ejecución")


class StateStore(Protocol):
    """Protocolo: quien persiste el estado real (archivo, backend remoto...)."""

    def load(self) -> Dict[str, ActualStateRecord]:
        ...

    def save(self, records: Mapping[str, ActualStateRecord]) -> None:
        ...

    def get(self, node_id: str) -> Optional[ActualStateRecord]:
        ...

    def put(self, node_id: str, record: ActualStateRecord) -> None:
        ...

    def delete(self, node_id: str) -> None:
        ...


class MemoryStateStore:
    """Store en memoria (tests, dry-run)."""

    def __init__(self, records: Optional[Mapping[str, ActualStateRecord]] = None):
        self._records: Dict[str, ActualStateRecord] = dict(records or {})
        self.saves = 0

    def load(self) -> Dict[str, ActualStateRecord]:
        return dict(self._records)

    def save(self, records: Mapping[str, ActualStateRecord]) -> None:
        self._records = dict(records)
        self.saves += 1

    def get(self, node_id: str) -> Optional[ActualStateRecord]:
        return self._records.get(node_id)

    def put(self, node_id: str, record: ActualStateRecord) -> None:
        records = dict(self._records)
        records[node_id] = record
        self.save(records)

    def delete(self, node_id: str) -> None:
        if node_id in self._records:
            records = dict(self._records)
            del records[node_id]
            self.save(records)


class JsonStateStore:
    """
    Estado en un documento JSON:
        {"version": 1, "serial": N, "resources": {id: record}}
    """

    def __init__(self, path: Union[str, Path], treat_corrupt_as_empty: bool = False):
        self.path = Path(path)
        self.treat_corrupt_as_empty = treat_corrupt_as_empty
        self.serial = 0
        self._records: Optional[Dict[str, ActualStateRecord]] = None

    def _read(self) -> Dict[str, ActualStateRecord]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
            if not isinstance(data, dict) or not isinstance(data.get("resources"), dict):
                raise ValueError("falta la sección 'resources'")
            if data.get("version", STATE_FORMAT_VERSION) > STATE_FORMAT_VERSION:
                raise ValueError(f"versión de formato no soportada: {data.get('version')}")
            self.serial = int(data.get("serial", 0))
            return {
                node_id: ActualStateRecord.model_validate(raw)
                for node_id, raw in data["resources"].items()
            }
        except (ValueError, TypeError, pydantic.ValidationError) as e:
            if not self.treat_corrupt_as_empty:
                raise StoreCorrupt(str(self.path), str(e)) from e
            backup = self.path.with_name(self.path.name + ".corrupt")
            os.replace(self.path, backup)
            logger.warning("Estado corrupto en %s; copia en %s, se continúa con estado vacío", self.path, backup)
            self.serial = 0
            return {}

    def load(self) -> Dict[str, ActualStateRecord]:
        self._records = self._read()
        return dict(self._records)

    def _current(self) -> Dict[str, ActualStateRecord]:
        if self._records is None:
            self._records = self._read()
        return self._records

    def save(self, records: Mapping[str, ActualStateRecord]) -> None:
        if self._records is None:
            self._current()  # serial del documento existente
        self.path.parent.mkdir(parents=True, exist_ok=True)
        serial = self.serial + 1
        document = {
            "version": STATE_FORMAT_VERSION,
            "serial": serial,
            "resources": {
                node_id: record.model_dump(mode="json")
                for node_id, record in sorted(records.items())
            },
        }
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(document, f, indent=2, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
        self.serial = serial
        self._records = dict(records)
        logger.debug("Estado guardado en %s (serial %d, %d recursos)", self.path, self.serial, len(records))

    def get(self, node_id: str) -> Optional[ActualStateRecord]:
        return self._current().get(node_id)

    def put(self, node_id: str, record: ActualStateRecord) -> None:
        records = dict(self._current())
        records[node_id] = record
        self.save(records)

    def delete(self, node_id: str) -> None:
        records = dict(self._current())
        if node_id in records:
            del records[node_id]
            self.save(records)
