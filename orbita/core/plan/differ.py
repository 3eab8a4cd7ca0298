"""
Diff Engine: estado deseado (grafo) vs estado real conocido (State Store).

Lógica pura: entrada = grafo + registros; salida = changeset determinista.
"""

import hashlib
import json
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from orbita.core.graph.models import ResourceGraph, ResourceKind
from orbita.core.graph.references import references_by_attribute
from orbita.core.plan.capabilities import replace_only_attributes, requires_replace
from orbita.core.runtime.state import ActualStateRecord


class Operation(str, Enum):
    CREATE = "Create"
    UPDATE = "Update"
    REPLACE = "Replace"
    DELETE = "Delete"
    NOOP = "NoOp"


@dataclass
class ChangesetEntry:
    node_id: str
    operation: Operation
    reason: str = ""
    changed: List[str] = field(default_factory=list)


class Changeset:
    """Conjunto de ChangesetEntry de una ejecución (nunca se persiste)."""

    def __init__(self, entries: List[ChangesetEntry]):
        self.entries = list(entries)
        self.by_node: Dict[str, ChangesetEntry] = {e.node_id: e for e in self.entries}

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, node_id: str) -> Optional[ChangesetEntry]:
        return self.by_node.get(node_id)

    def operation_of(self, node_id: str) -> Optional[Operation]:
        entry = self.by_node.get(node_id)
        return entry.operation if entry else None

    @property
    def has_changes(self) -> bool:
        return any(e.operation != Operation.NOOP for e in self.entries)

    @property
    def is_empty(self) -> bool:
        """Todo NoOp (o ningún recurso): no hay nada que ejecutar."""
        return not self.has_changes

    def counts(self) -> Dict[Operation, int]:
        return dict(Counter(e.operation for e in self.entries))


def fingerprint(kind: ResourceKind, attributes: Mapping[str, Any]) -> str:
    """sha256 del JSON canónico de kind + atributos deseados (sin resolver)."""
    payload = json.dumps(
        {"kind": ResourceKind(kind).value, "attributes": attributes},
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def changed_attributes(applied: Mapping[str, Any], desired: Mapping[str, Any]) -> List[str]:
    names = set(applied) | set(desired)
    return sorted(n for n in names if applied.get(n) != desired.get(n) or (n in applied) != (n in desired))


def _compare(node, record: Optional[ActualStateRecord]) -> ChangesetEntry:
    if record is None:
        return ChangesetEntry(node.id, Operation.CREATE, "no existe en el estado")
    if ResourceKind(record.kind) != node.kind:
        return ChangesetEntry(
            node.id, Operation.REPLACE, f"kind cambió ({ResourceKind(record.kind).value} → {node.kind.value})"
        )
    if record.tainted:
        return ChangesetEntry(node.id, Operation.REPLACE, "creado sin confirmar (tainted)")
    if record.fingerprint == fingerprint(node.kind, node.attributes):
        return ChangesetEntry(node.id, Operation.NOOP, "sin cambios")
    changed = changed_attributes(record.applied, node.attributes)
    if requires_replace(node.kind, changed):
        fixed = [n for n in changed if n in replace_only_attributes(node.kind)]
        return ChangesetEntry(node.id, Operation.REPLACE, "requiere recrear: " + ", ".join(fixed), changed)
    return ChangesetEntry(node.id, Operation.UPDATE, "cambio in-place: " + ", ".join(changed), changed)


def _target_moved(
    target: str,
    entries: Mapping[str, ChangesetEntry],
    records: Mapping[str, ActualStateRecord],
    record: ActualStateRecord,
) -> bool:
    """True si el dependiente (record) no apunta ya al id vigente de target."""
    if entries[target].operation in (Operation.REPLACE, Operation.CREATE):
        return True
    applied_id = record.dependency_ids.get(target)
    current = records.get(target)
    return applied_id is not None and current is not None and current.provider_id != applied_id


def diff(graph: ResourceGraph, records: Mapping[str, ActualStateRecord]) -> Changeset:
    """
    Compara cada nodo deseado con su registro:
    sin registro → Create; fingerprint igual → NoOp; cambios mutables → Update;
    algún atributo fijo → Replace. Registros sin nodo deseado → Delete.

    Si el id de un prerequisito cambia (Replace, Create tras desaparecer, o un
    id distinto del que se usó en el último apply) se reevalúan los
    dependientes: si lo usan en un atributo fijo pasan a Replace; si no, a Update.
    """
    order = graph.topological_order()
    entries: Dict[str, ChangesetEntry] = {}

    for node_id in order:
        node = graph[node_id]
        record = records.get(node_id)
        entry = _compare(node, record)

        if entry.operation in (Operation.NOOP, Operation.UPDATE):
            refs = references_by_attribute(node.attributes)
            fixed = replace_only_attributes(node.kind)
            for attr, targets in sorted(refs.items()):
                moved = sorted(t for t in targets if _target_moved(t, entries, records, record))
                if not moved:
                    continue
                reason = f"{attr} usa {', '.join(moved)}, cuyo id cambia"
                if attr in fixed:
                    entry = ChangesetEntry(node_id, Operation.REPLACE, reason, sorted(set(entry.changed) | {attr}))
                    break
                entry = ChangesetEntry(
                    node_id,
                    Operation.UPDATE,
                    reason if entry.operation == Operation.NOOP else f"{entry.reason}; {reason}",
                    sorted(set(entry.changed) | {attr}),
                )
        entries[node_id] = entry

    result = [entries[node_id] for node_id in order]
    for node_id in sorted(records):
        if node_id not in graph:
            result.append(ChangesetEntry(node_id, Operation.DELETE, "ya no está en la descripción"))
    return Changeset(result)
