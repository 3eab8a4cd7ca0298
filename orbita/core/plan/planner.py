"""
Execution Planner: ordena el changeset respetando dependencias.

- Create/Update: prerequisitos antes que dependientes.
- Delete: dependientes antes que prerequisitos (según las dependencias guardadas).
- Replace = delete(viejo) → create(nuevo); quien necesite el id nuevo va después.
- Restricciones por kind (attach-before-route, etc.) de plan.capabilities.

Lógica pura: no ejecuta nada. La ejecución la hace execute.executor.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterator, List, Mapping, Optional, Set

from orbita.core.errors import UnresolvableOrder
from orbita.core.graph.models import ResourceGraph, ResourceKind
from orbita.core.plan.capabilities import ordered_after
from orbita.core.plan.differ import Changeset, Operation
from orbita.core.runtime.state import ActualStateRecord


class Action(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class PlannedOperation:
    node_id: str
    kind: ResourceKind
    action: Action
    replacing: bool = False

    @property
    def key(self) -> str:
        return f"{self.action.value}:{self.node_id}"

    def describe(self) -> str:
        suffix = " (replace)" if self.replacing else ""
        return f"{self.action.value} {self.kind.value} {self.node_id}{suffix}"


class ExecutionPlan:
    """Pasos en orden topológico + prerequisitos de cada paso (por key)."""

    def __init__(self, steps: List[PlannedOperation], requires: Dict[str, FrozenSet[str]]):
        self.steps = list(steps)
        self.requires = dict(requires)
        self._by_key = {op.key: op for op in self.steps}

    def __iter__(self) -> Iterator[PlannedOperation]:
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    @property
    def is_empty(self) -> bool:
        return not self.steps

    def get(self, key: str) -> Optional[PlannedOperation]:
        return self._by_key.get(key)

    def index(self, node_id: str, action: Action) -> int:
        """Posición de una operación en el plan (para inspección y tests)."""
        for i, op in enumerate(self.steps):
            if op.node_id == node_id and op.action == action:
                return i
        raise KeyError(f"{action.value}:{node_id}")

    def prerequisites(self, op: PlannedOperation) -> FrozenSet[str]:
        return self.requires.get(op.key, frozenset())

    def dependents(self, op: PlannedOperation) -> List[PlannedOperation]:
        return [o for o in self.steps if op.key in self.requires.get(o.key, frozenset())]


def _rank(op: PlannedOperation) -> tuple:
    return (0 if op.action == Action.DELETE else 1, op.node_id, op.action.value)


def build_plan(
    changeset: Changeset,
    graph: ResourceGraph,
    records: Mapping[str, ActualStateRecord],
) -> ExecutionPlan:
    """
    Raises:
        UnresolvableOrder: el grafo de operaciones resultante tiene un ciclo
    """
    ops: Dict[str, PlannedOperation] = {}
    applies: Dict[str, PlannedOperation] = {}   # node_id → create/update
    deletes: Dict[str, PlannedOperation] = {}   # node_id → delete

    for entry in changeset:
        node = graph.get(entry.node_id)
        record = records.get(entry.node_id)
        if entry.operation == Operation.CREATE:
            applies[node.id] = PlannedOperation(node.id, node.kind, Action.CREATE)
        elif entry.operation == Operation.UPDATE:
            applies[node.id] = PlannedOperation(node.id, node.kind, Action.UPDATE)
        elif entry.operation == Operation.REPLACE:
            deletes[node.id] = PlannedOperation(node.id, ResourceKind(record.kind), Action.DELETE, replacing=True)
            applies[node.id] = PlannedOperation(node.id, node.kind, Action.CREATE, replacing=True)
        elif entry.operation == Operation.DELETE:
            deletes[entry.node_id] = PlannedOperation(entry.node_id, ResourceKind(record.kind), Action.DELETE)

    for op in list(applies.values()) + list(deletes.values()):
        ops[op.key] = op
    requires: Dict[str, Set[str]] = {key: set() for key in ops}

    for node_id, op in applies.items():
        for dep in graph[node_id].dependencies:
            if dep in applies:
                requires[op.key].add(applies[dep].key)
        if node_id in deletes:
            requires[op.key].add(deletes[node_id].key)
        for kind in ordered_after(op.kind):
            for other in applies.values():
                if other.kind == kind and other.node_id != node_id:
                    requires[op.key].add(other.key)

    for node_id, op in deletes.items():
        for other_id, record in records.items():
            if other_id == node_id or node_id not in record.dependencies:
                continue
            if other_id in deletes:
                requires[op.key].add(deletes[other_id].key)
            elif not op.replacing and other_id in applies:
                # el dependiente deja de referenciarlo antes de borrarlo
                requires[op.key].add(applies[other_id].key)

    pending = {key: len(deps) for key, deps in requires.items()}
    unlocks: Dict[str, List[str]] = {key: [] for key in ops}
    for key, deps in requires.items():
        for dep in deps:
            unlocks[dep].append(key)

    ready = sorted((ops[k] for k, n in pending.items() if n == 0), key=_rank)
    steps: List[PlannedOperation] = []
    while ready:
        current = ready.pop(0)
        steps.append(current)
        for key in unlocks[current.key]:
            pending[key] -= 1
            if pending[key] == 0:
                ready.append(ops[key])
        ready.sort(key=_rank)

    if len(steps) != len(ops):
        blocked = sorted(k for k, n in pending.items() if n > 0)
        raise UnresolvableOrder(blocked)

    return ExecutionPlan(steps, {k: frozenset(v) for k, v in requires.items()})
