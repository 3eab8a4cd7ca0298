"""
Modelos del grafo de recursos (agnósticos de interfaz y filesystem).

La descripción deseada se valida con Pydantic; el grafo construido es
inmutable durante una ejecución y se pasa explícitamente entre componentes.
"""

from enum import Enum
from typing import Any, Dict, FrozenSet, Iterator, List, NamedTuple, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ResourceKind(str, Enum):
    NETWORK = "Network"
    GATEWAY = "Gateway"
    ROUTE_TABLE = "RouteTable"
    ROUTE = "Route"
    SECURITY_GROUP = "SecurityGroup"
    INSTANCE = "Instance"
    LOAD_BALANCER = "LoadBalancer"
    LISTENER = "Listener"
    TARGET_GROUP = "TargetGroup"


# --- Descripción deseada (entrada) ---

class ResourceSpec(BaseModel):
    """Un recurso tal como se declara en la descripción."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    kind: ResourceKind = Field(..., description="Tipo de recurso")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Atributos deseados")
    depends_on: List[str] = Field(default_factory=list, description="Dependencias explícitas")


class ResourceEntry(ResourceSpec):
    """Variante en lista: el id viaja dentro de la entrada."""
    id: str = Field(..., description="Id único dentro del stack")


class StackDescription(BaseModel):
    """
    Estado deseado completo.
    resources admite mapping (id → spec) o lista de entradas con id.
    """
    model_config = ConfigDict(extra="forbid")

    version: int = Field(1, description="Versión del esquema")
    name: str = Field("default", description="Nombre del stack")
    resources: Union[Dict[str, ResourceSpec], List[ResourceEntry]] = Field(default_factory=dict)
    outputs: Dict[str, Any] = Field(default_factory=dict, description="Salidas del stack")


# --- Grafo construido ---

class ResourceNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    kind: ResourceKind
    attributes: Dict[str, Any] = Field(default_factory=dict)
    dependencies: FrozenSet[str] = Field(default_factory=frozenset)


class DependencyEdge(NamedTuple):
    """Arista dependiente → prerequisito."""
    dependent: str
    prerequisite: str


class ResourceGraph:
    """DAG validado de ResourceNode. Lo construye graph.builder.build_graph."""

    def __init__(
        self,
        nodes: Dict[str, ResourceNode],
        outputs: Optional[Dict[str, Any]] = None,
        name: str = "default",
    ):
        self.name = name
        self.nodes = dict(nodes)
        self.outputs = dict(outputs or {})
        self._dependents: Dict[str, List[str]] = {node_id: [] for node_id in self.nodes}
        for node in self.nodes.values():
            for dep in node.dependencies:
                self._dependents.setdefault(dep, []).append(node.id)
        for deps in self._dependents.values():
            deps.sort()

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __getitem__(self, node_id: str) -> ResourceNode:
        return self.nodes[node_id]

    def __iter__(self) -> Iterator[ResourceNode]:
        return iter(self.nodes.values())

    def __len__(self) -> int:
        return len(self.nodes)

    def get(self, node_id: str) -> Optional[ResourceNode]:
        return self.nodes.get(node_id)

    def edges(self) -> List[DependencyEdge]:
        return sorted(
            DependencyEdge(node.id, dep)
            for node in self.nodes.values()
            for dep in node.dependencies
        )

    def dependents_of(self, node_id: str) -> List[str]:
        """Nodos que dependen directamente de node_id."""
        return list(self._dependents.get(node_id, []))

    def topological_order(self) -> List[str]:
        """Prerequisitos antes que dependientes; empates ordenados por id."""
        pending = {node_id: len(node.dependencies) for node_id, node in self.nodes.items()}
        ready = sorted(node_id for node_id, count in pending.items() if count == 0)
        order: List[str] = []
        while ready:
            current = ready.pop(0)
            order.append(current)
            for dependent in self._dependents.get(current, []):
                pending[dependent] -= 1
                if pending[dependent] == 0:
                    ready.append(dependent)
            ready.sort()
        return order
