"""
Resource Graph Builder: descripción deseada → DAG validado de ResourceNode.

Lógica pura: no hay llamadas al provider ni I/O. Cualquier error aquí
aborta la reconciliación antes de que exista efecto lateral alguno.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import pydantic

from orbita.core.errors import CycleDetected, DanglingReference, DuplicateId, ValidationError
from orbita.core.graph.models import (
    ResourceGraph,
    ResourceNode,
    ResourceSpec,
    StackDescription,
)
from orbita.core.graph.references import find_references
from orbita.core.graph.validator import validate_attributes, validate_node_id

DescriptionInput = Union[StackDescription, Mapping[str, Any], Sequence[Mapping[str, Any]]]


def _as_description(description: DescriptionInput) -> StackDescription:
    if isinstance(description, StackDescription):
        return description
    try:
        if isinstance(description, Mapping):
            if "resources" in description:
                return StackDescription.model_validate(dict(description))
            # Forma corta: mapping id → recurso
            return StackDescription(resources={k: v for k, v in description.items()})
        return StackDescription(resources=list(description))
    except pydantic.ValidationError as e:
        raise ValidationError(f"Descripción inválida: {e}") from e


def _entries(description: StackDescription) -> List[Tuple[str, ResourceSpec]]:
    """(id, spec) en orden de declaración; detecta ids repetidos en la forma lista."""
    if isinstance(description.resources, dict):
        return list(description.resources.items())
    seen = set()
    entries: List[Tuple[str, ResourceSpec]] = []
    for entry in description.resources:
        if entry.id in seen:
            raise DuplicateId(entry.id)
        seen.add(entry.id)
        entries.append((entry.id, entry))
    return entries


def _find_cycle(dependencies: Dict[str, set]) -> Optional[List[str]]:
    """DFS con colores; devuelve el camino del primer ciclo encontrado."""
    white, grey, black = 0, 1, 2
    color = {node_id: white for node_id in dependencies}
    stack: List[str] = []

    def visit(node_id: str) -> Optional[List[str]]:
        color[node_id] = grey
        stack.append(node_id)
        for dep in sorted(dependencies[node_id]):
            if color[dep] == grey:
                start = stack.index(dep)
                return stack[start:] + [dep]
            if color[dep] == white:
                found = visit(dep)
                if found:
                    return found
        stack.pop()
        color[node_id] = black
        return None

    for node_id in sorted(dependencies):
        if color[node_id] == white:
            found = visit(node_id)
            if found:
                return found
    return None


def build_graph(description: DescriptionInput) -> ResourceGraph:
    """
    Construye y valida el grafo.

    Raises:
        DuplicateId: dos recursos con el mismo id
        DanglingReference: dependencia (explícita o ${...}) a un id inexistente
        CycleDetected: las dependencias forman un ciclo
        ValidationError: kind desconocido, id o atributos inválidos
    """
    stack = _as_description(description)
    entries = _entries(stack)

    errors: List[str] = []
    for node_id, spec in entries:
        validate_node_id(node_id)
        errors.extend(validate_attributes(node_id, spec.attributes))
    if errors:
        raise ValidationError("; ".join(errors))

    ids = {node_id for node_id, _ in entries}
    dependencies: Dict[str, set] = {}
    for node_id, spec in entries:
        deps = set(spec.depends_on) | find_references(spec.attributes)
        for target in sorted(deps):
            if target not in ids:
                raise DanglingReference(node_id, target)
        dependencies[node_id] = deps

    for name, value in stack.outputs.items():
        for target in sorted(find_references(value)):
            if target not in ids:
                raise DanglingReference(f"outputs.{name}", target)

    cycle = _find_cycle(dependencies)
    if cycle:
        raise CycleDetected(cycle)

    nodes = {
        node_id: ResourceNode(
            id=node_id,
            kind=spec.kind,
            attributes=dict(spec.attributes),
            dependencies=frozenset(dependencies[node_id]),
        )
        for node_id, spec in entries
    }
    return ResourceGraph(nodes, outputs=stack.outputs, name=stack.name)
