"""
Graph: descripción deseada → grafo de recursos validado.

Lógica pura salvo loader, que lee el YAML de entrada.
"""

from orbita.core.graph.models import (
    DependencyEdge,
    ResourceEntry,
    ResourceGraph,
    ResourceKind,
    ResourceNode,
    ResourceSpec,
    StackDescription,
)
from orbita.core.graph.builder import build_graph
from orbita.core.graph.loader import load_description, parse_description
from orbita.core.graph.references import find_references, resolve_references

__all__ = [
    "DependencyEdge",
    "ResourceEntry",
    "ResourceGraph",
    "ResourceKind",
    "ResourceNode",
    "ResourceSpec",
    "StackDescription",
    "build_graph",
    "load_description",
    "parse_description",
    "find_references",
    "resolve_references",
]
