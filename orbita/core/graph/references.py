"""
Referencias entre recursos dentro de los atributos.

  ${NodeId}        → identificador asignado por el provider a NodeId
  ${NodeId.attr}   → atributo confirmado (output) de NodeId

Si la referencia ocupa todo el string se sustituye por el valor tal cual
(puede ser lista, número...); si va embebida se interpola como texto.
"""

import re
from typing import Any, Callable, Dict, Optional, Set

REFERENCE_PATTERN = re.compile(r"\$\{([A-Za-z0-9_\-]+)(?:\.([A-Za-z0-9_\-\.]+))?\}")

# (node_id, attr | None) → valor
Lookup = Callable[[str, Optional[str]], Any]


def find_references(value: Any) -> Set[str]:
    """Ids de nodo referenciados en un valor (recorre listas y dicts)."""
    found: Set[str] = set()
    if isinstance(value, str):
        for match in REFERENCE_PATTERN.finditer(value):
            found.add(match.group(1))
    elif isinstance(value, dict):
        for item in value.values():
            found |= find_references(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            found |= find_references(item)
    return found


def references_by_attribute(attributes: Dict[str, Any]) -> Dict[str, Set[str]]:
    """attr → ids referenciados (solo atributos con alguna referencia)."""
    refs: Dict[str, Set[str]] = {}
    for name, value in attributes.items():
        targets = find_references(value)
        if targets:
            refs[name] = targets
    return refs


def resolve_references(value: Any, lookup: Lookup) -> Any:
    if isinstance(value, str):
        whole = REFERENCE_PATTERN.fullmatch(value)
        if whole:
            return lookup(whole.group(1), whole.group(2))
        return REFERENCE_PATTERN.sub(lambda m: str(lookup(m.group(1), m.group(2))), value)
    if isinstance(value, dict):
        return {k: resolve_references(v, lookup) for k, v in value.items()}
    if isinstance(value, list):
        return [resolve_references(v, lookup) for v in value]
    return value
