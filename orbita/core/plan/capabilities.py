"""
Tabla de capacidades por tipo de recurso.

Para cada kind se declaran los atributos que el provider no puede cambiar
en caliente (cambiarlos implica destruir y recrear). El resto de atributos
se consideran mutables in-place.

También se declaran restricciones de orden entre tipos que el planner
aplica aunque no exista arista explícita (p. ej. attach-before-route).
"""

from typing import Dict, FrozenSet, Iterable, Tuple

from orbita.core.graph.models import ResourceKind

REPLACE_ONLY: Dict[ResourceKind, FrozenSet[str]] = {
    ResourceKind.NETWORK: frozenset({"cidr_block", "instance_tenancy"}),
    ResourceKind.GATEWAY: frozenset(),
    ResourceKind.ROUTE_TABLE: frozenset({"network"}),
    ResourceKind.ROUTE: frozenset({"route_table", "destination_cidr"}),
    ResourceKind.SECURITY_GROUP: frozenset({"network", "name", "description"}),
    ResourceKind.INSTANCE: frozenset({"image", "network", "subnet_type", "availability_zone", "key_name"}),
    ResourceKind.LOAD_BALANCER: frozenset({"network", "name", "internet_facing", "type"}),
    ResourceKind.LISTENER: frozenset({"load_balancer"}),
    ResourceKind.TARGET_GROUP: frozenset({"network", "name", "port", "protocol", "target_type"}),
}

# kind → kinds cuyas operaciones deben ir antes dentro del mismo plan
ORDER_AFTER: Dict[ResourceKind, Tuple[ResourceKind, ...]] = {
    ResourceKind.ROUTE: (ResourceKind.GATEWAY,),
    ResourceKind.LISTENER: (ResourceKind.TARGET_GROUP,),
    ResourceKind.INSTANCE: (ResourceKind.SECURITY_GROUP,),
}


def replace_only_attributes(kind: ResourceKind) -> FrozenSet[str]:
    return REPLACE_ONLY.get(ResourceKind(kind), frozenset())


def requires_replace(kind: ResourceKind, changed: Iterable[str]) -> bool:
    """True si alguno de los atributos cambiados no es mutable in-place."""
    fixed = replace_only_attributes(kind)
    return any(name in fixed for name in changed)


def ordered_after(kind: ResourceKind) -> Tuple[ResourceKind, ...]:
    return ORDER_AFTER.get(ResourceKind(kind), ())
