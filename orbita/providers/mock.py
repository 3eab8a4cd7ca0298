"""
Provider mock: simula la API de la nube en memoria.

Sirve para --provider mock en la CLI y para los tests. Los recursos pasan
por "pending" durante `pending_polls` describes antes de quedar "available";
se pueden inyectar fallos transitorios o permanentes por acción, kind y
atributos. El estado del mock se puede persistir en JSON para encadenar
ejecuciones de la CLI.
"""

import json
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from orbita.core.errors import NotFound, ProviderError
from orbita.core.graph.models import ResourceKind
from orbita.core.infra.base import BaseProvider

ID_PREFIXES: Dict[ResourceKind, str] = {
    ResourceKind.NETWORK: "vpc",
    ResourceKind.GATEWAY: "igw",
    ResourceKind.ROUTE_TABLE: "rtb",
    ResourceKind.ROUTE: "r",
    ResourceKind.SECURITY_GROUP: "sg",
    ResourceKind.INSTANCE: "i",
    ResourceKind.LOAD_BALANCER: "alb",
    ResourceKind.LISTENER: "lst",
    ResourceKind.TARGET_GROUP: "tg",
}

ARN_KINDS = (ResourceKind.LOAD_BALANCER, ResourceKind.LISTENER, ResourceKind.TARGET_GROUP)


@dataclass
class Fault:
    """Fallo inyectado: se dispara cuando coinciden acción, kind y atributos."""
    action: str
    error: ProviderError
    kind: Optional[ResourceKind] = None
    match: Dict[str, Any] = field(default_factory=dict)
    times: Optional[int] = 1  # None = siempre

    def applies(self, action: str, kind: ResourceKind, attributes: Dict[str, Any]) -> bool:
        if self.times is not None and self.times <= 0:
            return False
        if action != self.action or (self.kind is not None and self.kind != kind):
            return False
        return all(attributes.get(k) == v for k, v in self.match.items())


class MockCloud(BaseProvider):
    name = "mock"

    def __init__(self, pending_polls: int = 0, region: str = "mock-1"):
        self.pending_polls = pending_polls
        self.region = region
        self.resources: Dict[str, Dict[str, Any]] = {}
        self.faults: List[Fault] = []
        self.calls: List[Tuple[str, str, Optional[str]]] = []
        self._next_id = 1
        self._lock = threading.Lock()

    # --- inyección de fallos ---

    def inject(
        self,
        action: str,
        error: ProviderError,
        kind: Optional[ResourceKind] = None,
        match: Optional[Dict[str, Any]] = None,
        times: Optional[int] = 1,
    ) -> Fault:
        fault = Fault(action, error, ResourceKind(kind) if kind else None, dict(match or {}), times)
        with self._lock:
            self.faults.append(fault)
        return fault

    def _check_faults(self, action: str, kind: ResourceKind, attributes: Dict[str, Any]) -> None:
        for fault in self.faults:
            if fault.applies(action, kind, attributes):
                if fault.times is not None:
                    fault.times -= 1
                raise fault.error

    # --- contrato de provider ---

    def _new_id(self, kind: ResourceKind) -> str:
        number, self._next_id = self._next_id, self._next_id + 1
        return f"{ID_PREFIXES[kind]}-{number:08x}"

    def _derived(self, kind: ResourceKind, provider_id: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        derived: Dict[str, Any] = {"id": provider_id, "region": self.region}
        if kind in ARN_KINDS:
            derived["arn"] = f"arn:mock:elasticloadbalancing:{self.region}:{kind.value.lower()}/{provider_id}"
        if kind == ResourceKind.LOAD_BALANCER:
            prefix = "" if attributes.get("internet_facing", True) else "internal-"
            derived["dns_name"] = f"{prefix}{attributes.get('name', provider_id)}.{self.region}.elb.mock.local"
        if kind == ResourceKind.INSTANCE:
            octet = int(provider_id.split("-")[1], 16) % 250 + 2
            derived["private_ip"] = f"10.0.0.{octet}"
        return derived

    def _view(self, provider_id: str) -> Dict[str, Any]:
        entry = self.resources[provider_id]
        return {**entry["attributes"], "status": entry["status"]}

    def create(self, kind: ResourceKind, attributes: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
        kind = ResourceKind(kind)
        with self._lock:
            self.calls.append(("create", kind.value, None))
            self._check_faults("create", kind, attributes)
            provider_id = self._new_id(kind)
            self.resources[provider_id] = {
                "kind": kind.value,
                "attributes": {**attributes, **self._derived(kind, provider_id, attributes)},
                "status": "pending" if self.pending_polls else "available",
                "polls_left": self.pending_polls,
            }
            return provider_id, self._view(provider_id)

    def update(self, kind: ResourceKind, provider_id: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        kind = ResourceKind(kind)
        with self._lock:
            self.calls.append(("update", kind.value, provider_id))
            if provider_id not in self.resources:
                raise NotFound(provider_id)
            self._check_faults("update", kind, attributes)
            entry = self.resources[provider_id]
            entry["attributes"] = {**attributes, **self._derived(kind, provider_id, attributes)}
            if self.pending_polls:
                entry["status"], entry["polls_left"] = "pending", self.pending_polls
            return self._view(provider_id)

    def delete(self, kind: ResourceKind, provider_id: str) -> None:
        kind = ResourceKind(kind)
        with self._lock:
            self.calls.append(("delete", kind.value, provider_id))
            if provider_id not in self.resources:
                raise NotFound(provider_id)
            self._check_faults("delete", kind, self.resources[provider_id]["attributes"])
            del self.resources[provider_id]

    def describe(self, kind: ResourceKind, provider_id: str) -> Dict[str, Any]:
        kind = ResourceKind(kind)
        with self._lock:
            if provider_id not in self.resources:
                raise NotFound(provider_id)
            self._check_faults("describe", kind, self.resources[provider_id]["attributes"])
            entry = self.resources[provider_id]
            if entry["polls_left"] > 0:
                entry["polls_left"] -= 1
                if entry["polls_left"] == 0:
                    entry["status"] = "available"
            return self._view(provider_id)

    # --- persistencia ---

    def ids_of(self, kind: ResourceKind) -> List[str]:
        kind = ResourceKind(kind)
        return sorted(pid for pid, e in self.resources.items() if e["kind"] == kind.value)

    def to_dict(self) -> Dict[str, Any]:
        return {"region": self.region, "next_id": self._next_id, "resources": self.resources}

    @classmethod
    def from_dict(cls, data: Dict[str, Any], pending_polls: int = 0) -> "MockCloud":
        cloud = cls(pending_polls=pending_polls, region=data.get("region", "mock-1"))
        cloud.resources = dict(data.get("resources", {}))
        cloud._next_id = int(data.get("next_id", 1))
        return cloud

    def save(self, path: Union[str, Path]) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2, sort_keys=True)

    @classmethod
    def load(cls, path: Union[str, Path], pending_polls: int = 0) -> "MockCloud":
        path = Path(path)
        if not path.exists():
            return cls(pending_polls=pending_polls)
        with open(path, "r") as f:
            return cls.from_dict(json.load(f), pending_polls=pending_polls)
