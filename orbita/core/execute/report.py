"""
Execution Report: único resultado observable de una reconciliación
(además del State Store actualizado).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from orbita.core.plan.planner import PlannedOperation


class Outcome(str, Enum):
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    SKIPPED = "Skipped"


@dataclass
class OperationResult:
    operation: PlannedOperation
    outcome: Outcome
    error: Optional[str] = None
    attempts: int = 0
    provider_id: Optional[str] = None


@dataclass
class ExecutionReport:
    results: List[OperationResult] = field(default_factory=list)
    outputs: Dict[str, Any] = field(default_factory=dict)
    cancelled: bool = False

    def _with(self, outcome: Outcome) -> List[OperationResult]:
        return [r for r in self.results if r.outcome == outcome]

    @property
    def succeeded(self) -> List[OperationResult]:
        return self._with(Outcome.SUCCEEDED)

    @property
    def failed(self) -> List[OperationResult]:
        return self._with(Outcome.FAILED)

    @property
    def skipped(self) -> List[OperationResult]:
        return self._with(Outcome.SKIPPED)

    @property
    def ok(self) -> bool:
        return all(r.outcome == Outcome.SUCCEEDED for r in self.results) and not self.cancelled

    @property
    def exit_code(self) -> int:
        """0 = todo aplicado; 1 = algún fallo, omisión o cancelación."""
        return 0 if self.ok else 1

    def result_for(self, node_id: str, action: Optional[str] = None) -> Optional[OperationResult]:
        for r in self.results:
            if r.operation.node_id == node_id and (action is None or r.operation.action.value == action):
                return r
        return None

    def summary(self) -> str:
        return (
            f"{len(self.succeeded)} aplicadas, {len(self.failed)} fallidas, "
            f"{len(self.skipped)} omitidas"
        )
