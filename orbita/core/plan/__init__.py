"""
Plan: diff entre deseado y real, y orden de ejecución del changeset.

Lógica pura; sin I/O ni dependencias de CLI o providers.
"""

from orbita.core.plan.capabilities import REPLACE_ONLY, requires_replace
from orbita.core.plan.differ import Changeset, ChangesetEntry, Operation, diff, fingerprint
from orbita.core.plan.planner import Action, ExecutionPlan, PlannedOperation, build_plan

__all__ = [
    "REPLACE_ONLY",
    "requires_replace",
    "Changeset",
    "ChangesetEntry",
    "Operation",
    "diff",
    "fingerprint",
    "Action",
    "ExecutionPlan",
    "PlannedOperation",
    "build_plan",
]
