"""
Execute: ejecución del plan contra los providers y reporte del resultado.
"""

from orbita.core.execute.report import ExecutionReport, OperationResult, Outcome
from orbita.core.execute.executor import ProviderExecutor, resolve_outputs
from orbita.core.execute.refresh import refresh_state

__all__ = [
    "ExecutionReport",
    "OperationResult",
    "Outcome",
    "ProviderExecutor",
    "resolve_outputs",
    "refresh_state",
]
