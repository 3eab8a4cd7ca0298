"""
Reconciliador: descripción → grafo → diff (State Store) → plan → ejecución.

Los errores de construcción y planificación abortan antes de cualquier
llamada de escritura al provider.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Optional

from orbita.core.execute import ExecutionReport, ProviderExecutor, refresh_state, resolve_outputs
from orbita.core.graph import ResourceGraph, StackDescription, build_graph
from orbita.core.graph.builder import DescriptionInput
from orbita.core.infra.contracts import ProviderRegistry
from orbita.core.plan import Changeset, ExecutionPlan, build_plan, diff
from orbita.core.runtime.settings import ReconcileSettings
from orbita.core.runtime.state import ActualStateRecord, StateStore

logger = logging.getLogger(__name__)


@dataclass
class PlanResult:
    """Resultado de un plan (qué se aplicaría) sin ejecutar."""
    graph: ResourceGraph
    changeset: Changeset
    plan: ExecutionPlan
    records: Dict[str, ActualStateRecord]

    @property
    def summary(self) -> str:
        counts = self.changeset.counts()
        parts = [f"{n} {op.value}" for op, n in sorted(counts.items(), key=lambda kv: kv[0].value)]
        return ", ".join(parts) if parts else "sin recursos"


class Reconciler:
    def __init__(
        self,
        registry: ProviderRegistry,
        store: StateStore,
        settings: Optional[ReconcileSettings] = None,
    ):
        self.registry = registry
        self.store = store
        self.settings = settings or ReconcileSettings()

    def plan(self, description: DescriptionInput) -> PlanResult:
        graph = build_graph(description)
        return self._plan_graph(graph)

    def _plan_graph(self, graph: ResourceGraph) -> PlanResult:
        records = self.store.load()
        if self.settings.refresh:
            # errores de orden antes de consultar al provider o reescribir el estado
            build_plan(diff(graph, records), graph, records)
            dropped = refresh_state(self.store, self.registry)
            if dropped:
                logger.info("Refresh: %d recursos desaparecidos en el provider", len(dropped))
            records = self.store.load()
        changeset = diff(graph, records)
        plan = build_plan(changeset, graph, records)
        logger.debug("Plan de %d pasos para '%s'", len(plan), graph.name)
        return PlanResult(graph, changeset, plan, records)

    def plan_destroy(self, name: str = "default") -> PlanResult:
        """Plan que borra todo lo registrado en el estado."""
        return self._plan_graph(build_graph(StackDescription(name=name)))

    def apply_plan(self, planned: PlanResult, cancel: Optional[threading.Event] = None) -> ExecutionReport:
        executor = ProviderExecutor(self.registry, self.store, self.settings)
        report = executor.run(planned.plan, planned.graph, cancel)
        report.outputs = resolve_outputs(planned.graph, self.store)
        logger.info("Reconciliación de '%s': %s", planned.graph.name, report.summary())
        return report

    def apply(self, description: DescriptionInput, cancel: Optional[threading.Event] = None) -> ExecutionReport:
        return self.apply_plan(self.plan(description), cancel)

    def destroy(self, name: str = "default", cancel: Optional[threading.Event] = None) -> ExecutionReport:
        return self.apply_plan(self.plan_destroy(name), cancel)
