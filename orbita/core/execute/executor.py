"""
Provider Executor: ejecuta el plan contra los clientes de provider.

- Las operaciones sin relación en el plan corren en paralelo (pool acotado);
  las relacionadas esperan la confirmación de su prerequisito.
- Cada operación espera el estado terminal (describe) antes de darse por buena.
- Errores transitorios: reintento con backoff exponencial (tenacity).
- Errores permanentes: en fail-fast se dejan de emitir operaciones nuevas.
- Las escrituras al State Store ocurren solo en el hilo planificador y solo
  tras confirmación; nunca se deshacen.
"""

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential,
    wait_fixed,
)

from orbita.core.errors import (
    NotFound,
    OrbitaError,
    PermanentProviderError,
    TransientProviderError,
    ValidationError,
)
from orbita.core.graph.models import ResourceGraph, ResourceKind
from orbita.core.graph.references import find_references, resolve_references
from orbita.core.infra.base import is_failed, is_terminal, status_of
from orbita.core.infra.contracts import ProviderRegistry
from orbita.core.plan.differ import fingerprint
from orbita.core.plan.planner import Action, ExecutionPlan, PlannedOperation
from orbita.core.runtime.settings import ReconcileSettings
from orbita.core.runtime.state import ActualStateRecord, StateStore
from orbita.core.execute.report import ExecutionReport, OperationResult, Outcome

logger = logging.getLogger(__name__)

GONE_STATUSES = frozenset({"deleted", "terminated"})


@dataclass
class _Task:
    """Operación lista para ejecutar: atributos ya resueltos."""
    operation: PlannedOperation
    attributes: Dict[str, Any]
    provider_id: Optional[str] = None
    dependency_ids: Dict[str, str] = field(default_factory=dict)


@dataclass
class _Done:
    """Lo que un worker devuelve al planificador."""
    operation: PlannedOperation
    provider_id: Optional[str] = None
    dependency_ids: Dict[str, str] = field(default_factory=dict)
    outputs: Optional[Dict[str, Any]] = None
    attempts: int = 0
    error: Optional[BaseException] = None
    interrupted: bool = False


def make_lookup(store: StateStore) -> Callable[[str, Optional[str]], Any]:
    """Resuelve ${Node} / ${Node.attr} contra el State Store."""

    def lookup(node_id: str, attr: Optional[str]) -> Any:
        record = store.get(node_id)
        if record is None:
            raise ValidationError(f"No se puede resolver ${{{node_id}}}: el recurso no existe todavía")
        if attr is None or attr == "id":
            return record.provider_id
        if attr in record.outputs:
            return record.outputs[attr]
        if attr in record.applied:
            return record.applied[attr]
        raise ValidationError(f"No se puede resolver ${{{node_id}.{attr}}}: atributo desconocido")

    return lookup


def resolve_outputs(graph: ResourceGraph, store: StateStore) -> Dict[str, Any]:
    """Salidas del stack resueltas; las no resolubles quedan en None."""
    lookup = make_lookup(store)
    outputs: Dict[str, Any] = {}
    for name, value in graph.outputs.items():
        try:
            outputs[name] = resolve_references(value, lookup)
        except ValidationError as e:
            logger.warning("Salida '%s' sin resolver: %s", name, e)
            outputs[name] = None
    return outputs


class ProviderExecutor:
    def __init__(
        self,
        registry: ProviderRegistry,
        store: StateStore,
        settings: Optional[ReconcileSettings] = None,
    ):
        self.registry = registry
        self.store = store
        self.settings = settings or ReconcileSettings()

    # --- planificador (hilo llamante) ---

    def run(
        self,
        plan: ExecutionPlan,
        graph: ResourceGraph,
        cancel: Optional[threading.Event] = None,
    ) -> ExecutionReport:
        cancel = cancel or threading.Event()
        best_effort = self.settings.mode == "best-effort"
        results: Dict[str, OperationResult] = {}
        in_flight: Dict[Future, PlannedOperation] = {}
        halted = False

        with ThreadPoolExecutor(max_workers=self.settings.parallelism, thread_name_prefix="orbita") as pool:
            while True:
                if not halted and not cancel.is_set():
                    self._submit_ready(plan, graph, pool, in_flight, results, cancel, best_effort)
                    if not best_effort and any(r.outcome == Outcome.FAILED for r in results.values()):
                        halted = True
                if not in_flight:
                    break
                try:
                    done, _ = wait(list(in_flight), return_when=FIRST_COMPLETED)
                except KeyboardInterrupt:
                    logger.warning("Interrupción recibida: no se emiten más operaciones")
                    cancel.set()
                    continue
                for future in done:
                    op = in_flight.pop(future)
                    result = self._record(future.result(), graph, cancel)
                    results[op.key] = result
                    if result.outcome == Outcome.FAILED and not best_effort:
                        halted = True

        reason = "cancelado" if cancel.is_set() else "abortado por un fallo previo"
        report = ExecutionReport(cancelled=cancel.is_set())
        for op in plan:
            report.results.append(
                results.get(op.key) or OperationResult(op, Outcome.SKIPPED, error=reason)
            )
        return report

    def _submit_ready(self, plan, graph, pool, in_flight, results, cancel, best_effort) -> None:
        running = {op.key for op in in_flight.values()}
        for op in plan:
            if op.key in results or op.key in running:
                continue
            prereqs = plan.prerequisites(op)
            blocked = sorted(
                p for p in prereqs if p in results and results[p].outcome != Outcome.SUCCEEDED
            )
            if blocked:
                if best_effort:
                    results[op.key] = OperationResult(
                        op, Outcome.SKIPPED, error="prerequisito no aplicado: " + ", ".join(blocked)
                    )
                continue
            if not all(p in results for p in prereqs):
                continue
            if len(in_flight) >= self.settings.parallelism:
                return
            try:
                task = self._prepare(op, graph)
            except OrbitaError as e:
                logger.error("✗ %s: %s", op.describe(), e)
                results[op.key] = OperationResult(op, Outcome.FAILED, error=str(e))
                if not best_effort:
                    return
                continue
            logger.info("→ %s", op.describe())
            future = pool.submit(self._perform, task, cancel)
            in_flight[future] = op
            running.add(op.key)

    def _prepare(self, op: PlannedOperation, graph: ResourceGraph) -> _Task:
        record = self.store.get(op.node_id)
        if op.action == Action.DELETE:
            if record is None:
                raise ValidationError(f"{op.node_id}: no hay registro en el estado para borrar")
            return _Task(op, {}, record.provider_id)
        node = graph[op.node_id]
        attributes = resolve_references(node.attributes, make_lookup(self.store))
        # ids con los que se resolvió; el diff los compara con el estado siguiente
        dependency_ids = {
            target: self.store.get(target).provider_id for target in sorted(find_references(node.attributes))
        }
        if op.action == Action.UPDATE:
            if record is None:
                raise ValidationError(f"{op.node_id}: no hay registro en el estado para actualizar")
            return _Task(op, attributes, record.provider_id, dependency_ids)
        return _Task(op, attributes, dependency_ids=dependency_ids)

    def _new_record(self, node, done: _Done, tainted: bool = False) -> ActualStateRecord:
        return ActualStateRecord(
            node_id=node.id,
            kind=node.kind,
            provider_id=done.provider_id,
            applied=dict(node.attributes),
            outputs=done.outputs or {},
            fingerprint=fingerprint(node.kind, node.attributes),
            dependencies=sorted(node.dependencies),
            dependency_ids=dict(done.dependency_ids),
            tainted=tainted,
        )

    def _record(self, done: _Done, graph: ResourceGraph, cancel: threading.Event) -> OperationResult:
        op = done.operation
        if done.error is not None:
            if op.action == Action.CREATE and done.provider_id:
                # existe en el provider aunque no se confirmó: se recrea en la próxima ejecución
                self.store.put(op.node_id, self._new_record(graph[op.node_id], done, tainted=True))
            if done.interrupted and cancel.is_set():
                logger.warning("○ %s: cancelado en curso", op.describe())
                return OperationResult(op, Outcome.SKIPPED, f"cancelado: {done.error}", done.attempts, done.provider_id)
            logger.error("✗ %s: %s", op.describe(), done.error)
            detail = f"{type(done.error).__name__}: {done.error}"
            return OperationResult(op, Outcome.FAILED, detail, done.attempts, done.provider_id)

        if op.action == Action.DELETE:
            self.store.delete(op.node_id)
        else:
            self.store.put(op.node_id, self._new_record(graph[op.node_id], done))
        logger.info("✓ %s", op.describe())
        return OperationResult(op, Outcome.SUCCEEDED, None, done.attempts, done.provider_id)

    # --- workers ---

    def _sleeper(self, cancel: threading.Event) -> Callable[[float], None]:
        return lambda seconds: cancel.wait(seconds)

    def _perform(self, task: _Task, cancel: threading.Event) -> _Done:
        op = task.operation
        done = _Done(op, provider_id=task.provider_id, dependency_ids=task.dependency_ids)

        def cancelled(_retry_state) -> bool:
            return cancel.is_set()

        retryer = Retrying(
            stop=stop_after_attempt(self.settings.max_attempts) | cancelled,
            wait=wait_exponential(multiplier=self.settings.backoff_initial, max=self.settings.backoff_max),
            retry=retry_if_exception_type(TransientProviderError),
            sleep=self._sleeper(cancel),
            before_sleep=lambda rs: logger.warning(
                "Reintento %d de %s: %s", rs.attempt_number, op.describe(), rs.outcome.exception()
            ),
            reraise=True,
        )
        try:
            client = self.registry.client_for(op.kind)
            for attempt in retryer:
                with attempt:
                    done.attempts = attempt.retry_state.attempt_number
                    if op.action == Action.CREATE:
                        done.provider_id, done.outputs = client.create(op.kind, dict(task.attributes))
                    elif op.action == Action.UPDATE:
                        done.outputs = client.update(op.kind, task.provider_id, dict(task.attributes))
                    else:
                        try:
                            client.delete(op.kind, task.provider_id)
                        except NotFound:
                            logger.info("%s ya no existía en el provider", task.provider_id)
            if op.action == Action.DELETE:
                self._confirm_gone(client, op.kind, task.provider_id, cancel)
            else:
                done.outputs = self._confirm_ready(client, op.kind, done.provider_id, done.outputs, cancel)
        except Exception as e:
            # errores propios del cliente: se confinan a esta operación
            done.error = e
            done.interrupted = cancel.is_set()
        return done

    def _poller(self, cancel: threading.Event, retry) -> Retrying:
        return Retrying(
            stop=stop_after_delay(self.settings.confirm_timeout) | (lambda rs: cancel.is_set()),
            wait=wait_fixed(self.settings.poll_interval),
            retry=retry | retry_if_exception_type(TransientProviderError),
            sleep=self._sleeper(cancel),
        )

    def _confirm_ready(
        self,
        client,
        kind: ResourceKind,
        provider_id: str,
        attributes: Optional[Dict[str, Any]],
        cancel: threading.Event,
    ) -> Dict[str, Any]:
        """Espera estado terminal; devuelve los atributos confirmados."""
        if is_failed(attributes):
            raise PermanentProviderError(f"{provider_id} quedó en estado {status_of(attributes)}")
        if attributes is not None and is_terminal(attributes):
            return dict(attributes)
        try:
            confirmed = self._poller(
                cancel, retry_if_result(lambda a: not is_terminal(a) and not is_failed(a))
            )(client.describe, kind, provider_id)
        except RetryError as e:
            last = e.last_attempt
            detail = last.exception() if last.failed else f"último estado: {status_of(last.result())}"
            raise PermanentProviderError(
                f"{provider_id} no alcanzó un estado terminal ({detail})"
            ) from e
        if is_failed(confirmed):
            raise PermanentProviderError(f"{provider_id} quedó en estado {status_of(confirmed)}")
        return dict(confirmed)

    def _confirm_gone(self, client, kind: ResourceKind, provider_id: str, cancel: threading.Event) -> None:
        def gone() -> bool:
            try:
                attributes = client.describe(kind, provider_id)
            except NotFound:
                return True
            return status_of(attributes) in GONE_STATUSES

        try:
            self._poller(cancel, retry_if_result(lambda is_gone: not is_gone))(gone)
        except RetryError as e:
            raise PermanentProviderError(f"{provider_id} sigue existiendo tras el borrado") from e
