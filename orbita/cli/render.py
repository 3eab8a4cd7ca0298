"""
Salida de la CLI con Rich: grafo, changeset, plan, reporte y estado.

Solo formatea; no calcula nada.
"""

from typing import Dict

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from orbita.core.execute import ExecutionReport, Outcome
from orbita.core.graph import ResourceGraph
from orbita.core.plan import Operation
from orbita.core.reconciler import PlanResult
from orbita.core.runtime.state import ActualStateRecord

OPERATION_STYLES = {
    Operation.CREATE: "green",
    Operation.UPDATE: "yellow",
    Operation.REPLACE: "magenta",
    Operation.DELETE: "red",
    Operation.NOOP: "dim",
}

OUTCOME_STYLES = {
    Outcome.SUCCEEDED: "[green]✓ Succeeded[/green]",
    Outcome.FAILED: "[red]✗ Failed[/red]",
    Outcome.SKIPPED: "[yellow]○ Skipped[/yellow]",
}


def render_graph(console: Console, graph: ResourceGraph) -> None:
    table = Table(title=f"Recursos de '{graph.name}'", show_header=True, header_style="bold cyan")
    table.add_column("Id", style="cyan")
    table.add_column("Kind", style="green")
    table.add_column("Depende de", style="yellow")
    for node_id in graph.topological_order():
        node = graph[node_id]
        table.add_row(node.id, node.kind.value, ", ".join(sorted(node.dependencies)) or "-")
    console.print(table)
    console.print(f"[dim]{len(graph)} recursos, {len(graph.edges())} dependencias[/dim]")


def render_plan(console: Console, planned: PlanResult) -> None:
    table = Table(title="Changeset", show_header=True, header_style="bold cyan")
    table.add_column("Recurso", style="cyan")
    table.add_column("Operación")
    table.add_column("Motivo", style="dim")
    for entry in planned.changeset:
        style = OPERATION_STYLES[entry.operation]
        table.add_row(entry.node_id, f"[{style}]{entry.operation.value}[/{style}]", entry.reason)
    console.print(table)

    if planned.plan.is_empty:
        console.print("[green]✓ Sin cambios: el estado real coincide con el deseado[/green]")
        return
    steps = Table(title="Plan de ejecución", show_header=True, header_style="bold cyan")
    steps.add_column("#", style="cyan", width=4)
    steps.add_column("Operación", style="green")
    steps.add_column("Después de", style="yellow")
    for idx, op in enumerate(planned.plan, 1):
        steps.add_row(str(idx), op.describe(), ", ".join(sorted(planned.plan.prerequisites(op))) or "-")
    console.print(steps)
    console.print(f"[bold]Resumen:[/bold] {planned.summary}")


def render_report(console: Console, report: ExecutionReport) -> None:
    table = Table(title="Reporte de ejecución", show_header=True, header_style="bold cyan")
    table.add_column("Operación", style="cyan")
    table.add_column("Resultado")
    table.add_column("Intentos", justify="right")
    table.add_column("Detalle", style="dim")
    for r in report.results:
        table.add_row(r.operation.describe(), OUTCOME_STYLES[r.outcome], str(r.attempts), r.error or r.provider_id or "")
    console.print(table)

    if report.outputs:
        console.print(Panel.fit(
            "\n".join(f"[bold]{k}:[/bold] {v}" for k, v in report.outputs.items()),
            title="Outputs",
            border_style="cyan",
        ))
    style = "green" if report.ok else "red"
    cancelled = " (cancelado)" if report.cancelled else ""
    console.print(f"[{style}]{report.summary()}{cancelled}[/{style}]")


def render_state(console: Console, records: Dict[str, ActualStateRecord], serial: int = 0) -> None:
    if not records:
        console.print("[yellow]⚠️ El estado está vacío[/yellow]")
        return
    table = Table(title=f"Estado (serial {serial})", show_header=True, header_style="bold cyan")
    table.add_column("Recurso", style="cyan")
    table.add_column("Kind", style="green")
    table.add_column("Provider id", style="yellow")
    table.add_column("Fingerprint", style="dim")
    for node_id, record in sorted(records.items()):
        mark = " [red](tainted)[/red]" if record.tainted else ""
        table.add_row(node_id, record.kind.value, record.provider_id + mark, record.fingerprint[:12])
    console.print(table)
