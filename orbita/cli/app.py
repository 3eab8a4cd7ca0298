"""
Aplicación CLI de orbita.

Solo compone comandos; la lógica vive en core y providers.
Códigos de salida: 0 = todo aplicado, 1 = alguna operación falló u omitida,
2 = error de descripción, plan, configuración o estado.
"""

import logging
import threading
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm

from orbita import __version__
from orbita.cli.render import render_graph, render_plan, render_report, render_state
from orbita.core.errors import OrbitaError
from orbita.core.graph import build_graph, load_description
from orbita.core.reconciler import Reconciler
from orbita.core.runtime import JsonStateStore, load_settings, state_file, state_root
from orbita.providers import provider_session

EXIT_ERROR = 2

app = typer.Typer(
    name="orbita",
    help="orbita - Reconciliador declarativo de infraestructura de red en la nube",
    add_completion=False,
    no_args_is_help=True,
)
state_app = typer.Typer(name="state", help="Inspección del estado guardado", add_completion=False)
app.add_typer(state_app, name="state", help="Inspección del estado guardado")

console = Console()
err_console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, markup=False)],
        force=True,
    )


def _fail(e: OrbitaError) -> None:
    console.print(f"[red]❌ {type(e).__name__}: {e}[/red]")
    raise typer.Exit(EXIT_ERROR)


def _open_store(path: Path, treat_corrupt_as_empty: bool) -> JsonStateStore:
    console.print(f"[dim]Estado: {path}[/dim]")
    return JsonStateStore(path, treat_corrupt_as_empty=treat_corrupt_as_empty)


@app.command()
def version():
    """Muestra la versión de orbita"""
    console.print(Panel.fit(
        "[bold cyan]orbita[/bold cyan]\n"
        "[dim]Reconciliador declarativo de grafos de recursos[/dim]\n\n"
        f"[bold]Versión:[/bold] {__version__}\n"
        f"[bold]Estado:[/bold] {state_root()}",
        border_style="cyan",
    ))


@app.command()
def validate(
    description: Path = typer.Argument(..., help="Descripción YAML del estado deseado"),
):
    """Valida la descripción y muestra el grafo de recursos (sin tocar el provider)"""
    try:
        graph = build_graph(load_description(description))
    except OrbitaError as e:
        _fail(e)
    render_graph(console, graph)
    console.print("[green]✓ Descripción válida[/green]")


@app.command()
def plan(
    description: Path = typer.Argument(..., help="Descripción YAML del estado deseado"),
    state: Optional[Path] = typer.Option(None, "--state", "-s", help="Archivo de estado (por defecto en el state root)"),
    provider: str = typer.Option("mock", "--provider", "-p", help="mock | paquete.modulo:factory"),
    refresh: bool = typer.Option(True, "--refresh/--no-refresh", help="Consultar al provider antes del diff"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Logs de depuración"),
):
    """Calcula el changeset y el orden de ejecución, sin aplicar nada"""
    _setup_logging(verbose)
    try:
        settings = load_settings({"refresh": refresh})
        stack = load_description(description)
        path = state or state_file(stack.name)
        store = _open_store(path, settings.treat_corrupt_state_as_empty)
        with provider_session(provider, path.parent) as registry:
            planned = Reconciler(registry, store, settings).plan(stack)
    except OrbitaError as e:
        _fail(e)
    console.print(Panel.fit(f"[bold cyan]Plan - {stack.name}[/bold cyan]", border_style="cyan"))
    render_plan(console, planned)


@app.command()
def apply(
    description: Path = typer.Argument(..., help="Descripción YAML del estado deseado"),
    state: Optional[Path] = typer.Option(None, "--state", "-s", help="Archivo de estado (por defecto en el state root)"),
    provider: str = typer.Option("mock", "--provider", "-p", help="mock | paquete.modulo:factory"),
    parallelism: Optional[int] = typer.Option(None, "--parallelism", "-j", help="Operaciones concurrentes"),
    best_effort: bool = typer.Option(False, "--best-effort", help="Seguir con ramas independientes tras un fallo"),
    refresh: bool = typer.Option(True, "--refresh/--no-refresh", help="Consultar al provider antes del diff"),
    yes: bool = typer.Option(False, "--yes", "-y", help="No pedir confirmación"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Logs de depuración"),
):
    """Converge el estado real hacia la descripción"""
    _setup_logging(verbose)
    try:
        settings = load_settings({
            "parallelism": parallelism,
            "mode": "best-effort" if best_effort else None,
            "refresh": refresh,
        })
        stack = load_description(description)
        path = state or state_file(stack.name)
        store = _open_store(path, settings.treat_corrupt_state_as_empty)
        with provider_session(provider, path.parent) as registry:
            reconciler = Reconciler(registry, store, settings)
            planned = reconciler.plan(stack)
            console.print(Panel.fit(f"[bold cyan]Apply - {stack.name}[/bold cyan]", border_style="cyan"))
            render_plan(console, planned)
            if planned.plan.is_empty:
                raise typer.Exit(0)
            if not yes and not Confirm.ask("¿Aplicar estos cambios?", default=False):
                console.print("[yellow]Cancelado por el usuario[/yellow]")
                raise typer.Exit(1)
            report = reconciler.apply_plan(planned, threading.Event())
    except OrbitaError as e:
        _fail(e)
    render_report(console, report)
    raise typer.Exit(report.exit_code)


@app.command()
def destroy(
    description: Optional[Path] = typer.Argument(None, help="Descripción YAML (solo para tomar el nombre del stack)"),
    stack: Optional[str] = typer.Option(None, "--stack", help="Nombre del stack (para localizar el estado)"),
    state: Optional[Path] = typer.Option(None, "--state", "-s", help="Archivo de estado"),
    provider: str = typer.Option("mock", "--provider", "-p", help="mock | paquete.modulo:factory"),
    parallelism: Optional[int] = typer.Option(None, "--parallelism", "-j", help="Operaciones concurrentes"),
    yes: bool = typer.Option(False, "--yes", "-y", help="No pedir confirmación"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Logs de depuración"),
):
    """Borra todos los recursos registrados en el estado"""
    _setup_logging(verbose)
    try:
        settings = load_settings({"parallelism": parallelism})
        if stack is None:
            stack = load_description(description).name if description else "default"
        path = state or state_file(stack)
        if not path.exists():
            console.print(f"[yellow]⚠️  No existe el estado de '{stack}' ({path}); nada que borrar[/yellow]")
            raise typer.Exit(1)
        store = _open_store(path, settings.treat_corrupt_state_as_empty)
        with provider_session(provider, path.parent) as registry:
            reconciler = Reconciler(registry, store, settings)
            planned = reconciler.plan_destroy(stack)
            console.print(Panel.fit(f"[bold red]Destroy - {stack}[/bold red]", border_style="red"))
            render_plan(console, planned)
            if planned.plan.is_empty:
                raise typer.Exit(0)
            if not yes and not Confirm.ask("¿Borrar todos estos recursos?", default=False):
                console.print("[yellow]Cancelado por el usuario[/yellow]")
                raise typer.Exit(1)
            report = reconciler.apply_plan(planned, threading.Event())
    except OrbitaError as e:
        _fail(e)
    render_report(console, report)
    raise typer.Exit(report.exit_code)


@state_app.command("show")
def state_show(
    stack: str = typer.Option("default", "--stack", help="Nombre del stack"),
    state: Optional[Path] = typer.Option(None, "--state", "-s", help="Archivo de estado"),
):
    """Muestra los recursos registrados en el estado"""
    try:
        store = JsonStateStore(state or state_file(stack))
        records = store.load()
    except OrbitaError as e:
        _fail(e)
    render_state(console, records, store.serial)


def main():
    app()
