"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en `deploy`, `rollback` y `pipeline`.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import DeploymentRequest, DeploymentResult
from core.services.pipeline import PlannedGroup


def print_banner(console: Console, request: DeploymentRequest) -> None:
    """Imprime el banner del despliegue.

    Por qué aquí:
    - Permite desactivar banner en modos no interactivos (`--quiet`).
    """

    title = Text(f"Deploying AWS App to {request.environment.value}", style="bold cyan")
    subtitle = Text(f"Version: {request.version} • AWS Region: {request.region}", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_commands_table(result: DeploymentResult) -> Table:
    """Tabla con los comandos externos ejecutados (o planificados en dry-run)."""

    title = "Planned commands" if result.dry_run else "Executed commands"
    table = Table(title=title)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Command", style="white")
    table.add_column("stdin", style="magenta")
    for idx, command in enumerate(result.commands, start=1):
        stdin = ""
        if command.stdin_from:
            stdin = "piped"
        elif command.stdin:
            stdin = f"{len(command.stdin.splitlines())} lines"
        table.add_row(str(idx), command.display(), stdin)
    return table


def build_result_panel(result: DeploymentResult) -> Panel:
    body = Text()
    body.append(f"Procedure: {result.procedure}\n")
    body.append(f"Commands: {len(result.commands)}\n")
    for path in result.rewritten_files:
        body.append(f"Updated: {path}\n")
    if result.health is not None:
        style = "green" if result.health.ok else "red"
        body.append(f"Health: {result.health.url} -> {result.health.detail}\n", style=style)
    body.append(f"\n{result.message}", style="bold green")
    return Panel(body, title=Text("Deployment", style="bold green"), border_style="green")


def build_pipeline_table(branch: str, groups: list[PlannedGroup]) -> Table:
    table = Table(title=f"Pipeline plan for '{branch}'")
    table.add_column("Group", style="cyan", no_wrap=True)
    table.add_column("Stage", style="white")
    table.add_column("Mode", style="dim")
    table.add_column("Gate", style="yellow")
    for group in groups:
        mode = "parallel" if group.parallel else "sequential"
        for stage in group.stages:
            gate = "manual approval" if stage.manual_approval else ""
            table.add_row(group.name, stage.name, mode, gate)
    return table
