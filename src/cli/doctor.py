"""Doctor command for environment diagnostics."""

from __future__ import annotations

import shutil

from rich.console import Console
from rich.table import Table

from core.config import DeploySettings

_console = Console()

REQUIRED_TOOLS: tuple[str, ...] = ("docker", "docker-compose", "aws", "ssh")


def _mask(value: str | None) -> str:
    if not value:
        return "(not set)"
    if len(value) <= 8:
        return "****"
    return f"{value[:4]}…{value[-4:]}"


def check_tools(tools: tuple[str, ...] = REQUIRED_TOOLS) -> list[tuple[str, bool, str]]:
    """Return `(tool, found, path)` for every external command the deploy uses."""

    rows: list[tuple[str, bool, str]] = []
    for tool in tools:
        path = shutil.which(tool)
        rows.append((tool, path is not None, path or "not found on PATH"))
    return rows


def run() -> None:
    """Run baseline diagnostics and show the resolved deploy settings."""

    settings = DeploySettings()

    table = Table(title="AWS App Deploy Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    for tool, found, detail in check_tools():
        table.add_row(tool, "OK" if found else "FAIL", detail)

    # Config
    table.add_row("AWS region", "OK", settings.aws_region)
    table.add_row(
        "Registry",
        "OK" if settings.docker_registry else "OPTIONAL",
        _mask(settings.docker_registry) if settings.docker_registry else "Required only for production",
    )
    table.add_row(
        "Deployment type",
        "OK" if settings.deployment_type in ("ecs", "ec2") else "OPTIONAL",
        settings.deployment_type or "Required only for production (ecs/ec2)",
    )
    compose_ok = settings.compose_file.is_file()
    table.add_row("Compose file", "OK" if compose_ok else "FAIL", str(settings.compose_file))
    table.add_row("Health URL", "OK", settings.health_url)

    _console.print(table)

    if not compose_ok:
        _console.print(
            "\n[yellow]Note:[/yellow] `deploy development` needs the compose file; "
            "set AWS_APP_COMPOSE_FILE or run from the project root."
        )
