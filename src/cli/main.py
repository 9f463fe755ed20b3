"""CLI de despliegue (Typer).

Por qué Typer:
- Argumentos posicionales con defaults (`deploy [ENV] [VERSION]`) y ayuda
  autogenerada sin boilerplate.
- La CLI solo traduce: construye el `DeploymentRequest`, delega en el
  dispatcher y convierte `DeployError` en exit code.
"""

from __future__ import annotations

import logging

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from adapters.http_client import HttpHealthProber
from adapters.shell_runner import NoSleep, RecordingRunner, SubprocessRunner, SystemSleeper
from cli import doctor
from cli.ui_components import (
    build_commands_table,
    build_pipeline_table,
    build_result_panel,
    print_banner,
)
from core.config import DeploySettings
from core.domain.models import DeploymentRequest, TargetEnvironment
from core.errors import DeployError, HealthCheckFailedError
from core.services.dispatcher import DispatchHooks, EnvironmentDispatcher
from core.services.pipeline import build_version_label, deploy_target_for_branch, plan

app = typer.Typer(
    no_args_is_help=True,
    help="Build/tag/push and roll out the AWS App containers.",
)

_console = Console()
_err_console = Console(stderr=True)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_err_console, show_path=False, rich_tracebacks=True)],
        force=True,
    )


def build_dispatcher(
    settings: DeploySettings,
    *,
    dry_run: bool,
    hooks: DispatchHooks | None = None,
) -> EnvironmentDispatcher:
    """Wire real adapters (or recording ones for `--dry-run`)."""

    if dry_run:
        return EnvironmentDispatcher(
            settings=settings,
            runner=RecordingRunner(),
            prober=HttpHealthProber(settings),
            sleeper=NoSleep(),
            dry_run=True,
            hooks=hooks,
        )
    return EnvironmentDispatcher(
        settings=settings,
        runner=SubprocessRunner(),
        prober=HttpHealthProber(settings),
        sleeper=SystemSleeper(),
        hooks=hooks,
    )


def _load_settings() -> DeploySettings:
    try:
        return DeploySettings()
    except ValidationError as exc:
        _err_console.print(f"[red]Invalid configuration:[/red]\n{exc}")
        raise typer.Exit(code=1) from exc


def _run_deploy(
    *,
    environment: str,
    version: str,
    dry_run: bool,
    yes: bool,
    quiet: bool,
    verbose: bool,
) -> None:
    configure_logging(verbose)
    settings = _load_settings()

    try:
        target = TargetEnvironment.parse(environment)
        request = DeploymentRequest(environment=target, version=version, region=settings.aws_region)
    except DeployError as exc:
        _err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=exc.exit_code) from exc
    except ValidationError as exc:
        _err_console.print(f"[red]Invalid deployment request:[/red]\n{exc}")
        raise typer.Exit(code=1) from exc

    if not quiet:
        print_banner(_console, request)

    if target is TargetEnvironment.PRODUCTION and not dry_run and not yes:
        typer.confirm(f"Deploy version {version} to production?", abort=True)

    hooks = DispatchHooks(step=None if quiet else (lambda message: _console.print(f"[cyan]▶[/cyan] {message}")))
    dispatcher = build_dispatcher(settings, dry_run=dry_run, hooks=hooks)

    try:
        result = dispatcher.dispatch(request)
    except HealthCheckFailedError as exc:
        _err_console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=exc.exit_code) from exc
    except DeployError as exc:
        _err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=exc.exit_code) from exc

    if dry_run:
        _console.print(build_commands_table(result))
    if not quiet:
        _console.print(build_result_panel(result))


@app.command()
def deploy(
    environment: str = typer.Argument("development", help="development|dev, production|prod or rollback."),
    version: str = typer.Argument("latest", help="Version label / image tag."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the commands without running them."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the production approval prompt."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="No banner or step output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    """Deploy VERSION to ENVIRONMENT."""

    _run_deploy(environment=environment, version=version, dry_run=dry_run, yes=yes, quiet=quiet, verbose=verbose)


@app.command()
def rollback(
    version: str = typer.Argument(..., help="Version (or task definition revision) to roll back to."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the commands without running them."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="No banner or step output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    """Roll back to VERSION (same as `deploy rollback VERSION`)."""

    _run_deploy(environment="rollback", version=version, dry_run=dry_run, yes=True, quiet=quiet, verbose=verbose)


@app.command(name="version-label")
def version_label(
    build_number: int = typer.Argument(..., help="CI build counter."),
    revision: str = typer.Argument(..., help="Git revision hash."),
) -> None:
    """Print the version label the pipeline tags images with."""

    try:
        label = build_version_label(build_number, revision)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(label)


@app.command()
def pipeline(
    branch: str = typer.Option("main", "--branch", "-b", help="Branch to plan for."),
) -> None:
    """Show which pipeline stages run on BRANCH."""

    groups = plan(branch)
    _console.print(build_pipeline_table(branch, groups))
    stage = deploy_target_for_branch(branch)
    if stage is None or stage.target is None:
        _console.print("[dim]No deployment on this branch.[/dim]")
    else:
        gate = " (manual approval)" if stage.manual_approval else ""
        _console.print(f"Deploys to [bold]{stage.target.value}[/bold]{gate}")


app.command(name="doctor")(doctor.run)


def run() -> None:
    app()
