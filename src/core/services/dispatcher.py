"""Environment dispatcher.

Given a `DeploymentRequest`, runs exactly one named procedure:

- `deploy_development`: rewrite compose tags, restart the local stack, wait,
  probe the health endpoint.
- `deploy_production`: registry login, tag + push both images, then
  `deploy_to_ecs` or `deploy_to_ec2` depending on `DEPLOYMENT_TYPE`.
- `rollback`: re-run the development procedure with the rollback version, or
  pin ECS services to a previous task definition revision.

Every external command goes through the injected `CommandRunner`, which
raises on the first non-zero exit. Nothing here catches those errors: a
failed step aborts the whole run and there is no automatic rollback.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from adapters.compose_file import image_reference, render_image_tags, rewrite_image_tags
from adapters.remote_script import build_ec2_script
from core.config import DeploySettings
from core.domain.models import (
    CommandInvocation,
    DeploymentMechanism,
    DeploymentRequest,
    DeploymentResult,
    HealthStatus,
    TargetEnvironment,
)
from core.errors import HealthCheckFailedError, PreconditionError
from core.interfaces.runner import CommandRunner, HealthProber, Sleeper

logger = logging.getLogger(__name__)


@dataclass
class DispatchHooks:
    """Optional callbacks for UI layers (step banners)."""

    step: Callable[[str], None] | None = None


@dataclass
class _Run:
    request: DeploymentRequest
    procedure: str
    commands: list[CommandInvocation] = field(default_factory=list)
    rewritten_files: list[str] = field(default_factory=list)
    health: HealthStatus | None = None


class EnvironmentDispatcher:
    """Maps a target environment to its deployment procedure."""

    def __init__(
        self,
        *,
        settings: DeploySettings,
        runner: CommandRunner,
        prober: HealthProber,
        sleeper: Sleeper,
        dry_run: bool = False,
        hooks: DispatchHooks | None = None,
    ) -> None:
        self._settings = settings
        self._runner = runner
        self._prober = prober
        self._sleeper = sleeper
        self._dry_run = dry_run
        self._hooks = hooks or DispatchHooks()
        self._current: _Run | None = None

    # ------------------------------------------------------------------ entry

    def dispatch(self, request: DeploymentRequest) -> DeploymentResult:
        procedures: dict[TargetEnvironment, Callable[[str], None]] = {
            TargetEnvironment.DEVELOPMENT: self.deploy_development,
            TargetEnvironment.PRODUCTION: self.deploy_production,
            TargetEnvironment.ROLLBACK: self.rollback,
        }
        procedure = procedures[request.environment]

        logger.info(
            "Deploying to %s environment (version=%s, region=%s)",
            request.environment.value,
            request.version,
            request.region,
        )
        self._current = _Run(request=request, procedure=procedure.__name__)
        try:
            procedure(request.version)
            run = self._current
        finally:
            self._current = None

        return DeploymentResult(
            request=request,
            procedure=run.procedure,
            commands=run.commands,
            rewritten_files=run.rewritten_files,
            health=run.health,
            dry_run=self._dry_run,
            message="Deployment completed successfully!",
        )

    # ----------------------------------------------------------- procedures

    def deploy_development(self, version: str) -> None:
        self._step("Deploying to Development Environment...")
        compose = self._settings.compose_file
        if not compose.is_file():
            raise PreconditionError(f"{compose} not found")

        self._rewrite_compose(version)
        self._exec("docker-compose", "-f", str(compose), "down")
        self._exec("docker-compose", "-f", str(compose), "up", "-d")

        self._step("Waiting for services to be ready...")
        if self._dry_run:
            self._record_health(HealthStatus(ok=True, url=self._settings.health_url, detail="skipped (dry run)"))
            return
        self._sleeper.sleep(self._settings.health_delay_seconds)

        status = self._prober.probe(self._settings.health_url)
        self._record_health(status)
        if not status.ok:
            raise HealthCheckFailedError(status.url, status.detail)
        self._step("Development deployment successful!")

    def deploy_production(self, version: str) -> None:
        self._step("Deploying to Production Environment...")
        registry = self._require_registry()
        mechanism = DeploymentMechanism.parse(self._settings.deployment_type)
        if mechanism is DeploymentMechanism.EC2:
            self._require_ec2_target()

        self._registry_login(registry)
        for image in self._settings.images:
            self._exec("docker", "tag", image_reference(image, version), image_reference(image, version, registry))
        for image in self._settings.images:
            self._exec("docker", "push", image_reference(image, version, registry))
        self._step("Images pushed to ECR successfully")

        if mechanism is DeploymentMechanism.ECS:
            self.deploy_to_ecs(version)
        else:
            self.deploy_to_ec2(version)

    def deploy_to_ecs(self, version: str) -> None:
        self._step("Deploying to AWS ECS...")
        s = self._settings
        for service in s.ecs_services:
            self._exec(
                "aws", "ecs", "update-service",
                "--cluster", s.ecs_cluster,
                "--service", service,
                "--force-new-deployment",
                "--region", self._region,
            )
        self._exec(
            "aws", "ecs", "wait", "services-stable",
            "--cluster", s.ecs_cluster,
            "--services", *s.ecs_services,
            "--region", self._region,
        )
        self._step("ECS deployment completed successfully!")

    def deploy_to_ec2(self, version: str) -> None:
        self._step("Deploying to AWS EC2...")
        s = self._settings
        host, key_path = self._require_ec2_target()
        script = build_ec2_script(
            app_dir=s.remote_app_dir,
            compose_file=s.remote_compose_file,
            registry=self._require_registry(),
            version=version,
            images=s.images,
        )
        self._run(
            CommandInvocation(
                argv=("ssh", "-i", str(key_path), f"{s.ec2_user}@{host}", "bash", "-s"),
                stdin=script,
            )
        )
        self._step("EC2 deployment completed successfully!")

    def rollback(self, version: str) -> None:
        self._step(f"Rolling back to version: {version}")
        s = self._settings
        if s.rollback_target is not TargetEnvironment.PRODUCTION:
            self.deploy_development(version)
            return

        mechanism = DeploymentMechanism.parse(s.deployment_type)
        if mechanism is DeploymentMechanism.EC2:
            self.deploy_to_ec2(version)
            return

        pinned = [(s.ecs_web_service, s.web_image), (s.ecs_backend_service, s.backend_image)]
        if s.rollback_web_only:
            logger.warning(
                "Rolling back only %s; %s keeps its current task definition",
                s.ecs_web_service,
                s.ecs_backend_service,
            )
            pinned = pinned[:1]
        for service, family in pinned:
            self._exec(
                "aws", "ecs", "update-service",
                "--cluster", s.ecs_cluster,
                "--service", service,
                "--task-definition", f"{family}:{version}",
                "--region", self._region,
            )

    # -------------------------------------------------------------- helpers

    @property
    def _region(self) -> str:
        if self._current is not None:
            return self._current.request.region
        return self._settings.aws_region

    def _step(self, message: str) -> None:
        logger.info(message)
        if self._hooks.step:
            self._hooks.step(message)

    def _run(self, command: CommandInvocation) -> str:
        if self._current is not None:
            self._current.commands.append(command)
        return self._runner.run(command)

    def _exec(self, *argv: str) -> str:
        return self._run(CommandInvocation(argv=argv))

    def _record_health(self, status: HealthStatus) -> None:
        if self._current is not None:
            self._current.health = status

    def _rewrite_compose(self, version: str) -> None:
        compose = self._settings.compose_file
        images = self._settings.images
        if self._dry_run:
            text = compose.read_text(encoding="utf-8")
            _, counts = render_image_tags(text, version=version, images=images)
            for image in images:
                logger.info("[dry-run] %s: image: %s (%d line(s))", compose, image_reference(image, version), counts[image])
        else:
            rewrite_image_tags(compose, version=version, images=images)
        if self._current is not None:
            self._current.rewritten_files.append(str(compose))

    def _registry_login(self, registry: str) -> None:
        self._run(
            CommandInvocation(
                argv=("docker", "login", "--username", "AWS", "--password-stdin", registry),
                stdin_from=("aws", "ecr", "get-login-password", "--region", self._region),
            )
        )

    def _require_registry(self) -> str:
        registry = (self._settings.docker_registry or "").strip().rstrip("/")
        if not registry:
            raise PreconditionError("DOCKER_REGISTRY is not set; cannot push images.")
        return registry

    def _require_ec2_target(self) -> tuple[str, str]:
        s = self._settings
        missing = [
            name
            for name, value in (("EC2_HOST", s.ec2_host), ("EC2_KEY_PATH", s.ec2_key_path))
            if not value
        ]
        if missing:
            raise PreconditionError(f"EC2 deployment requires {', '.join(missing)}.")
        return str(s.ec2_host), str(s.ec2_key_path)
