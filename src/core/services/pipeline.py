"""CI pipeline model.

The CI orchestrator runs the stages; this module only describes them so the
CLI can show what a branch would run and compute the values the pipeline
hands to the dispatcher (version label and deploy target).

Stage graph:

    checkout -> install -> [lint | unit tests] -> [build web | build backend]
    -> [image web | image backend] -> [scan web | scan backend]
    -> integration tests -> deploy

Groups marked `parallel` fan out; the orchestrator runs them concurrently.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Sequence

from core.domain.models import TargetEnvironment

SHORT_REVISION_LENGTH = 7

_REVISION_RE = re.compile(r"^[0-9a-fA-F]+$")

MAIN_BRANCH = "main"
DEVELOP_BRANCH = "develop"


def build_version_label(build_number: int, revision: str) -> str:
    """`<build counter>-<short revision hash>` (e.g. `42-abc1234`)."""

    if build_number < 0:
        raise ValueError("build number must be >= 0")
    rev = revision.strip()
    if not rev or not _REVISION_RE.match(rev):
        raise ValueError(f"invalid revision hash: {revision!r}")
    return f"{build_number}-{rev[:SHORT_REVISION_LENGTH].lower()}"


@dataclass(frozen=True)
class Stage:
    name: str
    commands: tuple[str, ...] = ()
    # Vacío = se ejecuta en todas las ramas.
    branches: frozenset[str] = frozenset()
    manual_approval: bool = False
    target: TargetEnvironment | None = None

    def runs_on(self, branch: str) -> bool:
        return not self.branches or branch in self.branches


@dataclass(frozen=True)
class StageGroup:
    name: str
    stages: tuple[Stage, ...]
    parallel: bool = False


@dataclass
class PlannedGroup:
    name: str
    parallel: bool
    stages: list[Stage] = field(default_factory=list)


_RELEASE_BRANCHES = frozenset({MAIN_BRANCH, DEVELOP_BRANCH})

DEFAULT_PIPELINE: tuple[StageGroup, ...] = (
    StageGroup("Checkout", (Stage("Checkout", ("git checkout",)),)),
    StageGroup("Install", (Stage("Install Dependencies", ("npm ci",)),)),
    StageGroup(
        "Quality",
        (
            Stage("Lint", ("npm run lint",)),
            Stage("Unit Tests", ("npm test -- --ci --coverage",)),
        ),
        parallel=True,
    ),
    StageGroup(
        "Build",
        (
            Stage("Build Web", ("npm run build --workspace web",)),
            Stage("Build Backend", ("npm run build --workspace backend",)),
        ),
        parallel=True,
    ),
    StageGroup(
        "Docker Images",
        (
            Stage("Image Web", ("docker build -t aws-app-web:${VERSION} web",)),
            Stage("Image Backend", ("docker build -t aws-app-backend:${VERSION} backend",)),
        ),
        parallel=True,
    ),
    StageGroup(
        "Security Scan",
        (
            Stage("Scan Web", ("trivy image aws-app-web:${VERSION}",), branches=_RELEASE_BRANCHES),
            Stage("Scan Backend", ("trivy image aws-app-backend:${VERSION}",), branches=_RELEASE_BRANCHES),
        ),
        parallel=True,
    ),
    StageGroup(
        "Integration Tests",
        (Stage("Integration Tests", ("npm run test:integration",), branches=_RELEASE_BRANCHES),),
    ),
    StageGroup(
        "Deploy",
        (
            Stage(
                "Deploy to Development",
                ("deploy.sh development ${VERSION}",),
                branches=frozenset({DEVELOP_BRANCH}),
                target=TargetEnvironment.DEVELOPMENT,
            ),
            Stage(
                "Deploy to Production",
                ("deploy.sh production ${VERSION}",),
                branches=frozenset({MAIN_BRANCH}),
                manual_approval=True,
                target=TargetEnvironment.PRODUCTION,
            ),
        ),
    ),
)


def plan(branch: str, pipeline: Sequence[StageGroup] = DEFAULT_PIPELINE) -> list[PlannedGroup]:
    """Grupos y stages que correrían en `branch` (sin grupos vacíos)."""

    planned: list[PlannedGroup] = []
    for group in pipeline:
        stages = [stage for stage in group.stages if stage.runs_on(branch)]
        if stages:
            planned.append(PlannedGroup(name=group.name, parallel=group.parallel, stages=stages))
    return planned


def deploy_target_for_branch(
    branch: str,
    pipeline: Sequence[StageGroup] = DEFAULT_PIPELINE,
) -> Stage | None:
    """Stage de despliegue que se activa en `branch`, si existe."""

    for group in plan(branch, pipeline):
        for stage in group.stages:
            if stage.target is not None:
                return stage
    return None
