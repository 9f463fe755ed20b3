"""
Pytest fixtures for the deploy dispatcher tests.

Provides recording fakes for the command runner, health prober and sleeper,
plus a compose file in a temporary directory.
"""
import os
from pathlib import Path
from typing import List, Optional

import pytest

from core.config import DeploySettings
from core.domain.models import CommandInvocation, HealthStatus
from core.errors import CommandFailedError
from core.services.dispatcher import EnvironmentDispatcher


COMPOSE_TEXT = """version: "3.8"
services:
  web:
    image: aws-app-web:1-0000000
    ports:
      - "3000:3000"
  backend:
    image: aws-app-backend:1-0000000
    ports:
      - "3001:3001"
    environment:
      - NODE_ENV=development
"""


class FakeRunner:
    """Records every command; optionally fails on the Nth call."""

    def __init__(self, fail_on: Optional[str] = None, returncode: int = 2):
        self.commands: List[CommandInvocation] = []
        self.fail_on = fail_on
        self.returncode = returncode

    def run(self, command: CommandInvocation) -> str:
        self.commands.append(command)
        if self.fail_on and self.fail_on in command.display():
            raise CommandFailedError(command.argv, self.returncode, "boom")
        return ""

    @property
    def argvs(self) -> List[tuple]:
        return [c.argv for c in self.commands]


class FakeProber:
    def __init__(self, ok: bool = True, status_code: Optional[int] = 200):
        self.ok = ok
        self.status_code = status_code
        self.urls: List[str] = []

    def probe(self, url: str) -> HealthStatus:
        self.urls.append(url)
        detail = f"HTTP {self.status_code}" if self.status_code else "connection refused"
        return HealthStatus(ok=self.ok, url=url, status_code=self.status_code, detail=detail)


class FakeSleeper:
    def __init__(self):
        self.calls: List[float] = []

    def sleep(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def compose_file(tmp_path: Path) -> Path:
    path = tmp_path / "docker-compose.dev.yml"
    path.write_text(COMPOSE_TEXT, encoding="utf-8")
    return path


def _make_settings(**overrides) -> DeploySettings:
    # Isolated from any .env file; env vars are cleared by `clean_env`.
    return DeploySettings(_env_file=None, **overrides)


@pytest.fixture
def make_settings():
    return _make_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "AWS_REGION",
        "DOCKER_REGISTRY",
        "DEPLOYMENT_TYPE",
        "EC2_HOST",
        "EC2_USER",
        "EC2_KEY_PATH",
        "ROLLBACK_TARGET",
    ):
        monkeypatch.delenv(name, raising=False)
        monkeypatch.delenv(f"AWS_APP_{name}", raising=False)
    for key in list(os.environ):
        if key.upper().startswith("AWS_APP_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def prober() -> FakeProber:
    return FakeProber()


@pytest.fixture
def sleeper() -> FakeSleeper:
    return FakeSleeper()


@pytest.fixture
def make_dispatcher(runner, prober, sleeper):
    def _make(settings: DeploySettings, **kwargs) -> EnvironmentDispatcher:
        return EnvironmentDispatcher(
            settings=settings,
            runner=kwargs.pop("runner", runner),
            prober=kwargs.pop("prober", prober),
            sleeper=kwargs.pop("sleeper", sleeper),
            **kwargs,
        )

    return _make
