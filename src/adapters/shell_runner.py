"""Ejecución de comandos externos (docker, docker-compose, aws, ssh).

Por qué un adaptador:
- Estandariza logging, captura de salida y el mapeo status -> excepción.
- Facilita testeo: el dispatcher recibe cualquier `CommandRunner`.

Semántica fail-fast: el primer status != 0 lanza `CommandFailedError`; no
hay reintentos.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time
from pathlib import Path

from core.domain.models import CommandInvocation
from core.errors import CommandFailedError, PreconditionError

logger = logging.getLogger(__name__)


class SubprocessRunner:
    """`CommandRunner` real sobre `subprocess.run`."""

    def __init__(self, *, cwd: Path | None = None, timeout: float | None = None) -> None:
        self._cwd = cwd
        self._timeout = timeout

    def _exec(self, argv: tuple[str, ...], stdin: str | None) -> str:
        if shutil.which(argv[0]) is None:
            raise PreconditionError(f"Required command not found on PATH: {argv[0]}")
        try:
            result = subprocess.run(
                list(argv),
                input=stdin,
                capture_output=True,
                text=True,
                cwd=self._cwd,
                timeout=self._timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise CommandFailedError(argv, 124, f"timed out after {exc.timeout}s") from exc

        if result.stdout:
            logger.debug("%s stdout:\n%s", argv[0], result.stdout.rstrip())
        if result.returncode != 0:
            raise CommandFailedError(argv, result.returncode, result.stderr or "")
        return result.stdout

    def run(self, command: CommandInvocation) -> str:
        stdin = command.stdin
        if command.stdin_from:
            # Equivale a `a | b` con pipefail: si `a` falla, `b` no se ejecuta.
            logger.info("$ %s", " ".join(command.stdin_from))
            stdin = self._exec(command.stdin_from, None)
        logger.info("$ %s", " ".join(command.argv))
        return self._exec(command.argv, stdin)


class RecordingRunner:
    """`CommandRunner` que solo registra (modo `--dry-run`)."""

    def __init__(self) -> None:
        self.commands: list[CommandInvocation] = []

    def run(self, command: CommandInvocation) -> str:
        logger.info("[dry-run] $ %s", command.display())
        self.commands.append(command)
        return ""


class SystemSleeper:
    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


class NoSleep:
    def sleep(self, seconds: float) -> None:
        logger.debug("Skipping %.0fs wait", seconds)
