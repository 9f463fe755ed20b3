"""Contratos de ejecución del despliegue.

Por qué Protocol:
- El dispatcher solo conoce "ejecutar un comando", "comprobar un endpoint" y
  "esperar"; subprocess/httpx/time viven en adaptadores intercambiables.
- Los tests sustituyen los tres por fakes que registran las llamadas.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import CommandInvocation, HealthStatus


@runtime_checkable
class CommandRunner(Protocol):
    """Ejecuta comandos externos con semántica fail-fast.

    Reglas de diseño:
    - `run` lanza `CommandFailedError` ante cualquier status != 0.
    - Nunca reintenta.
    """

    def run(self, command: CommandInvocation) -> str:
        """Ejecuta `command` y devuelve su stdout."""

        ...


@runtime_checkable
class HealthProber(Protocol):
    def probe(self, url: str) -> HealthStatus:
        ...


@runtime_checkable
class Sleeper(Protocol):
    def sleep(self, seconds: float) -> None:
        ...
