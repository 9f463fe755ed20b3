"""Errores del despliegue.

Taxonomía:
- `PreconditionError`: falta algo antes de empezar (fichero, variable, entorno).
- `CommandFailedError`: un comando externo terminó con status != 0.
- `HealthCheckFailedError`: el despliegue terminó pero no pasa la verificación.

Ninguno se recupera localmente: la CLI los convierte en exit code.
"""

from __future__ import annotations

from typing import Sequence


class DeployError(Exception):
    """Base de todos los fallos de despliegue."""

    exit_code: int = 1


class PreconditionError(DeployError):
    pass


class InvalidEnvironmentError(PreconditionError):
    def __init__(self, value: str, *, valid: Sequence[str]) -> None:
        self.value = value
        self.valid = list(valid)
        super().__init__(f"Invalid environment: {value}. Valid options: {', '.join(self.valid)}")


class CommandFailedError(DeployError):
    """Un comando externo falló; se propaga su status."""

    def __init__(self, argv: Sequence[str], returncode: int, stderr: str = "") -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        # status 0 no puede representar un fallo.
        self.exit_code = returncode if returncode > 0 else 1
        message = f"Command failed with exit status {returncode}: {' '.join(self.argv)}"
        if stderr.strip():
            message += f"\n{stderr.strip()}"
        super().__init__(message)


class HealthCheckFailedError(DeployError):
    def __init__(self, url: str, detail: str = "") -> None:
        self.url = url
        self.detail = detail
        message = f"Deployment failed - health check failed ({url})"
        if detail:
            message += f": {detail}"
        super().__init__(message)
