"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a subprocess/HTTP.
- El selector de entorno es una enumeración cerrada: un typo en el nombre
  falla en el borde en vez de caer en una rama vacía.

Nota:
- Estos modelos describen *qué* se despliega, no *cómo* se ejecuta.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from core.errors import InvalidEnvironmentError, PreconditionError


class TargetEnvironment(str, Enum):
    """Destino de un despliegue."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"
    ROLLBACK = "rollback"

    @classmethod
    def parse(cls, value: str) -> "TargetEnvironment":
        """Resuelve el nombre (o alias) recibido por CLI.

        El matching es sensible a mayúsculas, igual que el `case` del script
        de CI: `Dev` no es un alias válido.
        """

        resolved = _ENVIRONMENT_ALIASES.get(value)
        if resolved is None:
            raise InvalidEnvironmentError(value, valid=[e.value for e in cls])
        return resolved


_ENVIRONMENT_ALIASES: dict[str, TargetEnvironment] = {
    "development": TargetEnvironment.DEVELOPMENT,
    "dev": TargetEnvironment.DEVELOPMENT,
    "production": TargetEnvironment.PRODUCTION,
    "prod": TargetEnvironment.PRODUCTION,
    "rollback": TargetEnvironment.ROLLBACK,
}


class DeploymentMechanism(str, Enum):
    """Estrategia de despliegue en producción."""

    ECS = "ecs"
    EC2 = "ec2"

    @classmethod
    def parse(cls, value: str | None) -> "DeploymentMechanism":
        if value is None or not str(value).strip():
            raise PreconditionError(
                "No deployment type specified. Please set DEPLOYMENT_TYPE environment variable."
            )
        try:
            return cls(str(value).strip())
        except ValueError as exc:
            raise PreconditionError(
                f"Invalid DEPLOYMENT_TYPE: {value!r} (expected 'ecs' or 'ec2')."
            ) from exc


class DeploymentRequest(BaseModel):
    """Una invocación de despliegue.

    Por qué existe:
    - Agrupa los tres inputs (entorno, versión, región) que viajan del
      pipeline al dispatcher.
    - Se construye una vez, se consume una vez, no se persiste.
    """

    model_config = ConfigDict(frozen=True)

    environment: TargetEnvironment = Field(
        default=TargetEnvironment.DEVELOPMENT,
        description="Entorno destino.",
    )
    version: str = Field(
        default="latest",
        min_length=1,
        max_length=128,
        description="Version label usado como tag de imagen.",
    )
    region: str = Field(
        default="us-east-1",
        min_length=1,
        description="Región AWS.",
    )

    @field_validator("version")
    @classmethod
    def _version_is_single_token(cls, value: str) -> str:
        # Termina dentro de un `image:` del compose file y de un argv.
        if not value.strip() or any(ch.isspace() for ch in value):
            raise ValueError("version must be a non-empty string without whitespace")
        return value


class CommandInvocation(BaseModel):
    """Comando externo tal y como se ejecuta (argv + stdin opcional)."""

    model_config = ConfigDict(frozen=True)

    argv: tuple[str, ...] = Field(..., min_length=1)
    stdin: str | None = Field(
        default=None,
        description="Texto enviado por stdin (script remoto, password del registry).",
    )
    stdin_from: tuple[str, ...] | None = Field(
        default=None,
        description="Comando cuyo stdout se encadena como stdin (pipe `a | b`).",
    )

    @property
    def program(self) -> str:
        return self.argv[0]

    def display(self) -> str:
        text = " ".join(self.argv)
        if self.stdin_from:
            text = f"{' '.join(self.stdin_from)} | {text}"
        return text


class HealthStatus(BaseModel):
    """Resultado del health check HTTP."""

    ok: bool
    url: str
    status_code: int | None = None
    detail: str = ""


class DeploymentResult(BaseModel):
    """Resumen de una invocación del dispatcher."""

    request: DeploymentRequest
    procedure: str = Field(..., description="Procedimiento nombrado que se ejecutó.")
    commands: list[CommandInvocation] = Field(default_factory=list)
    rewritten_files: list[str] = Field(default_factory=list)
    health: HealthStatus | None = None
    dry_run: bool = False
    message: str = ""
