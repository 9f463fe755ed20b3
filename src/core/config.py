"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que el dispatcher y los adaptadores (shell/HTTP) lean config de
  forma consistente.

Compatibilidad:
- Las variables que ya usaba el pipeline de CI (`AWS_REGION`,
  `DOCKER_REGISTRY`, `DEPLOYMENT_TYPE`, `EC2_*`) se leen sin prefijo.
- El resto usa el prefijo `AWS_APP_`.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.models import TargetEnvironment


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "aws-app-deploy"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "aws-app-deploy"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "aws-app-deploy"
    return Path.home() / ".config" / "aws-app-deploy"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _legacy(name: str) -> AliasChoices:
    # Nombre histórico del script de CI primero, luego la variante con prefijo.
    return AliasChoices(name, f"AWS_APP_{name}")


class DeploySettings(BaseSettings):
    """Configuración central del despliegue.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el dispatcher.
    - Un único contrato de configuración para CLI/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="AWS_APP_",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
        # Orden: proyecto primero (CI/dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    aws_region: str = Field(
        default="us-east-1",
        min_length=1,
        validation_alias=_legacy("AWS_REGION"),
        description="Región AWS para ECR/ECS.",
    )
    docker_registry: str | None = Field(
        default=None,
        validation_alias=_legacy("DOCKER_REGISTRY"),
        description="Endpoint del registry (ECR) al que se suben las imágenes.",
    )
    deployment_type: str | None = Field(
        default=None,
        validation_alias=_legacy("DEPLOYMENT_TYPE"),
        description="Mecanismo de despliegue en producción (ecs/ec2).",
    )

    ec2_host: str | None = Field(
        default=None,
        validation_alias=_legacy("EC2_HOST"),
        description="Host EC2 para el despliegue por SSH.",
    )
    ec2_user: str = Field(
        default="ec2-user",
        min_length=1,
        validation_alias=_legacy("EC2_USER"),
        description="Usuario SSH del host EC2.",
    )
    ec2_key_path: Path | None = Field(
        default=None,
        validation_alias=_legacy("EC2_KEY_PATH"),
        description="Ruta a la clave privada SSH.",
    )

    rollback_target: TargetEnvironment = Field(
        default=TargetEnvironment.DEVELOPMENT,
        validation_alias=_legacy("ROLLBACK_TARGET"),
        description="Entorno sobre el que actúa `rollback` (development/production).",
    )
    rollback_web_only: bool = Field(
        default=False,
        description="Rollback ECS solo del servicio web (comportamiento histórico).",
    )

    # Entorno local (docker-compose)
    compose_file: Path = Field(
        default=Path("docker-compose.dev.yml"),
        description="Compose file del entorno de desarrollo.",
    )
    web_image: str = Field(default="aws-app-web", min_length=1)
    backend_image: str = Field(default="aws-app-backend", min_length=1)
    health_url: str = Field(
        default="http://localhost:3001/api/health",
        min_length=8,
        description="Endpoint que valida el despliegue de desarrollo.",
    )
    health_delay_seconds: float = Field(
        default=30.0,
        ge=0,
        description="Espera fija antes del health check (segundos).",
    )
    http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout del health check (segundos).",
    )

    # ECS
    ecs_cluster: str = Field(default="aws-app-cluster", min_length=1)
    ecs_web_service: str = Field(default="aws-app-web-service", min_length=1)
    ecs_backend_service: str = Field(default="aws-app-backend-service", min_length=1)

    # EC2
    remote_app_dir: str = Field(default="/opt/aws-app", min_length=1)
    remote_compose_file: str = Field(default="docker-compose.prod.yml", min_length=1)

    @property
    def images(self) -> tuple[str, str]:
        return (self.web_image, self.backend_image)

    @property
    def ecs_services(self) -> tuple[str, str]:
        return (self.ecs_web_service, self.ecs_backend_service)
