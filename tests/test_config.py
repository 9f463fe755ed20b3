"""
Tests for environment-driven settings.
"""
from pathlib import Path

import pytest
from pydantic import ValidationError

from core.config import DeploySettings
from core.domain.models import TargetEnvironment


def test_defaults(make_settings):
    settings = make_settings()
    assert settings.aws_region == "us-east-1"
    assert settings.docker_registry is None
    assert settings.deployment_type is None
    assert settings.compose_file == Path("docker-compose.dev.yml")
    assert settings.health_url == "http://localhost:3001/api/health"
    assert settings.health_delay_seconds == 30
    assert settings.images == ("aws-app-web", "aws-app-backend")
    assert settings.ecs_services == ("aws-app-web-service", "aws-app-backend-service")
    assert settings.rollback_target is TargetEnvironment.DEVELOPMENT


def test_legacy_variables_without_prefix(monkeypatch):
    """The CI pipeline's variable names keep working."""
    monkeypatch.setenv("AWS_REGION", "eu-central-1")
    monkeypatch.setenv("DOCKER_REGISTRY", "123.dkr.ecr.eu-central-1.amazonaws.com")
    monkeypatch.setenv("DEPLOYMENT_TYPE", "ecs")
    monkeypatch.setenv("EC2_HOST", "10.1.2.3")
    monkeypatch.setenv("EC2_KEY_PATH", "/keys/id.pem")

    settings = DeploySettings(_env_file=None)

    assert settings.aws_region == "eu-central-1"
    assert settings.docker_registry == "123.dkr.ecr.eu-central-1.amazonaws.com"
    assert settings.deployment_type == "ecs"
    assert settings.ec2_host == "10.1.2.3"
    assert settings.ec2_key_path == Path("/keys/id.pem")


def test_prefixed_variables(monkeypatch):
    monkeypatch.setenv("AWS_APP_HEALTH_URL", "http://localhost:8080/health")
    monkeypatch.setenv("AWS_APP_HEALTH_DELAY_SECONDS", "5")
    monkeypatch.setenv("AWS_APP_COMPOSE_FILE", "compose/dev.yml")

    settings = DeploySettings(_env_file=None)

    assert settings.health_url == "http://localhost:8080/health"
    assert settings.health_delay_seconds == 5
    assert settings.compose_file == Path("compose/dev.yml")


def test_env_file(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("DEPLOYMENT_TYPE=ec2\nAWS_APP_ECS_CLUSTER=other-cluster\n", encoding="utf-8")

    settings = DeploySettings(_env_file=env_file)

    assert settings.deployment_type == "ec2"
    assert settings.ecs_cluster == "other-cluster"


def test_negative_delay_rejected(monkeypatch):
    monkeypatch.setenv("AWS_APP_HEALTH_DELAY_SECONDS", "-1")
    with pytest.raises(ValidationError):
        DeploySettings(_env_file=None)
