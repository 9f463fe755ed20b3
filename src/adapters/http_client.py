"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts y headers del health check.
- Facilita testeo: se puede inyectar un `httpx.MockTransport`.
"""

from __future__ import annotations

import logging

import httpx

from core.config import DeploySettings
from core.domain.models import HealthStatus

logger = logging.getLogger(__name__)

USER_AGENT = "aws-app-deploy/0.1"


def build_client(
    settings: DeploySettings | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Crea un `httpx.Client` con defaults seguros.

    Por qué un builder:
    - Centraliza timeouts/headers para todos los chequeos HTTP.
    - `transport` permite sustituir la red en tests.
    """

    settings = settings or DeploySettings()
    return httpx.Client(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT, "Accept": "application/json, */*;q=0.5"},
        transport=transport,
    )


def probe_health(client: httpx.Client, url: str) -> HealthStatus:
    """Un único GET; solo 2xx cuenta como sano (contrato de `curl -f`)."""

    try:
        response = client.get(url)
    except httpx.HTTPError as exc:
        return HealthStatus(ok=False, url=url, detail=str(exc) or exc.__class__.__name__)

    ok = response.is_success
    return HealthStatus(
        ok=ok,
        url=url,
        status_code=response.status_code,
        detail=f"HTTP {response.status_code}",
    )


class HttpHealthProber:
    """`HealthProber` sobre httpx."""

    def __init__(
        self,
        settings: DeploySettings | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._settings = settings or DeploySettings()
        self._transport = transport

    def probe(self, url: str) -> HealthStatus:
        with build_client(self._settings, transport=self._transport) as client:
            status = probe_health(client, url)
        logger.info("Health check %s -> %s", url, status.detail)
        return status
