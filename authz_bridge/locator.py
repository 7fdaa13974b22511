"""
Backend Service Locator

Resolves the base URL of each authorization backend. Precedence, first match
wins:

1. An explicit override (passed in, or the per-backend *_SERVICE_URL variable)
2. The internal service hostname when running in a recognized deployment
3. The localhost default with the backend's conventional port

Every rule is a standalone function so it can be tested on its own. Nothing
here performs network I/O; the only input is the mapping it is handed.

This module is part of AUTHZ_BRIDGE.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

from .constants import (
    DEPLOYMENT_ENVIRONMENTS,
    DEPLOYMENT_SERVICE_URLS,
    LOCAL_SERVICE_URLS,
    SERVICE_URL_ENV_VARS,
)
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _require_known_backend(backend: str) -> None:
    if backend not in LOCAL_SERVICE_URLS:
        raise ConfigurationError(
            f"Unknown authorization backend '{backend}'",
            config_key="backend",
            config_value=backend,
        )


def explicit_override(
    backend: str,
    overrides: Mapping[str, str],
    environ: Mapping[str, str],
) -> str | None:
    """Return the explicitly configured URL for the backend, if any."""
    url = overrides.get(backend)
    if url:
        return url
    return environ.get(SERVICE_URL_ENV_VARS[backend]) or None


def is_deployment_environment(environ: Mapping[str, str]) -> bool:
    """
    Detect whether we run inside the deployment (container) network.

    A deployment is recognized by ENVIRONMENT=production|docker, or by a
    HOSTNAME other than localhost (container runtimes export one).
    """
    if environ.get("ENVIRONMENT", "").lower() in DEPLOYMENT_ENVIRONMENTS:
        return True
    hostname = environ.get("HOSTNAME", "")
    return bool(hostname) and hostname != "localhost"


def deployment_host(backend: str, environ: Mapping[str, str]) -> str | None:
    """Return the internal service URL when in a deployment, else None."""
    if is_deployment_environment(environ):
        return DEPLOYMENT_SERVICE_URLS[backend]
    return None


def local_default(backend: str) -> str:
    """Return the localhost URL for the backend."""
    return LOCAL_SERVICE_URLS[backend]


class ServiceLocator:
    """
    Resolves backend base URLs from configuration.

    Args:
        overrides: Explicit per-backend URLs (take precedence over environment)
        environ: Mapping to read instead of os.environ
    """

    def __init__(
        self,
        overrides: Mapping[str, str] | None = None,
        environ: Mapping[str, str] | None = None,
    ):
        self._overrides = dict(overrides or {})
        self._environ = os.environ if environ is None else environ

    def resolve_base_url(self, backend: str) -> str:
        """
        Resolve the base URL for a backend.

        Always produces a URL; the localhost default guarantees a result.

        Raises:
            ConfigurationError: If the backend identifier is unknown
        """
        _require_known_backend(backend)

        url = explicit_override(backend, self._overrides, self._environ)
        source = "override"
        if url is None:
            url = deployment_host(backend, self._environ)
            source = "deployment"
        if url is None:
            url = local_default(backend)
            source = "local"

        logger.debug(f"Resolved {backend} base URL to {url} ({source})")
        return url.rstrip("/")
