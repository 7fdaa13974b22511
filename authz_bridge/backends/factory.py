"""
Backend Adapter Factory

Builds the adapter for a configured backend. The base URL is resolved once,
here, through the ServiceLocator; callers never re-decide which backend they
talk to.

This module is part of AUTHZ_BRIDGE.
"""

from __future__ import annotations

import logging

import httpx

from ..config import BridgeConfig
from ..constants import BACKEND_CASBIN, BACKEND_OPA, BACKEND_SPICEDB, SUPPORTED_BACKENDS
from ..exceptions import ConfigurationError
from ..locator import ServiceLocator
from .base import BaseBackendAdapter
from .casbin import CasbinAdapter
from .opa import OpaAdapter
from .spicedb import SpiceDBAdapter

logger = logging.getLogger(__name__)


def create_adapter(
    backend: str | None = None,
    config: BridgeConfig | None = None,
    client: httpx.AsyncClient | None = None,
    locator: ServiceLocator | None = None,
) -> BaseBackendAdapter:
    """
    Create the adapter for a backend.

    Args:
        backend: Backend identifier (defaults to ``config.backend``)
        config: Bridge configuration (read from the environment if omitted)
        client: Optional shared httpx client (the adapter owns one otherwise)
        locator: Optional ServiceLocator (built from ``config`` if omitted)

    Returns:
        A ready-to-use adapter

    Raises:
        ConfigurationError: If the backend is unknown or the configuration is invalid
    """
    config = config or BridgeConfig()
    backend = (backend or config.backend).lower()
    if backend not in SUPPORTED_BACKENDS:
        raise ConfigurationError(
            f"Unsupported authorization backend '{backend}'. "
            f"Expected one of: {', '.join(SUPPORTED_BACKENDS)}",
            config_key="backend",
            config_value=backend,
        )
    config.validate()

    locator = locator or ServiceLocator(config.service_url_overrides(), config.environ)
    base_url = locator.resolve_base_url(backend)
    logger.info(f"Creating {backend} adapter for {base_url}")

    if backend == BACKEND_CASBIN:
        return CasbinAdapter(base_url, client=client, timeout=config.http_timeout)
    if backend == BACKEND_SPICEDB:
        return SpiceDBAdapter(
            base_url,
            client=client,
            timeout=config.http_timeout,
            auth_key=config.spicedb_auth_key,
        )
    if backend == BACKEND_OPA:
        return OpaAdapter(base_url, client=client, timeout=config.http_timeout)

    raise ConfigurationError(f"No adapter registered for '{backend}'", config_key="backend")
