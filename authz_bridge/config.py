"""
Configuration management for AUTHZ_BRIDGE.

Configuration is read from environment variables with explicit parameters
taking precedence, so the facade can be built either way:

    # Using environment variables
    config = BridgeConfig()
    facade = PermissionFacade.for_backend(config.backend, config=config)

    # Or using direct parameters
    config = BridgeConfig(backend="spicedb", spicedb_url="http://localhost:8443")
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from .constants import (
    BACKEND_CASBIN,
    BACKEND_OPA,
    BACKEND_SPICEDB,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_SPICEDB_AUTH_KEY,
    DEFAULT_USER_ID,
    SERVICE_URL_ENV_VARS,
    SUPPORTED_BACKENDS,
)
from .exceptions import ConfigurationError


class BridgeConfig:
    """
    Authorization bridge configuration.

    Service URLs left unset are resolved by the ServiceLocator, which applies
    the deployment-environment and localhost rules.
    """

    def __init__(
        self,
        backend: str | None = None,
        casbin_url: str | None = None,
        spicedb_url: str | None = None,
        opa_url: str | None = None,
        spicedb_auth_key: str | None = None,
        default_user_id: str | None = None,
        http_timeout: float | None = None,
        environ: Mapping[str, str] | None = None,
    ):
        """
        Initialize configuration.

        Args:
            backend: Backend the facade talks to (defaults to AUTHZ_BACKEND or "casbin")
            casbin_url: Explicit Casbin base URL (defaults to CASBIN_SERVICE_URL)
            spicedb_url: Explicit SpiceDB base URL (defaults to SPICEDB_SERVICE_URL)
            opa_url: Explicit OPA base URL (defaults to OPA_SERVICE_URL)
            spicedb_auth_key: Bearer key for SpiceDB (defaults to SPICEDB_AUTH_KEY)
            default_user_id: Fallback identity (defaults to AUTHENTICATED_USER_ID)
            http_timeout: Transport timeout in seconds (defaults to AUTHZ_HTTP_TIMEOUT or 5.0)
            environ: Mapping to read instead of os.environ (useful in tests)
        """
        env = os.environ if environ is None else environ
        self.environ: Mapping[str, str] = env

        self.backend = (backend or env.get("AUTHZ_BACKEND", BACKEND_CASBIN)).lower()
        self.casbin_url = casbin_url or env.get(SERVICE_URL_ENV_VARS[BACKEND_CASBIN]) or None
        self.spicedb_url = spicedb_url or env.get(SERVICE_URL_ENV_VARS[BACKEND_SPICEDB]) or None
        self.opa_url = opa_url or env.get(SERVICE_URL_ENV_VARS[BACKEND_OPA]) or None
        self.spicedb_auth_key = spicedb_auth_key or env.get(
            "SPICEDB_AUTH_KEY", DEFAULT_SPICEDB_AUTH_KEY
        )
        self.default_user_id = default_user_id or env.get("AUTHENTICATED_USER_ID", DEFAULT_USER_ID)

        if http_timeout is not None:
            self.http_timeout = http_timeout
        else:
            raw_timeout = env.get("AUTHZ_HTTP_TIMEOUT", str(DEFAULT_HTTP_TIMEOUT))
            try:
                self.http_timeout = float(raw_timeout)
            except ValueError as e:
                raise ConfigurationError(
                    "AUTHZ_HTTP_TIMEOUT must be a number",
                    config_key="AUTHZ_HTTP_TIMEOUT",
                    config_value=raw_timeout,
                ) from e

    def service_url_overrides(self) -> dict[str, str]:
        """Return the explicitly configured base URLs keyed by backend."""
        overrides = {
            BACKEND_CASBIN: self.casbin_url,
            BACKEND_SPICEDB: self.spicedb_url,
            BACKEND_OPA: self.opa_url,
        }
        return {k: v for k, v in overrides.items() if v}

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ConfigurationError: If configuration is missing or invalid
        """
        if self.backend not in SUPPORTED_BACKENDS:
            raise ConfigurationError(
                f"Unsupported authorization backend '{self.backend}'. "
                f"Expected one of: {', '.join(SUPPORTED_BACKENDS)}",
                config_key="backend",
                config_value=self.backend,
            )

        if self.http_timeout <= 0:
            raise ConfigurationError(
                f"http_timeout must be > 0, got {self.http_timeout}",
                config_key="http_timeout",
                config_value=self.http_timeout,
            )

        if self.backend == BACKEND_SPICEDB and not self.spicedb_auth_key:
            raise ConfigurationError(
                "spicedb_auth_key is required for the spicedb backend "
                "(set SPICEDB_AUTH_KEY environment variable or pass directly)",
                config_key="spicedb_auth_key",
            )

        for key, url in self.service_url_overrides().items():
            if not url.startswith(("http://", "https://")):
                raise ConfigurationError(
                    f"{key} service URL must start with http:// or https://",
                    config_key=SERVICE_URL_ENV_VARS[key],
                    config_value=url,
                )
