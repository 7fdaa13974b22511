"""
Constants for AUTHZ_BRIDGE.

This module contains all shared constants used across the codebase to avoid
magic strings and ports scattered across adapters.
"""

from typing import Final

# ============================================================================
# BACKEND IDENTIFIERS
# ============================================================================

BACKEND_CASBIN: Final[str] = "casbin"
"""RBAC / path-based policy engine."""

BACKEND_SPICEDB: Final[str] = "spicedb"
"""Relationship-graph (ReBAC) engine."""

BACKEND_OPA: Final[str] = "opa"
"""Policy-as-code engine."""

SUPPORTED_BACKENDS: Final[tuple[str, ...]] = (BACKEND_CASBIN, BACKEND_SPICEDB, BACKEND_OPA)
"""All backends the facade can talk to."""

# ============================================================================
# SERVICE DISCOVERY
# ============================================================================

SERVICE_URL_ENV_VARS: Final[dict[str, str]] = {
    BACKEND_CASBIN: "CASBIN_SERVICE_URL",
    BACKEND_SPICEDB: "SPICEDB_SERVICE_URL",
    BACKEND_OPA: "OPA_SERVICE_URL",
}
"""Environment variables holding an explicit per-backend base URL."""

DEPLOYMENT_SERVICE_URLS: Final[dict[str, str]] = {
    BACKEND_CASBIN: "http://casbin-server:8080",
    BACKEND_SPICEDB: "http://spicedb-server:8080",
    BACKEND_OPA: "http://opa-server:8081",
}
"""Internal service hostnames used inside the container network."""

LOCAL_SERVICE_URLS: Final[dict[str, str]] = {
    BACKEND_CASBIN: "http://localhost:8080",
    BACKEND_SPICEDB: "http://localhost:8443",
    BACKEND_OPA: "http://localhost:8081",
}
"""Local development defaults (conventional port per backend)."""

DEPLOYMENT_ENVIRONMENTS: Final[tuple[str, ...]] = ("production", "docker")
"""Values of ENVIRONMENT that mark a recognized deployment."""

# ============================================================================
# GLOBAL ADMIN MARKER
# ============================================================================

GLOBAL_ADMIN_RESOURCE: Final[str] = "global:main"
"""Reserved resource whose grant implies unconditional allow."""

GLOBAL_ADMIN_ACTION: Final[str] = "admin"
"""Reserved full-access action checked against GLOBAL_ADMIN_RESOURCE."""

# ============================================================================
# WIRE PATHS
# ============================================================================

CASBIN_AUTHORIZE_PATH: Final[str] = "/authorize"
CASBIN_ADD_ROLE_PATH: Final[str] = "/add-role"
CASBIN_REMOVE_ROLE_PATH: Final[str] = "/remove-role"
CASBIN_POLICIES_PATH: Final[str] = "/policies"
CASBIN_GROUPS_PATH: Final[str] = "/groups"

OPA_AUTHORIZE_PATH: Final[str] = "/authorize"
OPA_EVALUATE_PATH: Final[str] = "/evaluate"
OPA_USERS_PATH: Final[str] = "/users"
OPA_RESOURCES_PATH: Final[str] = "/resources"

SPICEDB_CHECK_PATH: Final[str] = "/v1/permissions/check"
SPICEDB_WRITE_PATH: Final[str] = "/v1/relationships/write"
SPICEDB_READ_PATH: Final[str] = "/v1/relationships/read"

# ============================================================================
# SPICEDB PROTOCOL VALUES
# ============================================================================

PERMISSIONSHIP_HAS_PERMISSION: Final[str] = "PERMISSIONSHIP_HAS_PERMISSION"
"""The only permissionship value that grants access."""

OPERATION_CREATE: Final[str] = "OPERATION_CREATE"
OPERATION_DELETE: Final[str] = "OPERATION_DELETE"

SPICEDB_USER_TYPE: Final[str] = "user"
"""Object type used for every subject sent to SpiceDB."""

# ============================================================================
# ROLE VOCABULARIES
# ============================================================================

CASBIN_SCOPE_ROLE_PREFIXES: Final[tuple[str, ...]] = ("owner", "manager", "staff")
"""Scoped Casbin roles are rendered as '{scope_type}_{prefix}:{scope_id}'."""

CASBIN_GLOBAL_ROLES: Final[tuple[str, ...]] = ("admin", "editor", "viewer", "operator")
"""Casbin roles that are not bound to any scope."""

SPICEDB_RELATIONS: Final[tuple[str, ...]] = ("owner", "manager", "staff")
"""Relations an operator may assign on a scope in SpiceDB."""

# ============================================================================
# DEFAULTS
# ============================================================================

DEFAULT_HTTP_TIMEOUT: Final[float] = 5.0
"""Default transport timeout for backend calls (seconds)."""

DEFAULT_USER_ID: Final[str] = "user-123"
"""Identity used when no authenticated user id is configured."""

DEFAULT_SPICEDB_AUTH_KEY: Final[str] = "spicedb-secret-key"
"""Development preshared key for the SpiceDB HTTP gateway."""

ANONYMOUS_USER_ID: Final[str] = "anonymous"
"""Subject used for unauthenticated callers."""

CASBIN_DEFAULT_ACTION: Final[str] = "GET"
DEFAULT_ACTION: Final[str] = "read"
