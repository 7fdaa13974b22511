"""
AUTHZ_BRIDGE

One permission facade over three authorization backends: Casbin (RBAC),
SpiceDB (ReBAC) and OPA (policy-as-code).

Usage:
    from authz_bridge import Identity, PermissionFacade

    async with PermissionFacade.for_backend("casbin") as facade:
        allowed = await facade.check_permission(Identity("alice"), "/system/system1", "GET")
"""

from .backends import (
    BaseBackendAdapter,
    CasbinAdapter,
    OpaAdapter,
    RelationshipStreamParser,
    SpiceDBAdapter,
    create_adapter,
    parse_relationship_stream,
)
from .config import BridgeConfig
from .exceptions import (
    AuthzBridgeError,
    BackendError,
    ClientError,
    ConfigurationError,
    InvalidResourceError,
    InvalidRoleError,
    UnsupportedOperationError,
)
from .facade import PermissionFacade
from .identity import Identity, identity_from_config
from .interceptor import GlobalAdminInterceptor
from .locator import ServiceLocator
from .models import (
    ObjectReference,
    PermissionDecision,
    PermissionQuery,
    Relationship,
    RelationshipFilter,
    SubjectFilter,
)
from .roles import RoleMutationCoordinator, RoleUpdateOutcome, RoleUpdateState

__version__ = "0.1.0"

__all__ = [
    # Facade
    "PermissionFacade",
    "GlobalAdminInterceptor",
    "Identity",
    "identity_from_config",
    # Roles
    "RoleMutationCoordinator",
    "RoleUpdateOutcome",
    "RoleUpdateState",
    # Backends
    "BaseBackendAdapter",
    "CasbinAdapter",
    "OpaAdapter",
    "SpiceDBAdapter",
    "RelationshipStreamParser",
    "create_adapter",
    "parse_relationship_stream",
    # Configuration
    "BridgeConfig",
    "ServiceLocator",
    # Models
    "ObjectReference",
    "PermissionDecision",
    "PermissionQuery",
    "Relationship",
    "RelationshipFilter",
    "SubjectFilter",
    # Exceptions
    "AuthzBridgeError",
    "BackendError",
    "ClientError",
    "ConfigurationError",
    "InvalidResourceError",
    "InvalidRoleError",
    "UnsupportedOperationError",
    "__version__",
]
