"""
Backend adapters.

One adapter per authorization engine, all implementing BaseBackendAdapter.
"""

from .base import BaseBackendAdapter
from .casbin import CasbinAdapter, scope_roles
from .factory import create_adapter
from .opa import OpaAdapter
from .spicedb import SpiceDBAdapter, normalize_subject_id
from .stream import RelationshipStreamParser, parse_relationship_stream

__all__ = [
    "BaseBackendAdapter",
    "CasbinAdapter",
    "OpaAdapter",
    "SpiceDBAdapter",
    "RelationshipStreamParser",
    "create_adapter",
    "normalize_subject_id",
    "parse_relationship_stream",
    "scope_roles",
]
