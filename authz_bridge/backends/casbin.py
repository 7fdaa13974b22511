"""
Casbin (RBAC) backend adapter.

Talks to the Casbin authorization server over its JSON API. Resources are
hierarchical paths (``/system/{id}``, ``/system/{id}/members``) except for
the ``global:main`` marker; roles are opaque tokens such as
``system_owner:system1`` or ``admin``.

This module is part of AUTHZ_BRIDGE.
"""

from __future__ import annotations

import logging

from ..constants import (
    BACKEND_CASBIN,
    CASBIN_ADD_ROLE_PATH,
    CASBIN_AUTHORIZE_PATH,
    CASBIN_DEFAULT_ACTION,
    CASBIN_GLOBAL_ROLES,
    CASBIN_GROUPS_PATH,
    CASBIN_POLICIES_PATH,
    CASBIN_REMOVE_ROLE_PATH,
    CASBIN_SCOPE_ROLE_PREFIXES,
)
from ..exceptions import BackendError
from ..models import ObjectReference, PermissionDecision, PermissionQuery
from .base import BaseBackendAdapter

logger = logging.getLogger(__name__)


def scope_roles(scope: str) -> list[str]:
    """
    Render the scoped role tokens for a ``type:id`` scope.

    ``system:system1`` -> ``system_owner:system1``, ``system_manager:system1``,
    ``system_staff:system1``.
    """
    ref = ObjectReference.parse(scope)
    return [f"{ref.object_type}_{prefix}:{ref.object_id}" for prefix in CASBIN_SCOPE_ROLE_PREFIXES]


class CasbinAdapter(BaseBackendAdapter):
    """Implements the backend contract against the Casbin server."""

    backend = BACKEND_CASBIN
    engine_name = "Casbin"
    default_action = CASBIN_DEFAULT_ACTION
    supports_role_mutation = True

    def format_resource(
        self, resource_type: str, resource_id: str, sub_resource: str | None = None
    ) -> str:
        if f"{resource_type}:{resource_id}" == self.global_admin_resource:
            return self.global_admin_resource
        path = f"/{resource_type}/{resource_id}"
        if sub_resource:
            path = f"{path}/{sub_resource}"
        return path

    async def _check(self, query: PermissionQuery) -> PermissionDecision:
        response = await self._post(
            CASBIN_AUTHORIZE_PATH,
            {"subject": query.subject, "object": query.resource, "action": query.action},
        )
        self._ensure_success(response, "check")
        return PermissionDecision.model_validate(self._json_object(response, "check"))

    # ------------------------------------------------------------------
    # Role management
    # ------------------------------------------------------------------

    def available_roles(self, scope: str | None = None) -> list[str]:
        scoped = scope_roles(scope) if scope else []
        return scoped + list(CASBIN_GLOBAL_ROLES)

    async def add_role(self, subject: str, scope: str, role: str) -> bool:
        return await self._mutate_role(CASBIN_ADD_ROLE_PATH, "add_role", "added", subject, scope, role)

    async def remove_role(self, subject: str, scope: str, role: str) -> bool:
        return await self._mutate_role(
            CASBIN_REMOVE_ROLE_PATH, "remove_role", "removed", subject, scope, role
        )

    async def _mutate_role(
        self, path: str, operation: str, flag: str, subject: str, scope: str, role: str
    ) -> bool:
        try:
            response = await self._post(path, {"user": subject, "role": role})
            self._ensure_success(response, operation)
            data = self._json_object(response, operation)
        except Exception as e:
            raise self._mutation_error(operation, e, subject, scope, role) from e

        changed = bool(data.get(flag, True))
        logger.info(f"Casbin {operation}: user={subject}, role={role}, {flag}={changed}")
        return changed

    async def list_roles(self, subject: str, scope: str | None = None) -> list[str]:
        """
        List the roles of a subject from the grouping policies.

        With a scope, only that scope's role tokens are returned (global roles
        such as ``admin`` are left out, they are not managed per scope).
        """
        try:
            groups = await self._fetch_rules(CASBIN_GROUPS_PATH, "groups")
        except Exception as e:
            raise self._mutation_error("list_roles", e, subject, scope or "*", "*") from e

        roles = [rule[1] for rule in groups if len(rule) >= 2 and rule[0] == subject]
        if scope:
            wanted = set(scope_roles(scope))
            roles = [role for role in roles if role in wanted]
        return roles

    # ------------------------------------------------------------------
    # Read-only listings (fail soft)
    # ------------------------------------------------------------------

    async def _fetch_rules(self, path: str, key: str) -> list[list[str]]:
        response = await self._get(path)
        self._ensure_success(response, key)
        rules = self._json_object(response, key).get(key) or []
        if not isinstance(rules, list):
            raise BackendError(
                f"Casbin returned a malformed '{key}' listing",
                backend=self.backend,
                operation=key,
            )
        return rules

    async def get_policies(self) -> list[list[str]]:
        """List all policy rules (``[subject, object, action]``)."""
        try:
            return await self._fetch_rules(CASBIN_POLICIES_PATH, "policies")
        except Exception as e:
            self._handle_operation_error("get_policies", e)
            return []

    async def get_groups(self) -> list[list[str]]:
        """List all grouping rules (``[user, role]``)."""
        try:
            return await self._fetch_rules(CASBIN_GROUPS_PATH, "groups")
        except Exception as e:
            self._handle_operation_error("get_groups", e)
            return []
