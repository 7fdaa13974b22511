"""
Global admin short-circuit.

Before evaluating a query, the subject's grant on the backend's global-admin
marker is checked. A granted marker answers the query without the backend
ever seeing it; a denied or failed marker check falls through to the query.

This module is part of AUTHZ_BRIDGE.
"""

from __future__ import annotations

import logging

from .backends.base import BaseBackendAdapter
from .models import PermissionDecision, PermissionQuery

logger = logging.getLogger(__name__)

GLOBAL_ADMIN_REASON = "global admin"


class GlobalAdminInterceptor:
    """Wraps adapter checks with the global-admin pre-check."""

    def global_query(self, subject: str, adapter: BaseBackendAdapter) -> PermissionQuery:
        return PermissionQuery(
            subject=subject,
            resource=adapter.global_admin_resource,
            action=adapter.global_admin_action,
        )

    async def with_global_override(
        self,
        subject: str,
        query: PermissionQuery,
        adapter: BaseBackendAdapter,
    ) -> PermissionDecision:
        """
        Evaluate a query, letting a global admin grant answer it first.

        A query that already targets the global-admin resource is checked
        exactly once.
        """
        if query.resource == adapter.global_admin_resource:
            return await adapter.check(query)

        global_decision = await adapter.check(self.global_query(subject, adapter))
        if global_decision.allowed:
            logger.debug(f"Global admin override for {subject} on {query.resource}")
            return PermissionDecision.allow(reason=GLOBAL_ADMIN_REASON)

        return await adapter.check(query)
