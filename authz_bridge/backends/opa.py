"""
OPA (policy-as-code) backend adapter.

The OPA authorization server accepts ``type:id`` resources with a named
permission. Besides checks it exposes an ad-hoc query endpoint and listings
of the users and resources loaded into its data document. It has no role
mutation API: roles live in the policy data and are changed by redeploying it.

This module is part of AUTHZ_BRIDGE.
"""

from __future__ import annotations

import logging
from typing import Any

from ..constants import (
    BACKEND_OPA,
    OPA_AUTHORIZE_PATH,
    OPA_EVALUATE_PATH,
    OPA_RESOURCES_PATH,
    OPA_USERS_PATH,
)
from ..models import PermissionDecision, PermissionQuery
from .base import BaseBackendAdapter

logger = logging.getLogger(__name__)


class OpaAdapter(BaseBackendAdapter):
    """Implements the backend contract against the OPA server."""

    backend = BACKEND_OPA
    engine_name = "OPA"

    async def _check(self, query: PermissionQuery) -> PermissionDecision:
        response = await self._post(
            OPA_AUTHORIZE_PATH,
            {"subject": query.subject, "resource": query.resource, "permission": query.action},
        )
        self._ensure_success(response, "check")
        return PermissionDecision.model_validate(self._json_object(response, "check"))

    async def evaluate(self, query: str, input: dict[str, Any] | None = None) -> Any:
        """
        Run a custom query against the policy engine.

        Returns:
            The backend's JSON answer, or None if the call failed

        Raises:
            ValueError: If the query is empty (rejected before any I/O)
        """
        if not query:
            raise ValueError("Query is required")

        logger.debug(f"OPA evaluate: query={query}")
        try:
            response = await self._post(OPA_EVALUATE_PATH, {"query": query, "input": input or {}})
            self._ensure_success(response, "evaluate")
            return response.json()
        except Exception as e:
            self._handle_operation_error("evaluate", e, query)
            return None

    async def get_users(self) -> list[dict[str, Any]]:
        """List users known to the policy engine."""
        return await self._fetch_collection(OPA_USERS_PATH, "users")

    async def get_resources(self) -> list[dict[str, Any]]:
        """List resources known to the policy engine."""
        return await self._fetch_collection(OPA_RESOURCES_PATH, "resources")

    async def _fetch_collection(self, path: str, key: str) -> list[dict[str, Any]]:
        try:
            response = await self._get(path)
            self._ensure_success(response, key)
            items = self._json_object(response, key).get(key) or []
        except Exception as e:
            self._handle_operation_error(f"get_{key}", e)
            return []

        if not isinstance(items, list):
            logger.warning(f"OPA returned a malformed '{key}' listing: {type(items).__name__}")
            return []
        logger.debug(f"OPA {key} count: {len(items)}")
        return items
