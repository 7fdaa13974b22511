"""
Permission Facade

The single entry point callers use to ask "may this identity do that?".
The backend strategy is chosen once, when the facade is built; every call
after that goes through the same adapter and global-admin interceptor.

Fail-closed: every path returns a boolean. The only exception a check lets
through is InvalidResourceError, which means the caller built a resource the
backend cannot accept.

This module is part of AUTHZ_BRIDGE.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable
from typing import Any

import httpx

from .backends import BaseBackendAdapter, create_adapter
from .config import BridgeConfig
from .exceptions import ClientError
from .identity import Identity
from .interceptor import GlobalAdminInterceptor
from .models import PermissionQuery
from .observability import (
    clear_authz_context,
    get_logger,
    log_operation,
    record_operation,
    set_authz_context,
)

logger = get_logger(__name__)


class PermissionFacade:
    """
    Uniform permission checks over one backend adapter.

    Usage:
        facade = PermissionFacade.for_backend("spicedb")
        allowed = await facade.check_permission(Identity("alice"), "system:system1", "read")
    """

    def __init__(
        self,
        adapter: BaseBackendAdapter,
        interceptor: GlobalAdminInterceptor | None = None,
    ):
        self._adapter = adapter
        self._interceptor = interceptor or GlobalAdminInterceptor()

    @classmethod
    def for_backend(
        cls,
        backend: str | None = None,
        config: BridgeConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> PermissionFacade:
        """Build a facade for a backend, resolving its address once."""
        return cls(create_adapter(backend, config=config, client=client))

    @property
    def adapter(self) -> BaseBackendAdapter:
        return self._adapter

    @property
    def backend(self) -> str:
        return self._adapter.backend

    async def aclose(self) -> None:
        await self._adapter.aclose()

    async def __aenter__(self) -> PermissionFacade:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    async def check_permission(
        self, identity: Identity, resource: str, action: str | None = None
    ) -> bool:
        """
        Check whether ``identity`` may perform ``action`` on ``resource``.

        Args:
            identity: The caller
            resource: Resource in the backend's native form
            action: Action name (defaults to the backend's default action)

        Returns:
            True only if the backend (or a global admin grant) allows it

        Raises:
            InvalidResourceError: If the resource is malformed for this backend
        """
        query = PermissionQuery(
            subject=identity.user_id,
            resource=resource,
            action=action or self._adapter.default_action,
        )
        self._adapter.validate_query(query)

        set_authz_context(backend=self.backend, subject=query.subject)
        start_time = time.time()
        success = True
        allowed = False
        try:
            decision = await self._interceptor.with_global_override(
                query.subject, query, self._adapter
            )
            allowed = decision.allowed
        except Exception as e:
            success = False
            logger.error(
                f"Permission check failed for {query.subject} on {query.resource}: {e}",
                exc_info=True,
            )
        finally:
            duration_ms = (time.time() - start_time) * 1000
            record_operation("authz.check", duration_ms, success, backend=self.backend)
            log_operation(
                logger,
                "authz.check",
                level=logging.DEBUG,
                success=success,
                duration_ms=duration_ms,
                resource=query.resource,
                action=query.action,
                allowed=allowed,
            )
            clear_authz_context()

        return allowed

    async def check_multiple_permissions(
        self,
        identity: Identity,
        queries: Iterable[tuple[str, str | None]],
    ) -> list[bool]:
        """
        Check several ``(resource, action)`` pairs concurrently.

        The result has one entry per query, in input order. A query with a
        malformed resource yields False instead of aborting the batch.
        """
        checks = [self._check_or_deny(identity, resource, action) for resource, action in queries]
        return list(await asyncio.gather(*checks))

    async def _check_or_deny(
        self, identity: Identity, resource: str, action: str | None
    ) -> bool:
        try:
            return await self.check_permission(identity, resource, action)
        except ClientError as e:
            logger.warning(f"Batch permission check rejected: {e}")
            return False

    # ------------------------------------------------------------------
    # Convenience checks
    # ------------------------------------------------------------------

    async def is_global_admin(self, identity: Identity) -> bool:
        """Check the identity's grant on the global-admin marker."""
        return await self.check_permission(
            identity,
            self._adapter.global_admin_resource,
            self._adapter.global_admin_action,
        )

    async def check_system_access(
        self, identity: Identity, system_id: str, action: str | None = None
    ) -> bool:
        resource = self._adapter.format_resource("system", system_id)
        return await self.check_permission(identity, resource, action)

    async def check_aws_access(
        self, identity: Identity, aws_id: str, action: str | None = None
    ) -> bool:
        resource = self._adapter.format_resource("aws", aws_id)
        return await self.check_permission(identity, resource, action)
