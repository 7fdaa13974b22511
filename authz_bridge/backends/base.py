"""
Authorization Backend Base Classes

Defines the abstract contract for backend adapters using the Adapter Pattern.
Each adapter translates a logical (subject, resource, action) question into
one backend's wire request and interprets its response as a decision.

Design Principles:
1. Fail-Closed Security - checks never raise for backend failures, they deny
2. Caller bugs are not backend failures - malformed input raises before I/O
3. Mutations surface failures - callers must know when a change did not apply

This module is part of AUTHZ_BRIDGE.
"""

from __future__ import annotations

import abc
import logging
from typing import Any

import httpx

from ..constants import (
    DEFAULT_ACTION,
    DEFAULT_HTTP_TIMEOUT,
    GLOBAL_ADMIN_ACTION,
    GLOBAL_ADMIN_RESOURCE,
)
from ..exceptions import BackendError, UnsupportedOperationError
from ..models import PermissionDecision, PermissionQuery

logger = logging.getLogger(__name__)


class BaseBackendAdapter(abc.ABC):
    """
    Abstract Base Class defining the contract for backend adapters.

    Subclasses set ``backend`` and implement ``_check``; adapters that can
    mutate roles set ``supports_role_mutation`` and override the role methods.
    """

    backend: str = ""
    engine_name: str = ""
    default_action: str = DEFAULT_ACTION
    global_admin_resource: str = GLOBAL_ADMIN_RESOURCE
    global_admin_action: str = GLOBAL_ADMIN_ACTION
    supports_role_mutation: bool = False

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
    ):
        """
        Initialize the adapter.

        Args:
            base_url: Backend base URL (from the ServiceLocator)
            client: Optional shared httpx client; one is created (and owned) if omitted
            timeout: Transport timeout used when the adapter creates its own client
        """
        self._base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout)
        logger.info(f"✔️  {self.engine_name} adapter initialized (base URL: {self._base_url})")

    @property
    def base_url(self) -> str:
        """Get the backend base URL."""
        return self._base_url

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this adapter created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> BaseBackendAdapter:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Transport helpers
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    async def _post(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        return await self._client.post(self._url(path), json=payload, headers=self._headers())

    async def _get(self, path: str) -> httpx.Response:
        return await self._client.get(self._url(path), headers=self._headers())

    def _ensure_success(self, response: httpx.Response, operation: str) -> None:
        """
        Raise BackendError for any non-2xx response.

        Raises:
            BackendError: If the backend did not answer with a 2xx status
        """
        if not response.is_success:
            raise BackendError(
                f"{self.engine_name} service error: {response.status_code} - {response.text}",
                backend=self.backend,
                operation=operation,
                status_code=response.status_code,
            )

    def _json_object(self, response: httpx.Response, operation: str) -> dict[str, Any]:
        """Decode a response body that must be a JSON object."""
        data = response.json()
        if not isinstance(data, dict):
            raise BackendError(
                f"{self.engine_name} returned a non-object body",
                backend=self.backend,
                operation=operation,
                status_code=response.status_code,
            )
        return data

    # ------------------------------------------------------------------
    # Permission checks
    # ------------------------------------------------------------------

    def validate_query(self, query: PermissionQuery) -> None:
        """
        Validate a query before any network call.

        The default accepts any resource string. Adapters whose wire format
        needs structure override this and raise InvalidResourceError.
        """

    def format_resource(
        self, resource_type: str, resource_id: str, sub_resource: str | None = None
    ) -> str:
        """Render a resource in this backend's native form (``type:id``)."""
        return f"{resource_type}:{resource_id}"

    async def check(self, query: PermissionQuery) -> PermissionDecision:
        """
        Check if a subject is allowed to perform an action on a resource.

        Fail-closed: any exception raised while evaluating the query produces
        ``allowed=False``, including errors from a closed client.

        Raises:
            InvalidResourceError: Only when the query violates the backend's
                resource format (a caller bug, rejected before any I/O)
        """
        self.validate_query(query)
        try:
            decision = await self._check(query)
        except Exception as e:
            return self._handle_evaluation_error(query, e)

        logger.debug(
            f"{self.engine_name} check: subject={query.subject}, resource={query.resource}, "
            f"action={query.action}, allowed={decision.allowed}"
        )
        if not decision.allowed and decision.reason:
            logger.info(f"{self.engine_name} denied access: {decision.reason}")
        return decision

    @abc.abstractmethod
    async def _check(self, query: PermissionQuery) -> PermissionDecision:
        """Issue the backend call for a validated query."""

    # ------------------------------------------------------------------
    # Role management (optional per backend)
    # ------------------------------------------------------------------

    def available_roles(self, scope: str | None = None) -> list[str]:
        """Return the role vocabulary an operator may assign on a scope."""
        raise UnsupportedOperationError(
            f"{self.engine_name} does not expose a role vocabulary", backend=self.backend
        )

    async def add_role(self, subject: str, scope: str, role: str) -> bool:
        """
        Grant a role to a subject on a scope.

        Returns:
            True if the backend reported a change, False if it was already present

        Raises:
            BackendError: If the mutation did not apply
        """
        raise UnsupportedOperationError(
            f"{self.engine_name} does not support role mutation", backend=self.backend
        )

    async def remove_role(self, subject: str, scope: str, role: str) -> bool:
        """
        Revoke a role from a subject on a scope.

        Raises:
            BackendError: If the mutation did not apply
        """
        raise UnsupportedOperationError(
            f"{self.engine_name} does not support role mutation", backend=self.backend
        )

    async def list_roles(self, subject: str, scope: str | None = None) -> list[str]:
        """
        List the roles a subject holds (restricted to one scope if given).

        Raises:
            BackendError: If the roles could not be read
        """
        raise UnsupportedOperationError(
            f"{self.engine_name} does not support role listing", backend=self.backend
        )

    # ------------------------------------------------------------------
    # Error handling
    # ------------------------------------------------------------------

    def _handle_evaluation_error(
        self,
        query: PermissionQuery,
        error: Exception,
        context: str | None = None,
    ) -> PermissionDecision:
        """
        Handle authorization evaluation errors with fail-closed security.

        If the backend is unreachable or answers garbage we MUST deny access.

        Returns:
            A denial (fail-closed)
        """
        context_str = f" ({context})" if context else ""
        logger.critical(
            f"{self.engine_name} authorization evaluation failed{context_str}: "
            f"subject={query.subject}, resource={query.resource}, action={query.action}, "
            f"error={type(error).__name__}: {error}",
            exc_info=True,
        )
        return PermissionDecision.deny(reason=f"{self.engine_name} unavailable")

    def _handle_operation_error(
        self,
        operation: str,
        error: Exception,
        *params: Any,
    ) -> None:
        """
        Log a failed read-only listing.

        Listings fail soft: the caller gets an empty result and the failure
        is recorded here.
        """
        logger.warning(
            f"{self.engine_name} {operation} failed: "
            f"params={params}, error={type(error).__name__}: {error}",
            exc_info=True,
        )

    def _mutation_error(
        self, operation: str, error: Exception, subject: str, scope: str, role: str
    ) -> BackendError:
        """Wrap a transport/decoding failure of a mutation as a BackendError."""
        if isinstance(error, BackendError):
            return error
        return BackendError(
            f"{self.engine_name} {operation} failed for subject={subject}, scope={scope}, "
            f"role={role}: {type(error).__name__}: {error}",
            backend=self.backend,
            operation=operation,
        )
