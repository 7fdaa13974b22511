"""
FastAPI dependencies for permission-gated routes.

The application stores a PermissionFacade on ``app.state.permission_facade``
(typically in its lifespan) and gates routes with ``require_permission``:

    @app.get("/systems/{system_id}")
    async def show_system(
        identity: Identity = Depends(require_permission("system:{system_id}", "read")),
    ):
        ...

This module is part of AUTHZ_BRIDGE.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, HTTPException, Request, Response, status

from .config import BridgeConfig
from .exceptions import ClientError
from .facade import PermissionFacade
from .identity import Identity, identity_from_config
from .observability import clear_correlation_id, get_logger, set_correlation_id

logger = get_logger(__name__)

USER_ID_HEADER = "X-User-Id"
REQUEST_ID_HEADER = "X-Request-ID"


async def bind_correlation_id(request: Request, response: Response) -> AsyncIterator[str]:
    """
    FastAPI Dependency: Binds the request's correlation id for logging.

    Reuses the caller's ``X-Request-ID`` header or generates one, and echoes
    it on the response. The id is unbound once the request is done.
    """
    correlation_id = set_correlation_id(request.headers.get(REQUEST_ID_HEADER))
    response.headers[REQUEST_ID_HEADER] = correlation_id
    try:
        yield correlation_id
    finally:
        clear_correlation_id()


async def get_permission_facade(request: Request) -> PermissionFacade:
    """
    FastAPI Dependency: Retrieves the shared PermissionFacade from app.state.
    """
    facade = getattr(request.app.state, "permission_facade", None)
    if not facade:
        logger.critical("❌ get_permission_facade: PermissionFacade not found on app.state!")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server configuration error: Authorization engine not loaded.",
        )
    return facade


async def get_identity(request: Request) -> Identity:
    """
    FastAPI Dependency: Resolves the caller's identity.

    Uses the ``X-User-Id`` header set by the authentication layer in front of
    the app, falling back to the configured default user.
    """
    user_id = request.headers.get(USER_ID_HEADER, "").strip()
    if user_id:
        return Identity(user_id=user_id)

    config = getattr(request.app.state, "authz_config", None)
    return identity_from_config(config if isinstance(config, BridgeConfig) else None)


def require_permission(resource: str, action: str | None = None):
    """
    Dependency Factory: Creates a dependency checking for a specific permission.

    Args:
        resource: Resource template; ``{name}`` placeholders are filled from
                  the route's path parameters
        action: Action to check (defaults to the backend's default action)
    """

    async def _check_permission(
        request: Request,
        correlation_id: str = Depends(bind_correlation_id),
        identity: Identity = Depends(get_identity),
        facade: PermissionFacade = Depends(get_permission_facade),
    ) -> Identity:
        """Internal dependency function performing the AuthZ check."""
        try:
            target = resource.format(**request.path_params)
        except (KeyError, IndexError) as e:
            logger.error(f"require_permission: cannot build resource from {resource!r}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Server configuration error: invalid permission resource.",
            ) from e

        try:
            allowed = await facade.check_permission(identity, target, action)
        except ClientError as e:
            raise HTTPException(status_code=e.status_code, detail=e.message) from e

        if not allowed:
            logger.warning(
                f"require_permission: Access DENIED for user '{identity}' to "
                f"('{target}', '{action or facade.adapter.default_action}')."
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"You do not have permission to access '{target}'.",
            )

        logger.debug(f"require_permission: Access GRANTED for user '{identity}' to '{target}'.")
        return identity

    return _check_permission
