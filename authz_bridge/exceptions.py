"""
Custom exceptions for AUTHZ_BRIDGE.

These exceptions provide more specific error types while maintaining
backward compatibility with RuntimeError.

Checks never raise for backend failures (they fail closed). Exceptions are
reserved for caller bugs (malformed input), configuration problems, and
mutations whose outcome the caller needs to know about.
"""

from typing import Any, Dict, Optional


class AuthzBridgeError(RuntimeError):
    """
    Base exception for AUTHZ_BRIDGE errors.

    Attributes:
        message: Error message
        context: Optional dictionary with additional context (backend,
                 resource, operation, etc.)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            context: Optional dictionary with additional context information
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class ConfigurationError(AuthzBridgeError):
    """
    Raised when configuration is invalid or missing.

    Attributes:
        message: Error message
        config_key: Configuration key that caused the error (if available)
        config_value: Configuration value that caused the error (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if config_key:
            context["config_key"] = config_key
        if config_value is not None:
            context["config_value"] = config_value
        super().__init__(message, context=context)
        self.config_key = config_key
        self.config_value = config_value


class ClientError(AuthzBridgeError):
    """
    Raised when the caller supplied input the backend contract cannot accept.

    This is distinct from a denial: it indicates a bug at the call site and
    maps to an HTTP 400 response.
    """

    status_code: int = 400


class InvalidResourceError(ClientError):
    """
    Raised when a resource is not in the form a backend requires.

    Attributes:
        resource: The offending resource string
    """

    def __init__(
        self,
        message: str,
        resource: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if resource is not None:
            context["resource"] = resource
        super().__init__(message, context=context)
        self.resource = resource


class InvalidRoleError(ClientError):
    """
    Raised when a role is outside the vocabulary of a backend for a scope.

    Attributes:
        role: The offending role or relation
        scope: Scope the role was requested for
    """

    def __init__(
        self,
        message: str,
        role: Optional[str] = None,
        scope: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if role is not None:
            context["role"] = role
        if scope is not None:
            context["scope"] = scope
        super().__init__(message, context=context)
        self.role = role
        self.scope = scope


class BackendError(AuthzBridgeError):
    """
    Raised when a backend call that must not fail silently did not apply.

    Used by role mutations and role listing; permission checks never raise
    this and fail closed instead.

    Attributes:
        backend: Backend identifier (casbin, spicedb, opa)
        operation: Operation that failed (add_role, remove_role, ...)
        status_code: HTTP status returned by the backend (if any)
    """

    def __init__(
        self,
        message: str,
        backend: Optional[str] = None,
        operation: Optional[str] = None,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if backend:
            context["backend"] = backend
        if operation:
            context["operation"] = operation
        if status_code is not None:
            context["status_code"] = status_code
        super().__init__(message, context=context)
        self.backend = backend
        self.operation = operation
        self.status_code = status_code


class UnsupportedOperationError(AuthzBridgeError):
    """Raised when a backend has no wire operation for the request."""

    def __init__(self, message: str, backend: Optional[str] = None) -> None:
        super().__init__(message, context={"backend": backend} if backend else None)
        self.backend = backend
