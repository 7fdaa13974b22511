"""
Role Mutation Coordinator

Swaps a subject's role on a scope as a two-step compensating sequence:
remove the old role, then add the new one. If the add fails after a
successful remove, the old role is re-added once.

Known gaps:
- There is no durable log. A crash between remove and add leaves the
  subject with neither role.
- A failed compensation also leaves the subject with neither role. It is
  reported (``needs_reconciliation``) and never retried.

Remove always completes before add starts, so the subject never holds both
roles because of this sequence.

This module is part of AUTHZ_BRIDGE.
"""

from __future__ import annotations

import enum
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from .backends.base import BaseBackendAdapter
from .exceptions import AuthzBridgeError, ConfigurationError, InvalidRoleError
from .observability import get_logger, timed_operation

logger = get_logger(__name__)


class RoleUpdateState(str, enum.Enum):
    IDLE = "idle"
    NOOP = "noop"
    REMOVING = "removing"
    ADDING = "adding"
    COMPENSATING = "compensating"
    COMMITTED = "committed"
    FAILED = "failed"


@dataclass
class RoleUpdateOutcome:
    """
    Result of a role update.

    Attributes:
        state: Final state (NOOP, COMMITTED or FAILED)
        steps: Mutations attempted, in order (``remove:owner``, ``add:manager``, ...)
        compensated: Whether a compensating re-add was attempted
        compensation_succeeded: Result of that re-add (None if not attempted)
        needs_reconciliation: True when the subject may be left with neither role
    """

    state: RoleUpdateState = RoleUpdateState.IDLE
    steps: list[str] = field(default_factory=list)
    compensated: bool = False
    compensation_succeeded: bool | None = None
    needs_reconciliation: bool = False

    @property
    def committed(self) -> bool:
        return self.state in (RoleUpdateState.NOOP, RoleUpdateState.COMMITTED)


class RoleMutationCoordinator:
    """Sequential remove-then-add role updates against one adapter."""

    def __init__(self, adapter: BaseBackendAdapter):
        if not adapter.supports_role_mutation:
            raise ConfigurationError(
                f"{adapter.engine_name} does not support role mutation",
                config_key="backend",
                config_value=adapter.backend,
            )
        self._adapter = adapter

    @timed_operation("authz.update_role")
    async def update_role(
        self, subject: str, scope: str, old_role: str | None, new_role: str | None
    ) -> bool:
        """
        Replace ``old_role`` with ``new_role`` for a subject on a scope.

        Returns:
            True if the change was committed (or was a no-op). False means the
            subject's roles may need manual reconciliation.

        Raises:
            InvalidRoleError: If ``new_role`` is outside the scope's vocabulary
                (raised before any mutation is attempted)
        """
        outcome = await self.update_role_with_outcome(subject, scope, old_role, new_role)
        return outcome.committed

    async def update_role_with_outcome(
        self, subject: str, scope: str, old_role: str | None, new_role: str | None
    ) -> RoleUpdateOutcome:
        """Same as update_role, returning the full RoleUpdateOutcome."""
        old_role = old_role or ""
        new_role = new_role or ""
        outcome = RoleUpdateOutcome()

        if old_role == new_role:
            outcome.state = RoleUpdateState.NOOP
            logger.debug(f"Role update for {subject} on {scope} is a no-op ({old_role!r})")
            return outcome

        if new_role and new_role not in self._adapter.available_roles(scope):
            raise InvalidRoleError(
                f"Role '{new_role}' cannot be assigned on {scope}", role=new_role, scope=scope
            )

        removed = False
        if old_role:
            outcome.state = RoleUpdateState.REMOVING
            outcome.steps.append(f"remove:{old_role}")
            if not await self._apply(self._adapter.remove_role, subject, scope, old_role):
                outcome.state = RoleUpdateState.FAILED
                logger.error(
                    f"❌ Role update aborted: could not remove {old_role!r} from "
                    f"{subject} on {scope}; previous role left intact"
                )
                return outcome
            removed = True

        if new_role:
            outcome.state = RoleUpdateState.ADDING
            outcome.steps.append(f"add:{new_role}")
            if not await self._apply(self._adapter.add_role, subject, scope, new_role):
                if removed:
                    await self._compensate(outcome, subject, scope, old_role)
                outcome.state = RoleUpdateState.FAILED
                return outcome

        outcome.state = RoleUpdateState.COMMITTED
        logger.info(
            f"✅ Role update committed for {subject} on {scope}: "
            f"{old_role or '-'} -> {new_role or '-'}"
        )
        return outcome

    async def assign_role(self, subject: str, scope: str, new_role: str | None) -> bool:
        """
        Set the subject's role on a scope, replacing whatever role it holds.

        The current role is read from the backend first. Global roles are not
        touched, only the scope's own roles are considered.
        """
        try:
            current = await self._adapter.list_roles(subject, scope)
        except AuthzBridgeError as e:
            logger.error(f"Cannot plan role update for {subject} on {scope}: {e}")
            return False

        if new_role and new_role in current:
            return True
        if len(current) > 1:
            logger.warning(
                f"{subject} holds several roles on {scope} ({current}); replacing {current[0]!r}"
            )
        old_role = current[0] if current else ""
        return await self.update_role(subject, scope, old_role, new_role)

    async def _apply(
        self,
        mutation: Callable[[str, str, str], Awaitable[bool]],
        subject: str,
        scope: str,
        role: str,
    ) -> bool:
        try:
            await mutation(subject, scope, role)
        except AuthzBridgeError as e:
            logger.warning(f"Role mutation {mutation.__name__}({subject}, {scope}, {role}) failed: {e}")
            return False
        return True

    async def _compensate(
        self, outcome: RoleUpdateOutcome, subject: str, scope: str, old_role: str
    ) -> None:
        outcome.state = RoleUpdateState.COMPENSATING
        outcome.compensated = True
        outcome.steps.append(f"compensate:{old_role}")
        outcome.compensation_succeeded = await self._apply(
            self._adapter.add_role, subject, scope, old_role
        )
        if outcome.compensation_succeeded:
            logger.warning(f"Role update failed for {subject} on {scope}; restored {old_role!r}")
        else:
            outcome.needs_reconciliation = True
            logger.critical(
                f"❌ Role update failed for {subject} on {scope} and {old_role!r} could not be "
                f"restored; subject holds neither role and needs manual reconciliation"
            )
