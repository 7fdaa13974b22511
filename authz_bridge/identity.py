"""
Caller identity.

The identity is an explicit value handed to every facade call, so concurrent
requests for different users never share state.
"""

from __future__ import annotations

from dataclasses import dataclass

from .config import BridgeConfig
from .constants import ANONYMOUS_USER_ID


@dataclass(frozen=True)
class Identity:
    """The subject on whose behalf a permission is checked."""

    user_id: str

    @classmethod
    def anonymous(cls) -> Identity:
        return cls(user_id=ANONYMOUS_USER_ID)

    @property
    def is_anonymous(self) -> bool:
        return self.user_id == ANONYMOUS_USER_ID

    def __str__(self) -> str:
        return self.user_id


def identity_from_config(config: BridgeConfig | None = None) -> Identity:
    """Build the configured default identity (AUTHENTICATED_USER_ID)."""
    config = config or BridgeConfig()
    return Identity(user_id=config.default_user_id)
