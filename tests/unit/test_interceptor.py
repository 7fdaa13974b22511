"""
Unit tests for the global admin short-circuit.
"""

import pytest

from authz_bridge.interceptor import GlobalAdminInterceptor
from authz_bridge.models import PermissionQuery

GLOBAL_PAIR = ("global:main", "admin")


def query(resource="system:system1", action="read"):
    return PermissionQuery(subject="alice", resource=resource, action=action)


@pytest.mark.unit
class TestGlobalAdminInterceptor:
    @pytest.mark.asyncio
    async def test_global_grant_short_circuits(self, scripted_adapter):
        adapter = scripted_adapter(grants=[GLOBAL_PAIR])

        decision = await GlobalAdminInterceptor().with_global_override(
            "alice", query("aws:aws9", "delete"), adapter
        )

        assert decision.allowed is True
        assert decision.reason == "global admin"
        assert adapter.queries == [("alice", "global:main", "admin")]

    @pytest.mark.asyncio
    async def test_falls_through_when_not_admin(self, scripted_adapter):
        adapter = scripted_adapter(grants=[("system:system1", "read")])

        decision = await GlobalAdminInterceptor().with_global_override("alice", query(), adapter)

        assert decision.allowed is True
        assert decision.reason is None
        assert adapter.queries == [
            ("alice", "global:main", "admin"),
            ("alice", "system:system1", "read"),
        ]

    @pytest.mark.asyncio
    async def test_falls_through_when_global_check_fails(self, scripted_adapter):
        adapter = scripted_adapter(grants=[("system:system1", "read")], failing=["global:main"])

        decision = await GlobalAdminInterceptor().with_global_override("alice", query(), adapter)

        assert decision.allowed is True
        assert len(adapter.queries) == 2

    @pytest.mark.asyncio
    async def test_denied_everywhere(self, scripted_adapter):
        adapter = scripted_adapter()

        decision = await GlobalAdminInterceptor().with_global_override("alice", query(), adapter)

        assert decision.allowed is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("granted", [True, False])
    async def test_global_query_checked_once(self, scripted_adapter, granted):
        adapter = scripted_adapter(grants=[GLOBAL_PAIR] if granted else [])

        decision = await GlobalAdminInterceptor().with_global_override(
            "alice", query(*GLOBAL_PAIR), adapter
        )

        assert decision.allowed is granted
        assert adapter.queries == [("alice", "global:main", "admin")]

    @pytest.mark.asyncio
    async def test_uses_adapter_marker(self, scripted_adapter):
        adapter = scripted_adapter(grants=[("global:main", "full_access")])
        adapter.global_admin_action = "full_access"

        decision = await GlobalAdminInterceptor().with_global_override("alice", query(), adapter)

        assert decision.allowed is True
        assert adapter.queries == [("alice", "global:main", "full_access")]
