"""
Pytest configuration and shared fixtures for AUTHZ_BRIDGE tests.

This module provides:
- A routed fake backend built on httpx.MockTransport
- A stateful fake Casbin server for role mutation tests
- Adapter fixtures wired to those fakes
"""

import json
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest

from authz_bridge.backends import BaseBackendAdapter, CasbinAdapter, OpaAdapter, SpiceDBAdapter
from authz_bridge.models import PermissionDecision, PermissionQuery
from authz_bridge.observability import clear_authz_context, get_metrics_collector

CASBIN_URL = "http://casbin.test"
SPICEDB_URL = "http://spicedb.test"
OPA_URL = "http://opa.test"

Route = Union[dict, list, httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without external services")


# ============================================================================
# FAKE BACKENDS
# ============================================================================


class FakeBackend:
    """
    Routed request handler for httpx.MockTransport.

    Routes map (method, path) to a JSON body, an httpx.Response, an exception
    to raise, or a callable receiving the request. Unrouted requests get 404.
    Every request is recorded.
    """

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Route] = {}
        self.requests: List[httpx.Request] = []

    def route(self, method: str, path: str, response: Route) -> None:
        self.routes[(method.upper(), path)] = response

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.routes.get((request.method, request.url.path))
        if response is None:
            return httpx.Response(404, json={"error": "not found"})
        if isinstance(response, Exception):
            raise response
        if isinstance(response, httpx.Response):
            return response
        if callable(response):
            return response(request)
        return httpx.Response(200, json=response)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))

    def bodies(self, path: Optional[str] = None) -> List[Any]:
        """JSON bodies of recorded requests (optionally for one path)."""
        return [
            json.loads(r.content) if r.content else None
            for r in self.requests
            if path is None or r.url.path == path
        ]

    @property
    def call_count(self) -> int:
        return len(self.requests)


class FakeCasbinServer(FakeBackend):
    """
    Casbin server double that keeps grouping policies in memory.

    ``fail_add`` / ``fail_remove`` hold roles whose mutation answers 500.
    """

    def __init__(self, groups: Optional[List[List[str]]] = None) -> None:
        super().__init__()
        self.groups: List[List[str]] = [list(g) for g in groups or []]
        self.fail_add: set = set()
        self.fail_remove: set = set()
        self.route("POST", "/add-role", self._add_role)
        self.route("POST", "/remove-role", self._remove_role)
        self.route("GET", "/groups", lambda request: httpx.Response(200, json={"groups": self.groups}))

    def _add_role(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if body["role"] in self.fail_add:
            return httpx.Response(500, text="add failed")
        rule = [body["user"], body["role"]]
        added = rule not in self.groups
        if added:
            self.groups.append(rule)
        return httpx.Response(200, json={"added": added, **body})

    def _remove_role(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if body["role"] in self.fail_remove:
            return httpx.Response(500, text="remove failed")
        rule = [body["user"], body["role"]]
        removed = rule in self.groups
        if removed:
            self.groups.remove(rule)
        return httpx.Response(200, json={"removed": removed, **body})

    def mutations(self) -> List[Tuple[str, str]]:
        """(path, role) for every add/remove request, in order."""
        return [
            (r.url.path, json.loads(r.content)["role"])
            for r in self.requests
            if r.url.path in ("/add-role", "/remove-role")
        ]


class ScriptedAdapter(BaseBackendAdapter):
    """
    In-memory adapter answering from a set of granted (resource, action) pairs.

    Resources listed in ``failing`` raise a transport error. Every evaluated
    query is recorded in ``queries``.
    """

    backend = "scripted"
    engine_name = "Scripted"

    def __init__(self, grants=(), failing=()) -> None:
        super().__init__("http://scripted.test", client=httpx.AsyncClient())
        self.grants = set(grants)
        self.failing = set(failing)
        self.queries: List[Tuple[str, str, str]] = []

    async def _check(self, query: PermissionQuery) -> PermissionDecision:
        self.queries.append((query.subject, query.resource, query.action))
        if query.resource in self.failing:
            raise httpx.ConnectError("backend down")
        return PermissionDecision(allowed=(query.resource, query.action) in self.grants)


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture(autouse=True)
def reset_observability():
    """Isolate the global metrics collector and logging context per test."""
    get_metrics_collector().reset()
    yield
    get_metrics_collector().reset()
    clear_authz_context()


@pytest.fixture
def clean_env() -> Dict[str, str]:
    """An empty environment mapping (no deployment hints, no overrides)."""
    return {}


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def casbin_server() -> FakeCasbinServer:
    return FakeCasbinServer()


@pytest.fixture
def casbin_adapter(fake_backend: FakeBackend) -> CasbinAdapter:
    return CasbinAdapter(CASBIN_URL, client=fake_backend.client())


@pytest.fixture
def spicedb_adapter(fake_backend: FakeBackend) -> SpiceDBAdapter:
    return SpiceDBAdapter(SPICEDB_URL, client=fake_backend.client(), auth_key="test-key")


@pytest.fixture
def opa_adapter(fake_backend: FakeBackend) -> OpaAdapter:
    return OpaAdapter(OPA_URL, client=fake_backend.client())


@pytest.fixture
def stateful_casbin_adapter(casbin_server: FakeCasbinServer) -> CasbinAdapter:
    return CasbinAdapter(CASBIN_URL, client=casbin_server.client())



@pytest.fixture
def scripted_adapter() -> Callable[..., ScriptedAdapter]:
    """Factory for ScriptedAdapter instances."""
    return ScriptedAdapter
