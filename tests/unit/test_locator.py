"""
Unit tests for the ServiceLocator and its resolution rules.
"""

import pytest

from authz_bridge.exceptions import ConfigurationError
from authz_bridge.locator import (
    ServiceLocator,
    deployment_host,
    explicit_override,
    is_deployment_environment,
    local_default,
)


@pytest.mark.unit
class TestResolutionRules:
    """Each precedence rule on its own."""

    def test_explicit_override_prefers_passed_value(self):
        env = {"CASBIN_SERVICE_URL": "http://from-env:1"}
        assert explicit_override("casbin", {"casbin": "http://passed:2"}, env) == "http://passed:2"

    def test_explicit_override_reads_env(self):
        env = {"OPA_SERVICE_URL": "http://from-env:1"}
        assert explicit_override("opa", {}, env) == "http://from-env:1"

    def test_explicit_override_absent(self, clean_env):
        assert explicit_override("spicedb", {}, clean_env) is None

    @pytest.mark.parametrize(
        "env,expected",
        [
            ({}, False),
            ({"HOSTNAME": "localhost"}, False),
            ({"HOSTNAME": "a1b2c3d4"}, True),
            ({"ENVIRONMENT": "production"}, True),
            ({"ENVIRONMENT": "Docker"}, True),
            ({"ENVIRONMENT": "development"}, False),
        ],
    )
    def test_is_deployment_environment(self, env, expected):
        assert is_deployment_environment(env) is expected

    def test_deployment_host(self):
        env = {"ENVIRONMENT": "production"}
        assert deployment_host("casbin", env) == "http://casbin-server:8080"
        assert deployment_host("spicedb", env) == "http://spicedb-server:8080"
        assert deployment_host("opa", env) == "http://opa-server:8081"

    def test_deployment_host_outside_deployment(self, clean_env):
        assert deployment_host("casbin", clean_env) is None

    def test_local_defaults(self):
        assert local_default("casbin") == "http://localhost:8080"
        assert local_default("spicedb") == "http://localhost:8443"
        assert local_default("opa") == "http://localhost:8081"


@pytest.mark.unit
class TestServiceLocator:
    """First match wins across the chain."""

    def test_override_beats_deployment(self):
        env = {"ENVIRONMENT": "production", "CASBIN_SERVICE_URL": "http://custom:9999/"}
        assert ServiceLocator(environ=env).resolve_base_url("casbin") == "http://custom:9999"

    def test_deployment_beats_local(self):
        env = {"HOSTNAME": "container-42"}
        assert ServiceLocator(environ=env).resolve_base_url("opa") == "http://opa-server:8081"

    def test_falls_back_to_localhost(self, clean_env):
        locator = ServiceLocator(environ=clean_env)
        assert locator.resolve_base_url("spicedb") == "http://localhost:8443"

    def test_passed_overrides(self, clean_env):
        locator = ServiceLocator({"spicedb": "http://spice:1234"}, environ=clean_env)
        assert locator.resolve_base_url("spicedb") == "http://spice:1234"
        assert locator.resolve_base_url("casbin") == "http://localhost:8080"

    def test_unknown_backend(self, clean_env):
        with pytest.raises(ConfigurationError):
            ServiceLocator(environ=clean_env).resolve_base_url("ldap")
