"""Shared test fixtures for powerplatform-mcp."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from fastapi.testclient import TestClient

from powerplatform_mcp.api.app import create_app
from powerplatform_mcp.config.schema import PowerPlatformMcpConfig
from powerplatform_mcp.tools import build_registry

if TYPE_CHECKING:
    from powerplatform_mcp.tools.registry import ToolRegistry
    from tests.fixtures.dataverse import StubDataverseService as StubServiceType


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:  # type: ignore[no-untyped-def]
    """Keep host config files and env vars out of every test."""
    from powerplatform_mcp.config.loader import ENV_OVERRIDES

    for var in (*ENV_OVERRIDES, "POWERPLATFORM_MCP_CONFIG"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def stub_service() -> StubServiceType:
    """Stub Dataverse service with canned account payloads."""
    from tests.fixtures.dataverse import StubDataverseService

    return StubDataverseService()


@pytest.fixture
def registry(stub_service: StubServiceType) -> ToolRegistry:
    return build_registry(stub_service)


@pytest.fixture
def make_client():  # type: ignore[no-untyped-def]
    """Factory fixture: TestClient bound to a given service."""

    def _make(service: object) -> TestClient:
        app = create_app(PowerPlatformMcpConfig(), service=service)  # type: ignore[arg-type]
        return TestClient(app, raise_server_exceptions=False)

    return _make


@pytest.fixture
def client(make_client, stub_service: StubServiceType) -> TestClient:  # type: ignore[no-untyped-def]
    return make_client(stub_service)
