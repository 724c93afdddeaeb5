"""Tests for configuration loading and validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from powerplatform_mcp.config.loader import _deep_merge, load_config
from powerplatform_mcp.config.schema import (
    LoggingConfig,
    PowerPlatformConfig,
    PowerPlatformMcpConfig,
    ServerConfig,
)
from powerplatform_mcp.core.errors import ConfigError

# ─── Schema Defaults ──────────────────────────────────────────


class TestSchemaDefaults:
    def test_all_defaults(self):
        cfg = PowerPlatformMcpConfig()
        assert cfg.server.port == 3000
        assert cfg.server.host == "127.0.0.1"
        assert cfg.server.cors_origins == ["*"]
        assert cfg.powerplatform.organization_url == ""
        assert cfg.powerplatform.api_version == "9.2"
        assert cfg.logging.level == "INFO"

    def test_missing_fields(self):
        assert PowerPlatformConfig().missing_fields() == [
            "organization_url",
            "client_id",
            "client_secret",
            "tenant_id",
        ]
        full = PowerPlatformConfig(
            organization_url="https://x.crm.dynamics.com",
            client_id="a",
            client_secret="b",
            tenant_id="c",
        )
        assert full.missing_fields() == []

    def test_frozen(self):
        cfg = PowerPlatformMcpConfig()
        with pytest.raises(ValidationError):
            cfg.server = ServerConfig(port=1)  # type: ignore[misc]
        with pytest.raises(ValidationError):
            cfg.powerplatform.client_id = "changed"  # type: ignore[misc]

    def test_negative_retries_rejected(self):
        with pytest.raises(ValidationError):
            PowerPlatformConfig(max_retries=-1)

    def test_logging_defaults(self):
        assert LoggingConfig().file == ""


# ─── Merge ────────────────────────────────────────────────────


class TestDeepMerge:
    def test_nested_override(self):
        base = {"server": {"host": "a", "port": 1}}
        assert _deep_merge(base, {"server": {"port": 2}}) == {
            "server": {"host": "a", "port": 2}
        }

    def test_base_not_mutated(self):
        base = {"a": {"b": 1}}
        _deep_merge(base, {"a": {"b": 2}})
        assert base == {"a": {"b": 1}}


# ─── load_config ──────────────────────────────────────────────


class TestLoadConfig:
    def test_defaults_without_files(self):
        assert load_config() == PowerPlatformMcpConfig()

    def test_explicit_file(self, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text(
            '[powerplatform]\norganization_url = "https://contoso.crm.dynamics.com"\n'
            "[server]\nport = 8080\n"
        )
        cfg = load_config(path=path)
        assert cfg.powerplatform.organization_url == "https://contoso.crm.dynamics.com"
        assert cfg.server.port == 8080

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(path=tmp_path / "nope.toml")

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[server\nport = ")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(path=path)

    def test_validation_failure(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text('[server]\nport = "not a port"\n')
        with pytest.raises(ConfigError, match="validation failed"):
            load_config(path=path)

    def test_project_file_discovered(self, tmp_path):
        (tmp_path / "powerplatform-mcp.toml").write_text("[server]\nport = 4000\n")
        assert load_config().server.port == 4000

    def test_user_file_discovered(self, tmp_path):
        user_dir = tmp_path / "xdg" / "powerplatform-mcp"
        user_dir.mkdir(parents=True)
        (user_dir / "config.toml").write_text('[logging]\nlevel = "DEBUG"\n')
        assert load_config().logging.level == "DEBUG"

    def test_env_config_path(self, tmp_path, monkeypatch):
        path = tmp_path / "env.toml"
        path.write_text("[server]\nport = 5000\n")
        monkeypatch.setenv("POWERPLATFORM_MCP_CONFIG", str(path))
        assert load_config().server.port == 5000

    def test_env_config_path_missing(self, tmp_path, monkeypatch):
        monkeypatch.setenv("POWERPLATFORM_MCP_CONFIG", str(tmp_path / "gone.toml"))
        with pytest.raises(ConfigError, match="non-existent"):
            load_config()

    def test_port_env_var(self, monkeypatch):
        monkeypatch.setenv("PORT", "8123")
        assert load_config().server.port == 8123

    def test_credential_env_vars(self, monkeypatch):
        monkeypatch.setenv("POWERPLATFORM_URL", "https://contoso.crm.dynamics.com")
        monkeypatch.setenv("POWERPLATFORM_CLIENT_ID", "cid")
        monkeypatch.setenv("POWERPLATFORM_CLIENT_SECRET", "shh")
        monkeypatch.setenv("POWERPLATFORM_TENANT_ID", "tid")
        pp = load_config().powerplatform
        assert pp.missing_fields() == []
        assert pp.client_secret == "shh"

    def test_env_beats_file(self, tmp_path, monkeypatch):
        path = tmp_path / "c.toml"
        path.write_text("[server]\nport = 9000\n")
        monkeypatch.setenv("PORT", "9001")
        assert load_config(path=path).server.port == 9001

    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv("PORT", "9001")
        cfg = load_config(overrides={"server": {"port": 9002}})
        assert cfg.server.port == 9002

    def test_log_level_env_is_normalized(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert load_config().logging.level == "DEBUG"

    def test_unknown_log_level_is_config_error(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "verbose")
        with pytest.raises(ConfigError, match="level"):
            load_config()
