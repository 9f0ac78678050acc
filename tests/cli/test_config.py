"""Tests for configuration loading and validation."""

import pytest
import yaml
from pydantic import ValidationError

from src.cli.config import (
    DEFAULT_BASE_URL,
    ApiConfig,
    EuroparcelConfig,
    ServerConfig,
    load_config,
    resolve_env_vars,
)


class TestApiConfig:

    def test_defaults(self):
        cfg = ApiConfig()
        assert cfg.api_key == ""
        assert cfg.base_url == DEFAULT_BASE_URL
        assert cfg.timeout == 30.0

    def test_trailing_slash_stripped(self):
        cfg = ApiConfig(base_url="https://sandbox.example.com/api/public/")
        assert cfg.base_url == "https://sandbox.example.com/api/public"

    def test_numeric_key_becomes_string(self):
        assert ApiConfig(api_key=12345).api_key == "12345"

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            ApiConfig(timeout=0)


class TestServerConfig:

    def test_defaults(self):
        cfg = ServerConfig()
        assert cfg.transport == "stdio"
        assert cfg.host == "127.0.0.1"
        assert cfg.port == 3000
        assert cfg.log_level == "info"
        assert cfg.log_format == "text"

    def test_transport_case_insensitive(self):
        assert ServerConfig(transport="HTTP").transport == "http"

    def test_rejects_unknown_transport(self):
        with pytest.raises(ValidationError):
            ServerConfig(transport="sse")

    def test_rejects_port_out_of_range(self):
        with pytest.raises(ValidationError):
            ServerConfig(port=70000)


class TestResolveEnvVars:

    def test_resolves_reference(self, monkeypatch):
        monkeypatch.setenv("EP_KEY", "secret")
        assert resolve_env_vars("${EP_KEY}") == "secret"

    def test_missing_reference_is_empty(self):
        assert resolve_env_vars("key-${DOES_NOT_EXIST_123}") == "key-"


class TestLoadConfig:

    def test_no_file_gives_defaults(self):
        cfg = load_config()
        assert isinstance(cfg, EuroparcelConfig)
        assert cfg.api.api_key == ""
        assert cfg.server.transport == "stdio"

    def test_explicit_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "nope.yaml"))

    def test_loads_yaml_with_env_reference(self, tmp_path, monkeypatch):
        monkeypatch.setenv("EP_SECRET", "from-env")
        path = tmp_path / "custom.yaml"
        path.write_text(yaml.dump({
            "api": {"api_key": "${EP_SECRET}"},
            "server": {"transport": "http", "port": 8080},
        }))
        cfg = load_config(str(path))
        assert cfg.api.api_key == "from-env"
        assert cfg.server.transport == "http"
        assert cfg.server.port == 8080

    def test_discovers_file_in_working_directory(self, tmp_path):
        (tmp_path / "europarcel.yaml").write_text(yaml.dump({"api": {"api_key": "cwd-key"}}))
        assert load_config().api.api_key == "cwd-key"

    def test_plain_env_vars(self, monkeypatch):
        monkeypatch.setenv("EUROPARCEL_API_KEY", "env-key")
        monkeypatch.setenv("MCP_TRANSPORT", "http")
        monkeypatch.setenv("MCP_PORT", "4000")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        cfg = load_config()
        assert cfg.api.api_key == "env-key"
        assert cfg.server.transport == "http"
        assert cfg.server.port == 4000
        assert cfg.server.log_level == "debug"

    def test_sectioned_env_var_wins(self, monkeypatch):
        monkeypatch.setenv("MCP_PORT", "4000")
        monkeypatch.setenv("EUROPARCEL_SERVER_PORT", "5000")
        assert load_config().server.port == 5000

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text(yaml.dump({"api": {"api_key": "yaml-key"}}))
        monkeypatch.setenv("EUROPARCEL_API_KEY", "env-key")
        assert load_config(str(path)).api.api_key == "env-key"

    def test_invalid_values_raise(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text(yaml.dump({"server": {"port": "not-a-port"}}))
        with pytest.raises(ValidationError):
            load_config(str(path))
