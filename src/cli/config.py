"""YAML configuration loader with env var resolution and Pydantic validation.

Loads config from (priority order):
1. --config <path> CLI flag
2. ./europarcel.yaml (working directory)
3. ~/.europarcel/config.yaml (user home)

Environment variables override YAML: EUROPARCEL_<SECTION>_<KEY>.
The plain variables EUROPARCEL_API_KEY, MCP_TRANSPORT, MCP_PORT and
LOG_LEVEL are honoured as well, so a bare environment is a valid config.
${VAR} references in YAML values resolve from environment at load time.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

DEFAULT_BASE_URL = "https://api.europarcel.com/api/public"

# Plain variable -> (section, field)
_LEGACY_ENV_VARS: dict[str, tuple[str, str]] = {
    "EUROPARCEL_API_KEY": ("api", "api_key"),
    "MCP_TRANSPORT": ("server", "transport"),
    "MCP_PORT": ("server", "port"),
    "LOG_LEVEL": ("server", "log_level"),
}


def resolve_env_vars(value: str) -> str:
    """Resolve ${VAR} references in a string from environment variables.

    Missing env vars resolve to empty string.
    """
    def _replace(match: re.Match) -> str:
        return os.environ.get(match.group(1), "")

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _resolve_env_vars_recursive(data: Any) -> Any:
    if isinstance(data, str):
        return resolve_env_vars(data)
    elif isinstance(data, dict):
        return {k: _resolve_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_vars_recursive(item) for item in data]
    return data


class ApiConfig(BaseModel):
    """Europarcel REST API access."""

    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    timeout: float = Field(default=30.0, gt=0)

    @field_validator("api_key", "base_url", mode="before")
    @classmethod
    def as_string(cls, value: Any) -> Any:
        return str(value) if isinstance(value, (int, float)) else value

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class ServerConfig(BaseModel):
    """MCP server transport and logging."""

    transport: Literal["stdio", "http"] = "stdio"
    host: str = "127.0.0.1"
    port: int = Field(default=3000, ge=1, le=65535)
    log_level: str = "info"
    log_format: Literal["text", "json"] = "text"

    @field_validator("transport", "log_level", "log_format", mode="before")
    @classmethod
    def lowercase(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value


class EuroparcelConfig(BaseModel):
    """Top-level configuration for the Europarcel MCP server."""

    api: ApiConfig = ApiConfig()
    server: ServerConfig = ServerConfig()


def _find_config_file() -> Path | None:
    """Search for config file in standard locations."""
    candidates = [
        Path.cwd() / "europarcel.yaml",
        Path.cwd() / "europarcel.yml",
        Path.home() / ".europarcel" / "config.yaml",
        Path.home() / ".europarcel" / "config.yml",
    ]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def _coerce(value: str) -> Any:
    try:
        return int(value)
    except ValueError:
        if value.lower() in ("true", "false"):
            return value.lower() == "true"
        return value


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply environment overrides to config data.

    Plain variables (EUROPARCEL_API_KEY, MCP_PORT, ...) are applied first,
    then EUROPARCEL_<SECTION>_<KEY>, which wins when both are set. For
    example, ``EUROPARCEL_SERVER_PORT`` maps to section ``server``, field
    ``port``.
    """
    for env_name, (section, field_name) in _LEGACY_ENV_VARS.items():
        value = os.environ.get(env_name)
        if value:
            data.setdefault(section, {})
            if isinstance(data[section], dict):
                data[section][field_name] = _coerce(value)

    prefix = "EUROPARCEL_"
    known_sections = sorted(
        EuroparcelConfig.model_fields.keys(), key=len, reverse=True
    )
    for key, value in os.environ.items():
        if not key.startswith(prefix) or key in _LEGACY_ENV_VARS:
            continue
        suffix = key[len(prefix):].lower()
        for section in known_sections:
            section_prefix = section + "_"
            if suffix.startswith(section_prefix) and len(suffix) > len(section_prefix):
                data.setdefault(section, {})
                if isinstance(data[section], dict):
                    data[section][suffix[len(section_prefix):]] = _coerce(value)
                break
    return data


def load_config(config_path: str | None = None) -> EuroparcelConfig:
    """Load configuration from YAML (if any) plus environment overrides.

    Args:
        config_path: Explicit path to config file. If None, searches
            standard locations (cwd, then ~/.europarcel/).

    Returns:
        Validated EuroparcelConfig. Defaults plus environment when no
        file is found.

    Raises:
        FileNotFoundError: If an explicit config_path does not exist.
    """
    raw_data: dict[str, Any] = {}
    if config_path:
        path: Path | None = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        path = _find_config_file()

    if path is not None:
        logger.info("Loading config from %s", path)
        with open(path) as f:
            raw_data = yaml.safe_load(f) or {}

    data = _resolve_env_vars_recursive(raw_data)
    data = _apply_env_overrides(data)
    return EuroparcelConfig(**data)
