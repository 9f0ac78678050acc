"""Root-level pytest fixtures for all tests.

Provides shared fixtures for:
- Environment isolation (no real API key or config file leaks into tests)
- Logging state restored after code that calls configure_logging()
- A sample pricing request
"""

import logging
import os

import pytest

_ENV_PREFIXES = ("EUROPARCEL_", "MCP_")


# ============================================================================
# Pytest Markers
# ============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests requiring external services"
    )


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Strip Europarcel settings from the environment and hide config files.

    Runs every test from an empty working directory with HOME pointing at it,
    so load_config() only sees what the test sets up.
    """
    for key in list(os.environ):
        if key.startswith(_ENV_PREFIXES) or key == "LOG_LEVEL":
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo configure_logging() calls made by the code under test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


# ============================================================================
# Request Fixtures
# ============================================================================


@pytest.fixture
def pricing_request() -> dict:
    """A valid envelope pricing request using saved addresses."""
    return {
        "carrier_id": 1,
        "service_id": 1,
        "billing_to": {"billing_address_id": 10},
        "address_from": {"address_from_id": 5},
        "address_to": {"address_to_id": 7},
        "content": {"envelopes_count": 1, "total_weight": 0.5},
        "extra": {"parcel_content": "Documents"},
    }
