"""Pytest configuration and fixtures.

Provides environment isolation and logging configuration. All fixtures here
are autouse unless noted.
"""

from __future__ import annotations

import logging
import os

import pytest

# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    monkeypatch.setattr("tristate.config._DOTENV_LOADED", True)


@pytest.fixture(autouse=True)
def isolate_tristate_env(request, monkeypatch):
    """Clear TRISTATE_* env vars so each test starts from defaults.

    Opt-out: @pytest.mark.allow_env_pollution
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return
    for key in list(os.environ.keys()):
        if key.startswith("TRISTATE_"):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_asyncio_logger():
    """Suppress asyncio debug chatter."""
    logging.getLogger("asyncio").setLevel(logging.WARNING)


# =============================================================================
# Shared fixtures
# =============================================================================


@pytest.fixture
def boom() -> ValueError:
    """A single error instance; failures compare equal only on the same instance."""
    return ValueError("boom")
