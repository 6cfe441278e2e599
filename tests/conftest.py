"""Root conftest: shared fixtures for all wiwo tests.

Provides:
- anyio backend pinned to asyncio
- Autouse reset of GitHub TTL caches and the shared HTTP client

"""

from __future__ import annotations

import pytest

import wiwo.services.github.http_client as http_client_module
from wiwo.services.github.cache import clear_all_caches

# ─────────────────────────────────────────────────────────────────────────────
# Async backend
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


# ─────────────────────────────────────────────────────────────────────────────
# Isolation
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _reset_github_state():
    """Clear TTL caches and forget the shared client between tests."""
    clear_all_caches()
    original = http_client_module._client
    http_client_module._client = None
    yield
    clear_all_caches()
    http_client_module._client = original


