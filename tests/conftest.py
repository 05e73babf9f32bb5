import pytest
from arcade_tdk import ToolContext, ToolSecretItem

from arcade_filemaker.settings import get_settings
from arcade_filemaker.state import get_cache, get_rate_limiter, get_run_registry


@pytest.fixture
def mock_context() -> ToolContext:
    return ToolContext(
        secrets=[
            ToolSecretItem(key="FILEMAKER_HOST", value="fms.example.com"),
            ToolSecretItem(key="FILEMAKER_DATABASE", value="Contacts"),
            ToolSecretItem(key="FILEMAKER_USERNAME", value="admin"),
            ToolSecretItem(key="FILEMAKER_PASSWORD", value="secret"),
        ],
    )


@pytest.fixture(autouse=True)
def reset_shared_state(monkeypatch):
    """Every test starts with fresh settings, cache, rate log and run registry."""
    monkeypatch.setenv("FILEMAKER_CHUNK_DELAY_SECONDS", "0")
    monkeypatch.setenv("FILEMAKER_PAGE_DELAY_SECONDS", "0")
    for cached in (get_settings, get_cache, get_rate_limiter, get_run_registry):
        cached.cache_clear()
    yield
    for cached in (get_settings, get_cache, get_rate_limiter, get_run_registry):
        cached.cache_clear()
