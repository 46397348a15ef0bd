"""
pytest configuration for userauth tests.

Adds src directory to Python path for imports and clears environment
variables that change token behavior.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))


@pytest.fixture(autouse=True)
def clean_auth_env(monkeypatch):
    """Tests start without auth-related environment overrides."""
    for var in (
        "FORCE_EXPIRED_ACCESS_TOKEN",
        "AZURE_AD_ENDPOINT",
        "AZURE_TENANT_ID",
        "AZURE_CLIENT_ID",
        "AZURE_RESOURCE_URI",
        "AZURE_REDIRECT_URI",
        "AZURE_TOKEN_CACHE_PATH",
    ):
        monkeypatch.delenv(var, raising=False)
