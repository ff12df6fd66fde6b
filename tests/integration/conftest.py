"""Shared fixtures for integration tests (live NCBI E-utilities)."""

import pytest
from dotenv import load_dotenv

from pubminer.config import Settings
from pubminer.data_sources.eutils import EUtilsClient
from pubminer.utils.cache import AbstractCache

load_dotenv()


@pytest.fixture
async def eutils_client(tmp_path):
    """Create and tear down a live EUtilsClient caching into tmp_path.

    Skipped unless EUTILS_API_KEY is set, so offline runs stay green.
    """
    settings = Settings()
    if not settings.eutils_api_key:
        pytest.skip("EUTILS_API_KEY not set, skipping live E-utilities test")

    c = EUtilsClient.from_settings(settings.model_copy(update={"cache_enabled": False}))
    c.cache = AbstractCache(tmp_path)
    yield c
    await c.close()
