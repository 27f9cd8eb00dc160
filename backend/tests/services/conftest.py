"""Service test fixtures — fake providers wired into a ProviderManager.

Invariants:
    - No network: every provider is a FakeProvider
    - MemoryCache stands in for Redis where caching behaviour is not under test
"""

import pytest

from stockmeter.services.provider_manager import ProviderManager
from tests.fakes import FakeProvider, MemoryCache


@pytest.fixture
def memory_cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def providers() -> list[FakeProvider]:
    return [FakeProvider("Primary"), FakeProvider("Secondary"), FakeProvider("Tertiary")]


@pytest.fixture
def manager(providers) -> ProviderManager:
    return ProviderManager(providers, max_failures=3)
