import asyncio

import pytest

from services.comparison_cache import ComparisonCache
from services.comparison_models import Property
from services.comparison_orchestrator import ComparisonOrchestrator


@pytest.fixture
def daft(static_adapter):
    return static_adapter([{"id": "d1", "price": 450000, "bedrooms": 3, "address": "123 Main Street, Dublin 4"}])


@pytest.fixture
def cache(comparison_config, daft):
    orchestrator = ComparisonOrchestrator(adapters={"daft": daft}, config=comparison_config)
    return ComparisonCache(orchestrator, max_entries=2)


def test_repeat_requests_hit_the_cache(cache, daft, reference_property):
    first = asyncio.run(cache.compare(reference_property, "v1"))
    second = asyncio.run(cache.compare(reference_property, "v1"))

    assert second is first
    assert daft.calls == 1
    assert (cache.hits, cache.misses) == (1, 1)
    assert cache.get(101, "v1") is first


def test_new_data_version_recomputes(cache, daft, reference_property):
    asyncio.run(cache.compare(reference_property, "v1"))
    asyncio.run(cache.compare(reference_property, "v2"))

    assert daft.calls == 2
    assert len(cache) == 2


def test_invalidate_drops_every_version(cache, reference_property):
    asyncio.run(cache.compare(reference_property, "v1"))
    asyncio.run(cache.compare(reference_property, "v2"))

    assert cache.invalidate(101) == 2
    assert len(cache) == 0
    assert cache.invalidate(101) == 0


def test_oldest_entry_is_evicted(cache, reference_property):
    other = Property(id=202, address="9 Harbour Road, Cork")
    third = Property(id=303, address="1 Quay Street, Galway")

    asyncio.run(cache.compare(reference_property, "v1"))
    asyncio.run(cache.compare(other, "v1"))
    asyncio.run(cache.compare(third, "v1"))

    assert len(cache) == 2
    assert cache.get(101, "v1") is None
    assert cache.get(303, "v1") is not None

    cache.clear()
    assert len(cache) == 0
