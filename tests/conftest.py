import asyncio
import sys
from pathlib import Path

import pytest

# Ensure the repository packages are importable when running pytest from the repo root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config.comparison_config import build_default_config, set_config  # noqa: E402
from services.comparison_models import Property  # noqa: E402


@pytest.fixture
def comparison_config():
    config = build_default_config()
    set_config(config)
    yield config
    set_config(None)


@pytest.fixture
def reference_property():
    return Property(
        id=101,
        title="3 Bed Semi-Detached House, Main Street",
        price=450000,
        bedrooms=3,
        bathrooms=2,
        type="Semi-Detached House",
        address="123 Main Street, Dublin 4",
        city="Dublin",
        county="Dublin",
        ber_rating="B3",
        agency_id="KNAM",
    )


class StaticAdapter:
    """Async stand-in for a source adapter returning canned candidates."""

    def __init__(self, candidates=None, error=None, delay=0.0, available=True):
        self.candidates = candidates if candidates is not None else []
        self.error = error
        self.delay = delay
        self.available = available
        self.calls = 0

    def is_available_for(self, reference):
        return self.available

    async def search_for_property(self, reference):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.candidates


@pytest.fixture
def static_adapter():
    return StaticAdapter
