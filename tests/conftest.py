# tests/conftest.py
"""Pytest configuration and fixtures"""
import pytest
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from connection_bot.core.engine.domain import AddressComponent, GeocodeResult  # noqa: E402
from connection_bot.infra.memory_session_store import InMemorySessionStore  # noqa: E402


class FakeGeocoder:
    """Async geocoder double: returns canned results and records calls."""

    def __init__(self, results=None, error: Exception | None = None):
        self.results = list(results or [])
        self.error = error
        self.calls: list[tuple[str, str, str]] = []

    async def geocode(self, address: str, *, region: str, language: str):
        self.calls.append((address, region, language))
        if self.error is not None:
            raise self.error
        return list(self.results)


def make_geocode_result(
    formatted: str,
    street: str | None = None,
    building: str | None = None,
    city: str | None = None,
) -> GeocodeResult:
    components = []
    if building is not None:
        components.append(AddressComponent(building, ["street_number"]))
    if street is not None:
        components.append(AddressComponent(street, ["route"]))
    if city is not None:
        components.append(AddressComponent(city, ["locality", "political"]))
    return GeocodeResult(formatted_address=formatted, components=components)


@pytest.fixture
def chat_id():
    """Default chat ID for tests"""
    return "123456789"


@pytest.fixture
def session_store():
    return InMemorySessionStore()


@pytest.fixture
def herzl_result():
    """Geocoding result that exactly matches "הרצל 10 חיפה"."""
    return make_geocode_result(
        "הרצל 10, חיפה, ישראל",
        street="הרצל",
        building="10",
        city="חיפה",
    )


@pytest.fixture
def matching_geocoder(herzl_result):
    return FakeGeocoder([herzl_result])


@pytest.fixture
def sample_telegram_text_update():
    """Sample Telegram Update with a text message"""
    return {
        "update_id": 1001,
        "message": {
            "message_id": 42,
            "from": {"id": 123456789, "first_name": "Dana", "last_name": "Levi", "username": "dlevi"},
            "chat": {"id": 123456789, "type": "private"},
            "text": "12345",
        },
    }


@pytest.fixture
def sample_telegram_callback_update():
    """Sample Telegram Update with an inline keyboard press"""
    return {
        "update_id": 1002,
        "callback_query": {
            "id": "cbq-777",
            "from": {"id": 123456789, "first_name": "Dana"},
            "message": {"message_id": 43, "chat": {"id": 123456789, "type": "private"}},
            "data": "existing",
        },
    }
