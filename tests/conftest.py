"""Test configuration and shared fixtures."""

import json

import pytest
import requests

from map_adapter import MapAssets, ZoneMapAdapter


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_response(status_code: int, body=None, raw: bytes = None) -> requests.Response:
    """Build a real requests.Response with a JSON (or raw) body."""
    response = requests.Response()
    response.status_code = status_code
    response.url = "http://test-api/report"
    if raw is not None:
        response._content = raw
    else:
        response._content = json.dumps(body).encode("utf-8")
    return response


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def assets():
    return MapAssets()


@pytest.fixture
def adapter(assets, clock):
    """Mounted adapter that has not reached READY yet."""
    adapter = ZoneMapAdapter(assets=assets, clock=clock)
    adapter.mount()
    return adapter


@pytest.fixture
def ready_adapter(adapter):
    adapter.attach_container("leaflet-map")
    adapter.notify_library_loaded()
    return adapter


@pytest.fixture
def sample_report_payload():
    return {
        "totalEarnings": 1000,
        "totalExpenses": 400,
        "balance": 600,
        "earnings": [{"_id": "a", "platform": "Uber", "amount": 1000}],
        "expenses": [{"_id": "b", "type": "Fuel", "amount": 400}],
    }
