import pytest

from edge_proxy.config.store import InMemoryConfigStore
from edge_proxy.models import AuthEntry


@pytest.fixture
def secrets():
    """Secret map used for interpolation in tests."""
    return {
        "API_TOKEN": "Bearer t1",
        "ADMIN_SECRET": "secret",
        "UPSTREAM_KEY": "upstream-123",
    }


@pytest.fixture
def make_store():
    def _make(records=None):
        return InMemoryConfigStore(records or {})

    return _make


@pytest.fixture
def entry():
    def _entry(header, value):
        return AuthEntry(header=header, value=value)

    return _entry
