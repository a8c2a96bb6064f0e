"""
Fixtures for transaction and client integration tests.
"""

import httpx
import pytest

from sdk.datastore_sdk._transport import Invoker
from sdk.datastore_sdk.config import DatastoreSettings

from .fakes import DATASET, FakeDatastore


@pytest.fixture
def fake():
    """Fresh fake datastore."""
    return FakeDatastore()


@pytest.fixture
def settings():
    """Settings pointing at a test host."""
    return DatastoreSettings(api_base="https://datastore.test/v1beta2", dataset_id=DATASET)


@pytest.fixture
def invoker(fake, settings):
    """Invoker wired to the fake datastore."""
    http = httpx.AsyncClient(transport=httpx.MockTransport(fake.handler))
    return Invoker(http, settings)
