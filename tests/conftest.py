"""Shared test fixtures."""

import pytest

from src.parsers.evm import client as evm_client
from src.parsers.moralis import client as moralis_client
from src.parsers.pyth import client as pyth_client
from tests.fakes import FakeCache


@pytest.fixture
def no_retry_delay(monkeypatch: pytest.MonkeyPatch) -> None:
    """Zero back-off so retry tests don't sleep."""
    monkeypatch.setattr(moralis_client, "RETRY_DELAYS", [0.0, 0.0])
    monkeypatch.setattr(pyth_client, "RETRY_DELAYS", [0.0, 0.0])
    monkeypatch.setattr(evm_client, "RETRY_DELAYS", [0.0, 0.0])


@pytest.fixture
def fake_cache() -> FakeCache:
    return FakeCache()
