"""
pytest configuration and fixtures.
"""

from typing import List, Tuple

import pytest

from uniclip.lifecycle import LifecycleManager
from uniclip.pairing import PairingCoordinator
from uniclip.registry import Registry
from uniclip.relay import RelayEngine

from tests.helpers import FakeTransport


@pytest.fixture
def registry() -> Registry:
    return Registry()


@pytest.fixture
def journal() -> List[Tuple[str, str]]:
    """Shared record of (transport name, message) in send order."""
    return []


@pytest.fixture
def connect(registry: Registry, journal):
    """Register a connection backed by a FakeTransport."""
    def _connect(name: str, fail: bool = False) -> FakeTransport:
        transport = FakeTransport(name, journal, fail)
        registry.register(name, transport)
        return transport
    return _connect


@pytest.fixture
def coordinator(registry: Registry) -> PairingCoordinator:
    return PairingCoordinator(registry)


@pytest.fixture
def relay(registry: Registry) -> RelayEngine:
    return RelayEngine(registry)


@pytest.fixture
def lifecycle(registry: Registry) -> LifecycleManager:
    return LifecycleManager(registry)
