"""
Shared pytest fixtures for rpcsession tests.

This module provides common fixtures including:
- FakeClock: Deterministic time source for sessions and the sweeper
- Recording connections standing in for the transport
- Fake users standing in for the account subsystem
"""

import json
import os
import sys
from dataclasses import dataclass, field
from typing import Any, List

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from rpcsession.modules.push import SubscriptionBus
from rpcsession.modules.rpc import RpcDispatcher, SessionManager
from rpcsession.modules.session import SessionStore

T0 = 1_700_000_000


# =============================================================================
# Time
# =============================================================================

class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: float = T0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


# =============================================================================
# Transport and user collaborators
# =============================================================================

class RecordingConnection:
    """Synchronous connection recording every text it is sent."""

    def __init__(self):
        self.sent: List[str] = []

    def send(self, text: str) -> None:
        self.sent.append(text)

    @property
    def messages(self) -> List[Any]:
        return [json.loads(text) for text in self.sent]


class AsyncRecordingConnection(RecordingConnection):
    """Connection whose send is a coroutine, like a WebSocket."""

    async def send(self, text: str) -> None:
        self.sent.append(text)


class BrokenConnection:
    """Connection that was closed by the peer."""

    def send(self, text: str) -> None:
        raise ConnectionError("connection closed")


@dataclass
class FakeUser:
    name: str
    permissions: List[str] = field(default_factory=list)

    def serialize(self) -> dict:
        return {"name": self.name}

    def get_permissions(self) -> List[str]:
        return list(self.permissions)


@pytest.fixture
def connection():
    return RecordingConnection()


@pytest.fixture
def admin_user():
    return FakeUser("admin", ["session/management/list", "session/management/destroy"])


# =============================================================================
# Core components
# =============================================================================

@pytest.fixture
def store(clock):
    """Store without expiry."""
    return SessionStore(clock=clock)


@pytest.fixture
def expiring_store(clock):
    """Store whose sessions expire after 60 idle seconds."""
    return SessionStore(timeout=60, clock=clock)


@pytest.fixture
def bus(store):
    return SubscriptionBus(store)


@pytest.fixture
def manager(store, bus):
    return SessionManager(store, bus)


@pytest.fixture
def dispatcher(manager):
    rpc = RpcDispatcher(auth=manager)
    manager.register_rpc_methods(rpc)
    return rpc


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: Tests that take a long time to run"
    )
