"""Shared fixtures for broker tests."""

import json

import pytest

from backend import RoomRegistry
from broker import RoomBroker
from connection import Connection


class FakeConnection(Connection):
    """Connection that records every frame it is handed."""

    def __init__(self, name: str = None):
        super().__init__(connection_id=name)
        self.open = True
        self.sent = []

    @property
    def is_open(self) -> bool:
        return self.open

    def send_text(self, text: str) -> bool:
        self.sent.append(json.loads(text))
        return True


@pytest.fixture
def registry():
    return RoomRegistry()


@pytest.fixture
def broker(registry):
    return RoomBroker(registry)


@pytest.fixture
def make_connection():
    def _make(name: str = None) -> FakeConnection:
        return FakeConnection(name)
    return _make
