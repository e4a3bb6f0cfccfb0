"""Shared fixtures for relay and app tests."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from app import create_app
from relay import Connection, SignalingRelay


class FakeConnection(Connection):
    """Records every message the relay sends to it."""

    def __init__(self, connection_id: str):
        super().__init__(connection_id)
        self.received = []

    async def send(self, message: dict):
        # Yield so concurrent coroutines get a chance to interleave
        await asyncio.sleep(0)
        self.received.append(message)

    def types(self):
        return [message["type"] for message in self.received]


class BrokenConnection(FakeConnection):
    async def send(self, message: dict):
        raise RuntimeError("socket closed")


@pytest.fixture
def relay():
    return SignalingRelay()


@pytest.fixture
def make_connection():
    def _factory(connection_id: str = "conn") -> FakeConnection:
        return FakeConnection(connection_id)

    return _factory


@pytest.fixture
def client():
    app = create_app(SignalingRelay())
    with TestClient(app) as test_client:
        yield test_client
