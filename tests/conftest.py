"""Pytest configuration and fixtures."""

import asyncio

import pytest

from pairchat.core.session_manager import SessionManager
from pairchat.core.state_machine import StateMachine
from pairchat.network.events import InboundEvent


class FakeTransport:
    """In-memory transport: records emitted frames, lets tests push server events."""

    def __init__(self, fail_connect=False, hang_connect=False):
        self.fail_connect = fail_connect
        self.hang_connect = hang_connect
        self.emitted = []
        self.connect_calls = 0
        self.disconnect_calls = 0
        self._on_event = None

    @property
    def is_connected(self):
        return self._on_event is not None

    async def connect(self, on_event):
        self.connect_calls += 1
        if self.hang_connect:
            # Handshake that never completes
            await asyncio.Event().wait()
        if self.fail_connect:
            return False
        self._on_event = on_event
        on_event(InboundEvent.CONNECT, {})
        return True

    async def emit(self, event, data):
        if self._on_event is not None:
            self.emitted.append((event, data))

    async def disconnect(self):
        self.disconnect_calls += 1
        self._on_event = None

    def push(self, event, data=None):
        self._on_event(event, data or {})

    def drop(self):
        """Simulate the far side closing the connection."""
        on_event, self._on_event = self._on_event, None
        on_event(InboundEvent.DISCONNECT, {})


class UiRecorder:
    def __init__(self):
        self.events = []

    def __call__(self, event_type, data=None):
        self.events.append((event_type, data))

    @property
    def types(self):
        return [event_type for event_type, _ in self.events]


@pytest.fixture
def machine():
    return StateMachine()


@pytest.fixture
def connected_machine():
    sm = StateMachine()
    sm.start("alice")
    sm.apply(InboundEvent.CONNECT)
    return sm


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def ui():
    return UiRecorder()


@pytest.fixture
def manager(transport, ui):
    return SessionManager(transport, ui)
