"""
Pytest configuration and shared fixtures for the quiz room coordinator.
"""

import os
import random
import sys

import pytest

# Add backend to path for testing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

from config import Config  # noqa: E402
from coordinator import events  # noqa: E402
from coordinator.events import events_named  # noqa: E402
from coordinator.registry import RoomRegistry  # noqa: E402
from coordinator.service import Coordinator  # noqa: E402

WALL_CLOCK_MS = 1_700_000_000_000


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start=0):
        self.now = start

    def __call__(self):
        return self.now

    def set(self, value):
        self.now = value

    def advance(self, delta):
        self.now += delta


class Delivered:
    """Collects every batch the coordinator hands to its delivery hook."""

    def __init__(self):
        self.batches = []

    def __call__(self, batch):
        self.batches.append(list(batch))

    @property
    def outbound(self):
        return [o for batch in self.batches for o in batch]

    def received_by(self, connection_id, event=None):
        """Payloads of events a given connection received, oldest first."""
        return [
            o.payload for o in self.outbound
            if connection_id in o.recipients and (event is None or o.event == event)
        ]

    def clear(self):
        self.batches = []


class SettingsForTests(Config):
    SECRET_KEY = "test-secret"
    SOCKETIO_ASYNC_MODE = "threading"
    IMPOSTOR_MAX_VIDEOS = 2
    IMPOSTOR_VIDEO_DURATION_MS = 3000


@pytest.fixture
def clock():
    return FakeClock(start=1000)


@pytest.fixture
def delivered():
    return Delivered()


@pytest.fixture
def coordinator(clock, delivered):
    """Coordinator with deterministic codes and clocks."""
    registry = RoomRegistry(rng=random.Random(1234), max_videos=2, max_duration_ms=3000)
    return Coordinator(
        registry=registry,
        deliver=delivered,
        clock=clock,
        wall_clock=lambda: WALL_CLOCK_MS,
    )


def create(coordinator, connection_id, name, mode=None):
    """Create a room and return its code."""
    batch = coordinator.create_room(connection_id, name, mode)
    created = events_named(batch, events.ROOM_CREATED)
    assert created, f"room_created not sent: {batch}"
    return created[0].payload["roomCode"]


def seat(coordinator, code, *people):
    """Join ``(connection_id, name[, role])`` tuples into ``code`` in order."""
    for person in people:
        batch = coordinator.join_room(person[0], code, *person[1:])
        assert events_named(batch, events.ROOM_JOINED), f"{person} failed to join: {batch}"


@pytest.fixture
def buzzer_room(coordinator):
    """Alice hosts a buzzer room with Bob and Carol seated."""
    code = create(coordinator, "alice", "Alice", "buzzer")
    seat(coordinator, code, ("bob", "Bob"), ("carol", "Carol"))
    return code


@pytest.fixture
def type_room(coordinator):
    """Alice hosts a type room with Bob and Carol seated."""
    code = create(coordinator, "alice", "Alice", "type")
    seat(coordinator, code, ("bob", "Bob"), ("carol", "Carol"))
    return code


@pytest.fixture
def impostor_room(coordinator):
    """Alice hosts an impostor room (2 video slots): Pat and Quinn record, Vic and Val vote."""
    code = create(coordinator, "alice", "Alice", "impostor")
    seat(
        coordinator, code,
        ("pat", "Pat", "Player"),
        ("quinn", "Quinn", "Player"),
        ("vic", "Vic", "Voter"),
        ("val", "Val", "Voter"),
    )
    return code
