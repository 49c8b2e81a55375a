"""Room registry: code -> Room mapping owned by one coordinator.

The registry lock only guards the mapping itself (insert / delete / scan).
Callers that already hold a room lock may take the registry lock; the
registry never takes a room lock, so the order is always room -> registry.
"""

from __future__ import annotations

import logging
import random
import threading
from typing import Callable, Dict, List, Optional

from coordinator.errors import RoomNotFound
from coordinator.room import Room

logger = logging.getLogger(__name__)

CODE_MIN = 100000
CODE_MAX = 999999


class RoomRegistry:
    """In-memory registry of live rooms."""

    def __init__(self, rng: Optional[random.Random] = None, max_videos: int = 5, max_duration_ms: int = 3000):
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.Lock()
        self._rng = rng or random.SystemRandom()
        self.max_videos = max_videos
        self.max_duration_ms = max_duration_ms

    def _generate_code(self) -> str:
        return str(self._rng.randint(CODE_MIN, CODE_MAX))

    def create_room(self, mode: str, setup: Optional[Callable[[Room], object]] = None) -> Room:
        """Create and register a room under a fresh 6-digit code.

        Regenerates on collision until the code is unused. ``setup`` runs on
        the new room before it becomes visible (used to seat the creator); if
        it raises, nothing is registered.
        """
        with self._lock:
            code = self._generate_code()
            while code in self._rooms:
                logger.debug("Room code %s collided, regenerating", code)
                code = self._generate_code()
            room = Room(code, mode, max_videos=self.max_videos, max_duration_ms=self.max_duration_ms)
            if setup is not None:
                setup(room)
            self._rooms[code] = room
        return room

    def get(self, code) -> Optional[Room]:
        """Get a room by its code, or None if unknown."""
        if code is None:
            return None
        with self._lock:
            return self._rooms.get(str(code).strip())

    def require(self, code) -> Room:
        """Like `get` but raises RoomNotFound (also for rooms already torn down)."""
        room = self.get(code)
        if room is None or room.closed:
            raise RoomNotFound()
        return room

    def delete(self, code: str) -> bool:
        with self._lock:
            return self._rooms.pop(code, None) is not None

    def find_by_connection(self, connection_id: str) -> Optional[Room]:
        """Scan live rooms for the one holding ``connection_id``."""
        for room in self.rooms():
            if connection_id in room.participants:
                return room
        return None

    def rooms(self) -> List[Room]:
        with self._lock:
            return list(self._rooms.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def __contains__(self, code) -> bool:
        return self.get(code) is not None


__all__ = ["RoomRegistry", "CODE_MIN", "CODE_MAX"]
