"""Membership manager: seating and unseating participants.

Every method except ``create_and_join`` expects the caller to hold
``room.lock``; the coordinator takes it before calling in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from coordinator.errors import RoomNotFound, UnknownMode
from coordinator.participant import Participant
from coordinator.registry import RoomRegistry
from coordinator.room import MODE_BUZZER, MODES, Room

logger = logging.getLogger(__name__)


@dataclass
class Departure:
    """Outcome of a leave: who went, who took over, whether the room died."""

    room: Room
    participant: Participant
    new_host: Optional[Participant] = None
    room_deleted: bool = False


class MembershipManager:
    def __init__(self, registry: RoomRegistry):
        self.registry = registry

    def create_and_join(self, connection_id: str, mode: Optional[str], display_name: str) -> Tuple[Room, Participant]:
        """Create a room and seat its creator as host.

        Raises:
            UnknownMode: ``mode`` is not buzzer / type / impostor.
            InvalidName: empty display name (nothing gets registered).
        """
        mode = mode or MODE_BUZZER
        if mode not in MODES:
            raise UnknownMode(f"Unknown room type '{mode}'")
        seated = []
        room = self.registry.create_room(
            mode, setup=lambda r: seated.append(r.add_participant(connection_id, display_name))
        )
        logger.info("Room %s (%s) created by %s", room.code, mode, seated[0].display_name)
        return room, seated[0]

    def join(self, room: Room, connection_id: str, display_name: str, role: Optional[str] = None) -> Participant:
        """Seat a participant in an existing room (caller holds ``room.lock``)."""
        if room.closed:
            raise RoomNotFound()
        participant = room.add_participant(connection_id, display_name, role)
        logger.info(
            "%s joined room %s%s",
            participant.display_name,
            room.code,
            f" as {participant.role}" if participant.role else "",
        )
        return participant

    def leave(self, room: Room, connection_id: str) -> Optional[Departure]:
        """Unseat ``connection_id``; tear the room down if it is now empty.

        Removal, host promotion and registry deletion all happen while the
        caller holds ``room.lock``, so no other command sees a hostless room.
        """
        removed, new_host = room.remove_participant(connection_id)
        if removed is None:
            return None

        departure = Departure(room, removed, new_host)
        if room.is_empty():
            room.closed = True
            self.registry.delete(room.code)
            departure.room_deleted = True
            logger.info("%s left room %s; room deleted (empty)", removed.display_name, room.code)
        else:
            logger.info("%s left room %s", removed.display_name, room.code)
            if new_host is not None:
                logger.info("Host of room %s passed to %s", room.code, new_host.display_name)
        return departure


__all__ = ["Departure", "MembershipManager"]
