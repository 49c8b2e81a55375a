"""Buzzer round: first-to-act ordering for buzzer rooms.

Ordering model:
    * The first buzz of a round anchors ``first_buzz_time``; every entry's
      ``timeDiff`` is measured from it, so the first buzzer always shows 0.
    * Entries are kept sorted by raw timestamp. ``list.sort`` is stable, so
      equal timestamps keep arrival order.
    * Positions are recomputed 1..N every time the order is rendered.

Judging model:
    * Only the earliest unmarked entry may be judged next.
    * A correct mark settles the round; nothing else can be marked until reset.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from coordinator.errors import InvalidState, NotNextInOrder
from coordinator.participant import Participant


@dataclass
class BuzzEntry:
    connection_id: str
    display_name: str
    timestamp: int
    offset: int


class BuzzRound:
    """Buzz order for the current round of one room."""

    def __init__(self) -> None:
        self.first_buzz_time: Optional[int] = None
        self.entries: List[BuzzEntry] = []
        self.marked: Set[str] = set()
        self.settled = False

    def record(self, participant: Participant, timestamp: int) -> BuzzEntry:
        """Register a buzz and return its entry.

        Raises:
            InvalidState: host tried to buzz or participant already buzzed.
        """
        if participant.is_host:
            raise InvalidState("Host does not buzz")
        if participant.buzzed:
            raise InvalidState(f"{participant.display_name} already buzzed")

        if self.first_buzz_time is None:
            self.first_buzz_time = timestamp

        participant.buzzed = True
        participant.buzz_time = timestamp

        entry = BuzzEntry(
            connection_id=participant.connection_id,
            display_name=participant.display_name,
            timestamp=timestamp,
            offset=timestamp - self.first_buzz_time,
        )
        self.entries.append(entry)
        self.entries.sort(key=lambda e: e.timestamp)
        return entry

    def next_unmarked(self) -> Optional[str]:
        for entry in self.entries:
            if entry.connection_id not in self.marked:
                return entry.connection_id
        return None

    def mark(self, connection_id: str, correct: bool) -> None:
        """Judge one buzzer. Raises if the round is settled or it's not their turn."""
        if self.settled:
            raise InvalidState("Round already settled; reset buzzers first")
        if self.next_unmarked() != connection_id:
            raise NotNextInOrder()
        self.marked.add(connection_id)
        if correct:
            self.settled = True

    def forget(self, connection_id: str) -> None:
        """Drop a departed participant so they can't block the judging order.

        The earliest remaining buzz becomes the new anchor, so the head of the
        order still shows 0.
        """
        self.entries = [e for e in self.entries if e.connection_id != connection_id]
        self.marked.discard(connection_id)
        if not self.entries:
            self.first_buzz_time = None
            return
        self.first_buzz_time = self.entries[0].timestamp
        for entry in self.entries:
            entry.offset = entry.timestamp - self.first_buzz_time

    def reset(self, participants: List[Participant]) -> None:
        for p in participants:
            p.clear_buzz()
        self.first_buzz_time = None
        self.entries = []
        self.marked = set()
        self.settled = False

    def order(self, participants: Dict[str, Participant]) -> List[dict]:
        """Serializable buzz order with freshly computed positions."""
        rendered = []
        for position, entry in enumerate(self.entries, start=1):
            p = participants.get(entry.connection_id)
            rendered.append({
                "id": entry.connection_id,
                "name": entry.display_name,
                "score": p.score if p else 0,
                "buzzTime": entry.timestamp,
                "timeDiff": entry.offset,
                "position": position,
                "marked": entry.connection_id in self.marked,
            })
        return rendered


__all__ = ["BuzzEntry", "BuzzRound"]
