"""Session lifecycle shared by every mode: start, end (with podium), new game."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List

from coordinator.errors import InvalidState
from coordinator.participant import Participant
from coordinator.room import MODE_IMPOSTOR, STATE_ACTIVE, STATE_ENDED, STATE_WAITING, Room

PODIUM_SIZE = 3


def podium(participants: Iterable[Participant]) -> List[Participant]:
    """Top three non-host participants by score, ties kept in join order."""
    ranked = sorted((p for p in participants if not p.is_host), key=lambda p: p.score, reverse=True)
    return ranked[:PODIUM_SIZE]


def start_game(room: Room) -> None:
    """Switch to ``active`` in any mode. Buzzer rooms also start from a clean buzz round.

    Scores are left alone; ``new_game`` is the score reset.
    """
    room.state = STATE_ACTIVE
    if room.buzz is not None:
        room.buzz.reset(list(room.participants.values()))


def end_game(room: Room) -> List[Participant]:
    room.state = STATE_ENDED
    return podium(room.participants.values())


def new_game(room: Room) -> None:
    """Zero every score and transient field and go back to ``waiting``.

    The type-mode question bank survives; only progress through it is reset.
    """
    if room.mode == MODE_IMPOSTOR:
        raise InvalidState("Impostor rooms use new_round")
    for p in room.participants.values():
        p.reset_score()
        p.clear_buzz()
        p.clear_answer()
    if room.buzz is not None:
        room.buzz.reset(list(room.participants.values()))
    if room.questions is not None:
        room.questions.reset()
    room.state = STATE_WAITING


def score_tally(room: Room, event: str) -> str:
    """Multi-line scoreboard used for the INFO log on round boundaries."""
    lines = [
        "========== SCORE TALLY ==========",
        f"Room: {room.code}",
        f"Event: {event}",
        f"Timestamp: {datetime.now(timezone.utc).isoformat()}",
        f"Room Type: {room.mode}",
        f"Game State: {room.state}",
    ]
    if room.questions is not None and room.questions.current_index >= 0:
        lines.append(f"Question: {room.questions.current_index + 1}/{len(room.questions.bank)}")
    lines.append("Player Scores:")
    for i, p in enumerate(room.participants.values(), start=1):
        lines.append(f"  {i}. {p.display_name}{' (Host)' if p.is_host else ''}: {p.score} points")
    lines.append(f"Total Points Distributed: {sum(p.score for p in room.participants.values())}")
    lines.append("=================================")
    return "\n".join(lines)


__all__ = ["podium", "start_game", "end_game", "new_game", "score_tally"]
