"""Participant model: one connected person inside one room."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

ROLE_PLAYER = "Player"
ROLE_VOTER = "Voter"
ROLES = (ROLE_PLAYER, ROLE_VOTER)


@dataclass
class Participant:
    """Minimal in‑memory participant model.

    ``connection_id`` is whatever the transport uses to address the socket;
    it changes when the same person reconnects. ``display_name`` never changes
    after joining.
    """

    connection_id: str
    display_name: str
    is_host: bool = False
    score: int = 0
    role: Optional[str] = None

    # buzzer mode
    buzzed: bool = False
    buzz_time: Optional[float] = None

    # type mode
    answered: bool = False
    answer_time: Optional[int] = None

    def add_score(self, delta: int = 1) -> int:
        """Increment score by `delta` (default 1) and return new value.

        Args:
            delta (int, optional): Amount to change score by. Defaults to 1.

        Returns:
            int: New score after addition, never below zero.
        """
        if delta == 0:
            return self.score

        self.score += int(delta)

        if self.score < 0:
            self.score = 0

        return self.score

    def reset_score(self) -> None:
        """Reset score back to zero."""
        self.score = 0

    def clear_buzz(self) -> None:
        self.buzzed = False
        self.buzz_time = None

    def clear_answer(self) -> None:
        self.answered = False
        self.answer_time = None

    def to_dict(self) -> dict:
        """Wire shape shared by every roster / player payload."""
        return {
            "id": self.connection_id,
            "name": self.display_name,
            "isHost": self.is_host,
            "score": self.score,
            "role": self.role,
            "buzzed": self.buzzed,
            "buzzTime": self.buzz_time,
            "answered": self.answered,
            "answerTime": self.answer_time,
        }
