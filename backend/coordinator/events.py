"""Socket event catalogue and the outbound delivery record.

Names match the ones the browser client already listens for, so they are
kept in snake_case rather than renamed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Tuple

# Client -> coordinator
CREATE_ROOM = "create_room"
JOIN_ROOM = "join_room"
LEAVE_ROOM = "leave_room"
GET_ROOM_STATE = "get_room_state"
BUZZ = "buzz"
RESET_BUZZERS = "reset_buzzers"
MARK_ANSWER = "mark_answer"
START_GAME = "start_game"
END_GAME = "end_game"
NEW_GAME = "new_game"
ADD_QUESTION = "add_question"
UPDATE_QUESTION = "update_question"
DELETE_QUESTION = "delete_question"
CLEAR_QUESTIONS = "clear_questions"
IMPORT_QUESTIONS = "import_questions"
START_QUESTION = "start_question"
SUBMIT_ANSWER = "submit_answer"
START_RECORDING = "start_recording"
SUBMIT_VIDEO = "submit_video"
SUBMIT_VOTE = "submit_vote"
SHOW_RESULTS = "show_results"
NEW_ROUND = "new_round"

# Coordinator -> sender
ROOM_CREATED = "room_created"
ROOM_JOINED = "room_joined"
ROOM_ERROR = "room_error"
ROOM_STATE = "room_state"
QUESTION_ADDED = "question_added"
QUESTION_UPDATED = "question_updated"
QUESTION_DELETED = "question_deleted"
QUESTIONS_CLEARED = "questions_cleared"
QUESTIONS_IMPORTED = "questions_imported"
INCORRECT_ANSWER = "incorrect_answer"

# Coordinator -> room
PLAYER_JOINED = "player_joined"
PLAYER_LEFT = "player_left"
PLAYER_BUZZED = "player_buzzed"
BUZZERS_RESET = "buzzers_reset"
ANSWER_MARKED = "answer_marked"
QUESTION_STARTED = "question_started"
ANSWER_ATTEMPT = "answer_attempt"
CORRECT_ANSWER = "correct_answer"
GAME_STARTED = "game_started"
GAME_ENDED = "game_ended"
NEW_GAME_STARTED = "new_game_started"
RECORDING_STARTED = "recording_started"
VIDEO_SUBMITTED = "video_submitted"
VOTING_STARTED = "voting_started"
VOTE_UPDATE = "vote_update"
RESULTS_READY = "results_ready"
ROUND_RESET = "round_reset"


@dataclass(frozen=True)
class Outbound:
    """One event addressed to a fixed set of connection ids."""

    event: str
    payload: Any
    recipients: Tuple[str, ...]

    @classmethod
    def to(cls, recipients: Iterable[str], event: str, payload: Any = None) -> "Outbound":
        return cls(event, payload, tuple(recipients))

    @classmethod
    def to_sender(cls, connection_id: str, event: str, payload: Any = None) -> "Outbound":
        return cls(event, payload, (connection_id,))


Batch = List[Outbound]


def events_named(batch: Iterable[Outbound], event: str) -> List[Outbound]:
    """Filter a batch down to one event name (handy in handlers and tests)."""
    return [o for o in batch if o.event == event]

