"""Coordinator: the command surface every transport calls into.

Overview
========
Each public method is one client command. A command:

    1. looks the room up in the registry (``RoomNotFound`` if gone),
    2. takes ``room.lock`` so commands for the same room never interleave,
    3. checks sender membership / host status / role / room state,
    4. mutates the room,
    5. builds the outbound events and hands them to ``deliver`` *while still
       holding the lock*, so clients see events in mutation order,
    6. returns the same batch (tests read it directly).

Rooms never share state, so commands for different rooms run in parallel.

Error policy
------------
Domain code raises ``CoordinatorError`` subclasses. The ``command`` wrapper
turns user-facing ones (name taken, role capacity, ...) into a sender-only
``room_error`` and swallows the rest after a DEBUG log line: the client sees
nothing, exactly as if the command was never sent. A missing room is only
reported by join and state lookups; for in-game commands it is silent.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from functools import partial, wraps
from typing import Callable, Iterator, List, Optional

from coordinator import events
from coordinator.errors import CoordinatorError, InvalidState, RoomNotFound
from coordinator.events import Batch, Outbound
from coordinator.membership import MembershipManager
from coordinator.registry import RoomRegistry
from coordinator.room import (
    MODE_BUZZER,
    MODE_IMPOSTOR,
    MODE_TYPE,
    STATE_ACTIVE,
    STATE_ENDED,
    STATE_RECORDING,
    STATE_RESULTS,
    STATE_VOTING,
    STATE_WAITING,
    Room,
)
from coordinator import session

logger = logging.getLogger(__name__)

Deliver = Callable[[Batch], None]


def _monotonic_ms() -> int:
    return time.monotonic_ns() // 1_000_000


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def command(func=None, *, report_missing_room: bool = False):
    """Apply the error policy to a coordinator command.

    ``RoomNotFound`` only reaches the client from commands that opt in with
    ``report_missing_room``; elsewhere a vanished room is a silent no-op.
    """
    if func is None:
        return partial(command, report_missing_room=report_missing_room)

    @wraps(func)
    def wrapper(self: "Coordinator", connection_id: str, *args, **kwargs) -> Batch:
        try:
            return func(self, connection_id, *args, **kwargs)
        except CoordinatorError as exc:
            if exc.user_facing and (report_missing_room or not isinstance(exc, RoomNotFound)):
                logger.info("%s from %s refused: %s", func.__name__, connection_id, exc)
                return self._send([Outbound.to_sender(connection_id, events.ROOM_ERROR, str(exc))])
            logger.debug("%s from %s ignored (%s): %s", func.__name__, connection_id, type(exc).__name__, exc)
            return []
    return wrapper


class Coordinator:
    """Owns the registry and applies every command against it.

    Args:
        registry (RoomRegistry, optional): Injected store; a fresh one by default.
        deliver (Callable, optional): Receives every batch while the room lock is held.
        clock (Callable, optional): Monotonic milliseconds, used for buzz ordering.
        wall_clock (Callable, optional): Epoch milliseconds, used for log/video stamps.
    """

    def __init__(
        self,
        registry: Optional[RoomRegistry] = None,
        deliver: Optional[Deliver] = None,
        clock: Optional[Callable[[], int]] = None,
        wall_clock: Optional[Callable[[], int]] = None,
        max_videos: int = 5,
        max_duration_ms: int = 3000,
    ):
        self.registry = registry if registry is not None else RoomRegistry(max_videos=max_videos, max_duration_ms=max_duration_ms)
        self.membership = MembershipManager(self.registry)
        self._deliver: Deliver = deliver or (lambda batch: None)
        self._clock = clock or _monotonic_ms
        self._wall_clock = wall_clock or _epoch_ms

    def set_delivery(self, deliver: Deliver) -> None:
        self._deliver = deliver

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------
    def _send(self, batch: Batch) -> Batch:
        if batch:
            self._deliver(batch)
        return batch

    @contextmanager
    def _locked(self, code) -> Iterator[Room]:
        room = self.registry.require(code)
        with room.lock:
            if room.closed:
                raise RoomNotFound()
            yield room

    @staticmethod
    def _require_mode(room: Room, mode: str) -> None:
        if room.mode != mode:
            raise InvalidState(f"Room {room.code} is a {room.mode} room, not {mode}")

    @staticmethod
    def _everyone(room: Room, event: str, payload=None) -> Outbound:
        return Outbound.to(room.connection_ids(), event, payload)

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------
    @command
    def create_room(self, connection_id: str, display_name: str, mode: Optional[str] = None) -> Batch:
        batch: Batch = self._leave_previous(connection_id)
        room, host = self.membership.create_and_join(connection_id, mode, display_name)
        with room.lock:
            batch.extend(self._send([
                Outbound.to_sender(connection_id, events.ROOM_CREATED, {
                    "roomCode": room.code,
                    "player": host.to_dict(),
                    "players": room.roster(),
                    "gameState": room.state,
                    "roomType": room.mode,
                })
            ]))
        return batch

    @command(report_missing_room=True)
    def join_room(self, connection_id: str, code, display_name: str, role: Optional[str] = None) -> Batch:
        self.registry.require(code)
        batch: Batch = self._leave_previous(connection_id, keep=code)
        with self._locked(code) as room:
            participant = self.membership.join(room, connection_id, display_name, role)
            batch.extend(self._send([
                Outbound.to_sender(connection_id, events.ROOM_JOINED, {**room.to_dict(), "player": participant.to_dict()}),
                Outbound.to(room.others(connection_id), events.PLAYER_JOINED, participant.to_dict()),
            ]))
        return batch

    def _leave_previous(self, connection_id: str, keep=None) -> Batch:
        """A connection sits in at most one room; moving elsewhere leaves the old one."""
        previous = self.registry.find_by_connection(connection_id)
        if previous is None or (keep is not None and previous.code == str(keep).strip()):
            return []
        return list(self.leave(connection_id))

    @command
    def leave(self, connection_id: str) -> Batch:
        """Disconnect / explicit leave. Safe to call for unknown connections."""
        room = self.registry.find_by_connection(connection_id)
        if room is None:
            return []
        with room.lock:
            if room.closed:
                return []
            departure = self.membership.leave(room, connection_id)
            if departure is None or departure.room_deleted:
                return []
            host = room.host
            return self._send([
                self._everyone(room, events.PLAYER_LEFT, {
                    "playerId": connection_id,
                    "playerName": departure.participant.display_name,
                    "hostId": host.connection_id if host else None,
                    "players": room.roster(),
                })
            ])

    @command(report_missing_room=True)
    def room_state(self, connection_id: str, code) -> Batch:
        with self._locked(code) as room:
            snapshot = room.to_dict()
            sender = room.get_participant(connection_id)
            if sender is not None and sender.is_host and room.questions is not None:
                snapshot["questions"] = room.questions.bank.to_list()
            return self._send([Outbound.to_sender(connection_id, events.ROOM_STATE, snapshot)])

    # ------------------------------------------------------------------
    # Buzzer
    # ------------------------------------------------------------------
    @command
    def buzz(self, connection_id: str, code) -> Batch:
        with self._locked(code) as room:
            self._require_mode(room, MODE_BUZZER)
            participant = room.require_member(connection_id)
            entry = room.buzz.record(participant, self._clock())
            logger.info("%s buzzed in room %s (+%sms)", participant.display_name, room.code, entry.offset)
            return self._send([
                self._everyone(room, events.PLAYER_BUZZED, {
                    "player": participant.to_dict(),
                    "buzzOrder": room.buzz.order(room.participants),
                })
            ])

    @command
    def reset_buzzers(self, connection_id: str, code) -> Batch:
        with self._locked(code) as room:
            self._require_mode(room, MODE_BUZZER)
            room.require_host(connection_id)
            logger.info(session.score_tally(room, "Buzzer Reset"))
            room.buzz.reset(list(room.participants.values()))
            return self._send([self._everyone(room, events.BUZZERS_RESET, {"buzzOrder": []})])

    @command
    def mark_answer(self, connection_id: str, code, target_id: str, correct: bool) -> Batch:
        with self._locked(code) as room:
            self._require_mode(room, MODE_BUZZER)
            room.require_host(connection_id)
            target = room.require_member(target_id)
            correct = bool(correct)
            room.buzz.mark(target_id, correct)
            if correct and room.state == STATE_ACTIVE:
                target.add_score(1)
            logger.info(
                "%s's answer marked %s in room %s",
                target.display_name, "correct" if correct else "incorrect", room.code,
            )
            return self._send([
                self._everyone(room, events.ANSWER_MARKED, {
                    "playerId": target_id,
                    "correct": correct,
                    "player": target.to_dict(),
                    "players": room.roster(),
                    "buzzOrder": room.buzz.order(room.participants),
                })
            ])

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------
    @command
    def start_game(self, connection_id: str, code) -> Batch:
        with self._locked(code) as room:
            room.require_host(connection_id)
            session.start_game(room)
            batch = []
            if room.mode == MODE_BUZZER:
                batch.append(self._everyone(room, events.BUZZERS_RESET, {"buzzOrder": []}))
            batch.append(self._everyone(room, events.GAME_STARTED, {"gameState": room.state}))
            logger.info("Game started in room %s", room.code)
            return self._send(batch)

    @command
    def end_game(self, connection_id: str, code) -> Batch:
        with self._locked(code) as room:
            room.require_host(connection_id)
            logger.info(session.score_tally(room, "Game Ended - Final Scores"))
            top = [p.to_dict() for p in session.end_game(room)]
            logger.info("Game ended in room %s", room.code)
            return self._send([
                self._everyone(room, events.GAME_ENDED, {"gameState": room.state, "topPlayers": top})
            ])

    @command
    def new_game(self, connection_id: str, code) -> Batch:
        with self._locked(code) as room:
            room.require_host(connection_id)
            session.new_game(room)
            payload = {"gameState": room.state, "players": room.roster()}
            if room.mode == MODE_TYPE:
                payload["questionIndex"] = room.questions.current_index
            logger.info("New game in room %s", room.code)
            return self._send([self._everyone(room, events.NEW_GAME_STARTED, payload)])

    # ------------------------------------------------------------------
    # Type-answer: question bank (host only, never while active)
    # ------------------------------------------------------------------
    @contextmanager
    def _editable_bank(self, connection_id: str, code) -> Iterator[Room]:
        with self._locked(code) as room:
            self._require_mode(room, MODE_TYPE)
            room.require_host(connection_id)
            if room.state == STATE_ACTIVE:
                raise InvalidState("Question bank is locked while the game is active")
            yield room

    def _bank_changed(self, connection_id: str, room: Room, event: str) -> Batch:
        return self._send([
            Outbound.to_sender(connection_id, event, {"questions": room.questions.bank.to_list()})
        ])

    @command
    def add_question(self, connection_id: str, code, question: str, answer: str, answer_type: Optional[str] = None) -> Batch:
        with self._editable_bank(connection_id, code) as room:
            added = room.questions.bank.add(question, answer, answer_type)
            logger.info("Question added to room %s: %s", room.code, added["question"])
            return self._bank_changed(connection_id, room, events.QUESTION_ADDED)

    @command
    def update_question(
        self, connection_id: str, code, question_id, question: str, answer: str, answer_type: Optional[str] = None
    ) -> Batch:
        with self._editable_bank(connection_id, code) as room:
            updated = room.questions.bank.update(question_id, question, answer, answer_type)
            logger.info("Question updated in room %s: %s", room.code, updated["question"])
            return self._bank_changed(connection_id, room, events.QUESTION_UPDATED)

    @command
    def delete_question(self, connection_id: str, code, question_id) -> Batch:
        with self._editable_bank(connection_id, code) as room:
            room.questions.bank.delete(question_id)
            logger.info("Question deleted from room %s", room.code)
            return self._bank_changed(connection_id, room, events.QUESTION_DELETED)

    @command
    def clear_questions(self, connection_id: str, code) -> Batch:
        with self._editable_bank(connection_id, code) as room:
            room.questions.bank.clear()
            logger.info("All questions cleared from room %s", room.code)
            return self._bank_changed(connection_id, room, events.QUESTIONS_CLEARED)

    @command
    def import_questions(self, connection_id: str, code, items: List[dict]) -> Batch:
        with self._editable_bank(connection_id, code) as room:
            count = room.questions.bank.import_many(items)
            logger.info("%d questions imported into room %s", count, room.code)
            return self._bank_changed(connection_id, room, events.QUESTIONS_IMPORTED)

    # ------------------------------------------------------------------
    # Type-answer: live questions
    # ------------------------------------------------------------------
    @command
    def start_question(self, connection_id: str, code, index: int) -> Batch:
        with self._locked(code) as room:
            self._require_mode(room, MODE_TYPE)
            room.require_host(connection_id)
            rnd = room.questions
            rnd.bank.get(index)
            if index > 0 or rnd.current_index >= 0:
                logger.info(session.score_tally(room, f"Starting Question {index + 1}"))
            question = rnd.start(index)
            for p in room.participants.values():
                p.clear_answer()
            logger.info("Question %s started in room %s", index + 1, room.code)
            return self._send([
                self._everyone(room, events.QUESTION_STARTED, {
                    "question": question["question"],
                    "questionIndex": index,
                    "answerType": question["answerType"],
                    "answerLog": list(rnd.log),
                })
            ])

    @command
    def submit_answer(self, connection_id: str, code, answer: str) -> Batch:
        with self._locked(code) as room:
            self._require_mode(room, MODE_TYPE)
            participant = room.require_member(connection_id)
            rnd = room.questions
            canonical = rnd.current["answer"] if rnd.current else None
            entry = rnd.judge(connection_id, participant.display_name, answer, self._wall_clock())

            batch = [self._everyone(room, events.ANSWER_ATTEMPT, {"answerEntry": entry, "answerLog": list(rnd.log)})]
            if entry["isCorrect"]:
                if room.state == STATE_ACTIVE:
                    participant.add_score(1)
                participant.answered = True
                participant.answer_time = entry["timestamp"]
                rnd.settle()
                batch.append(self._everyone(room, events.CORRECT_ANSWER, {
                    "player": participant.to_dict(),
                    "answer": entry["answer"].lower(),
                    "correctAnswer": canonical,
                    "players": room.roster(),
                    "answerLog": list(rnd.log),
                }))
                logger.info("%s got the correct answer in room %s: %s", participant.display_name, room.code, entry["answer"])
            else:
                batch.append(Outbound.to_sender(connection_id, events.INCORRECT_ANSWER, {"answer": entry["answer"]}))
                logger.info("%s answered incorrectly in room %s: %s", participant.display_name, room.code, entry["answer"])
            return self._send(batch)

    # ------------------------------------------------------------------
    # Impostor
    # ------------------------------------------------------------------
    @command
    def start_recording(self, connection_id: str, code) -> Batch:
        with self._locked(code) as room:
            self._require_mode(room, MODE_IMPOSTOR)
            room.require_host(connection_id)
            if room.state == STATE_ENDED:
                raise InvalidState("Session ended")
            room.impostor.reset()
            room.state = STATE_RECORDING
            logger.info("Recording started in room %s", room.code)
            return self._send([
                self._everyone(room, events.RECORDING_STARTED, {
                    "gameState": room.state,
                    "maxDuration": room.impostor.max_duration_ms,
                })
            ])

    @command
    def submit_video(self, connection_id: str, code, payload, mime_type: Optional[str], duration) -> Batch:
        with self._locked(code) as room:
            self._require_mode(room, MODE_IMPOSTOR)
            participant = room.require_member(connection_id)
            if room.state != STATE_RECORDING:
                raise InvalidState(f"Room {room.code} is {room.state}, not recording")
            rnd = room.impostor
            rnd.add_video(participant, payload, mime_type, duration, self._wall_clock())
            total_players = room.player_count()
            logger.info(
                "Video submitted by %s in room %s (%d/%d)",
                participant.display_name, room.code, len(rnd.videos), total_players,
            )
            batch = [
                self._everyone(room, events.VIDEO_SUBMITTED, {
                    "playerName": participant.display_name,
                    "videoCount": len(rnd.videos),
                    "totalPlayers": total_players,
                })
            ]
            if len(rnd.videos) >= total_players:
                room.state = STATE_VOTING
                batch.append(self._everyone(room, events.VOTING_STARTED, {
                    "gameState": room.state,
                    "videos": rnd.public_videos(),
                }))
                logger.info("Voting started in room %s", room.code)
            return self._send(batch)

    @command
    def submit_vote(self, connection_id: str, code, video_id: str) -> Batch:
        with self._locked(code) as room:
            self._require_mode(room, MODE_IMPOSTOR)
            voter = room.require_member(connection_id)
            if room.state != STATE_VOTING:
                raise InvalidState(f"Room {room.code} is {room.state}, not voting")
            results = room.impostor.cast_vote(voter, video_id)
            logger.info("Vote submitted by %s in room %s", voter.display_name, room.code)
            return self._send([
                self._everyone(room, events.VOTE_UPDATE, {
                    "videoId": video_id,
                    "voterName": voter.display_name,
                    "voteResults": results,
                })
            ])

    @command
    def show_results(self, connection_id: str, code) -> Batch:
        with self._locked(code) as room:
            self._require_mode(room, MODE_IMPOSTOR)
            room.require_host(connection_id)
            if room.state not in (STATE_VOTING, STATE_RESULTS):
                raise InvalidState(f"Room {room.code} is {room.state}; nothing to show")
            room.state = STATE_RESULTS
            logger.info("Results shown in room %s", room.code)
            return self._send([
                self._everyone(room, events.RESULTS_READY, {
                    "gameState": room.state,
                    "voteResults": room.impostor.results,
                })
            ])

    @command
    def new_round(self, connection_id: str, code) -> Batch:
        with self._locked(code) as room:
            self._require_mode(room, MODE_IMPOSTOR)
            room.require_host(connection_id)
            room.impostor.reset()
            room.state = STATE_WAITING
            logger.info("New round started in room %s", room.code)
            return self._send([self._everyone(room, events.ROUND_RESET, {"gameState": room.state})])


__all__ = ["Coordinator", "command"]
