"""Socket.IO event handlers.

Overview
========
Thin adapter between Flask-SocketIO and the `Coordinator`: each handler pulls
the fields it needs out of the client payload, calls the matching coordinator
command with ``request.sid`` as the sender, and lets the coordinator's delivery
hook emit the resulting events. No game rules live here.

Payload conventions (kept from the browser client)
--------------------------------------------------
* Commands that only need a room accept either a bare code string
  (``socket.emit('buzz', roomCode)``) or ``{"roomCode": ...}``.
* Everything else is a dict with camelCase keys.

Events out
----------
Each `Outbound` is emitted once per recipient sid, so a connection only ever
receives events for the room it sits in.
"""
import logging
from typing import Any, Optional

from flask import request
from util.route_builder import EventBuilder
from coordinator import events
from coordinator.events import Batch
from coordinator.service import Coordinator

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Payload helpers
# ---------------------------------------------------------------------------


def _fields(data: Any) -> dict:
    return data if isinstance(data, dict) else {}


def _room_code(data: Any) -> Optional[str]:
    """Room code from either a bare string payload or ``{"roomCode": ...}``."""
    if isinstance(data, dict):
        data = data.get('roomCode')
    if data is None:
        return None
    return str(data).strip()


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes')
    return bool(value)


def _as_text(value: Any) -> str:
    return '' if value is None else str(value)


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def register_socket_events(socketio, coordinator: Coordinator) -> None:
    """Attach every handler to ``socketio`` and route coordinator output through it."""

    def deliver(batch: Batch) -> None:
        for out in batch:
            for sid in out.recipients:
                socketio.emit(out.event, out.payload, to=sid)

    coordinator.set_delivery(deliver)

    # -- connection lifecycle -------------------------------------------------

    def on_connect(auth=None):
        logger.info("User connected: %s", request.sid)

    def on_disconnect(reason=None):
        logger.info("User disconnected: %s", request.sid)
        coordinator.leave(request.sid)

    def on_error(exc):
        logger.exception("Unhandled error in socket handler for %s: %s", request.sid, exc)

    socketio.on_error_default(on_error)

    # -- membership -----------------------------------------------------------

    def create_room(data=None):
        d = _fields(data)
        coordinator.create_room(request.sid, _as_text(d.get('playerName')), d.get('roomType'))

    def join_room(data=None):
        d = _fields(data)
        coordinator.join_room(request.sid, _room_code(d), _as_text(d.get('playerName')), d.get('role'))

    def leave_room(data=None):
        coordinator.leave(request.sid)

    def get_room_state(data=None):
        coordinator.room_state(request.sid, _room_code(data))

    # -- buzzer ---------------------------------------------------------------

    def buzz(data=None):
        coordinator.buzz(request.sid, _room_code(data))

    def reset_buzzers(data=None):
        coordinator.reset_buzzers(request.sid, _room_code(data))

    def mark_answer(data=None):
        d = _fields(data)
        coordinator.mark_answer(request.sid, _room_code(d), _as_text(d.get('playerId')), _as_bool(d.get('correct')))

    # -- session lifecycle ----------------------------------------------------

    def start_game(data=None):
        coordinator.start_game(request.sid, _room_code(data))

    def end_game(data=None):
        coordinator.end_game(request.sid, _room_code(data))

    def new_game(data=None):
        coordinator.new_game(request.sid, _room_code(data))

    # -- type answer ----------------------------------------------------------

    def add_question(data=None):
        d = _fields(data)
        coordinator.add_question(request.sid, _room_code(d), d.get('question'), d.get('answer'), d.get('answerType'))

    def update_question(data=None):
        d = _fields(data)
        coordinator.update_question(
            request.sid, _room_code(d), _as_int(d.get('questionId')),
            d.get('question'), d.get('answer'), d.get('answerType'),
        )

    def delete_question(data=None):
        d = _fields(data)
        coordinator.delete_question(request.sid, _room_code(d), _as_int(d.get('questionId')))

    def clear_questions(data=None):
        coordinator.clear_questions(request.sid, _room_code(data))

    def import_questions(data=None):
        d = _fields(data)
        coordinator.import_questions(request.sid, _room_code(d), d.get('questions'))

    def start_question(data=None):
        d = _fields(data)
        coordinator.start_question(request.sid, _room_code(d), _as_int(d.get('questionIndex')))

    def submit_answer(data=None):
        d = _fields(data)
        coordinator.submit_answer(request.sid, _room_code(d), _as_text(d.get('answer')))

    # -- impostor -------------------------------------------------------------

    def start_recording(data=None):
        coordinator.start_recording(request.sid, _room_code(data))

    def submit_video(data=None):
        d = _fields(data)
        coordinator.submit_video(
            request.sid, _room_code(d), d.get('videoData'), d.get('mimeType'), _as_number(d.get('duration')),
        )

    def submit_vote(data=None):
        d = _fields(data)
        coordinator.submit_vote(request.sid, _room_code(d), _as_text(d.get('videoId')))

    def show_results(data=None):
        coordinator.show_results(request.sid, _room_code(data))

    def new_round(data=None):
        coordinator.new_round(request.sid, _room_code(data))

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    EventBuilder(socketio) \
        .event('connect') \
        .handler(on_connect) \
        .build()

    EventBuilder(socketio) \
        .event('disconnect') \
        .handler(on_disconnect) \
        .build()

    EventBuilder(socketio) \
        .event(events.CREATE_ROOM) \
        .handler(create_room) \
        .build()

    EventBuilder(socketio) \
        .event(events.JOIN_ROOM) \
        .handler(join_room) \
        .build()

    EventBuilder(socketio) \
        .event(events.LEAVE_ROOM) \
        .handler(leave_room) \
        .build()

    EventBuilder(socketio) \
        .event(events.GET_ROOM_STATE) \
        .handler(get_room_state) \
        .build()

    EventBuilder(socketio) \
        .event(events.BUZZ) \
        .handler(buzz) \
        .build()

    EventBuilder(socketio) \
        .event(events.RESET_BUZZERS) \
        .handler(reset_buzzers) \
        .build()

    EventBuilder(socketio) \
        .event(events.MARK_ANSWER) \
        .handler(mark_answer) \
        .build()

    EventBuilder(socketio) \
        .event(events.START_GAME) \
        .handler(start_game) \
        .build()

    EventBuilder(socketio) \
        .event(events.END_GAME) \
        .handler(end_game) \
        .build()

    EventBuilder(socketio) \
        .event(events.NEW_GAME) \
        .handler(new_game) \
        .build()

    EventBuilder(socketio) \
        .event(events.ADD_QUESTION) \
        .handler(add_question) \
        .build()

    EventBuilder(socketio) \
        .event(events.UPDATE_QUESTION) \
        .handler(update_question) \
        .build()

    EventBuilder(socketio) \
        .event(events.DELETE_QUESTION) \
        .handler(delete_question) \
        .build()

    EventBuilder(socketio) \
        .event(events.CLEAR_QUESTIONS) \
        .handler(clear_questions) \
        .build()

    EventBuilder(socketio) \
        .event(events.IMPORT_QUESTIONS) \
        .handler(import_questions) \
        .build()

    EventBuilder(socketio) \
        .event(events.START_QUESTION) \
        .handler(start_question) \
        .build()

    EventBuilder(socketio) \
        .event(events.SUBMIT_ANSWER) \
        .handler(submit_answer) \
        .build()

    EventBuilder(socketio) \
        .event(events.START_RECORDING) \
        .handler(start_recording) \
        .build()

    EventBuilder(socketio) \
        .event(events.SUBMIT_VIDEO) \
        .handler(submit_video) \
        .build()

    EventBuilder(socketio) \
        .event(events.SUBMIT_VOTE) \
        .handler(submit_vote) \
        .build()

    EventBuilder(socketio) \
        .event(events.SHOW_RESULTS) \
        .handler(show_results) \
        .build()

    EventBuilder(socketio) \
        .event(events.NEW_ROUND) \
        .handler(new_round) \
        .build()
