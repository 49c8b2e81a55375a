"""Room lookup HTTP API.

Overview
========
Read-only companion to the socket protocol, used by the client's join screen
to check a code before connecting and to render a lobby preview. Every
mutation goes over Socket.IO; nothing here changes state.

Endpoints
---------
GET    /api/rooms/<code>      -> room_snapshot (public room snapshot)

Response Shapes
---------------
found:
    { "roomCode": str, "roomType": str, "gameState": str, "hostId": str | null,
      "players": [...], "playerCount": int, ...mode-specific public fields }

missing:
    { "error": "room_not_found", "message": str }, 404
"""
from flask import Blueprint, current_app, jsonify
from util.route_builder import RouteBuilder

bp = Blueprint('rooms', __name__)


def _registry():
    return current_app.extensions['coordinator'].registry


def room_snapshot(code: str):
    """Public snapshot of one room.

    Args:
        code (str): Six-digit room code.

    Returns:
        Response: The room's public snapshot, or a 404 error body.
    """
    room = _registry().get(code)
    if room is not None:
        with room.lock:
            if not room.closed:
                return jsonify(room.to_dict())
    return jsonify({'error': 'room_not_found', 'message': f'Room {code} not found'}), 404


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

RouteBuilder(bp) \
    .route('/rooms/<code>') \
    .methods('GET') \
    .handler(room_snapshot) \
    .build()
