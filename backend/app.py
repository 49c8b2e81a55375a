"""Application entry point for backend.

This module builds the single process that serves BOTH:
  * the Socket.IO protocol (every game command and broadcast)
  * a small JSON API under /api/* (Flask blueprints: health, room lookup)

All room state lives in one in-memory `Coordinator` owned by the app; it is
lost on restart and not shared between processes.
"""

from __future__ import annotations

import logging
from typing import Tuple

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config
from coordinator.service import Coordinator

logger = logging.getLogger(__name__)


def create_app(config_object=Config) -> Tuple[Flask, SocketIO]:
    """Build the Flask app and its Socket.IO server.

    Args:
        config_object: Class or object read by ``app.config.from_object``.

    Returns:
        Tuple[Flask, SocketIO]: The configured app and the server wrapping it.
    """
    # ---------------------------------------------------------------------------
    # App / extensions
    # ---------------------------------------------------------------------------
    app = Flask(__name__)
    app.config.from_object(config_object)

    client_url = app.config['CLIENT_URL']
    CORS(app, resources={r"/api/*": {"origins": [client_url]}}, supports_credentials=True)

    socketio = SocketIO(
        app,
        async_mode=app.config['SOCKETIO_ASYNC_MODE'],
        cors_allowed_origins=client_url,
        max_http_buffer_size=app.config['MAX_HTTP_BUFFER_SIZE'],
        ping_timeout=app.config['PING_TIMEOUT'],
        ping_interval=app.config['PING_INTERVAL'],
    )

    coordinator = Coordinator(
        max_videos=app.config['IMPOSTOR_MAX_VIDEOS'],
        max_duration_ms=app.config['IMPOSTOR_VIDEO_DURATION_MS'],
    )
    app.extensions['coordinator'] = coordinator

    # ---------------------------------------------------------------------------
    # Blueprints (register additional ones here)
    # ---------------------------------------------------------------------------
    from routes.health_routes import bp as health_bp
    from routes.room_routes import bp as room_bp
    from routes.socket_events import register_socket_events

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(room_bp, url_prefix="/api")
    register_socket_events(socketio, coordinator)

    return app, socketio


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    logging.basicConfig(
        level=getattr(logging, str(Config.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app, socketio = create_app()
    logger.info("Quiz server listening on port %s (client %s)", Config.PORT, Config.CLIENT_URL)
    socketio.run(app, host="0.0.0.0", port=Config.PORT, allow_unsafe_werkzeug=True)
