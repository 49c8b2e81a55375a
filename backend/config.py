import os
from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    try:
        return int(float(os.getenv(name, default)))
    except (TypeError, ValueError):
        return default


class Config:
    # Flask secret key (provide stable SECRET_KEY via env in production)
    SECRET_KEY = os.getenv("SECRET_KEY") or os.urandom(24)

    # Browser client origin (CORS for both /api/* and the socket handshake)
    CLIENT_URL = os.getenv('CLIENT_URL', 'http://localhost:5173')

    # Impostor rounds: Player slots == video slots
    IMPOSTOR_MAX_VIDEOS = _int_env('IMPOSTOR_MAX_VIDEOS', 5)
    IMPOSTOR_VIDEO_DURATION_MS = _int_env('IMPOSTOR_VIDEO_DURATION_MS', 3000)

    # Socket.IO transport (videos travel inline as data URLs)
    MAX_HTTP_BUFFER_SIZE = _int_env('MAX_HTTP_BUFFER_SIZE', 50_000_000)
    PING_TIMEOUT = _int_env('PING_TIMEOUT', 60)
    PING_INTERVAL = _int_env('PING_INTERVAL', 25)
    SOCKETIO_ASYNC_MODE = os.getenv('SOCKETIO_ASYNC_MODE', 'threading')

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    PORT = _int_env('PORT', 3001)
