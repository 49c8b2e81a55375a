"""Health / diagnostics endpoints.

Provides lightweight liveness & readiness checks plus process uptime.

Design:
  * GET /api/health          -> Combined status + uptime + live room count.
  * GET /api/health/live     -> Always returns 200 if process loop is alive.
  * GET /api/health/ready    -> 200 once the coordinator is attached to the app.

All routes are fast and side‑effect free; the room count reads the registry
without taking any room lock.
"""

from __future__ import annotations

import time
from typing import Dict, Any, Optional
from flask import Blueprint, current_app, jsonify
from util.route_builder import RouteBuilder

START_TIME = time.time()

bp = Blueprint("health", __name__)
__all__ = ["bp"]


def _uptime_payload() -> Dict[str, Any]:
    now = time.time()
    uptime_s = int(now - START_TIME)
    return {
        "uptimeSeconds": uptime_s,
        "uptime": {
            "days": uptime_s // 86400,
            "hours": (uptime_s // 3600) % 24,
            "minutes": (uptime_s // 60) % 60,
            "seconds": uptime_s % 60,
        },
        "processStart": int(START_TIME),
        "now": int(now),
    }


def _coordinator():
    return current_app.extensions.get("coordinator")


def _checks() -> Dict[str, str]:
    return {"coordinator": "ok" if _coordinator() is not None else "unconfigured"}


def _room_count() -> Optional[int]:
    coordinator = _coordinator()
    return len(coordinator.registry) if coordinator is not None else None


def health():
    """Aggregate liveness + readiness + uptime in one call."""
    checks = _checks()
    ready_ok = all(v == "ok" for v in checks.values())
    status = "ok" if ready_ok else "degraded"
    payload = {
        "status": status,
        "live": "ok",
        "ready": ready_ok,
        "checks": checks,
        "rooms": _room_count(),
        **_uptime_payload(),
    }
    return jsonify(payload), 200 if ready_ok else 503


def liveness():  # no external calls
    return jsonify({"status": "ok", **_uptime_payload()})


def readiness():
    checks = _checks()
    ready_ok = all(v == "ok" for v in checks.values())
    code = 200 if ready_ok else 503
    return jsonify({"status": "ok" if ready_ok else "degraded", "ready": ready_ok, "checks": checks}), code


RouteBuilder(bp) \
    .route("/health") \
    .methods("GET") \
    .handler(health) \
    .build()

RouteBuilder(bp) \
    .route("/health/live") \
    .methods("GET") \
    .handler(liveness) \
    .build()

RouteBuilder(bp) \
    .route("/health/ready") \
    .methods("GET") \
    .handler(readiness) \
    .build()
