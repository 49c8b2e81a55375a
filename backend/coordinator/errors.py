"""Coordinator error taxonomy.

Every rejected command raises one of these. The coordinator decides what the
client sees based on ``user_facing``:

	* user facing  -> sender receives ``room_error`` with ``str(exc)``.
	* silent       -> nothing is emitted; the rejection is only logged.
"""

from __future__ import annotations


class CoordinatorError(Exception):
    """Base class for every rejected command."""

    user_facing = False
    default_message = "Command rejected"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


# ---------------------------------------------------------------------------
# Reported back to the sender
# ---------------------------------------------------------------------------
class RoomNotFound(CoordinatorError):
    user_facing = True
    default_message = "Room not found"


class NameTaken(CoordinatorError):
    user_facing = True
    default_message = "Name already taken in this room"


class RoleCapacityExceeded(CoordinatorError):
    user_facing = True
    default_message = "Player slots are full. Join as Voter instead."


class InvalidName(CoordinatorError):
    user_facing = True
    default_message = "Display name is required"


class UnknownMode(CoordinatorError):
    user_facing = True
    default_message = "Unknown room type"


# ---------------------------------------------------------------------------
# Silently ignored
# ---------------------------------------------------------------------------
class NotHost(CoordinatorError):
    default_message = "Only the host can do that"


class NotAMember(CoordinatorError):
    default_message = "Sender is not in this room"


class InvalidState(CoordinatorError):
    default_message = "Command not valid in the current state"


class OutOfRange(CoordinatorError):
    default_message = "Question index out of range"


class WrongRole(CoordinatorError):
    default_message = "Role not allowed to do that"


class DurationExceeded(CoordinatorError):
    default_message = "Video longer than the allowed duration"


class CapacityExceeded(CoordinatorError):
    default_message = "Video limit reached"


class NotNextInOrder(CoordinatorError):
    default_message = "Only the earliest unmarked buzzer can be judged"


__all__ = [
    "CoordinatorError",
    "RoomNotFound",
    "NameTaken",
    "RoleCapacityExceeded",
    "InvalidName",
    "UnknownMode",
    "NotHost",
    "NotAMember",
    "InvalidState",
    "OutOfRange",
    "WrongRole",
    "DurationExceeded",
    "CapacityExceeded",
    "NotNextInOrder",
]
