"""Room container: roster, host ownership and mode sub‑state for one game session.

High-level responsibilities:
	* Maintain the ordered roster of `Participant` objects (join order = dict order).
	* Enforce display name uniqueness within the room (case‑sensitive, exact).
	* Keep exactly one host in a non‑empty room; on host departure promote the
		earliest remaining joiner.
	* Enforce impostor Player capacity.
	* Own the mode specific round object (buzz round, question round, impostor round).
	* Expose a stable, JSON‑serializable snapshot (`to_dict`) for clients.

Design notes:
	* Purely in‑memory & process‑local: state is lost on restart.
	* Every command touching a room runs while holding ``room.lock``; nothing in
		this class locks by itself.
	* ``closed`` is set when the last participant leaves so that a command that
		already looked the room up sees it as gone.
"""
from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Optional, Tuple

from coordinator.buzzer import BuzzRound
from coordinator.errors import InvalidName, InvalidState, NameTaken, NotAMember, NotHost, RoleCapacityExceeded
from coordinator.impostor import DEFAULT_MAX_DURATION_MS, DEFAULT_MAX_VIDEOS, ImpostorRound
from coordinator.participant import ROLE_PLAYER, ROLE_VOTER, ROLES, Participant
from coordinator.type_answer import QuestionRound

MODE_BUZZER = "buzzer"
MODE_TYPE = "type"
MODE_IMPOSTOR = "impostor"
MODES = (MODE_BUZZER, MODE_TYPE, MODE_IMPOSTOR)

STATE_WAITING = "waiting"
STATE_ACTIVE = "active"
STATE_ENDED = "ended"
STATE_RECORDING = "recording"
STATE_VOTING = "voting"
STATE_RESULTS = "results"


class Room:
	"""In‑memory room model.

	Core operations:
		* add_participant(connection_id, name, role) – register a new `Participant`.
		* remove_participant(connection_id) – detach and fail the host over if needed.
		* require_member / require_host – authorization checks used by every command.
		* roster() – list of participant dicts in join order.

	Serialization contract (``to_dict``):
		{
		  "roomCode": str,
		  "roomType": "buzzer" | "type" | "impostor",
		  "gameState": str,
		  "hostId": str | None,
		  "players": [ Participant.to_dict(), ... ],
		  "playerCount": int,
		}

	Error model:
		* Empty name -> InvalidName.
		* Duplicate name -> NameTaken.
		* Player slot overflow (impostor) -> RoleCapacityExceeded.
		* Unknown sender -> NotAMember, non‑host on host command -> NotHost.
	"""
	def __init__(self, code: str, mode: str, max_videos: int = DEFAULT_MAX_VIDEOS, max_duration_ms: int = DEFAULT_MAX_DURATION_MS):
		self.code = code
		self.mode = mode
		self.state = STATE_WAITING
		self.participants: Dict[str, Participant] = {}
		self.lock = threading.RLock()
		self.closed = False

		self.buzz: Optional[BuzzRound] = BuzzRound() if mode == MODE_BUZZER else None
		self.questions: Optional[QuestionRound] = QuestionRound() if mode == MODE_TYPE else None
		self.impostor: Optional[ImpostorRound] = None
		self.max_players = 0
		if mode == MODE_IMPOSTOR:
			self.impostor = ImpostorRound(max_videos, max_duration_ms)
			self.max_players = max_videos

	# ------------------------------------------------------------------
	# Membership
	# ------------------------------------------------------------------
	def add_participant(self, connection_id: str, name: str, role: Optional[str] = None) -> Participant:
		"""Add a new participant to the room.

		The first participant becomes host. In impostor rooms everyone except
		the host gets a role; a missing or unknown role means Voter.

		Args:
			connection_id (str): Transport id of the joining socket.
			name (str): Display name, trimmed before the uniqueness check.
			role (str, optional): "Player" or "Voter" (impostor rooms only).

		Raises:
			InvalidState: If this connection is already seated here.
			InvalidName: If the name is empty.
			NameTaken: If the name is already used in this room.
			RoleCapacityExceeded: If every Player slot is taken.

		Returns:
			Participant: The newly registered participant.
		"""
		if connection_id in self.participants:
			raise InvalidState(f"{connection_id} is already in room {self.code}")
		name = str(name or "").strip()
		if not name:
			raise InvalidName()
		if any(p.display_name == name for p in self.participants.values()):
			raise NameTaken()

		is_host = not self.participants
		assigned_role = None
		if self.mode == MODE_IMPOSTOR and not is_host:
			assigned_role = role if role in ROLES else ROLE_VOTER
			if assigned_role == ROLE_PLAYER and self.player_count() >= self.max_players:
				raise RoleCapacityExceeded(f"Maximum {self.max_players} Players allowed. Join as Voter instead.")

		p = Participant(connection_id, name, is_host=is_host, role=assigned_role)
		self.participants[connection_id] = p
		return p

	def remove_participant(self, connection_id: str) -> Tuple[Optional[Participant], Optional[Participant]]:
		"""Remove a participant, promoting a new host if the host left.

		Args:
			connection_id (str): Transport id of the departing socket.

		Returns:
			Tuple[Optional[Participant], Optional[Participant]]: (removed, new host).
			``removed`` is None when the id was not in the room; ``new host`` is
			None unless ownership changed hands.
		"""
		removed = self.participants.pop(connection_id, None)
		if removed is None:
			return None, None
		if self.buzz is not None:
			self.buzz.forget(connection_id)

		new_host = None
		if removed.is_host and self.participants:
			new_host = next(iter(self.participants.values()))
			new_host.is_host = True
			# Hosts never hold an impostor role.
			if self.mode == MODE_IMPOSTOR:
				new_host.role = None
		return removed, new_host

	def get_participant(self, connection_id: str) -> Optional[Participant]:
		return self.participants.get(connection_id)

	def require_member(self, connection_id: str) -> Participant:
		p = self.participants.get(connection_id)
		if p is None:
			raise NotAMember(f"{connection_id} is not in room {self.code}")
		return p

	def require_host(self, connection_id: str) -> Participant:
		p = self.require_member(connection_id)
		if not p.is_host:
			raise NotHost(f"{p.display_name} is not host of room {self.code}")
		return p

	def list_participants(self) -> Iterable[Participant]:
		return self.participants.values()

	def connection_ids(self) -> List[str]:
		return list(self.participants.keys())

	def others(self, connection_id: str) -> List[str]:
		return [cid for cid in self.participants if cid != connection_id]

	@property
	def host(self) -> Optional[Participant]:
		for p in self.participants.values():
			if p.is_host:
				return p
		return None

	def is_empty(self) -> bool:
		return not self.participants

	def player_count(self) -> int:
		"""Number of impostor Players (not Voters, not host)."""
		return sum(1 for p in self.participants.values() if p.role == ROLE_PLAYER)

	def roster(self) -> List[dict]:
		return [p.to_dict() for p in self.participants.values()]

	# ------------------------------------------------------------------
	# Serialization
	# ------------------------------------------------------------------
	def to_dict(self) -> dict:
		"""Public snapshot of the room; never contains canonical answers.

		Returns:
			dict: Roster + mode/state plus whatever the mode exposes publicly.
		"""
		host = self.host
		snapshot = {
			"roomCode": self.code,
			"roomType": self.mode,
			"gameState": self.state,
			"hostId": host.connection_id if host else None,
			"players": self.roster(),
			"playerCount": len(self.participants),
		}
		if self.buzz is not None:
			snapshot["buzzOrder"] = self.buzz.order(self.participants)
		if self.questions is not None:
			snapshot.update(self.questions.public_state())
		if self.impostor is not None:
			snapshot.update(self.impostor.public_state())
			snapshot["maxPlayers"] = self.max_players
		return snapshot
