"""Hidden-video-vote ("impostor") round state.

Roles:
    * Host   – manages phases only; never records, never votes.
    * Player – records exactly one video per round.
    * Voter  – everyone else; votes for one video, may change their vote.

Phases (stored on the room): waiting -> recording -> voting -> results -> waiting.
"""

from __future__ import annotations

import math
from typing import Dict, List, Optional, Set

from coordinator.errors import CapacityExceeded, DurationExceeded, InvalidState, WrongRole
from coordinator.participant import ROLE_PLAYER, ROLE_VOTER, Participant

DEFAULT_MAX_VIDEOS = 5
DEFAULT_MAX_DURATION_MS = 3000


def _percentage(count: int, total: int) -> int:
    """Integer percentage rounded half up (50.5 -> 51)."""
    if total <= 0:
        return 0
    return int(math.floor(count * 100 / total + 0.5))


class ImpostorRound:
    """Videos, submissions and votes for the current impostor round."""

    def __init__(self, max_videos: int = DEFAULT_MAX_VIDEOS, max_duration_ms: int = DEFAULT_MAX_DURATION_MS) -> None:
        self.max_videos = max_videos
        self.max_duration_ms = max_duration_ms
        self.videos: List[dict] = []
        self.submitted: Set[str] = set()
        self.votes: Dict[str, str] = {}  # voter connection id -> video id
        self.voter_names: Dict[str, str] = {}
        self.results: Dict[str, dict] = {}

    def reset(self) -> None:
        self.videos = []
        self.submitted = set()
        self.votes = {}
        self.voter_names = {}
        self.results = {}

    def add_video(self, participant: Participant, payload, mime_type: Optional[str], duration, timestamp: int) -> dict:
        """Validate and store one submission.

        Raises:
            WrongRole: sender is not a Player.
            InvalidState: sender already submitted this round.
            DurationExceeded: video longer than ``max_duration_ms``.
            CapacityExceeded: ``max_videos`` already stored.
        """
        if participant.role != ROLE_PLAYER:
            raise WrongRole(f"{participant.display_name} is {participant.role or 'host'}, not Player")
        if participant.connection_id in self.submitted:
            raise InvalidState(f"{participant.display_name} already submitted")
        if duration is None or duration > self.max_duration_ms:
            raise DurationExceeded(f"Duration {duration} exceeds max {self.max_duration_ms}")
        if len(self.videos) >= self.max_videos:
            raise CapacityExceeded(f"Max videos {self.max_videos} reached")

        video = {
            "id": f"video_{timestamp}_{participant.connection_id}",
            "playerId": participant.connection_id,
            "playerName": participant.display_name,
            "videoData": payload,
            "mimeType": mime_type,
            "duration": duration,
            "timestamp": timestamp,
        }
        self.videos.append(video)
        self.submitted.add(participant.connection_id)
        return video

    def public_videos(self) -> List[dict]:
        """Video list as broadcast when voting opens (no duration, no author id)."""
        return [
            {"id": v["id"], "playerName": v["playerName"], "videoData": v["videoData"], "mimeType": v["mimeType"]}
            for v in self.videos
        ]

    def cast_vote(self, voter: Participant, video_id: str) -> Dict[str, dict]:
        """Record (or overwrite) a vote and return the recomputed tally.

        A voter who later disconnects keeps their vote; the tally shows the
        name they had when voting.
        """
        if voter.is_host or voter.role != ROLE_VOTER:
            raise WrongRole(f"{voter.display_name} cannot vote")
        if not any(v["id"] == video_id for v in self.videos):
            raise InvalidState(f"Unknown video id {video_id!r}")

        self.votes[voter.connection_id] = video_id
        self.voter_names[voter.connection_id] = voter.display_name
        self.results = self.tally()
        return self.results

    def tally(self) -> Dict[str, dict]:
        total = len(self.votes)
        results = {}
        for video in self.videos:
            voters = [self.voter_names.get(vid) for vid, chosen in self.votes.items() if chosen == video["id"]]
            results[video["id"]] = {
                "count": len(voters),
                "percentage": _percentage(len(voters), total),
                "voters": voters,
            }
        return results

    def public_state(self) -> dict:
        return {
            "videoCount": len(self.videos),
            "maxVideos": self.max_videos,
            "maxDuration": self.max_duration_ms,
            "voteResults": self.results,
        }


__all__ = ["ImpostorRound", "DEFAULT_MAX_VIDEOS", "DEFAULT_MAX_DURATION_MS"]
