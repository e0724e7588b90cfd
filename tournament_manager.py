"""
Tournament Manager - lifecycle of the weekly check-in tournament

Only the parts the weekly scheduler drives live here: opening a tournament
with its limits, remembering the pinned announcement, and closing it.
The player roster, queue and check-in flow are handled elsewhere.
"""
import json
import os
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Optional

from config import TOURNAMENTS_DIR
from utils.error_handling import CollaboratorFailure


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class CheckinTournament:
    """The currently open tournament"""
    limit: int
    lichess_limit: int = 0
    chesscom_limit: int = 0
    intro: str = ""
    announcement_message_id: int = 0
    created_at: str = field(default_factory=_utc_now_iso)

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict):
        return cls(
            limit=data['limit'],
            lichess_limit=data.get('lichess_limit', 0),
            chesscom_limit=data.get('chesscom_limit', 0),
            intro=data.get('intro', ''),
            announcement_message_id=data.get('announcement_message_id', 0),
            created_at=data.get('created_at', _utc_now_iso()),
        )


class TournamentLifecycle:
    """Start/end operations used by the scheduled tasks

    State is kept in one JSON file so an open tournament survives a restart.
    """

    def __init__(self, tournaments_dir: str = TOURNAMENTS_DIR):
        self.tournaments_dir = tournaments_dir
        self.file_path = os.path.join(tournaments_dir, "active.json")
        self._active: Optional[CheckinTournament] = None
        self._loaded = False

    @property
    def exists(self) -> bool:
        return self.get_active() is not None

    def get_active(self) -> Optional[CheckinTournament]:
        """Active tournament, loaded from disk on first use"""
        if not self._loaded:
            self._active = self._load()
            self._loaded = True
        return self._active

    def start_event(self, limit: int, lichess_limit: int, chesscom_limit: int, intro: str) -> CheckinTournament:
        """Open a new tournament, replacing any previous one"""
        tournament = CheckinTournament(
            limit=limit,
            lichess_limit=lichess_limit,
            chesscom_limit=chesscom_limit,
            intro=intro,
        )
        self._save(tournament)
        self._active = tournament
        self._loaded = True
        print(f"🏆 Tournament created: limit={limit}, lichess<{lichess_limit}, chess.com<{chesscom_limit}")
        return tournament

    def set_announcement_message_id(self, message_id: int):
        tournament = self.get_active()
        if tournament is None:
            raise CollaboratorFailure("set announcement message", "no active tournament")
        tournament.announcement_message_id = message_id
        self._save(tournament)

    def end_event(self):
        """Close the active tournament; no-op when none is open"""
        if self.get_active() is None:
            return
        try:
            if os.path.exists(self.file_path):
                os.remove(self.file_path)
        except OSError as e:
            raise CollaboratorFailure("remove tournament", str(e)) from e
        self._active = None
        print("🏁 Tournament ended and removed")

    def _save(self, tournament: CheckinTournament):
        try:
            os.makedirs(self.tournaments_dir, exist_ok=True)
            with open(self.file_path, 'w', encoding='utf-8') as f:
                json.dump(tournament.to_dict(), f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise CollaboratorFailure("save tournament", str(e)) from e

    def _load(self) -> Optional[CheckinTournament]:
        if not os.path.exists(self.file_path):
            return None
        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return CheckinTournament.from_dict(data)
        except (OSError, ValueError, KeyError) as e:
            raise CollaboratorFailure("load tournament", str(e)) from e
