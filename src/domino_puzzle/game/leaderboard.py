from __future__ import annotations

import logging
import os
import struct
import time as _time
from dataclasses import dataclass
from typing import List, Optional

from .rules import Difficulty
from .storage import read_leaderboard, write_leaderboard

logger = logging.getLogger(__name__)

MAX_ENTRIES = 10


@dataclass(frozen=True)
class LeaderboardEntry:
    player_name: str
    difficulty: Difficulty
    time: float
    moves: int
    hints: int
    timestamp: int  # Unix time in microseconds


class Leaderboard:
    """Best ten completion times, rewritten to disk in full after every result.

    A ``file_path`` of None keeps the board in memory only.
    """

    def __init__(self, file_path: Optional[str] = "leaderboard.bin") -> None:
        self.file_path = file_path
        self._entries: List[LeaderboardEntry] = self._load()

    @property
    def entries(self) -> List[LeaderboardEntry]:
        return list(self._entries)

    def add_result(
        self,
        player_name: str,
        difficulty: Difficulty,
        time: float,
        moves: int,
        hints: int,
        timestamp: Optional[int] = None,
    ) -> LeaderboardEntry:
        if timestamp is None:
            timestamp = _time.time_ns() // 1000
        entry = LeaderboardEntry(player_name, Difficulty(difficulty), float(time), int(moves), int(hints), int(timestamp))
        self._entries.append(entry)
        self._entries.sort(key=lambda e: e.time)
        del self._entries[MAX_ENTRIES:]
        self._save()
        return entry

    def _load(self) -> List[LeaderboardEntry]:
        if self.file_path is None or not os.path.exists(self.file_path):
            return []
        try:
            with open(self.file_path, "rb") as fh:
                records = read_leaderboard(fh)
            entries = [
                LeaderboardEntry(name, Difficulty(diff), time, moves, hints, stamp)
                for name, diff, time, moves, hints, stamp in records
            ]
        except (OSError, ValueError, struct.error) as exc:
            logger.warning("Could not read leaderboard %s: %s", self.file_path, exc)
            return []
        entries.sort(key=lambda e: e.time)
        return entries[:MAX_ENTRIES]

    def _save(self) -> None:
        if self.file_path is None:
            return
        records = [(e.player_name, int(e.difficulty), e.time, e.moves, e.hints, e.timestamp) for e in self._entries]
        try:
            with open(self.file_path, "wb") as fh:
                write_leaderboard(fh, records)
        except OSError as exc:
            logger.warning("Failed to save leaderboard %s: %s", self.file_path, exc)
