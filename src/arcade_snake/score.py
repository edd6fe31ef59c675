"""Score bookkeeping and persistence of high score and games played."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

HIGH_SCORE_KEY = "highScore"
GAMES_PLAYED_KEY = "gamesPlayed"


class Storage(Protocol):
    """Minimal string key-value store."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class InMemoryStorage:
    """Dict-backed storage that lives as long as the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStorage:
    """Storage persisted as a flat JSON object on disk.

    The file is re-read on every ``get`` and rewritten on every ``set``;
    a missing or unreadable file behaves as an empty store.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (OSError, json.JSONDecodeError):
            logger.warning("Could not read score store %s; starting empty.", self.path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def get(self, key: str) -> str | None:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Written to a sibling temp file, then renamed over the target.
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp",
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w") as fh:
                fh.write(json.dumps(data, indent=2))
            tmp_path.replace(self.path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise


class ScoreTracker:
    """Tracks the current score plus persisted high score and games played."""

    def __init__(self, storage: Storage | None = None) -> None:
        self.storage: Storage = storage if storage is not None else InMemoryStorage()
        self.score = 0
        self.high_score = self._load_int(HIGH_SCORE_KEY)
        self.games_played = self._load_int(GAMES_PLAYED_KEY)

    def _load_int(self, key: str) -> int:
        raw = self.storage.get(key)
        if raw is None:
            return 0
        try:
            value = int(raw)
        except ValueError:
            logger.warning("Ignoring non-integer %s value %r.", key, raw)
            return 0
        return max(value, 0)

    def refresh(self) -> None:
        """Pull in counters written by other trackers sharing the storage."""
        self.high_score = max(self.high_score, self._load_int(HIGH_SCORE_KEY))
        self.games_played = max(self.games_played, self._load_int(GAMES_PLAYED_KEY))

    def add(self, points: int) -> int:
        """Add *points* to the current score and return the new total."""
        if points < 0:
            raise ValueError("points must be non-negative.")
        self.score += points
        return self.score

    def reset_score(self) -> None:
        self.score = 0

    def record_game_over(self, final_score: int) -> bool:
        """Count a finished game and persist the counters.

        Returns True if *final_score* set a new high score. Counters are
        re-read first so trackers sharing one storage stay consistent.
        """
        self.refresh()
        self.games_played += 1
        new_high = final_score > self.high_score
        if new_high:
            self.high_score = final_score
            self.storage.set(HIGH_SCORE_KEY, str(self.high_score))
        self.storage.set(GAMES_PLAYED_KEY, str(self.games_played))
        logger.info(
            "Game %d finished with score %d (high score %d).",
            self.games_played, final_score, self.high_score,
        )
        return new_high

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "high_score": self.high_score,
            "games_played": self.games_played,
        }
