"""Profile store abstractions with JSON-file and SQLite backends."""
from __future__ import annotations

import json
import sqlite3
import time
from pathlib import Path
from typing import Any, Dict, Optional

from memory.profile import Profile

# Keys persisted per user. The undo stack is session-only.
PROFILE_KEYS = ("tag_scores", "seen_ids", "blocked_tags", "interests", "wishlist", "cart")


class PersistenceWriteFailed(RuntimeError):
    """Raised when a profile write cannot reach durable storage."""


class ProfileStore:
    """Interface for profile persistence."""

    def load_profile(self, user_id: str) -> Optional[Profile]:
        raise NotImplementedError

    def save_profile(self, profile: Profile) -> None:
        raise NotImplementedError

    def get_value(self, user_id: str, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    def set_value(self, user_id: str, key: str, value: Any) -> None:
        raise NotImplementedError

    def delete_profile(self, user_id: str) -> None:
        raise NotImplementedError


def _profile_values(profile: Profile) -> Dict[str, Any]:
    payload = profile.to_dict(include_undo=False)
    return {key: payload[key] for key in PROFILE_KEYS}


class JSONProfileStore(ProfileStore):
    """JSON-file-backed ProfileStore suitable for local runs."""

    def __init__(self, base_dir: str | Path = "data/profiles") -> None:
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, user_id: str) -> Path:
        return self.base_dir / f"{user_id}.json"

    def _load(self, user_id: str) -> Optional[Dict[str, Any]]:
        path = self._path(user_id)
        if not path.exists():
            return None
        return json.loads(path.read_text())

    def _save(self, user_id: str, payload: Dict[str, Any]) -> None:
        path = self._path(user_id)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            tmp_path.write_text(json.dumps(payload, indent=2))
            tmp_path.replace(path)
        except OSError as exc:
            raise PersistenceWriteFailed(f"Could not write profile for {user_id}: {exc}") from exc

    def load_profile(self, user_id: str) -> Optional[Profile]:
        record = self._load(user_id)
        if record is None:
            return None
        return Profile.from_dict({**record, "user_id": user_id})

    def save_profile(self, profile: Profile) -> None:
        self._save(profile.user_id, {"user_id": profile.user_id, **_profile_values(profile)})

    def get_value(self, user_id: str, key: str, default: Any = None) -> Any:
        record = self._load(user_id) or {}
        return record.get(key, default)

    def set_value(self, user_id: str, key: str, value: Any) -> None:
        record = self._load(user_id) or {"user_id": user_id}
        record[key] = value
        self._save(user_id, record)

    def delete_profile(self, user_id: str) -> None:
        self._path(user_id).unlink(missing_ok=True)


class SQLiteProfileStore(ProfileStore):
    """SQLite-backed profile store for lightweight durability."""

    def __init__(self, db_path: str | Path = "data/profiles.db") -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS profile_values (
                    user_id TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT,
                    updated_at REAL,
                    PRIMARY KEY (user_id, key)
                );
                """
            )

    def _write(self, user_id: str, values: Dict[str, Any]) -> None:
        now = time.time()
        try:
            with self._connect() as conn:
                conn.executemany(
                    "INSERT INTO profile_values(user_id, key, value, updated_at) VALUES (?, ?, ?, ?)\n"
                    "ON CONFLICT(user_id, key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at",
                    [(user_id, key, json.dumps(value), now) for key, value in values.items()],
                )
        except sqlite3.Error as exc:
            raise PersistenceWriteFailed(f"Could not write profile for {user_id}: {exc}") from exc

    def load_profile(self, user_id: str) -> Optional[Profile]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT key, value FROM profile_values WHERE user_id = ?", (user_id,)
            ).fetchall()
        if not rows:
            return None
        payload: Dict[str, Any] = {row["key"]: json.loads(row["value"]) for row in rows if row["value"]}
        return Profile.from_dict({**payload, "user_id": user_id})

    def save_profile(self, profile: Profile) -> None:
        self._write(profile.user_id, _profile_values(profile))

    def get_value(self, user_id: str, key: str, default: Any = None) -> Any:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM profile_values WHERE user_id = ? AND key = ?", (user_id, key)
            ).fetchone()
        return json.loads(row["value"]) if row and row["value"] else default

    def set_value(self, user_id: str, key: str, value: Any) -> None:
        self._write(user_id, {key: value})

    def delete_profile(self, user_id: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM profile_values WHERE user_id = ?", (user_id,))


__all__ = [
    "PROFILE_KEYS",
    "PersistenceWriteFailed",
    "ProfileStore",
    "JSONProfileStore",
    "SQLiteProfileStore",
]
