"""
Local cache: synchronous, per-user key-value snapshot store.

Every snapshot is a JSON document stored under a single key. Reads and writes
never suspend and never raise; storage or decoding problems are logged and
reported as "no data".
"""

import json
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from app.errors import SerializationError
from app.logging import get_logger
from app.models import Collection, normalize_email

logger = get_logger('database')

CONFIG_URL_KEY = "config:url"
CONFIG_KEY_KEY = "config:key"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def user_key(user_id: str, collection: Collection | str) -> str:
    name = collection.value if isinstance(collection, Collection) else collection
    return f"user:{normalize_email(user_id)}:{name}"


def _decode(raw: str) -> Any:
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Corrupt snapshot: {e}") from e


class LocalCache:
    """On-device snapshot store backed by a single sqlite table."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = None

    def init_db(self) -> None:
        """
        Open the backing file and apply the schema.

        :return: None
        :rtype: None
        """
        if str(self.db_path) != ":memory:":
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._connect()
        schema_path = Path(__file__).parent / "init_db.sql"
        with open(schema_path) as f:
            conn.executescript(f.read())
        conn.commit()
        logger.info(f"Local cache initialized at {self.db_path}")

    def _connect(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        return self._conn

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    # ── Raw keys ──

    def get_raw(self, key: str) -> str | None:
        try:
            with self._lock:
                cursor = self._connect().execute(
                    "SELECT value FROM kv_store WHERE key = ?", (key,)
                )
                row = cursor.fetchone()
        except sqlite3.Error as e:
            logger.error(f"Local read failed for {key}: {e}")
            return None
        return row[0] if row else None

    def set_raw(self, key: str, value: str) -> bool:
        try:
            with self._lock:
                conn = self._connect()
                conn.execute(
                    """INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                       ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                                      updated_at = excluded.updated_at""",
                    (key, value, _now()),
                )
                conn.commit()
            return True
        except sqlite3.Error as e:
            logger.error(f"Local write failed for {key}: {e}")
            return False

    def delete_raw(self, key: str) -> bool:
        try:
            with self._lock:
                conn = self._connect()
                conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                conn.commit()
            return True
        except sqlite3.Error as e:
            logger.error(f"Local delete failed for {key}: {e}")
            return False

    # ── Collection snapshots ──

    def read(self, user_id: str, collection: Collection | str) -> Any | None:
        """
        Return the last snapshot written for a user's collection.

        :param user_id: User email; normalized before use
        :type user_id: str
        :param collection: Collection name
        :type collection: Collection | str
        :return: Decoded snapshot, or None when absent or unreadable
        :rtype: Any | None
        """
        key = user_key(user_id, collection)
        raw = self.get_raw(key)
        if raw is None:
            return None
        try:
            return _decode(raw)
        except SerializationError as e:
            logger.error(f"Ignoring local snapshot {key}: {e}")
            return None

    def write(self, user_id: str, collection: Collection | str, snapshot: Any) -> bool:
        key = user_key(user_id, collection)
        try:
            raw = json.dumps(snapshot)
        except (TypeError, ValueError) as e:
            logger.error(f"Could not serialize snapshot {key}: {e}")
            return False
        return self.set_raw(key, raw)

    def upsert(self, user_id: str, collection: Collection | str, entity: dict) -> bool:
        """Merge one entity into a list snapshot by id. New ids go to the front."""
        existing = self.read(user_id, collection)
        if not isinstance(existing, list):
            existing = []
        entity_id = entity.get("id")
        replaced = False
        merged = []
        for item in existing:
            if isinstance(item, dict) and item.get("id") == entity_id:
                merged.append(entity)
                replaced = True
            else:
                merged.append(item)
        if not replaced:
            merged.insert(0, entity)
        return self.write(user_id, collection, merged)

    def remove(self, user_id: str, collection: Collection | str, entity_id: str) -> bool:
        existing = self.read(user_id, collection)
        if not isinstance(existing, list):
            return False
        remaining = [
            item for item in existing
            if not (isinstance(item, dict) and item.get("id") == entity_id)
        ]
        if len(remaining) == len(existing):
            return False
        return self.write(user_id, collection, remaining)
