"""
Observation Store: durable key-value backing for the learning state.

Two logical records are kept: the observation log and the CPT adjustment
map. Both are overwritten after every mutating call and read once at
network construction.

Behavioral Contract:
- Stores only move bytes; they know nothing about the records.
- NetworkStatePersistence never raises. Any failure of an injected store, or
  of decoding what it returned, is logged and the in-memory state stays
  authoritative.
"""

import json
import logging
import math
import sqlite3
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol, Tuple

from pydantic import TypeAdapter

from complication_bn.models.learning import LearningConfig, ObservationRecord
from complication_bn.models.network import Complication, to_complication

logger = logging.getLogger(__name__)

_observations_adapter = TypeAdapter(List[ObservationRecord])


class ObservationStore(Protocol):
    """Injectable durable store."""

    def load(self, key: str) -> Optional[bytes]:
        ...

    def save(self, key: str, data: bytes) -> None:
        ...


class InMemoryObservationStore:
    """Dict-backed store. State lives as long as the instance."""

    def __init__(self):
        self._data: Dict[str, bytes] = {}

    def load(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def save(self, key: str, data: bytes) -> None:
        self._data[key] = bytes(data)


class SQLiteObservationStore:
    """
    Key-value store on a single SQLite table.
    Pass a file path for durability; the default is an in-memory database.
    """

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self) -> None:
        """Create the state table if it doesn't exist."""
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_state (
                key TEXT PRIMARY KEY,
                value BLOB NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        self._conn.commit()

    def load(self, key: str) -> Optional[bytes]:
        row = self._conn.execute(
            "SELECT value FROM kv_state WHERE key = ?", (key,)
        ).fetchone()
        return bytes(row["value"]) if row else None

    def save(self, key: str, data: bytes) -> None:
        self._conn.execute(
            """
            INSERT INTO kv_state (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (key, sqlite3.Binary(data), datetime.now(timezone.utc).isoformat()),
        )
        self._conn.commit()

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()


class NetworkStatePersistence:
    """Serializes learning state onto an ObservationStore, swallowing every failure."""

    def __init__(self, store: ObservationStore, config: Optional[LearningConfig] = None):
        self.store = store
        self.config = config or LearningConfig()

    def load_observations(self) -> List[ObservationRecord]:
        key = self.config.observations_key
        try:
            raw = self.store.load(key)
            if not raw:
                return []
            return _observations_adapter.validate_json(raw)
        except Exception as e:
            logger.warning("Could not load %s, starting with an empty log: %s", key, e)
            return []

    def load_adjustments(self) -> Dict[Complication, float]:
        """
        Adjustments stored as [complication, value] pairs.
        Unknown complications and non-finite values are skipped; the rest are
        clamped to +/- max_adjustment.
        """
        key = self.config.adjustments_key
        try:
            raw = self.store.load(key)
            if not raw:
                return {}
            pairs = json.loads(raw)
            adjustments: Dict[Complication, float] = {}
            for name, value in pairs:
                complication = to_complication(name)
                if complication is None:
                    logger.debug("Skipping adjustment for unknown complication %r", name)
                    continue
                value = float(value)
                if not math.isfinite(value):
                    logger.warning("Skipping non-finite adjustment for %s", complication.value)
                    continue
                bound = self.config.max_adjustment
                adjustments[complication] = max(-bound, min(bound, value))
            return adjustments
        except Exception as e:
            logger.warning("Could not load %s, starting without adjustments: %s", key, e)
            return {}

    def save(
        self,
        observations: List[ObservationRecord],
        adjustments: Dict[Complication, float],
    ) -> bool:
        """Overwrite both records. Returns False if either write failed."""
        pairs: List[Tuple[str, float]] = [(c.value, v) for c, v in adjustments.items()]
        ok = True
        try:
            self.store.save(
                self.config.observations_key,
                _observations_adapter.dump_json(observations),
            )
        except Exception as e:
            logger.warning("Could not persist observations: %s", e)
            ok = False
        try:
            self.store.save(self.config.adjustments_key, json.dumps(pairs).encode())
        except Exception as e:
            logger.warning("Could not persist CPT adjustments: %s", e)
            ok = False
        return ok
