"""
Sandbox Storage Module

In-memory tables for the sandbox service. Records are stored as camelCase
JSON objects exactly as the service returns them, with auto-increment
integer ids per table.
"""

import json
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class RecordNotFound(LookupError):
    pass


class SandboxStore:
    """Thread-safe in-memory storage keyed by table and integer id"""

    def __init__(self):
        self._data: Dict[str, Dict[int, Dict[str, Any]]] = {}
        self._sequences: Dict[str, int] = {}
        self._lock = threading.RLock()

    def _table(self, table: str) -> Dict[int, Dict[str, Any]]:
        return self._data.setdefault(table, {})

    @staticmethod
    def _copy(record: Dict[str, Any]) -> Dict[str, Any]:
        # Deep copy to prevent external mutation
        return json.loads(json.dumps(record, default=str))

    def insert(self, table: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Store a new record and return it with its id and timestamps"""
        with self._lock:
            record_id = self._sequences.get(table, 0) + 1
            self._sequences[table] = record_id
            now = datetime.now(timezone.utc).isoformat()
            record = {**self._copy(data), "id": record_id, "createdAt": now, "updatedAt": now}
            self._table(table)[record_id] = record
            return self._copy(record)

    def update(self, table: str, record_id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            record = self._table(table).get(record_id)
            if record is None:
                raise RecordNotFound(f"{table} {record_id} not found")
            record.update(self._copy(changes))
            record["id"] = record_id
            record["updatedAt"] = datetime.now(timezone.utc).isoformat()
            return self._copy(record)

    def load(self, table: str, record_id: int) -> Dict[str, Any]:
        with self._lock:
            record = self._table(table).get(record_id)
            if record is None:
                raise RecordNotFound(f"{table} {record_id} not found")
            return self._copy(record)

    def load_all(self, table: str) -> List[Dict[str, Any]]:
        """All records of a table in id order"""
        with self._lock:
            return [self._copy(record) for _, record in sorted(self._table(table).items())]

    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Records whose fields equal every non-None filter value"""
        active = {key: value for key, value in filters.items() if value is not None}
        return [
            record for record in self.load_all(table)
            if all(record.get(key) == value for key, value in active.items())
        ]

    def find_one(self, table: str, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        matches = self.find(table, filters)
        return matches[0] if matches else None

    def delete(self, table: str, record_id: int) -> None:
        with self._lock:
            if self._table(table).pop(record_id, None) is None:
                raise RecordNotFound(f"{table} {record_id} not found")

    def count(self, table: str, filters: Optional[Dict[str, Any]] = None) -> int:
        return len(self.find(table, filters or {}))

    def clear(self) -> None:
        with self._lock:
            self._data = {}
            self._sequences = {}
