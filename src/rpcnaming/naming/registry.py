# rpcnaming/naming/registry.py
from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from rpcnaming.errors import ValidationError
from rpcnaming.naming.models import Entry, EntryTable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_live(entry: Entry, now: datetime) -> bool:
    """An entry is visible iff it has no lease or the lease has not elapsed."""
    if entry.lease_seconds is None or entry.registered_at is None:
        return True
    return now - entry.registered_at < timedelta(seconds=entry.lease_seconds)


class NameRegistry:
    """
    Node-local name -> entries table.

    Lists are replaced, never mutated, so a reader holding the lock only long
    enough to grab a reference can filter it afterwards without racing
    writers. Expiry is evaluated lazily at read time; expired entries under a
    name are dropped the next time that name is written.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._table: Dict[str, List[Entry]] = {}
        self._lock = threading.Lock()
        self._clock: Clock = clock or utcnow
        self._logger = logging.getLogger("rpcnaming.naming.registry")

    # ───── Mutations ─────
    def register(self, entry: Entry) -> Entry:
        if not entry.name or not entry.host or not entry.port:
            raise ValidationError("name, host and port are required")

        now = self._clock()
        stamped = entry.model_copy(update={"registered_at": now})
        with self._lock:
            current = [e for e in self._table.get(entry.name, ()) if is_live(e, now)]
            self._table[entry.name] = current + [stamped]
        self._logger.info(f"Registered {entry.name} -> {stamped.address}")
        return stamped

    def unregister(self, name: str | None, host: str | None, port: int | None) -> int:
        if not name:
            raise ValidationError("name is required")

        now = self._clock()
        with self._lock:
            current = self._table.get(name, [])
            kept = [
                e for e in current
                if not (e.host == host and e.port == port) and is_live(e, now)
            ]
            removed = len(current) - len(kept)
            if kept:
                self._table[name] = kept
            else:
                self._table.pop(name, None)
        self._logger.info(f"Unregistered {name} @ {host}:{port} ({removed} removed)")
        return removed

    # ───── Reads ─────
    def lookup_local(self, name: str) -> List[Entry]:
        with self._lock:
            entries = self._table.get(name, ())
        now = self._clock()
        return [e for e in entries if is_live(e, now)]

    def list_all(self) -> EntryTable:
        """Snapshot of the whole table, expired-but-unpruned entries included."""
        with self._lock:
            snapshot = dict(self._table)
        return {name: list(entries) for name, entries in snapshot.items()}

    def names(self) -> List[str]:
        with self._lock:
            return list(self._table.keys())

    def live_names(self) -> List[str]:
        with self._lock:
            snapshot = dict(self._table)
        now = self._clock()
        return [name for name, entries in snapshot.items() if any(is_live(e, now) for e in entries)]
