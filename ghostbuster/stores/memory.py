"""Local history stores: a no-op for local-only mode and an in-memory feed."""
from __future__ import annotations

import itertools
import threading
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from ghostbuster.log import get_logger
from ghostbuster.models import HistoryEntry
from ghostbuster.stores.base import (
    HISTORY_LIMIT,
    HistoryCallback,
    HistoryStore,
    Subscription,
)

log = get_logger(__name__)


class NullHistoryStore(HistoryStore):
    """Local-only mode: nothing is kept, the feed is always empty."""

    def __init__(self, identity: str = "") -> None:
        self.identity = identity

    def enabled(self) -> bool:
        return False

    def append(self, entry: HistoryEntry) -> None:
        log.debug("History disabled — not saving %r", entry.job_title)

    def subscribe(self, callback: HistoryCallback) -> Subscription:
        try:
            callback([])
        except Exception as exc:
            log.error("History callback failed: %s", exc)
        return Subscription()


class InMemoryHistoryStore(HistoryStore):
    """Process-local store with store-assigned, strictly increasing timestamps."""

    def __init__(self, identity: str = "", clock=None) -> None:
        self.identity = identity
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = threading.RLock()
        self._entries: list[HistoryEntry] = []
        self._subscribers: dict[int, HistoryCallback] = {}
        self._ids = itertools.count(1)
        self._last_ts: datetime | None = None

    def _next_timestamp(self) -> datetime:
        ts = self._clock()
        if self._last_ts is not None and ts <= self._last_ts:
            ts = self._last_ts + timedelta(microseconds=1)
        self._last_ts = ts
        return ts

    def latest(self) -> list[HistoryEntry]:
        with self._lock:
            ordered = sorted(self._entries, key=lambda e: e.timestamp, reverse=True)
            return ordered[:HISTORY_LIMIT]

    def append(self, entry: HistoryEntry) -> None:
        with self._lock:
            stored = replace(
                entry,
                id=f"mem-{next(self._ids)}",
                timestamp=self._next_timestamp(),
            )
            self._entries.append(stored)
            snapshot = self.latest()
            callbacks = list(self._subscribers.values())
        log.debug("Saved audit %s (%r)", stored.id, stored.job_title)
        for cb in callbacks:
            self._deliver(cb, snapshot)

    def subscribe(self, callback: HistoryCallback) -> Subscription:
        with self._lock:
            key = next(self._ids)
            self._subscribers[key] = callback
            snapshot = self.latest()
        self._deliver(callback, snapshot)

        def _release() -> None:
            with self._lock:
                self._subscribers.pop(key, None)

        return Subscription(_release)

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    @staticmethod
    def _deliver(callback: HistoryCallback, snapshot: list[HistoryEntry]) -> None:
        try:
            callback(list(snapshot))
        except Exception as exc:
            log.error("History callback failed: %s", exc)

    def close(self) -> None:
        with self._lock:
            self._subscribers.clear()
