"""Cloud history store backed by Firestore (users/{identity}/audits)."""
from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from ghostbuster.errors import PersistenceError
from ghostbuster.log import get_logger
from ghostbuster.models import HistoryEntry
from ghostbuster.stores.base import (
    HISTORY_LIMIT,
    HistoryCallback,
    HistoryStore,
    Subscription,
)

log = get_logger(__name__)


def build_client(config: dict[str, Any]):
    """Firestore client for the configured project (credentials via ADC)."""
    from google.cloud import firestore

    project = config.get("projectId") or config.get("project_id")
    if not project:
        raise PersistenceError("FIREBASE_CONFIG has no projectId")
    return firestore.Client(project=project)


class FirestoreHistoryStore(HistoryStore):
    def __init__(self, client, identity: str) -> None:
        self.client = client
        self.identity = identity
        self._pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="history")

    def _collection(self):
        return self.client.collection("users", self.identity, "audits")

    def append(self, entry: HistoryEntry) -> Future | None:
        """Queue the write and return immediately."""
        try:
            return self._pool.submit(self._write, entry)
        except RuntimeError as exc:
            # Pool already shut down
            log.error("History append dropped: %s", exc)
            return None

    def _write(self, entry: HistoryEntry) -> None:
        from google.cloud import firestore

        fields = entry.to_document()
        fields["timestamp"] = firestore.SERVER_TIMESTAMP
        try:
            self._collection().add(fields)
            log.debug("Saved audit history for %r", entry.job_title)
        except Exception as exc:
            log.error("Failed to save history: %s", exc)

    def subscribe(self, callback: HistoryCallback) -> Subscription:
        from google.cloud import firestore

        def _on_snapshot(docs, changes, read_time) -> None:
            entries = [HistoryEntry.from_document(d.id, d.to_dict() or {}) for d in docs]
            try:
                callback(entries[:HISTORY_LIMIT])
            except Exception as exc:
                log.error("History callback failed: %s", exc)

        try:
            query = (
                self._collection()
                .order_by("timestamp", direction=firestore.Query.DESCENDING)
                .limit(HISTORY_LIMIT)
            )
            watch = query.on_snapshot(_on_snapshot)
        except Exception as exc:
            log.error("History subscription failed: %s", exc)
            return Subscription()

        def _release() -> None:
            try:
                watch.unsubscribe()
            except Exception as exc:
                log.warning("History unsubscribe failed: %s", exc)

        return Subscription(_release)

    def close(self) -> None:
        # Queued writes still run; only new appends are refused
        self._pool.shutdown(wait=False)
