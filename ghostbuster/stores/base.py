"""History store interface: append plus a live feed of the newest entries."""
from __future__ import annotations

import threading
import uuid
from abc import ABC, abstractmethod
from typing import Callable

from ghostbuster.models import HistoryEntry

HISTORY_LIMIT = 10

HistoryCallback = Callable[[list[HistoryEntry]], None]


def new_identity() -> str:
    """Session-scoped anonymous caller id used to namespace history."""
    return f"anon-{uuid.uuid4().hex}"


class Subscription:
    """Handle for a live feed; unsubscribe() is safe to call more than once."""

    def __init__(self, release: Callable[[], None] | None = None) -> None:
        self._release = release
        self._lock = threading.Lock()
        self.active = release is not None

    def unsubscribe(self) -> None:
        with self._lock:
            release, self._release = self._release, None
            self.active = False
        if release is not None:
            release()


class HistoryStore(ABC):
    identity: str = ""

    @abstractmethod
    def append(self, entry: HistoryEntry) -> None:
        """Best-effort write. Must not raise."""

    @abstractmethod
    def subscribe(self, callback: HistoryCallback) -> Subscription:
        """Deliver the newest HISTORY_LIMIT entries, newest first, on every change."""

    def enabled(self) -> bool:
        return True

    def close(self) -> None:
        pass
