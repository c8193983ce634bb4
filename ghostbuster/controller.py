"""
Dashboard view state.

``transition(state, event)`` is a pure function over a frozen ``AppState``;
``DashboardController`` owns one state plus the generator and history store
and performs the side effects (the audit call, the history append, the
history subscription) around it.
"""
from __future__ import annotations

import json
import threading
import weakref
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Union

from ghostbuster.audit import audit_job_post, validate_request
from ghostbuster.errors import GhostBusterError, LocalValidationError
from ghostbuster.generator import TextGenerator
from ghostbuster.log import get_logger
from ghostbuster.models import AuditRequest, AuditResult, HistoryEntry
from ghostbuster.stores import HISTORY_LIMIT, HistoryStore, Subscription

log = get_logger(__name__)

HOME = "home"
AUDIT_INPUT = "audit-input"
AUDIT_RESULT = "audit-result"
DIRECTORY = "directory"
HISTORY = "history"

VIEWS: tuple[str, ...] = (HOME, AUDIT_INPUT, AUDIT_RESULT, DIRECTORY, HISTORY)
NAV_TARGETS: tuple[str, ...] = (HOME, AUDIT_INPUT, DIRECTORY, HISTORY)


@dataclass(frozen=True)
class AuditOutcome:
    request: AuditRequest
    result: AuditResult


@dataclass(frozen=True)
class AppState:
    view: str = HOME
    result: AuditOutcome | None = None
    pending: bool = False
    submission: int = 0
    error: str | None = None
    validation_error: str | None = None
    history: tuple[HistoryEntry, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return json.loads(json.dumps(asdict(self), default=str))


# ── Events ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Navigate:
    view: str


@dataclass(frozen=True)
class SubmitAudit:
    request: AuditRequest


@dataclass(frozen=True)
class AuditSucceeded:
    outcome: AuditOutcome
    submission: int


@dataclass(frozen=True)
class AuditFailed:
    message: str
    submission: int


@dataclass(frozen=True)
class CancelAudit:
    pass


@dataclass(frozen=True)
class DismissResult:
    pass


@dataclass(frozen=True)
class DismissError:
    pass


@dataclass(frozen=True)
class HistoryUpdated:
    entries: tuple[HistoryEntry, ...]


Event = Union[
    Navigate, SubmitAudit, AuditSucceeded, AuditFailed,
    CancelAudit, DismissResult, DismissError, HistoryUpdated,
]


def _settles_current(state: AppState, submission: int) -> bool:
    return state.pending and submission == state.submission


def transition(state: AppState, event: Event) -> AppState:
    if isinstance(event, Navigate):
        if event.view not in NAV_TARGETS:
            raise ValueError(f"Cannot navigate to {event.view!r}")
        return replace(
            state, view=event.view, result=None, pending=False,
            error=None, validation_error=None,
        )

    if isinstance(event, SubmitAudit):
        # One audit at a time; a shown result must be dismissed first
        if state.view != AUDIT_INPUT or state.pending:
            return state
        try:
            validate_request(event.request)
        except LocalValidationError as exc:
            return replace(state, validation_error=str(exc))
        return replace(
            state, pending=True, submission=state.submission + 1,
            error=None, validation_error=None,
        )

    if isinstance(event, AuditSucceeded):
        if not _settles_current(state, event.submission):
            return state
        return replace(state, view=AUDIT_RESULT, result=event.outcome, pending=False)

    if isinstance(event, AuditFailed):
        if not _settles_current(state, event.submission):
            return state
        return replace(state, pending=False, error=event.message)

    if isinstance(event, CancelAudit):
        return replace(state, pending=False) if state.pending else state

    if isinstance(event, DismissResult):
        if state.view != AUDIT_RESULT:
            return state
        return replace(state, view=AUDIT_INPUT, result=None)

    if isinstance(event, DismissError):
        return replace(state, error=None)

    if isinstance(event, HistoryUpdated):
        return replace(state, history=tuple(event.entries[:HISTORY_LIMIT]))

    raise TypeError(f"Unknown event: {event!r}")


class _Handles:
    """Resources released by close() or when the controller is collected."""

    def __init__(self, store: HistoryStore) -> None:
        self.store = store
        self.subscription: Subscription | None = None
        self.pool: ThreadPoolExecutor | None = None

    def drop_pool(self) -> None:
        pool, self.pool = self.pool, None
        if pool is not None:
            # A running call finishes on its own thread; its reply is ignored
            pool.shutdown(wait=False, cancel_futures=True)

    def release(self) -> None:
        sub, self.subscription = self.subscription, None
        if sub is not None:
            sub.unsubscribe()
        self.drop_pool()
        self.store.close()


class DashboardController:
    def __init__(
        self,
        generator: TextGenerator,
        store: HistoryStore,
        state: AppState | None = None,
    ) -> None:
        self.generator = generator
        self.store = store
        self.state = state or AppState()
        # History callbacks and background audits land on other threads
        self._lock = threading.RLock()
        self._handles = _Handles(store)
        # Streamlit drops session state when the browser session ends
        self._finalizer = weakref.finalize(self, self._handles.release)

    def dispatch(self, event: Event) -> AppState:
        with self._lock:
            previous = self.state
            self.state = transition(previous, event)
            current = self.state
            if previous.pending and not current.pending and isinstance(event, (CancelAudit, Navigate)):
                self._handles.drop_pool()
        if previous.view != current.view:
            log.debug("View %s → %s", previous.view, current.view)
            self._sync_subscription(current.view)
        return current

    # ── Navigation ───────────────────────────────────────────────────────

    def navigate(self, view: str) -> AppState:
        return self.dispatch(Navigate(view))

    def dismiss_result(self) -> AppState:
        return self.dispatch(DismissResult())

    def dismiss_error(self) -> AppState:
        return self.dispatch(DismissError())

    def cancel(self) -> AppState:
        state = self.dispatch(CancelAudit())
        log.info("Audit cancelled by user")
        return state

    # ── Audits ───────────────────────────────────────────────────────────

    def _accept(self, request: AuditRequest) -> tuple[AppState, bool]:
        with self._lock:
            before = self.state.submission
            state = self.dispatch(SubmitAudit(request))
            return state, state.pending and state.submission == before + 1

    def submit(self, request: AuditRequest) -> AppState:
        """Run one audit synchronously. Never raises for audit failures."""
        state, accepted = self._accept(request)
        if not accepted:
            return state
        return self._run_audit(request, state.submission)

    def submit_async(self, request: AuditRequest) -> Future | None:
        """Start an audit on a worker thread; None if the submit was rejected."""
        with self._lock:
            state, accepted = self._accept(request)
            if not accepted:
                return None
            handles = self._handles
            if handles.pool is None:
                handles.pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="audit")
            return handles.pool.submit(self._run_audit, request, state.submission)

    def _run_audit(self, request: AuditRequest, submission: int) -> AppState:
        try:
            result = audit_job_post(request, self.generator)
        except GhostBusterError as exc:
            log.warning("Audit failed: %s", exc)
            return self.dispatch(AuditFailed(str(exc), submission))
        except Exception as exc:
            log.exception("Unexpected audit failure")
            return self.dispatch(AuditFailed(f"Failed to audit job post: {exc}", submission))

        state = self.dispatch(AuditSucceeded(AuditOutcome(request, result), submission))
        if state.result is not None and state.result.result is result:
            self._save_history(request, result)
        else:
            log.info("Discarding audit reply for cancelled submission #%d", submission)
        return state

    def _save_history(self, request: AuditRequest, result: AuditResult) -> None:
        try:
            self.store.append(HistoryEntry.from_audit(request, result))
        except Exception as exc:
            log.error("Failed to save history: %s", exc)

    # ── History feed ─────────────────────────────────────────────────────

    def _on_history(self, entries: list[HistoryEntry]) -> None:
        self.dispatch(HistoryUpdated(tuple(entries)))

    def _history_callback(self):
        """Feed callback that does not keep the controller alive."""
        ref = weakref.WeakMethod(self._on_history)

        def _deliver(entries: list[HistoryEntry]) -> None:
            on_history = ref()
            if on_history is not None:
                on_history(entries)

        return _deliver

    def _sync_subscription(self, view: str) -> None:
        handles = self._handles
        if view == HISTORY and handles.subscription is None:
            handles.subscription = self.store.subscribe(self._history_callback())
        elif view != HISTORY and handles.subscription is not None:
            sub, handles.subscription = handles.subscription, None
            sub.unsubscribe()

    @property
    def subscribed(self) -> bool:
        return self._handles.subscription is not None

    def close(self) -> None:
        self._finalizer()
