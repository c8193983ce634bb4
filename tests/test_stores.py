from __future__ import annotations

import json
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from ghostbuster.errors import PersistenceError
from ghostbuster.models import AuditRequest, AuditResult, HistoryEntry
from ghostbuster.stores import (
    HISTORY_LIMIT,
    FirestoreHistoryStore,
    InMemoryHistoryStore,
    NullHistoryStore,
    Subscription,
    get_history_store,
    new_identity,
)


def _entry(title: str, score: float = 0.5) -> HistoryEntry:
    return HistoryEntry.from_audit(
        AuditRequest(title=title, requirements="x", company="Acme"),
        AuditResult(score=score, analysis=f"summary of {title}"),
    )


def _env(**values):
    return lambda key, default="": values.get(key, default)


# -------------------------
# IN-MEMORY / NULL
# -------------------------
def test_feed_is_capped_and_newest_first():
    store = InMemoryHistoryStore("anon-1")
    deliveries: list[list[HistoryEntry]] = []
    store.subscribe(deliveries.append)

    for i in range(25):
        store.append(_entry(f"Job {i}"))

    assert len(deliveries) == 26
    for snapshot in deliveries:
        assert len(snapshot) <= HISTORY_LIMIT
        stamps = [e.timestamp for e in snapshot]
        assert stamps == sorted(stamps, reverse=True)
        assert len(set(stamps)) == len(stamps)
    assert [e.job_title for e in deliveries[-1]] == [f"Job {i}" for i in range(24, 14, -1)]


def test_timestamps_are_assigned_by_store_even_with_frozen_clock():
    assert _entry("x").timestamp is None

    now = datetime(2025, 6, 1, tzinfo=timezone.utc)
    store = InMemoryHistoryStore(clock=lambda: now)
    store.append(_entry("a"))
    store.append(_entry("b"))
    latest = store.latest()
    assert [e.job_title for e in latest] == ["b", "a"]
    assert latest[0].timestamp > latest[1].timestamp
    assert latest[0].id != latest[1].id


def test_unsubscribe_stops_delivery_and_is_idempotent():
    store = InMemoryHistoryStore()
    seen: list[int] = []
    sub = store.subscribe(lambda entries: seen.append(len(entries)))
    store.append(_entry("a"))
    sub.unsubscribe()
    sub.unsubscribe()
    store.append(_entry("b"))
    assert seen == [0, 1]
    assert not sub.active
    assert store.subscriber_count() == 0


def test_failing_callback_does_not_break_append():
    store = InMemoryHistoryStore()

    def boom(entries):
        raise RuntimeError("render failed")

    store.subscribe(boom)
    store.append(_entry("a"))
    assert len(store.latest()) == 1


def test_null_store_is_a_silent_noop():
    store = NullHistoryStore("anon-x")
    seen: list[list[HistoryEntry]] = []
    store.append(_entry("a"))
    sub = store.subscribe(seen.append)
    assert seen == [[]]
    assert not store.enabled()
    assert isinstance(sub, Subscription) and not sub.active
    sub.unsubscribe()
    store.close()


def test_new_identity_is_unique():
    a, b = new_identity(), new_identity()
    assert a.startswith("anon-") and a != b


# -------------------------
# FACTORY
# -------------------------
def test_factory_without_config_is_local_only():
    store = get_history_store(_env(), identity="anon-1")
    assert isinstance(store, NullHistoryStore)
    assert store.identity == "anon-1"


def test_factory_with_invalid_config_is_local_only():
    store = get_history_store(_env(FIREBASE_CONFIG="{not json"))
    assert isinstance(store, NullHistoryStore)


def test_factory_memory_backend():
    assert isinstance(get_history_store(_env(HISTORY_BACKEND="memory")), InMemoryHistoryStore)


def test_factory_degrades_when_client_cannot_be_built():
    def factory(config):
        raise PersistenceError("no credentials")

    store = get_history_store(_env(FIREBASE_CONFIG=json.dumps({"projectId": "demo"})),
                              client_factory=factory)
    assert isinstance(store, NullHistoryStore)


def test_factory_builds_firestore_store():
    client = MagicMock()
    seen = {}

    def factory(config):
        seen.update(config)
        return client

    store = get_history_store(_env(FIREBASE_CONFIG=json.dumps({"projectId": "demo"})),
                              identity="anon-9", client_factory=factory)
    assert isinstance(store, FirestoreHistoryStore)
    assert store.client is client and store.identity == "anon-9"
    assert seen == {"projectId": "demo"}
    store.close()


# -------------------------
# FIRESTORE (fake client)
# -------------------------
@pytest.fixture
def firestore_mod():
    return pytest.importorskip("google.cloud.firestore")


def test_firestore_append_writes_under_identity(firestore_mod):
    client = MagicMock()
    store = FirestoreHistoryStore(client, "anon-7")
    store.append(_entry("Data Engineer", 0.78)).result(timeout=5)
    store.close()

    client.collection.assert_called_with("users", "anon-7", "audits")
    fields = client.collection.return_value.add.call_args[0][0]
    assert fields["jobTitle"] == "Data Engineer"
    assert fields["company"] == "Acme"
    assert fields["score"] == 0.78
    assert fields["summary"] == "summary of Data Engineer"
    assert fields["timestamp"] is firestore_mod.SERVER_TIMESTAMP


def test_firestore_append_failure_is_swallowed_and_logged(firestore_mod, caplog):
    client = MagicMock()
    client.collection.return_value.add.side_effect = RuntimeError("permission denied")
    store = FirestoreHistoryStore(client, "anon-7")
    assert store.append(_entry("x")).result(timeout=5) is None
    store.close()
    assert "Failed to save history: permission denied" in caplog.text


def test_firestore_append_after_close_does_not_raise(firestore_mod):
    store = FirestoreHistoryStore(MagicMock(), "anon-7")
    store.close()
    assert store.append(_entry("x")) is None


def test_firestore_subscribe_maps_snapshots(firestore_mod):
    client = MagicMock()
    watch = MagicMock()
    callbacks = []
    query = client.collection.return_value.order_by.return_value.limit.return_value
    query.on_snapshot.side_effect = lambda cb: (callbacks.append(cb), watch)[1]

    store = FirestoreHistoryStore(client, "anon-7")
    received: list[list[HistoryEntry]] = []
    sub = store.subscribe(received.append)

    client.collection.return_value.order_by.assert_called_with(
        "timestamp", direction=firestore_mod.Query.DESCENDING)
    client.collection.return_value.order_by.return_value.limit.assert_called_with(HISTORY_LIMIT)

    docs = [
        SimpleNamespace(id="d2", to_dict=lambda: {"jobTitle": "B", "company": "Y", "score": 0.7,
                                                  "summary": "s", "timestamp": None}),
        SimpleNamespace(id="d1", to_dict=lambda: {"jobTitle": "A", "score": "bad"}),
    ]
    callbacks[0](docs, [], None)
    assert [(e.id, e.job_title, e.score) for e in received[0]] == [("d2", "B", 0.7), ("d1", "A", 0.0)]

    sub.unsubscribe()
    sub.unsubscribe()
    watch.unsubscribe.assert_called_once()
    store.close()


def test_firestore_subscribe_failure_returns_inert_subscription(firestore_mod, caplog):
    client = MagicMock()
    client.collection.return_value.order_by.side_effect = RuntimeError("offline")
    store = FirestoreHistoryStore(client, "anon-7")
    sub = store.subscribe(lambda entries: None)
    assert not sub.active
    sub.unsubscribe()
    store.close()
    assert "History subscription failed: offline" in caplog.text
