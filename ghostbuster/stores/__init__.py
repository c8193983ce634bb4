from .base import HISTORY_LIMIT, HistoryStore, Subscription, new_identity
from .memory import InMemoryHistoryStore, NullHistoryStore
from .firestore import FirestoreHistoryStore, build_client

from ghostbuster.config import firebase_config, get_env
from ghostbuster.log import get_logger

log = get_logger(__name__)

__all__ = [
    "HISTORY_LIMIT", "HistoryStore", "Subscription", "new_identity",
    "InMemoryHistoryStore", "NullHistoryStore", "FirestoreHistoryStore",
    "get_history_store",
]


def get_history_store(env_getter=get_env, identity: str = "", client_factory=build_client) -> HistoryStore:
    identity = identity or new_identity()

    if env_getter("HISTORY_BACKEND").lower() == "memory":
        log.info("History store: in-memory (session only)")
        return InMemoryHistoryStore(identity)

    config = firebase_config(env_getter)
    if not config:
        log.warning("Firebase config not found — running in local-only mode")
        return NullHistoryStore(identity)

    try:
        client = client_factory(config)
    except Exception as exc:
        log.error("Error initializing Firestore (%s) — running in local-only mode", exc)
        return NullHistoryStore(identity)

    log.info("History store: Firestore (%s)", identity)
    return FirestoreHistoryStore(client, identity)
