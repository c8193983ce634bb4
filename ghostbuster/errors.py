"""Error taxonomy for the audit flow."""
from __future__ import annotations


class GhostBusterError(Exception):
    """Base class; none of these are fatal to the session."""


class LocalValidationError(GhostBusterError):
    """Form input rejected before any network call."""


class ServiceError(GhostBusterError):
    """The generative-text call failed or returned unusable content."""


class PersistenceError(GhostBusterError):
    """History append or subscription failed. Logged, never shown."""
