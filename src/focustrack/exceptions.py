"""Exceptions shared across the focustrack package."""

from __future__ import annotations


class PersistenceError(Exception):
    """The backing store was unavailable or rejected a write.

    Raised by store implementations and propagated to the caller. A failed
    completion is never retried automatically: the pipeline is not idempotent
    across partial writes unless the store runs it inside one transaction.
    """

    def __init__(self, message: str, *, operation: str = "", user_id: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.user_id = user_id
