"""Typed results for session operations.

Expected failures (no session, wrong pause state, bad manual input) are
returned as outcomes rather than raised.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class OutcomeStatus(str, enum.Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation"


@dataclass
class SessionOutcome(Generic[T]):
    status: OutcomeStatus
    value: T | None = None
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.OK

    @classmethod
    def success(cls, value: T | None = None, message: str = "") -> SessionOutcome[T]:
        return cls(OutcomeStatus.OK, value, message)

    @classmethod
    def not_found(cls, message: str = "No active session") -> SessionOutcome[T]:
        return cls(OutcomeStatus.NOT_FOUND, message=message)

    @classmethod
    def conflict(cls, message: str) -> SessionOutcome[T]:
        return cls(OutcomeStatus.CONFLICT, message=message)

    @classmethod
    def invalid(cls, message: str) -> SessionOutcome[T]:
        return cls(OutcomeStatus.VALIDATION, message=message)
