from __future__ import annotations

from enum import Enum
from typing import Any


class FeatureStatus(str, Enum):
    """Outcome of a feature check.

    `SKIP` is the initial value of every feature in a run. A checker replaces it
    exactly once; a failing gated test may later downgrade `PASS` to `DEFECT`.
    """

    # Passed its checker and every gated test.
    PASS = "PASS"
    # Honestly reported as not built yet.
    NOT_IMPLEMENTED = "NOT_IMPL"
    # Incorrect behavior observed by the checker.
    FAIL = "FAIL"
    # Passed the checker but a gated test exposed a bug.
    DEFECT = "DEFECT"
    # Never checked (prerequisites unresolved).
    SKIP = "SKIP"

    def __str__(self) -> str:
        return self.value

    @property
    def unblocks_dependents(self) -> bool:
        return self in (FeatureStatus.PASS, FeatureStatus.DEFECT)

    @property
    def is_checker_success(self) -> bool:
        return self in (FeatureStatus.PASS, FeatureStatus.NOT_IMPLEMENTED)

    @classmethod
    def coerce(cls, value: Any) -> "FeatureStatus":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().upper()
            for member in cls:
                if member.value == normalized:
                    return member
        raise TypeError(
            f"Checker must return a FeatureStatus (got {type(value).__name__}: {value!r})"
        )
