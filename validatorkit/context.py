"""Execution boundary for checker and test code.

Checker and test functions receive an `ExecutionContext`. Its `fail` and
`assert_*` methods raise `CheckAborted`, which is caught by `call_checker` /
`call_test` together with any other exception or `SystemExit` from user code.
Only `KeyboardInterrupt` escapes a single invocation.
"""

from __future__ import annotations

import dataclasses
import logging
import os
import sys
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Mapping

from validatorkit.errors import CheckAborted
from validatorkit.status import FeatureStatus

# `%L` is milliseconds; everything else is passed to `strftime`.
DEFAULT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S.%L"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogOptions:
    time_format: str = DEFAULT_TIME_FORMAT
    include_location: bool = True
    clock: Callable[[], datetime] = datetime.now

    def timestamp(self) -> str:
        now = self.clock()
        time_format = self.time_format.replace("%L", f"{now.microsecond // 1000:03d}")
        return now.strftime(time_format)

    def format_line(self, message: str, *, location: str | None = None) -> str:
        parts = [self.timestamp()]
        if location:
            parts.append(location)
        parts.append(message)
        return " ".join(parts)


@dataclass
class Recorder:
    """Execution log of one checker or test invocation."""

    description: str
    logs: list[str] = field(default_factory=list)
    success: bool = False

    def append(self, line: str) -> None:
        self.logs.append(line)

    def copy(self) -> "Recorder":
        return Recorder(description=self.description, logs=list(self.logs), success=self.success)


def _caller_location(skip: int) -> str:
    try:
        frame = sys._getframe(skip + 1)
    except ValueError:
        return ""
    return f"{os.path.basename(frame.f_code.co_filename)}:{frame.f_lineno}"


def _format_value(value: Any) -> str:
    return repr(value)


def deep_equal(x: Any, y: Any) -> bool:
    """Type-strict structural equality.

    Unlike `==`, values of different types never compare equal (so `1` and
    `1.0` differ), and dataclasses or plain objects are compared field by field
    even when they do not define `__eq__`.
    """

    if x is y:
        return True
    if type(x) is not type(y):
        return False
    if isinstance(x, Mapping):
        if len(x) != len(y):
            return False
        for key, value in x.items():
            if key not in y or not deep_equal(value, y[key]):
                return False
        return True
    if isinstance(x, (list, tuple)):
        return len(x) == len(y) and all(deep_equal(a, b) for a, b in zip(x, y))
    if isinstance(x, (set, frozenset)):
        return x == y
    if dataclasses.is_dataclass(x) and not isinstance(x, type):
        return all(
            deep_equal(getattr(x, f.name), getattr(y, f.name)) for f in dataclasses.fields(x)
        )
    if hasattr(x, "__dict__") and type(x).__eq__ is object.__eq__:
        return deep_equal(vars(x), vars(y))
    return x == y


class ExecutionContext:
    """Capabilities available to checker and test functions."""

    def __init__(self, recorder: Recorder, options: LogOptions) -> None:
        self._recorder = recorder
        self._options = options
        self._caller_depth = 0

    def log(self, fmt: str, *args: Any) -> None:
        message = fmt % args if args else fmt
        location = _caller_location(1) if self._options.include_location else None
        self._recorder.append(self._options.format_line(message, location=location))

    def add_caller_depth(self, n: int) -> None:
        """Attribute failures `n` frames further out (for shared assertion helpers)."""
        self._caller_depth += n

    def fail(self, *msg: str) -> None:
        self._abort("test is marked failed", msg)

    def assert_true(self, condition: Any, *msg: str) -> None:
        if not condition:
            self._abort("assertion failed", msg)

    def assert_none(self, x: Any, *msg: str) -> None:
        if x is not None:
            self._abort(f"expect None, got {_format_value(x)}", msg)

    def assert_not_none(self, x: Any, *msg: str) -> None:
        if x is None:
            self._abort("expect not None, got: None", msg)

    def assert_eq(self, x: Any, y: Any, *msg: str) -> None:
        if not x == y:
            self._abort(f"expect equal, got {_format_value(x)} and {_format_value(y)}", msg)

    def assert_ne(self, x: Any, y: Any, *msg: str) -> None:
        if x == y:
            self._abort(f"expect not equal, got {_format_value(x)} and {_format_value(y)}", msg)

    def assert_deep_eq(self, x: Any, y: Any, *msg: str) -> None:
        if not deep_equal(x, y):
            self._abort(f"expect equal, got {_format_value(x)} and {_format_value(y)}", msg)

    def _abort(self, default: str, user_message: tuple[str, ...]) -> None:
        # Frames: _caller_location <- _abort <- fail/assert_* <- user code.
        position = ""
        if self._options.include_location:
            location = _caller_location(2 + self._caller_depth)
            if location:
                position = location + " "
        text = ",".join(str(m) for m in user_message) if user_message else default
        raise CheckAborted(position + text)


def _describe_fault(exc: BaseException) -> str:
    if isinstance(exc, CheckAborted):
        return exc.message
    text = str(exc)
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__


def call_checker(
    recorder: Recorder,
    checker: Callable[[ExecutionContext], Any] | None,
    options: LogOptions,
) -> FeatureStatus:
    """Run one checker; aborts and unexpected faults become `FAIL`."""

    if checker is None:
        recorder.success = False
        return FeatureStatus.SKIP

    try:
        status = FeatureStatus.coerce(checker(ExecutionContext(recorder, options)))
    except (CheckAborted, SystemExit, Exception) as exc:
        if not isinstance(exc, CheckAborted):
            logger.debug("Checker %r raised", recorder.description, exc_info=True)
        recorder.append(options.format_line(_describe_fault(exc)))
        recorder.success = False
        return FeatureStatus.FAIL

    recorder.success = status.is_checker_success
    return status


def call_test(
    recorder: Recorder,
    test_fn: Callable[[ExecutionContext], Any] | None,
    options: LogOptions,
) -> bool:
    """Run one test; success means it returned without aborting."""

    if test_fn is None:
        recorder.success = False
        return False

    try:
        test_fn(ExecutionContext(recorder, options))
    except (CheckAborted, SystemExit, Exception) as exc:
        if not isinstance(exc, CheckAborted):
            logger.debug("Test %r raised", recorder.description, exc_info=True)
        recorder.append(options.format_line(_describe_fault(exc)))
        recorder.success = False
        return False

    recorder.success = True
    return True
