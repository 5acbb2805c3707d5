import inspect
import sys
from dataclasses import dataclass
from datetime import datetime

import pytest

from validatorkit import (
    CheckAborted,
    ExecutionContext,
    FeatureStatus,
    LogOptions,
    Recorder,
    Registry,
    call_checker,
    call_test,
    deep_equal,
    run,
)

QUIET = LogOptions(time_format="[TIME]", include_location=False)
LOCATED = LogOptions(time_format="[TIME]", include_location=True)


def _abort_message(fn, options: LogOptions = QUIET) -> str:
    recorder = Recorder(description="check")
    status = call_checker(recorder, fn, options)
    assert status is FeatureStatus.FAIL
    assert recorder.success is False
    # Abort line, then nothing else: the runner appends the finish line.
    return recorder.logs[-1]


@pytest.mark.parametrize(
    "body, expected",
    [
        (lambda ctx: ctx.fail(), "[TIME] test is marked failed"),
        (lambda ctx: ctx.fail("boom", "again"), "[TIME] boom,again"),
        (lambda ctx: ctx.assert_true(False), "[TIME] assertion failed"),
        (lambda ctx: ctx.assert_true(0, "zero"), "[TIME] zero"),
        (lambda ctx: ctx.assert_none("v"), "[TIME] expect None, got 'v'"),
        (lambda ctx: ctx.assert_not_none(None), "[TIME] expect not None, got: None"),
        (lambda ctx: ctx.assert_eq(b"k", b"v"), "[TIME] expect equal, got b'k' and b'v'"),
        (lambda ctx: ctx.assert_ne(1, 1), "[TIME] expect not equal, got 1 and 1"),
        (lambda ctx: ctx.assert_deep_eq([1], [1.0]), "[TIME] expect equal, got [1] and [1.0]"),
    ],
)
def test_assertion_failures_become_fail_with_message(body, expected):
    assert _abort_message(body) == expected


def test_passing_assertions_do_not_abort():
    def checker(ctx):
        ctx.assert_true(True)
        ctx.assert_none(None)
        ctx.assert_not_none(0)
        ctx.assert_eq({"k": [1, 2]}, {"k": [1, 2]})
        ctx.assert_ne(b"a", b"b")
        ctx.assert_deep_eq({"k": (1, 2)}, {"k": (1, 2)})
        return FeatureStatus.PASS

    recorder = Recorder(description="check")
    assert call_checker(recorder, checker, QUIET) is FeatureStatus.PASS
    assert recorder.success is True
    assert recorder.logs == []


def test_unexpected_exception_is_contained():
    def checker(ctx):
        ctx.log("before")
        raise ConnectionError("proxy unreachable")

    recorder = Recorder(description="check")
    status = call_checker(recorder, checker, QUIET)

    assert status is FeatureStatus.FAIL
    assert recorder.logs == ["[TIME] before", "[TIME] ConnectionError: proxy unreachable"]


def test_abort_is_not_swallowed_by_except_exception():
    def checker(ctx):
        try:
            ctx.fail("real failure")
        except Exception:  # noqa: BLE001
            return FeatureStatus.PASS
        return FeatureStatus.PASS

    assert _abort_message(checker) == "[TIME] real failure"


@pytest.mark.parametrize(
    "exit_arg, expected",
    [(3, "[TIME] SystemExit: 3"), (None, "[TIME] SystemExit")],
)
def test_sys_exit_in_checker_becomes_fail(exit_arg, expected):
    def checker(ctx):
        sys.exit(exit_arg)

    assert _abort_message(checker) == expected


def test_sys_exit_in_test_is_a_failed_record():
    recorder = Recorder(description="exits")

    assert call_test(recorder, lambda ctx: sys.exit("bye"), QUIET) is False
    assert recorder.logs == ["[TIME] SystemExit: bye"]


def test_run_returns_report_when_content_calls_sys_exit():
    registry = Registry()
    registry.register_feature("a", "a", None, lambda ctx: sys.exit(3))
    registry.register_feature("b", "b", ["a"], lambda ctx: FeatureStatus.PASS)
    registry.register_feature("c", "c", None, lambda ctx: FeatureStatus.PASS)
    registry.register_test("c exits", ["c"], lambda ctx: sys.exit(1))

    report = run(registry, options=QUIET)

    statuses = {f.key: f.status for f in report.iter_features()}
    assert statuses == {"a": FeatureStatus.FAIL, "b": FeatureStatus.SKIP, "c": FeatureStatus.DEFECT}


def test_keyboard_interrupt_is_not_intercepted():
    def checker(ctx):
        raise KeyboardInterrupt

    with pytest.raises(KeyboardInterrupt):
        call_checker(Recorder(description="check"), checker, QUIET)


@pytest.mark.parametrize(
    "status, success",
    [
        (FeatureStatus.PASS, True),
        (FeatureStatus.NOT_IMPLEMENTED, True),
        (FeatureStatus.FAIL, False),
        (FeatureStatus.DEFECT, False),
        (FeatureStatus.SKIP, False),
    ],
)
def test_checker_success_flag_follows_status(status, success):
    recorder = Recorder(description="check")

    assert call_checker(recorder, lambda ctx: status, QUIET) is status
    assert recorder.success is success


def test_call_test_reports_success_and_failure():
    ok = Recorder(description="ok")
    assert call_test(ok, lambda ctx: ctx.log("fine"), QUIET) is True
    assert ok.success is True
    assert ok.logs == ["[TIME] fine"]

    bad = Recorder(description="bad")
    assert call_test(bad, lambda ctx: ctx.assert_eq(1, 2), QUIET) is False
    assert bad.success is False
    assert bad.logs == ["[TIME] expect equal, got 1 and 2"]

    missing = Recorder(description="missing")
    assert call_test(missing, None, QUIET) is False


def test_log_uses_percent_formatting_and_clock():
    options = LogOptions(
        time_format="%Y-%m-%d %H:%M:%S",
        include_location=False,
        clock=lambda: datetime(2019, 7, 1, 12, 30, 5),
    )
    recorder = Recorder(description="check")
    ctx = ExecutionContext(recorder, options)

    ctx.log("put %s=%d", "k", 3)
    ctx.log("100%")

    assert recorder.logs == ["2019-07-01 12:30:05 put k=3", "2019-07-01 12:30:05 100%"]


def test_default_time_format_has_millisecond_precision():
    options = LogOptions(include_location=False, clock=lambda: datetime(2019, 7, 1, 12, 30, 5, 42_917))

    assert options.format_line("hi") == "2019-07-01 12:30:05.042 hi"


def test_log_location_points_at_caller():
    expected: list[str] = []

    def checker(ctx):
        expected.append(f"test_execution_boundary.py:{inspect.currentframe().f_lineno + 1}")
        ctx.log("hello")
        return FeatureStatus.PASS

    recorder = Recorder(description="check")
    call_checker(recorder, checker, LOCATED)

    assert recorder.logs == [f"[TIME] {expected[0]} hello"]


def test_failure_location_points_at_assertion():
    expected: list[str] = []

    def checker(ctx):
        expected.append(f"test_execution_boundary.py:{inspect.currentframe().f_lineno + 1}")
        ctx.assert_eq("a", "b")

    message = _abort_message(checker, LOCATED)

    assert message == f"[TIME] {expected[0]} expect equal, got 'a' and 'b'"


def _expect_value(ctx, got, want):
    ctx.add_caller_depth(1)
    ctx.assert_eq(got, want, "unexpected value")
    ctx.add_caller_depth(-1)


def test_add_caller_depth_attributes_failure_to_helper_caller():
    expected: list[str] = []

    def checker(ctx):
        _expect_value(ctx, 1, 1)
        expected.append(f"test_execution_boundary.py:{inspect.currentframe().f_lineno + 1}")
        _expect_value(ctx, 1, 2)

    message = _abort_message(checker, LOCATED)

    assert message == f"[TIME] {expected[0]} unexpected value"


def test_check_aborted_carries_message():
    exc = CheckAborted("x.py:1 boom")

    assert str(exc) == "x.py:1 boom"
    assert not isinstance(exc, Exception)


@dataclass
class _Pair:
    key: bytes
    value: bytes


class _Plain:
    def __init__(self, value):
        self.value = value


@pytest.mark.parametrize(
    "x, y, equal",
    [
        ({"a": [1, {"b": 2}]}, {"a": [1, {"b": 2}]}, True),
        ([1, 2], (1, 2), False),
        (1, 1.0, False),
        (True, 1, False),
        (_Pair(b"k", b"v"), _Pair(b"k", b"v"), True),
        (_Pair(b"k", b"v"), _Pair(b"k", b"w"), False),
        (_Plain([1]), _Plain([1]), True),
        (_Plain([1]), _Plain([2]), False),
        ({1, 2}, {2, 1}, True),
        (None, None, True),
        ({"a": 1}, {"b": 1}, False),
    ],
)
def test_deep_equal(x, y, equal):
    assert deep_equal(x, y) is equal
