"""Capability validation kernel (registry, execution boundary, scheduler, report).

This package is intentionally independent of `client_validator.*`. Content
modules, configuration and presentation live in the consuming application.
"""

from validatorkit.context import (
    DEFAULT_TIME_FORMAT,
    ExecutionContext,
    LogOptions,
    Recorder,
    call_checker,
    call_test,
    deep_equal,
)
from validatorkit.errors import CheckAborted, ConfigurationError
from validatorkit.registry import (
    Checker,
    FeatureDefinition,
    Registry,
    RegistrySnapshot,
    StoryDefinition,
    TestDefinition,
    TestFunction,
)
from validatorkit.report import (
    FeatureReport,
    Report,
    StoryReport,
    assemble_report,
    report_from_dict,
    report_to_dict,
    report_to_json,
)
from validatorkit.runner import FeatureState, Runner, find_dependency_cycles, run
from validatorkit.status import FeatureStatus

__all__ = [
    "DEFAULT_TIME_FORMAT",
    "CheckAborted",
    "Checker",
    "ConfigurationError",
    "ExecutionContext",
    "FeatureDefinition",
    "FeatureReport",
    "FeatureState",
    "FeatureStatus",
    "LogOptions",
    "Recorder",
    "Registry",
    "RegistrySnapshot",
    "Report",
    "Runner",
    "StoryDefinition",
    "StoryReport",
    "TestDefinition",
    "TestFunction",
    "assemble_report",
    "call_checker",
    "call_test",
    "deep_equal",
    "find_dependency_cycles",
    "report_from_dict",
    "report_to_dict",
    "report_to_json",
    "run",
]
