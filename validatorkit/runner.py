"""Dependency-driven execution of registered features and gated tests."""

from __future__ import annotations

import heapq
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Sequence

from validatorkit.context import LogOptions, Recorder, call_checker, call_test
from validatorkit.errors import ConfigurationError
from validatorkit.registry import FeatureDefinition, Registry, RegistrySnapshot, TestDefinition
from validatorkit.report import Report, assemble_report
from validatorkit.status import FeatureStatus

logger = logging.getLogger(__name__)


def _bool_text(value: bool) -> str:
    return "true" if value else "false"


@dataclass
class FeatureState:
    definition: FeatureDefinition
    status: FeatureStatus = FeatureStatus.SKIP
    records: list[Recorder] = field(default_factory=list)


def find_dependency_cycles(features: Sequence[FeatureDefinition]) -> list[tuple[str, ...]]:
    """Return each dependency cycle once, discovered in registration order.

    Dependencies on unregistered keys are ignored here.
    """

    by_key = {f.key: f for f in features}
    visiting, done = 1, 2
    color: dict[str, int] = {}
    cycles: list[tuple[str, ...]] = []

    for root in features:
        if root.key in color:
            continue
        path: list[str] = [root.key]
        stack = [iter(root.requires)]
        color[root.key] = visiting
        while stack:
            dep = next(stack[-1], None)
            if dep is None:
                stack.pop()
                color[path.pop()] = done
                continue
            if dep not in by_key:
                continue
            state = color.get(dep)
            if state == visiting:
                cycles.append(tuple(path[path.index(dep):]))
            elif state is None:
                color[dep] = visiting
                path.append(dep)
                stack.append(iter(by_key[dep].requires))
    return cycles


class Runner:
    """Executes one snapshot of the registry.

    Construction validates every key reference; `run()` builds fresh feature
    state, executes checkers to a fixpoint, then gated tests, and returns the
    assembled report.
    """

    def __init__(
        self,
        snapshot: RegistrySnapshot,
        *,
        options: LogOptions | None = None,
        fail_on_cycle: bool = False,
    ) -> None:
        self._snapshot = snapshot
        self._options = options or LogOptions()
        self._index = {f.key: idx for idx, f in enumerate(snapshot.features)}
        self.standalone_records: list[Recorder] = []
        self._validate(fail_on_cycle=fail_on_cycle)

    def _validate(self, *, fail_on_cycle: bool) -> None:
        for feature in self._snapshot.features:
            for key in feature.requires:
                if key not in self._index:
                    raise ConfigurationError(
                        f"Feature {feature.key} requires unknown feature: {key}"
                    )
        for story in self._snapshot.stories:
            for key in story.features:
                if key not in self._index:
                    raise ConfigurationError(
                        f"Story {story.description!r} names unknown feature: {key}"
                    )
        for test in self._snapshot.tests:
            for key in test.requires:
                if key not in self._index:
                    raise ConfigurationError(
                        f"Test {test.description!r} requires unknown feature: {key}"
                    )

        cycles = find_dependency_cycles(self._snapshot.features)
        for cycle in cycles:
            text = " -> ".join((*cycle, cycle[0]))
            if fail_on_cycle:
                raise ConfigurationError(f"Dependency cycle: {text}")
            logger.warning("Dependency cycle, features will be skipped: %s", text)

    def run(self) -> Report:
        features = [FeatureState(definition=d) for d in self._snapshot.features]
        self.standalone_records = []
        logger.info(
            "Validation run started (features=%d, stories=%d, tests=%d)",
            len(features),
            len(self._snapshot.stories),
            len(self._snapshot.tests),
        )

        self._run_features(features)
        for test in self._snapshot.tests:
            self._run_test(features, test)

        counts = Counter(state.status.value for state in features)
        logger.info(
            "Validation run finished (%s)",
            ", ".join(f"{status}={counts[status]}" for status in sorted(counts)) or "no features",
        )
        return assemble_report(features, self._snapshot.stories)

    def _run_features(self, features: list[FeatureState]) -> None:
        # Kahn's algorithm with a min-heap on registration index: the next feature
        # is always the first declared one whose dependencies all unblock.
        pending: list[int] = []
        dependents: list[list[int]] = [[] for _ in features]
        for idx, state in enumerate(features):
            required = dict.fromkeys(state.definition.requires)
            pending.append(len(required))
            for key in required:
                dependents[self._index[key]].append(idx)

        ready = [idx for idx, count in enumerate(pending) if count == 0]
        heapq.heapify(ready)
        while ready:
            idx = heapq.heappop(ready)
            state = features[idx]
            self._run_checker(state)
            if not state.status.unblocks_dependents:
                continue
            for dependent in dependents[idx]:
                pending[dependent] -= 1
                if pending[dependent] == 0:
                    heapq.heappush(ready, dependent)

    def _run_checker(self, state: FeatureState) -> None:
        definition = state.definition
        recorder = Recorder(description=f"check {definition.key}({definition.description})")
        state.status = call_checker(recorder, definition.checker, self._options)
        recorder.append(
            self._options.format_line(
                f"check finish. success={_bool_text(recorder.success)}, "
                f"feature.status={state.status.value}"
            )
        )
        state.records.append(recorder)
        logger.debug("Checked %s: %s", definition.key, state.status)

    def _run_test(self, features: list[FeatureState], test: TestDefinition) -> None:
        gated = [features[self._index[key]] for key in dict.fromkeys(test.requires)]
        if not all(state.status.unblocks_dependents for state in gated):
            logger.debug("Skipping test %r: prerequisites not satisfied", test.description)
            return

        recorder = Recorder(description=test.description)
        success = call_test(recorder, test.test_fn, self._options)
        logger.debug("Test %r finished (success=%s)", test.description, success)

        if not gated:
            self.standalone_records.append(recorder)
            if success:
                logger.info("Standalone test passed: %s", test.description)
            else:
                logger.warning("Standalone test failed: %s", test.description)
            return

        for state in gated:
            if not success and state.status is FeatureStatus.PASS:
                state.status = FeatureStatus.DEFECT
            record = recorder.copy()
            record.append(
                self._options.format_line(
                    f"test finish. success={_bool_text(success)}, feature.status={state.status.value}"
                )
            )
            state.records.append(record)


def run(
    registry: Registry,
    *,
    options: LogOptions | None = None,
    fail_on_cycle: bool = False,
) -> Report:
    """Snapshot `registry` and execute it once."""

    return Runner(registry.snapshot(), options=options, fail_on_cycle=fail_on_cycle).run()
