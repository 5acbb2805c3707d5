from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from validatorkit.context import Recorder
from validatorkit.status import FeatureStatus

if TYPE_CHECKING:
    from validatorkit.registry import StoryDefinition
    from validatorkit.runner import FeatureState


@dataclass
class FeatureReport:
    key: str
    description: str
    status: FeatureStatus
    records: list[Recorder] = field(default_factory=list)


@dataclass
class StoryReport:
    description: str = ""
    features: list[FeatureReport] = field(default_factory=list)


@dataclass
class Report:
    stories: list[StoryReport] = field(default_factory=list)
    features: list[FeatureReport] = field(default_factory=list)

    def iter_features(self) -> Iterable[FeatureReport]:
        for story in self.stories:
            yield from story.features
        yield from self.features


def _feature_report(state: "FeatureState") -> FeatureReport:
    return FeatureReport(
        key=state.definition.key,
        description=state.definition.description,
        status=state.status,
        records=[record.copy() for record in state.records],
    )


def assemble_report(
    features: Iterable["FeatureState"],
    stories: Iterable["StoryDefinition"],
) -> Report:
    """Group final feature states by story.

    Stories come first, each listing its features in its own order. Every feature
    not named by any story follows in registration order.
    """

    ordered = list(features)
    by_key = {state.definition.key: state for state in ordered}
    report = Report()
    reported: set[str] = set()

    for story in stories:
        story_report = StoryReport(description=story.description)
        for key in story.features:
            state = by_key.get(key)
            if state is None:
                raise KeyError(f"Story {story.description!r} names unknown feature: {key}")
            story_report.features.append(_feature_report(state))
            reported.add(key)
        report.stories.append(story_report)

    for state in ordered:
        if state.definition.key not in reported:
            report.features.append(_feature_report(state))

    return report


def _recorder_to_dict(recorder: Recorder) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    if recorder.description:
        payload["description"] = recorder.description
    if recorder.logs:
        payload["logs"] = list(recorder.logs)
    if recorder.success:
        payload["success"] = True
    return payload


def _feature_to_dict(feature: FeatureReport) -> dict[str, Any]:
    return {
        "key": feature.key,
        "description": feature.description,
        "status": feature.status.value,
        "records": [_recorder_to_dict(r) for r in feature.records],
    }


def report_to_dict(report: Report) -> dict[str, Any]:
    """JSON-ready mapping; empty optional fields are omitted."""

    payload: dict[str, Any] = {}
    if report.stories:
        stories: list[dict[str, Any]] = []
        for story in report.stories:
            item: dict[str, Any] = {}
            if story.description:
                item["description"] = story.description
            if story.features:
                item["features"] = [_feature_to_dict(f) for f in story.features]
            stories.append(item)
        payload["stories"] = stories
    if report.features:
        payload["features"] = [_feature_to_dict(f) for f in report.features]
    return payload


def _expect_mapping(value: Any, *, path: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"Invalid report at {path}: expected object, got {type(value).__name__}")
    return value


def _expect_list(value: Any, *, path: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"Invalid report at {path}: expected array, got {type(value).__name__}")
    return value


def _recorder_from_dict(raw: Any, *, path: str) -> Recorder:
    data = _expect_mapping(raw, path=path)
    return Recorder(
        description=str(data.get("description") or ""),
        logs=[str(line) for line in _expect_list(data.get("logs"), path=f"{path}.logs")],
        success=bool(data.get("success", False)),
    )


def _feature_from_dict(raw: Any, *, path: str) -> FeatureReport:
    data = _expect_mapping(raw, path=path)
    try:
        status = FeatureStatus.coerce(data.get("status"))
    except TypeError as exc:
        raise ValueError(f"Invalid report at {path}.status: {data.get('status')!r}") from exc
    return FeatureReport(
        key=str(data.get("key") or ""),
        description=str(data.get("description") or ""),
        status=status,
        records=[
            _recorder_from_dict(item, path=f"{path}.records[{idx}]")
            for idx, item in enumerate(_expect_list(data.get("records"), path=f"{path}.records"))
        ],
    )


def report_from_dict(raw: Any) -> Report:
    data = _expect_mapping(raw, path="report")
    report = Report()
    for s_idx, raw_story in enumerate(_expect_list(data.get("stories"), path="report.stories")):
        story_path = f"report.stories[{s_idx}]"
        story = _expect_mapping(raw_story, path=story_path)
        report.stories.append(
            StoryReport(
                description=str(story.get("description") or ""),
                features=[
                    _feature_from_dict(item, path=f"{story_path}.features[{f_idx}]")
                    for f_idx, item in enumerate(
                        _expect_list(story.get("features"), path=f"{story_path}.features")
                    )
                ],
            )
        )
    for f_idx, item in enumerate(_expect_list(data.get("features"), path="report.features")):
        report.features.append(_feature_from_dict(item, path=f"report.features[{f_idx}]"))
    return report


def report_to_json(report: Report, *, indent: int | None = None) -> str:
    return json.dumps(report_to_dict(report), ensure_ascii=False, indent=indent)
