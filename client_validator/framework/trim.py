from __future__ import annotations

from validatorkit import FeatureReport, Recorder, Report, StoryReport

from client_validator.framework.config import RECORD_POLICIES


def _keep(record: Recorder, policy: str) -> bool:
    if policy == "all":
        return True
    if policy == "failed":
        return not record.success
    return False


def _trim_feature(feature: FeatureReport, *, record: str, show_log: bool) -> FeatureReport:
    kept: list[Recorder] = []
    for item in feature.records:
        if not _keep(item, record):
            continue
        copy = item.copy()
        if not show_log:
            copy.logs = []
        kept.append(copy)
    return FeatureReport(
        key=feature.key,
        description=feature.description,
        status=feature.status,
        records=kept,
    )


def trim_report(report: Report, *, record: str = "failed", show_log: bool = False) -> Report:
    """Return a copy of `report` keeping only the records selected by `record`.

    `record` is one of none/failed/all. Logs of kept records are dropped unless
    `show_log` is set. Feature statuses are never changed.
    """

    if record not in RECORD_POLICIES:
        raise ValueError(f"Invalid record policy: {record!r} (expected one of: {', '.join(RECORD_POLICIES)})")

    return Report(
        stories=[
            StoryReport(
                description=story.description,
                features=[
                    _trim_feature(f, record=record, show_log=show_log) for f in story.features
                ],
            )
            for story in report.stories
        ],
        features=[_trim_feature(f, record=record, show_log=show_log) for f in report.features],
    )
