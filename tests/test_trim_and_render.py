import json

import pytest

from client_validator.framework.render import render_console, render_json, render_report, render_text
from client_validator.framework.trim import trim_report
from validatorkit import FeatureReport, FeatureStatus, Recorder, Report, StoryReport


def _report() -> Report:
    passed = Recorder(description="check a(put)", logs=["t1 ok"], success=True)
    failed = Recorder(description="put then get", logs=["t2 stale read"], success=False)
    return Report(
        stories=[
            StoryReport(
                description="raw kv",
                features=[
                    FeatureReport(
                        key="a", description="put", status=FeatureStatus.DEFECT, records=[passed, failed]
                    )
                ],
            )
        ],
        features=[FeatureReport(key="b", description="scan", status=FeatureStatus.SKIP)],
    )


@pytest.mark.parametrize(
    "policy, expected",
    [
        ("none", []),
        ("failed", ["put then get"]),
        ("all", ["check a(put)", "put then get"]),
    ],
)
def test_trim_report_filters_records(policy, expected):
    trimmed = trim_report(_report(), record=policy, show_log=True)

    feature = trimmed.stories[0].features[0]
    assert [r.description for r in feature.records] == expected
    assert feature.status is FeatureStatus.DEFECT
    assert trimmed.features[0].records == []


def test_trim_report_strips_logs_and_leaves_original_untouched():
    original = _report()

    trimmed = trim_report(original, record="all", show_log=False)

    assert all(r.logs == [] for r in trimmed.stories[0].features[0].records)
    assert original.stories[0].features[0].records[0].logs == ["t1 ok"]


def test_trim_report_rejects_unknown_policy():
    with pytest.raises(ValueError, match="Invalid record policy"):
        trim_report(_report(), record="some")


def test_render_text_layout():
    text = render_text(trim_report(_report(), record="all", show_log=True))

    assert text.splitlines() == [
        "-" * 80,
        "# raw kv",
        "  + [DEFECT] a: put",
        "    - [PASS] check a(put)",
        "      $ t1 ok",
        "    - [FAIL] put then get",
        "      $ t2 stale read",
        "-" * 80,
        "  + [SKIP] b: scan",
    ]


def test_render_json_is_the_report_mapping():
    payload = json.loads(render_json(_report()))

    assert payload["stories"][0]["features"][0]["status"] == "DEFECT"
    assert payload["features"] == [{"key": "b", "description": "scan", "status": "SKIP", "records": []}]


def test_render_console_contains_all_content():
    output = render_console(_report())

    for fragment in ("# raw kv", "DEFECT", "a: put", "check a(put)", "put then get", "b: scan", "SKIP"):
        assert fragment in output


def test_render_report_dispatches_and_rejects_unknown_styles():
    assert render_report(_report(), "text") == render_text(_report())
    with pytest.raises(ValueError, match="Unknown output style"):
        render_report(_report(), "html")
