"""Console, plain-text and JSON presentations of a validation report."""

from __future__ import annotations

from typing import Callable

from termcolor import colored

from validatorkit import FeatureReport, Report, report_to_json

HR = "-" * 80

_STATUS_COLORS: dict[str, str] = {
    "PASS": "green",
    "NOT_IMPL": "dark_grey",
    "SKIP": "dark_grey",
    "FAIL": "red",
    "DEFECT": "red",
}


def render_json(report: Report) -> str:
    return report_to_json(report, indent=2)


def _record_state(success: bool) -> str:
    return "PASS" if success else "FAIL"


def _text_feature(feature: FeatureReport) -> list[str]:
    lines = [f"  + [{feature.status.value}] {feature.key}: {feature.description}"]
    for record in feature.records:
        lines.append(f"    - [{_record_state(record.success)}] {record.description}")
        lines.extend(f"      $ {line}" for line in record.logs)
    return lines


def colorize_status(text: str) -> str:
    color = _STATUS_COLORS.get(text)
    return colored(text, color) if color else text


def _console_feature(feature: FeatureReport) -> list[str]:
    info = colored(f"{feature.key}: {feature.description}", "blue", attrs=["bold"])
    lines = [f"  [{colorize_status(feature.status.value)}] {info}"]
    for record in feature.records:
        state = colorize_status(_record_state(record.success))
        lines.append(f"    [{state}] {colored(record.description, 'cyan', attrs=['bold'])}")
        lines.extend("      " + colored(line, "dark_grey") for line in record.logs)
    return lines


def _render(
    report: Report,
    *,
    heading: Callable[[str], str],
    feature_lines: Callable[[FeatureReport], list[str]],
) -> str:
    lines: list[str] = []
    for story in report.stories:
        lines.append(HR)
        lines.append(heading("# " + story.description))
        for feature in story.features:
            lines.extend(feature_lines(feature))
    for feature in report.features:
        lines.append(HR)
        lines.extend(feature_lines(feature))
    return "\n".join(lines)


def render_text(report: Report) -> str:
    return _render(report, heading=lambda text: text, feature_lines=_text_feature)


def render_console(report: Report) -> str:
    return _render(
        report,
        heading=lambda text: colored(text, "magenta", attrs=["bold"]),
        feature_lines=_console_feature,
    )


RENDERERS: dict[str, Callable[[Report], str]] = {
    "console": render_console,
    "text": render_text,
    "json": render_json,
}


def render_report(report: Report, style: str) -> str:
    renderer = RENDERERS.get(style)
    if renderer is None:
        raise ValueError(f"Unknown output style: {style!r} (expected one of: {', '.join(RENDERERS)})")
    return renderer(report)
