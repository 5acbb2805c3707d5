from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Sequence

from validatorkit import LogOptions, Recorder, Registry, Report, Runner

from client_validator.foundation.config_io import deep_merge, load_config
from client_validator.foundation.logging_utils import setup_operational_logger
from client_validator.framework.config import ValidatorConfig
from client_validator.framework.content import discover
from client_validator.framework.render import render_report
from client_validator.framework.trim import trim_report

logger = logging.getLogger(__name__)

FAILING_STATUSES = ("FAIL", "DEFECT")


@dataclass
class ValidationOutcome:
    config: ValidatorConfig
    report: Report
    trimmed: Report
    rendered: str
    standalone_records: list[Recorder] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        if any(f.status.value in FAILING_STATUSES for f in self.report.iter_features()):
            return True
        return any(not record.success for record in self.standalone_records)


def load_validator_config(
    *,
    config_path: str | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ValidatorConfig:
    raw, meta = load_config(config_path=config_path)
    if overrides:
        raw = deep_merge(raw, dict(overrides))
    cfg, warnings = ValidatorConfig.from_dict(raw)
    logger.debug("Config loaded (mode=%s, paths=%s)", meta["mode"], ", ".join(meta["paths"]) or "<none>")
    for warning in warnings:
        logger.warning(warning)
    return cfg


def build_registry(cfg: ValidatorConfig, *, extra_modules: Sequence[str] = ()) -> Registry:
    registry = Registry()
    discover(
        registry,
        modules=(*cfg.content_modules, *extra_modules),
        packages=cfg.content_packages,
    )
    return registry


def log_options(cfg: ValidatorConfig) -> LogOptions:
    return LogOptions(time_format=cfg.time_format, include_location=cfg.file_line)


def validate(cfg: ValidatorConfig, registry: Registry) -> ValidationOutcome:
    """Run every registered feature and test once, then trim and render the report."""

    runner = Runner(registry.snapshot(), options=log_options(cfg), fail_on_cycle=cfg.fail_on_cycle)
    report = runner.run()
    trimmed = trim_report(report, record=cfg.record, show_log=cfg.show_log)
    return ValidationOutcome(
        config=cfg,
        report=report,
        trimmed=trimmed,
        rendered=render_report(trimmed, cfg.style),
        standalone_records=list(runner.standalone_records),
    )


def main(
    *,
    config_path: str | None = None,
    overrides: Mapping[str, Any] | None = None,
    extra_modules: Sequence[str] = (),
    run_id: str | None = None,
) -> ValidationOutcome:
    cfg = load_validator_config(config_path=config_path, overrides=overrides)
    run_id = run_id or datetime.now().strftime("%Y%m%d_%H%M%S")
    setup_operational_logger(run_id, level=cfg.log_level, log_dir=cfg.log_dir)
    registry = build_registry(cfg, extra_modules=extra_modules)
    return validate(cfg, registry)
