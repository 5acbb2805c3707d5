from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from validatorkit import DEFAULT_TIME_FORMAT

RECORD_POLICIES: tuple[str, ...] = ("none", "failed", "all")
OUTPUT_STYLES: tuple[str, ...] = ("console", "text", "json")
LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_KNOWN_KEYS: dict[str, tuple[str, ...]] = {
    "": ("strict", "validator", "log", "output", "content"),
    "validator": ("fail_on_cycle",),
    "log": ("time_format", "file_line", "level", "dir"),
    "output": ("record", "show_log", "style"),
    "content": ("modules", "packages"),
}


def parse_bool(value: Any, path: str) -> bool:
    """
    Strict boolean parsing to avoid bool('false') footguns.

    Accepts True/False, 0/1 and the strings true/false/1/0/yes/no
    (case-insensitive, surrounding whitespace ignored).
    """

    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
        raise ValueError(f"Invalid boolean for {path}: {value!r}")
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"true", "1", "yes"}:
            return True
        if normalized in {"false", "0", "no"}:
            return False
    raise ValueError(f"Invalid boolean for {path}: {value!r}")


def parse_choice(value: Any, path: str, choices: tuple[str, ...], *, upper: bool = False) -> str:
    if not isinstance(value, str):
        raise ValueError(f"Invalid config type for {path}: expected string")
    normalized = value.strip().upper() if upper else value.strip().lower()
    if normalized not in choices:
        raise ValueError(
            f"Invalid config value for {path}: {value!r} (expected one of: {', '.join(choices)})"
        )
    return normalized


def parse_str_list(value: Any, path: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"Invalid config type for {path}: expected list of strings")
    items: list[str] = []
    for idx, item in enumerate(value):
        if not isinstance(item, str) or not item.strip():
            raise ValueError(f"Invalid config value for {path}[{idx}]: expected non-empty string")
        items.append(item.strip())
    return tuple(items)


def _collect_unknown_keys(cfg: Mapping[str, Any]) -> list[str]:
    unknown: list[str] = []
    for section, known in _KNOWN_KEYS.items():
        mapping = cfg if not section else cfg.get(section)
        if not isinstance(mapping, Mapping):
            continue
        for key in mapping:
            if key not in known:
                unknown.append(f"{section}.{key}" if section else str(key))
    return unknown


@dataclass(frozen=True)
class ValidatorConfig:
    fail_on_cycle: bool = False
    time_format: str = DEFAULT_TIME_FORMAT
    file_line: bool = True
    log_level: str = "INFO"
    log_dir: str | None = None
    record: str = "failed"
    show_log: bool = False
    style: str = "console"
    content_modules: tuple[str, ...] = ()
    content_packages: tuple[str, ...] = ()

    @staticmethod
    def from_dict(cfg: Mapping[str, Any]) -> tuple["ValidatorConfig", list[str]]:
        """
        Parse and validate configuration, returning (ValidatorConfig, warnings).

        Raises:
            ValueError: if a value is invalid, or on unknown keys when `strict` is set.
        """

        if not isinstance(cfg, Mapping):
            raise ValueError("Config must be a mapping")

        for section in _KNOWN_KEYS:
            if section and cfg.get(section) is not None and not isinstance(cfg.get(section), Mapping):
                raise ValueError(f"Invalid config type for {section}: expected mapping")

        def get(path: str) -> Any:
            section, key = path.split(".", 1)
            mapping = cfg.get(section)
            if not isinstance(mapping, Mapping):
                return None
            return mapping.get(key)

        warnings: list[str] = []
        strict = parse_bool(cfg.get("strict", False), "strict")
        unknown = _collect_unknown_keys(cfg)
        if unknown and strict:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
        warnings.extend(f"Unknown config key: {key}" for key in unknown)

        time_format = get("log.time_format")
        if time_format is None:
            time_format = DEFAULT_TIME_FORMAT
        elif not isinstance(time_format, str) or not time_format:
            raise ValueError("Invalid config value for log.time_format: expected non-empty string")

        log_dir = get("log.dir")
        if log_dir is not None:
            if not isinstance(log_dir, str):
                raise ValueError("Invalid config type for log.dir: expected string")
            log_dir = log_dir.strip() or None

        def optional(path: str, default: Any) -> Any:
            value = get(path)
            return default if value is None else value

        return (
            ValidatorConfig(
                fail_on_cycle=parse_bool(optional("validator.fail_on_cycle", False), "validator.fail_on_cycle"),
                time_format=time_format,
                file_line=parse_bool(optional("log.file_line", True), "log.file_line"),
                log_level=parse_choice(optional("log.level", "INFO"), "log.level", LOG_LEVELS, upper=True),
                log_dir=log_dir,
                record=parse_choice(optional("output.record", "failed"), "output.record", RECORD_POLICIES),
                show_log=parse_bool(optional("output.show_log", False), "output.show_log"),
                style=parse_choice(optional("output.style", "console"), "output.style", OUTPUT_STYLES),
                content_modules=parse_str_list(get("content.modules"), "content.modules"),
                content_packages=parse_str_list(get("content.packages"), "content.packages"),
            ),
            warnings,
        )
