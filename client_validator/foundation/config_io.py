from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

CONFIG_ENV_VAR = "CLIENT_VALIDATOR_CONFIG"
REPO_MARKERS = ("pyproject.toml", ".git")


def find_repo_root(start: str | os.PathLike[str] | None = None) -> str:
    """Nearest directory at or above `start` holding a repo marker."""

    here = Path(start or os.getcwd()).resolve()
    if here.is_file():
        here = here.parent
    for directory in (here, *here.parents):
        if any((directory / marker).exists() for marker in REPO_MARKERS):
            return str(directory)
    raise FileNotFoundError(f"No {' or '.join(REPO_MARKERS)} found at or above {here}")


def _read_config_file(path: str) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as handle:
        try:
            document = yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if document is None:
        return {}
    if not isinstance(document, Mapping):
        raise ValueError(f"Config file must contain a YAML mapping: {path}")
    return dict(document)


def _kind(value: Any) -> str:
    if isinstance(value, Mapping):
        return "mapping"
    if isinstance(value, (list, tuple)):
        return "list"
    return type(value).__name__


def deep_merge(base: Any, overlay: Any, *, path: str = "") -> Any:
    """Apply a config overlay (local file or CLI overrides) onto `base`.

    Sections merge key by key; any other value is replaced. Replacing a
    section with a scalar or a list with a section is an error.
    """

    if base is None or overlay is None:
        return overlay
    base_kind, overlay_kind = _kind(base), _kind(overlay)
    if base_kind == "mapping" and overlay_kind == "mapping":
        merged = dict(base)
        for key, value in overlay.items():
            child = f"{path}.{key}" if path else str(key)
            merged[key] = deep_merge(base[key], value, path=child) if key in base else value
        return merged
    structured = {"mapping", "list"}
    if (base_kind in structured or overlay_kind in structured) and base_kind != overlay_kind:
        raise ValueError(
            f"Invalid config overlay merge at {path or '<root>'}: base is {base_kind} but overlay is {overlay_kind}"
        )
    return list(overlay) if overlay_kind == "list" else overlay


def load_config(
    *,
    config_path: str | os.PathLike[str] | None = None,
    env_var: str | None = CONFIG_ENV_VAR,
    start_dir: str | os.PathLike[str] | None = None,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Load the raw YAML config mapping and a description of where it came from.

    An explicit `config_path` (or the env var) loads exactly one file. Otherwise
    `<repo_root>/config/config.yaml` is loaded and `config.local.yaml` beside it
    is deep-merged on top when present. A missing base file yields `{}`.
    """

    explicit_path = None
    if config_path is not None:
        explicit_path = str(config_path).strip() or None
    elif env_var:
        explicit_path = os.environ.get(env_var, "").strip() or None

    if explicit_path:
        expanded = os.path.abspath(os.path.expandvars(os.path.expanduser(explicit_path)))
        if not os.path.exists(expanded):
            raise FileNotFoundError(f"Missing config file: {expanded}")
        meta = {
            "mode": "explicit" if config_path is not None else "env",
            "paths": [expanded],
            "env_var": env_var,
            "repo_root": None,
        }
        return _read_config_file(expanded), meta

    try:
        repo_root: str | None = find_repo_root(start_dir)
    except FileNotFoundError:
        repo_root = None

    config_directory = os.path.join(repo_root or os.getcwd(), "config")
    base_config_path = os.path.join(config_directory, "config.yaml")
    local_overlay_path = os.path.join(config_directory, "config.local.yaml")

    if not os.path.exists(base_config_path):
        return {}, {"mode": "defaults", "paths": [], "env_var": env_var, "repo_root": repo_root}

    cfg = _read_config_file(base_config_path)
    loaded_paths = [os.path.abspath(base_config_path)]
    mode = "base"

    if os.path.exists(local_overlay_path):
        cfg = deep_merge(cfg, _read_config_file(local_overlay_path))
        loaded_paths.append(os.path.abspath(local_overlay_path))
        mode = "base+local"

    return cfg, {"mode": mode, "paths": loaded_paths, "env_var": env_var, "repo_root": repo_root}
