"""Discovery of content modules.

A content module registers features, stories and tests by exposing
`register(registry)`. Modules are named explicitly, or found by walking a
package's submodules.
"""

from __future__ import annotations

import importlib
import logging
import pkgutil
from types import ModuleType
from typing import Iterable

from validatorkit import ConfigurationError, Registry

logger = logging.getLogger(__name__)


def _import(name: str) -> ModuleType:
    try:
        return importlib.import_module(name)
    except ImportError as exc:
        raise ConfigurationError(f"Cannot import content module {name}: {exc}") from exc


def _package_modules(package_name: str) -> list[str]:
    package = _import(package_name)
    path = getattr(package, "__path__", None)
    if path is None:
        raise ConfigurationError(f"Content package {package_name} is not a package")
    return sorted(
        module.name for module in pkgutil.iter_modules(path, prefix=package.__name__ + ".")
    )


def register_module(registry: Registry, module: ModuleType) -> None:
    register = getattr(module, "register", None)
    if not callable(register):
        raise ConfigurationError(
            f"Content module {module.__name__} must define register(registry)"
        )
    before = len(registry)
    register(registry)
    logger.debug(
        "Registered content from %s (%d features)", module.__name__, len(registry) - before
    )


def discover(
    registry: Registry,
    *,
    modules: Iterable[str] = (),
    packages: Iterable[str] = (),
) -> list[str]:
    """Register every listed module, then every submodule of listed packages.

    Submodules of a package that do not define `register` are skipped. A module
    named twice is registered once. Returns the registered module names.
    """

    loaded: list[str] = []
    seen: set[str] = set()

    for name in modules:
        if name in seen:
            continue
        seen.add(name)
        register_module(registry, _import(name))
        loaded.append(name)

    for package_name in packages:
        for name in _package_modules(package_name):
            if name in seen:
                continue
            seen.add(name)
            module = _import(name)
            if not callable(getattr(module, "register", None)):
                logger.debug("Skipping %s: no register(registry)", name)
                continue
            register_module(registry, module)
            loaded.append(name)

    logger.info("Content modules loaded: %s", ", ".join(loaded) or "<none>")
    return loaded
