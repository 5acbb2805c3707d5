from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, TypeAlias

from validatorkit.errors import ConfigurationError
from validatorkit.status import FeatureStatus

if TYPE_CHECKING:
    from validatorkit.context import ExecutionContext

Checker: TypeAlias = Callable[["ExecutionContext"], FeatureStatus]
TestFunction: TypeAlias = Callable[["ExecutionContext"], None]

logger = logging.getLogger(__name__)


def _normalize_keys(raw: Iterable[str] | None, *, owner: str) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        raise TypeError(f"{owner} must be a sequence of feature keys, not a single string")
    keys: list[str] = []
    for item in raw:
        if not isinstance(item, str) or not item.strip():
            raise TypeError(f"{owner} must contain only non-empty strings (got {item!r})")
        keys.append(item.strip())
    return tuple(keys)


@dataclass(frozen=True)
class FeatureDefinition:
    key: str
    description: str
    requires: tuple[str, ...] = ()
    checker: Checker | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.key, str) or not self.key.strip():
            raise TypeError("FeatureDefinition.key must be a non-empty string")
        object.__setattr__(self, "key", self.key.strip())
        if not isinstance(self.description, str):
            raise TypeError(
                f"FeatureDefinition.description must be a string (key={self.key})"
            )
        object.__setattr__(
            self, "requires", _normalize_keys(self.requires, owner=f"Feature {self.key} requires")
        )
        if self.checker is not None and not callable(self.checker):
            raise TypeError(
                f"Feature {self.key} checker must be callable (type={type(self.checker).__name__})"
            )


@dataclass(frozen=True)
class StoryDefinition:
    description: str
    features: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.description, str):
            raise TypeError("StoryDefinition.description must be a string")
        object.__setattr__(
            self,
            "features",
            _normalize_keys(self.features, owner=f"Story {self.description!r} features"),
        )


@dataclass(frozen=True)
class TestDefinition:
    description: str
    requires: tuple[str, ...] = ()
    test_fn: TestFunction | None = None

    # Keep pytest from collecting this class when imported into test modules.
    __test__ = False

    def __post_init__(self) -> None:
        if not isinstance(self.description, str):
            raise TypeError("TestDefinition.description must be a string")
        object.__setattr__(
            self,
            "requires",
            _normalize_keys(self.requires, owner=f"Test {self.description!r} requires"),
        )
        if self.test_fn is not None and not callable(self.test_fn):
            raise TypeError(
                f"Test {self.description!r} function must be callable "
                f"(type={type(self.test_fn).__name__})"
            )


@dataclass(frozen=True)
class RegistrySnapshot:
    """Point-in-time copy of everything registered, in registration order."""

    features: tuple[FeatureDefinition, ...] = ()
    stories: tuple[StoryDefinition, ...] = ()
    tests: tuple[TestDefinition, ...] = ()


class Registry:
    """Append-only store of feature, story and test definitions.

    Registration is serialized by one lock so content modules may register from
    independent initializers. Registering while a run is in progress is not
    supported; a run only sees the snapshot taken when it started.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._features: list[FeatureDefinition] = []
        self._feature_keys: set[str] = set()
        self._stories: list[StoryDefinition] = []
        self._tests: list[TestDefinition] = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._features)

    def feature_keys(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(f.key for f in self._features)

    def register_feature(
        self,
        key: str,
        description: str,
        requires: Iterable[str] | None = None,
        checker: Checker | None = None,
    ) -> str:
        definition = FeatureDefinition(
            key=key,
            description=description,
            requires=tuple(requires or ()),
            checker=checker,
        )
        with self._lock:
            if definition.key in self._feature_keys:
                raise ConfigurationError(f"Duplicate feature key: {definition.key}")
            self._features.append(definition)
            self._feature_keys.add(definition.key)
        logger.debug(
            "Registered feature %s (requires: %s)",
            definition.key,
            ", ".join(definition.requires) or "<none>",
        )
        return definition.key

    def register_story(self, description: str, *feature_keys: str) -> StoryDefinition:
        definition = StoryDefinition(description=description, features=tuple(feature_keys))
        with self._lock:
            self._stories.append(definition)
        return definition

    def register_test(
        self,
        description: str,
        requires: Iterable[str] | None,
        test_fn: TestFunction | None,
    ) -> TestDefinition:
        definition = TestDefinition(
            description=description,
            requires=tuple(requires or ()),
            test_fn=test_fn,
        )
        with self._lock:
            self._tests.append(definition)
        return definition

    def feature(
        self, key: str, description: str, requires: Iterable[str] | None = None
    ) -> Callable[[Checker], Checker]:
        """Decorator form of `register_feature`; returns the checker unchanged."""

        def decorator(checker: Checker) -> Checker:
            self.register_feature(key, description, requires, checker)
            return checker

        return decorator

    def test(
        self, description: str, requires: Iterable[str] | None = None
    ) -> Callable[[TestFunction], TestFunction]:
        """Decorator form of `register_test`; returns the test function unchanged."""

        def decorator(test_fn: TestFunction) -> TestFunction:
            self.register_test(description, requires, test_fn)
            return test_fn

        return decorator

    def snapshot(self) -> RegistrySnapshot:
        with self._lock:
            return RegistrySnapshot(
                features=tuple(self._features),
                stories=tuple(self._stories),
                tests=tuple(self._tests),
            )
