from __future__ import annotations


class ConfigurationError(ValueError):
    """Setup mistake that invalidates the whole run (duplicate or unknown keys)."""


class CheckAborted(BaseException):
    """Raised by `fail` and failed `assert_*` calls inside checker or test code.

    Derives from `BaseException` so an `except Exception` block in content code
    does not swallow it. Only the execution boundary in `validatorkit.context`
    catches it.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message
