"""Configuration error definitions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class ConfigurationError(RuntimeError):
    """Raised when configuration values are invalid."""


class MissingConfigurationError(ConfigurationError):
    """Raised when required settings are absent or blank; ``names`` lists them."""

    def __init__(self, names: Iterable[str]) -> None:
        self.names = tuple(names)
        super().__init__(f"Missing configuration for: {', '.join(self.names)}")


class UnknownEnvironmentError(ConfigurationError):
    def __init__(self, value: str, choices: Iterable[str]) -> None:
        self.value = value
        self.choices = tuple(choices)
        options = ", ".join(f'"{choice}"' for choice in self.choices)
        super().__init__(f"Invalid registry environment {value!r}. Must be one of {options}.")
