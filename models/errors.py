"""
Exceptions raised by the packaging pass.

Every error here is fatal: callers abort the run and leave the previous
output tree untouched.
"""

from __future__ import annotations

from typing import Any


class DebcargoError(Exception):
    """Base class for all packaging errors."""


class ConsistencyError(DebcargoError):
    """The feature graph or its configuration is internally inconsistent."""

    def __init__(self, message: str, feature: str | None = None, values: Any = None):
        super().__init__(message)
        self.feature = feature
        self.values = values


class ChangelogParseError(DebcargoError):
    """An existing changelog entry could not be parsed."""

    def __init__(self, message: str, text: str = ""):
        super().__init__(f"{message}: {text!r}" if text else message)
        self.text = text


class IdentityError(DebcargoError):
    """The current author's name or email could not be determined."""


class ConfigError(DebcargoError):
    """The override configuration file is unreadable or invalid."""


class MetadataError(DebcargoError):
    """The crate metadata cannot be mapped onto Debian conventions."""
