"""Exception hierarchy for tristate.

Domain failures are carried as data inside ``FailureOutcome`` and are never
raised by the library. The exceptions here cover misuse at the edges:
configuration problems and interop conversions that cannot produce a value.
"""

from __future__ import annotations


class TristateError(Exception):
    """Base exception for all tristate errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint

    def __str__(self) -> str:
        """Return the message, followed by the hint when one is attached."""
        msg = super().__str__()
        return f"{msg}. {self.hint}" if self.hint else msg


class ConfigurationError(TristateError):
    """Configuration validation or resolution failed."""


class EmptySequenceError(TristateError, LookupError):
    """A first-element conversion found no element to extract."""
