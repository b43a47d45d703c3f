"""Two-state Result type used at the Outcome interop boundary.

``Outcome.as_result`` collapses the three outcome states into this simpler
success/failure shape, and ``from_result`` lifts it back.
"""

from __future__ import annotations

import dataclasses
import typing

if typing.TYPE_CHECKING:
    from collections.abc import Callable

TSuccess = typing.TypeVar("TSuccess")
TFailure = typing.TypeVar("TFailure", bound=BaseException)
U = typing.TypeVar("U")
V = typing.TypeVar("V")


@dataclasses.dataclass(frozen=True, slots=True)
class Success(typing.Generic[TSuccess]):
    """A successful computation."""

    value: TSuccess

    def is_success(self) -> bool:
        return True

    def is_failure(self) -> bool:
        return False

    def match(
        self,
        on_failure: Callable[[typing.Any], U],
        on_success: Callable[[TSuccess], V],
    ) -> U | V:
        """Call ``on_success`` with the wrapped value."""
        return on_success(self.value)

    def map(self, func: Callable[[TSuccess], typing.Any]) -> Result[typing.Any, typing.Any]:
        """Transform the value; a returned ``Result`` is adopted as-is."""
        res = func(self.value)
        return res if is_result(res) else Success(res)


@dataclasses.dataclass(frozen=True, slots=True)
class Failure(typing.Generic[TFailure]):
    """A failed computation, containing the error."""

    error: TFailure

    def is_success(self) -> bool:
        return False

    def is_failure(self) -> bool:
        return True

    def match(
        self,
        on_failure: Callable[[TFailure], U],
        on_success: Callable[[typing.Any], V],
    ) -> U | V:
        """Call ``on_failure`` with the wrapped error."""
        return on_failure(self.error)

    def map(self, func: Callable[[typing.Any], typing.Any]) -> Failure[TFailure]:
        """Mapping over a failure is a no-op."""
        return self


Result = Success[TSuccess] | Failure[TFailure]


def is_result(obj: object) -> bool:
    """Return True when *obj* is a ``Success`` or ``Failure``."""
    return isinstance(obj, Success | Failure)
