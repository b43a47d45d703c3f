"""Tri-state outcome for data-access style operations.

An ``Outcome`` is exactly one of:

- ``NoneOutcome``: nothing was found
- ``FailureOutcome``: an error occurred, carried as data
- ``SuccessOutcome``: one or more values were produced, in order

Raw values enter through ``union_resolve``, and every transformation is a
``match`` whose handler results are normalized again, so the three-state
invariant is closed under composition. Handler exceptions are captured at the
single invocation boundary and become failures; ``match`` never raises.

Example:
    found = success([1, 2, 3]).map_elements(lambda x: x * 2)
    assert found == SuccessOutcome((2, 4, 6))

    match lookup(user_id):
        case SuccessOutcome(values=(user, *_)):
            ...
        case FailureOutcome(error=err):
            ...
        case NoneOutcome():
            ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
import inspect
import logging
from typing import TYPE_CHECKING, Any, ClassVar, Generic, Literal, TypeVar, cast

from tristate.config import current_config
from tristate.errors import ConfigurationError, EmptySequenceError
from tristate.result import Failure, Result, Success

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from tristate.async_outcome import AsyncOutcome

log = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")

Tag = Literal["none", "failure", "success"]


class Outcome(ABC, Generic[T]):
    """Base class for the three outcome variants.

    Subclasses are frozen dataclasses; all operations return new outcomes.
    """

    __slots__ = ()

    tag: ClassVar[Tag]

    # --- State predicates ---

    def is_success(self) -> bool:
        return self.tag == "success"

    def is_failure(self) -> bool:
        return self.tag == "failure"

    def is_none(self) -> bool:
        return self.tag == "none"

    # --- Matching ---

    @abstractmethod
    def fold(
        self,
        on_none: Callable[[], Any],
        on_failure: Callable[[BaseException], Any],
        on_success: Callable[[tuple[T, ...]], Any],
    ) -> Any:
        """Call the handler for this state and return its raw result.

        Unlike ``match``, the result is not normalized and handler exceptions
        propagate.
        """

    def match(
        self,
        on_none: Callable[[], Any],
        on_failure: Callable[[BaseException], Any],
        on_success: Callable[[tuple[T, ...]], Any],
    ) -> Outcome[Any]:
        """Dispatch to exactly one handler and normalize its result.

        Handlers may return a raw value, a list/tuple, an exception instance,
        ``None`` or an ``Outcome``; the result goes through ``union_resolve``.

        Returns:
            The normalized outcome, or a ``FailureOutcome`` carrying the
            exception if the handler raised.
        """
        try:
            raw = self.fold(on_none, on_failure, on_success)
        except Exception as exc:
            return captured_failure(exc, origin=f"{self.tag} handler")
        return union_resolve(raw)

    # --- Mapping ---

    def map(self, func: Callable[[tuple[T, ...]], Any]) -> Outcome[Any]:
        """Alias of ``map_success``."""
        return self.map_success(func)

    def map_success(self, func: Callable[[tuple[T, ...]], Any]) -> Outcome[Any]:
        """Transform the success sequence; none and failure pass through."""
        return self.match(none, failure, func)

    def map_failure(self, func: Callable[[BaseException], Any]) -> Outcome[Any]:
        """Transform the failure error; none and success pass through."""
        return self.match(none, func, success)

    def map_none(self, func: Callable[[], Any]) -> Outcome[Any]:
        """Materialize a value in place of absence."""
        return self.match(func, failure, success)

    def map_elements(self, func: Callable[[T], U]) -> Outcome[U]:
        """Apply *func* to every element of the success sequence."""
        return self.match(none, failure, lambda values: [func(v) for v in values])

    def map_first(self, func: Callable[[T], Any]) -> Outcome[Any]:
        """Replace the success sequence with *func* applied to its first element."""
        return self.match(none, failure, lambda values: func(values[0]) if values else [])

    def filter(self, pred: Callable[[T], bool]) -> Outcome[T]:
        """Keep the success elements satisfying *pred*; none if nothing is left."""
        return self.match(none, failure, lambda values: [v for v in values if pred(v)])

    # --- State conversions ---

    def none_as_failure(self, error: BaseException) -> Outcome[T]:
        return failure(error) if self.is_none() else self

    def none_as_success(self, values: T | Sequence[T]) -> Outcome[T]:
        return success(values) if self.is_none() else self

    def failure_as_none(self) -> Outcome[T]:
        return none() if self.is_failure() else self

    # --- Nesting ---

    def _nested(self) -> Outcome[Any] | None:
        """Return the outcome wrapped as this one's payload, if any."""
        return None

    def flatten(self) -> Outcome[Any]:
        """Collapse nested outcomes, adopting the innermost tag and payload.

        A failure whose error is an outcome, or a success whose only value is
        an outcome, is replaced by that outcome until neither holds. Each step
        removes one level of nesting, so arbitrarily deep values terminate.
        """
        current: Outcome[Any] = self
        while (inner := current._nested()) is not None:
            current = inner
        return current

    async def promise_flatten(self) -> Outcome[Any]:
        """Await an awaitable payload and re-wrap it with the same tag.

        Only one level is resolved; non-awaitable payloads are returned as an
        equivalent outcome.
        """
        return self

    # --- Result interop ---

    def as_result(
        self, when_none: Callable[[], BaseException | T | Sequence[T]]
    ) -> Result[tuple[T, ...], BaseException]:
        """Convert to a two-state ``Result``.

        Args:
            when_none: Evaluated only for ``NoneOutcome``. An exception becomes
                a ``Failure``; a list/tuple or bare value becomes a ``Success``
                holding a tuple.
        """
        return self.fold(
            lambda: _fallback_result(when_none()),
            Failure,
            Success,
        )

    def as_first_element_result(
        self, when_none: Callable[[], BaseException | T | Sequence[T]]
    ) -> Result[T, BaseException]:
        """Like ``as_result``, then extract element zero of the sequence."""
        return self.as_result(when_none).map(_first_element)

    # --- Join ---

    @staticmethod
    def all(*outcomes: Outcome[Any]) -> Callable[[Callable[..., Any], Callable[..., Any]], Outcome[Any]]:
        """All-or-nothing join over a fixed set of outcomes.

        Returns a chooser taking ``(on_any_failure, on_all_success)``. When
        every outcome is a success, ``on_all_success`` receives one argument per
        outcome in input order: the bare value for a single-value success, the
        value tuple otherwise; otherwise ``on_any_failure`` receives every
        outcome as given. The handler result is normalized like ``match``.
        """

        def choose(
            on_any_failure: Callable[..., Any],
            on_all_success: Callable[..., Any],
        ) -> Outcome[Any]:
            try:
                raw = join_branch(outcomes, on_any_failure, on_all_success)
            except Exception as exc:
                return captured_failure(exc, origin="join handler")
            return union_resolve(raw)

        return choose


@dataclass(frozen=True, slots=True)
class NoneOutcome(Outcome[T]):
    """No data was found."""

    tag: ClassVar[Tag] = "none"

    def fold(
        self,
        on_none: Callable[[], U],
        on_failure: Callable[[BaseException], Any],
        on_success: Callable[[tuple[T, ...]], Any],
    ) -> U:
        return on_none()


@dataclass(frozen=True, slots=True)
class FailureOutcome(Outcome[T]):
    """An error occurred; the error is carried, never raised."""

    error: Any
    tag: ClassVar[Tag] = "failure"

    def fold(
        self,
        on_none: Callable[[], Any],
        on_failure: Callable[[BaseException], U],
        on_success: Callable[[tuple[T, ...]], Any],
    ) -> U:
        return on_failure(self.error)

    def _nested(self) -> Outcome[Any] | None:
        return self.error if isinstance(self.error, Outcome) else None

    async def promise_flatten(self) -> Outcome[Any]:  # noqa: D102
        if inspect.isawaitable(self.error):
            return FailureOutcome(await self.error)
        return self


@dataclass(frozen=True, slots=True)
class SuccessOutcome(Outcome[T]):
    """One or more values were produced, in order."""

    values: tuple[T, ...]
    tag: ClassVar[Tag] = "success"

    def __post_init__(self) -> None:
        if not isinstance(self.values, tuple):
            object.__setattr__(self, "values", tuple(self.values))

    def fold(
        self,
        on_none: Callable[[], Any],
        on_failure: Callable[[BaseException], Any],
        on_success: Callable[[tuple[T, ...]], U],
    ) -> U:
        return on_success(self.values)

    def _nested(self) -> Outcome[Any] | None:
        if len(self.values) == 1 and isinstance(self.values[0], Outcome):
            return self.values[0]
        return None

    async def promise_flatten(self) -> Outcome[Any]:  # noqa: D102
        if len(self.values) == 1 and inspect.isawaitable(self.values[0]):
            return success(await self.values[0])
        return self


# --- Constructors ---


def success(value: T | Sequence[T]) -> SuccessOutcome[T]:
    """Wrap a value or a list/tuple of values as a success.

    A bare value becomes a one-element sequence. No emptiness check is made;
    use ``union_resolve`` to route empty input to ``NoneOutcome``.
    """
    if isinstance(value, list | tuple):
        return SuccessOutcome(tuple(value))
    return SuccessOutcome((cast("T", value),))


def failure(error: Any) -> FailureOutcome[Any]:
    return FailureOutcome(error)


def none() -> NoneOutcome[Any]:
    return NoneOutcome()


def is_outcome(obj: object) -> bool:
    """Return True when *obj* is one of the outcome variants."""
    return isinstance(obj, Outcome)


def union_resolve(value: Any) -> Outcome[Any]:
    """Classify a raw value into exactly one outcome state.

    - an ``Outcome`` is returned unchanged
    - an exception instance becomes a failure
    - ``None`` or an empty list/tuple becomes none
    - anything else becomes a success; zero, ``False`` and ``""`` are values

    Idempotent: ``union_resolve(union_resolve(x)) == union_resolve(x)``.
    """
    match value:
        case Outcome():
            return value
        case BaseException():
            return FailureOutcome(value)
        case None:
            return NoneOutcome()
        case list() | tuple():
            return SuccessOutcome(tuple(value)) if value else NoneOutcome()
        case _:
            return SuccessOutcome((value,))


create = union_resolve


def from_result(result: Result[Any, BaseException]) -> Outcome[Any]:
    """Lift a two-state ``Result``: its success value is normalized."""
    return result.match(FailureOutcome, union_resolve)


def matcher(outcome: Outcome[T] | AsyncOutcome[T]) -> Callable[..., Any]:
    """Curry ``match``: ``matcher(o)(on_none, on_failure, on_success)``.

    Works for ``AsyncOutcome`` too, returning its deferred ``match``.
    """

    def run(
        on_none: Callable[[], Any],
        on_failure: Callable[[BaseException], Any],
        on_success: Callable[[tuple[T, ...]], Any],
    ) -> Any:
        return outcome.match(on_none, on_failure, on_success)

    return run


def bind(
    outcome: Outcome[T] | AsyncOutcome[T],
) -> Callable[[Callable[[tuple[T, ...]], Any]], Any]:
    """Curry ``map``: ``bind(o)(func)`` is ``o.map(func)``."""
    return outcome.map


def join_branch(
    outcomes: Sequence[Outcome[Any]],
    on_any_failure: Callable[..., Any],
    on_all_success: Callable[..., Any],
) -> Any:
    """Call the join handler selected by *outcomes* and return its raw result."""
    successes = [o for o in outcomes if isinstance(o, SuccessOutcome)]
    if len(successes) == len(outcomes):
        return on_all_success(*(_join_payload(o.values) for o in successes))
    log.debug(
        "Join of %d outcomes has %d non-success members",
        len(outcomes),
        len(outcomes) - len(successes),
    )
    return on_any_failure(*outcomes)


def _join_payload(values: tuple[Any, ...]) -> Any:
    return values[0] if len(values) == 1 else values


def captured_failure(exc: Exception, *, origin: str) -> FailureOutcome[Any]:
    """Convert an exception raised by a handler into a failure outcome."""
    try:
        cfg = current_config()
    except ConfigurationError as cfg_exc:
        # Capture must stay total; report the bad config and skip capture logging.
        log.warning("Ignoring invalid tristate configuration: %s", cfg_exc)
        return FailureOutcome(exc)
    if cfg.log_captured:
        log.log(
            cfg.captured_log_level,
            "Captured %s from %s: %s",
            type(exc).__name__,
            origin,
            exc,
            exc_info=exc if cfg.log_tracebacks else None,
        )
    return FailureOutcome(exc)


def _fallback_result(raw: Any) -> Result[tuple[Any, ...], BaseException]:
    if isinstance(raw, BaseException):
        return Failure(raw)
    if isinstance(raw, list | tuple):
        return Success(tuple(raw))
    return Success((raw,))


def _first_element(values: tuple[T, ...]) -> T | Result[T, BaseException]:
    if not values:
        return Failure(
            EmptySequenceError(
                "No first element to extract",
                hint="The when_none fallback returned an empty sequence",
            )
        )
    return values[0]
