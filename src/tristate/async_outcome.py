"""Deferred counterpart of ``Outcome``.

An ``AsyncOutcome`` owns one lazy computation that eventually yields an
``Outcome``. The computation starts on first observation (``await``,
``to_outcome`` or any derived chain being awaited) and settles at most once:
the result is kept in a shared future, so every later observer receives the
same outcome, or the same rejection, without re-running the effect.

Two kinds of error are kept apart:

- a *domain failure* is a settled ``FailureOutcome`` and flows through every
  mapping like data
- a *rejection* is an exception from the computation itself; it surfaces at
  the observation point unless ``catch``, ``then(..., on_rejected)`` or
  ``match`` converts it

Example:
    user = AsyncOutcome.create(repo.find_user(user_id))
    name = await user.map_first(lambda u: u.name).none_as_failure(NotFound())
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from tristate.outcome import (
    FailureOutcome,
    NoneOutcome,
    Outcome,
    SuccessOutcome,
    captured_failure,
    from_result as outcome_from_result,
    join_branch,
    success as success_of,
    union_resolve,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Generator, Sequence

    from tristate.result import Result

log = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")


def consume_future_exception(fut: asyncio.Future[Any]) -> None:
    """Avoid 'Future exception was never retrieved' for unobserved rejections."""
    try:
        _ = fut.exception()
    except asyncio.CancelledError:
        return


async def _await_if_needed(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class AsyncOutcome(Generic[T]):
    """A deferred computation that settles to an ``Outcome``.

    Every ``Outcome`` operation has a counterpart here returning a new
    ``AsyncOutcome``; predicates and ``Result`` conversions are coroutines.
    """

    __slots__ = ("_factory", "_future")

    def __init__(self, factory: Callable[[], Awaitable[Any]]) -> None:
        """Wrap *factory*, which is called once, on first observation."""
        self._factory = factory
        self._future: asyncio.Future[Outcome[T]] | None = None

    # --- Observation ---

    async def _run(self) -> Outcome[T]:
        return union_resolve(await self._factory())

    async def to_outcome(self) -> Outcome[T]:
        """Start the computation if needed and return its settled outcome.

        Raises:
            Exception: Whatever the underlying computation raised (a
                rejection), on this and every later observation.
        """
        if self._future is None:
            self._future = asyncio.ensure_future(self._run())
            self._future.add_done_callback(consume_future_exception)
        # Observers cancelling their own wait must not cancel the shared settlement.
        return await asyncio.shield(self._future)

    def __await__(self) -> Generator[Any, None, Outcome[T]]:
        return self.to_outcome().__await__()

    async def payload(self) -> Any:
        """Return the settled payload: ``None``, the error, or the value tuple."""
        return (await self).fold(lambda: None, lambda error: error, lambda values: values)

    def __repr__(self) -> str:
        fut = self._future
        if fut is None or not fut.done():
            state = "pending"
        elif fut.cancelled():
            state = "cancelled"
        elif fut.exception() is not None:
            state = f"rejected {fut.exception()!r}"
        else:
            state = repr(fut.result())
        return f"<AsyncOutcome {state}>"

    # --- State predicates ---

    async def is_success(self) -> bool:
        return (await self).is_success()

    async def is_failure(self) -> bool:
        return (await self).is_failure()

    async def is_none(self) -> bool:
        return (await self).is_none()

    # --- Chaining ---

    def _lift(self, op: Callable[[Outcome[T]], Outcome[U]]) -> AsyncOutcome[U]:
        async def run() -> Outcome[U]:
            return op(await self)

        return AsyncOutcome(run)

    def then(
        self,
        on_settled: Callable[[Outcome[T]], Any],
        on_rejected: Callable[[Exception], Any] | None = None,
    ) -> AsyncOutcome[Any]:
        """Chain on the settled outcome itself.

        Args:
            on_settled: Receives the whole ``Outcome`` (not its payload). May
                return anything ``union_resolve`` accepts, or an awaitable of
                it, including another ``AsyncOutcome``.
            on_rejected: Receives the exception when the computation rejects
                or ``on_settled`` raises. Without it the exception propagates
                to the observer.
        """

        async def run() -> Outcome[Any]:
            try:
                raw = await _await_if_needed(on_settled(await self))
            except Exception as exc:
                if on_rejected is None:
                    raise
                log.debug("Handling rejection in then(): %r", exc)
                raw = await _await_if_needed(on_rejected(exc))
            return union_resolve(raw)

        return AsyncOutcome(run)

    async def any_then(
        self,
        on_settled: Callable[[Outcome[T]], Any],
        on_rejected: Callable[[Exception], Any] | None = None,
    ) -> Any:
        """Like ``then``, but return the handler's raw result without normalizing."""
        try:
            return await _await_if_needed(on_settled(await self))
        except Exception as exc:
            if on_rejected is None:
                raise
            log.debug("Handling rejection in any_then(): %r", exc)
            return await _await_if_needed(on_rejected(exc))

    def catch(self, handler: Callable[[Exception], Any]) -> AsyncOutcome[Any]:
        """Recover from a rejected computation; settled failures pass through."""

        async def run() -> Outcome[Any]:
            try:
                return await self
            except Exception as exc:
                log.debug("Recovering rejected computation: %r", exc)
                return union_resolve(await _await_if_needed(handler(exc)))

        return AsyncOutcome(run)

    # --- Matching ---

    def match(
        self,
        on_none: Callable[[], Any],
        on_failure: Callable[[BaseException], Any],
        on_success: Callable[[tuple[T, ...]], Any],
    ) -> AsyncOutcome[Any]:
        """Dispatch to exactly one handler; never rejects.

        Handlers may return awaitables, which are awaited before the result is
        normalized. A handler exception, a rejected awaitable from a handler,
        or a rejection of the underlying computation all settle as a
        ``FailureOutcome`` carrying the exception. A rejection does not run
        ``on_failure``.
        """

        async def run() -> Outcome[Any]:
            try:
                outcome = await self
            except Exception as exc:
                return captured_failure(exc, origin="rejected computation")
            try:
                raw = await _await_if_needed(outcome.fold(on_none, on_failure, on_success))
            except Exception as exc:
                return captured_failure(exc, origin=f"{outcome.tag} handler")
            return union_resolve(raw)

        return AsyncOutcome(run)

    # --- Mapping ---

    def map(self, func: Callable[[tuple[T, ...]], Any]) -> AsyncOutcome[Any]:
        """Alias of ``map_success``."""
        return self.map_success(func)

    def map_success(self, func: Callable[[tuple[T, ...]], Any]) -> AsyncOutcome[Any]:
        return self.match(NoneOutcome, FailureOutcome, func)

    def map_failure(self, func: Callable[[BaseException], Any]) -> AsyncOutcome[Any]:
        return self.match(NoneOutcome, func, SuccessOutcome)

    def map_none(self, func: Callable[[], Any]) -> AsyncOutcome[Any]:
        return self.match(func, FailureOutcome, SuccessOutcome)

    def map_elements(self, func: Callable[[T], Any]) -> AsyncOutcome[Any]:
        """Apply *func* to each element in order, awaiting awaitable results."""

        async def each(values: tuple[T, ...]) -> list[Any]:
            return [await _await_if_needed(func(v)) for v in values]

        return self.match(NoneOutcome, FailureOutcome, each)

    def map_first(self, func: Callable[[T], Any]) -> AsyncOutcome[Any]:
        return self.match(
            NoneOutcome, FailureOutcome, lambda values: func(values[0]) if values else []
        )

    def filter(self, pred: Callable[[T], Any]) -> AsyncOutcome[T]:
        """Keep elements whose predicate (sync or awaitable) is truthy."""

        async def keep(values: tuple[T, ...]) -> list[T]:
            return [v for v in values if await _await_if_needed(pred(v))]

        return self.match(NoneOutcome, FailureOutcome, keep)

    # --- State conversions ---

    def none_as_failure(self, error: BaseException) -> AsyncOutcome[T]:
        return self._lift(lambda o: o.none_as_failure(error))

    def none_as_success(self, values: T | Sequence[T]) -> AsyncOutcome[T]:
        return self._lift(lambda o: o.none_as_success(values))

    def failure_as_none(self) -> AsyncOutcome[T]:
        return self._lift(lambda o: o.failure_as_none())

    # --- Nesting ---

    def flatten(self) -> AsyncOutcome[Any]:
        return self._lift(lambda o: o.flatten())

    def promise_flatten(self) -> AsyncOutcome[Any]:
        """Resolve one level of awaitable payload, keeping the tag."""

        async def run() -> Outcome[Any]:
            return await (await self).promise_flatten()

        return AsyncOutcome(run)

    # --- Result interop ---

    async def as_result(
        self, when_none: Callable[[], Any]
    ) -> Result[tuple[T, ...], BaseException]:
        return (await self).as_result(when_none)

    async def as_first_element_result(
        self, when_none: Callable[[], Any]
    ) -> Result[T, BaseException]:
        return (await self).as_first_element_result(when_none)

    # --- Construction ---

    @classmethod
    def from_factory(cls, factory: Callable[[], Awaitable[Any]]) -> AsyncOutcome[Any]:
        return cls(factory)

    @classmethod
    def from_awaitable(cls, awaitable: Awaitable[Any]) -> AsyncOutcome[Any]:
        """Wrap an awaitable; its result is normalized when it settles."""
        return cls(lambda: awaitable)

    @classmethod
    def settled(cls, outcome: Outcome[T]) -> AsyncOutcome[T]:
        async def resolved() -> Outcome[T]:
            return outcome

        return cls(resolved)

    @classmethod
    def success(cls, value: Any) -> AsyncOutcome[Any]:
        return cls.settled(success_of(value))

    @classmethod
    def failure(cls, error: BaseException) -> AsyncOutcome[Any]:
        return cls.settled(FailureOutcome(error))

    @classmethod
    def none(cls) -> AsyncOutcome[Any]:
        return cls.settled(NoneOutcome())

    @classmethod
    def create(cls, value: Any = None) -> AsyncOutcome[Any]:
        """Normalize any input into an ``AsyncOutcome``.

        An ``AsyncOutcome`` is returned unchanged, an awaitable is wrapped and
        its result normalized on settlement, anything else is classified by
        ``union_resolve``.
        """
        if isinstance(value, AsyncOutcome):
            return value
        if inspect.isawaitable(value):
            return cls.from_awaitable(value)
        return cls.settled(union_resolve(value))

    @classmethod
    def from_result(cls, result: Result[Any, BaseException]) -> AsyncOutcome[Any]:
        return cls.settled(outcome_from_result(result))

    # --- Join ---

    @classmethod
    def all(
        cls, *outcomes: AsyncOutcome[Any]
    ) -> Callable[[Callable[..., Any], Callable[..., Any]], AsyncOutcome[Any]]:
        """All-or-nothing concurrent join.

        Returns a chooser taking ``(on_any_failure, on_all_success)``. The
        AsyncOutcome it produces awaits every input concurrently, with no
        short-circuit, then calls ``on_all_success`` with each success payload
        (a bare value for a single-value success, as in ``Outcome.all``)
        when all inputs succeeded, or ``on_any_failure`` with every settled
        outcome otherwise. Arguments follow input order, not settlement order.
        If any input rejects, the first rejection in input order re-raises
        once all inputs have settled.
        """

        def choose(
            on_any_failure: Callable[..., Any],
            on_all_success: Callable[..., Any],
        ) -> AsyncOutcome[Any]:
            async def run() -> Outcome[Any]:
                results = await asyncio.gather(
                    *(o.to_outcome() for o in outcomes), return_exceptions=True
                )
                for res in results:
                    if isinstance(res, BaseException):
                        raise res
                try:
                    raw = await _await_if_needed(
                        join_branch(results, on_any_failure, on_all_success)
                    )
                except Exception as exc:
                    return captured_failure(exc, origin="join handler")
                return union_resolve(raw)

            return cls(run)

        return choose
