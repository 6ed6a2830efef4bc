"""Railway-style result values.

A fallible call returns either ``Ok(value)`` or ``Err(error)`` instead of
raising, and callers chain steps with :func:`and_then` / :func:`map_ok`,
returning early on the first ``Err``::

    def parse_port(raw: str) -> Result[int, str]:
        return Ok(int(raw)) if raw.isdigit() else Err(f"not a number: {raw}")

    and_then(lambda p: Ok(p) if p > 1024 else Err("privileged"), parse_port("8080"))
    # Ok(value=8080)

    transpose_results([Ok(1), Ok(2)])          # Ok(value=[1, 2])
    transpose_results([Ok(1), Err("x")])       # Err(error='x')
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")
F = TypeVar("F")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful result carrying ``value``."""

    value: T


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed result carrying ``error``."""

    error: E


Result = Union[Ok[T], Err[E]]


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def is_ok(result: Result[Any, Any]) -> bool:
    return isinstance(result, Ok)


def is_err(result: Result[Any, Any]) -> bool:
    return isinstance(result, Err)


# ---------------------------------------------------------------------------
# Unwrapping
# ---------------------------------------------------------------------------


def unwrap(result: Result[T, Any]) -> T:
    """Return the ``Ok`` value or raise ``ValueError`` carrying the error."""
    if isinstance(result, Ok):
        return result.value
    raise ValueError(f"unwrap called on Err: {result.error!r}")


def unwrap_or(default: T, result: Result[T, Any]) -> T:
    """Return the ``Ok`` value, or *default* for an ``Err``."""
    if isinstance(result, Ok):
        return result.value
    return default


# ---------------------------------------------------------------------------
# Combinators
# ---------------------------------------------------------------------------


def map_ok(func: Callable[[T], U], result: Result[T, E]) -> Result[U, E]:
    """Apply *func* to an ``Ok`` value; pass an ``Err`` through untouched."""
    if isinstance(result, Ok):
        return Ok(func(result.value))
    return result


def map_err(func: Callable[[E], F], result: Result[T, E]) -> Result[T, F]:
    """Apply *func* to an ``Err`` error; pass an ``Ok`` through untouched."""
    if isinstance(result, Err):
        return Err(func(result.error))
    return result


def and_then(func: Callable[[T], Result[U, E]], result: Result[T, E]) -> Result[U, E]:
    """Bind: feed an ``Ok`` value into *func*, short-circuit on ``Err``."""
    if isinstance(result, Ok):
        return func(result.value)
    return result


def and_then_err(func: Callable[[E], Result[T, F]], result: Result[T, E]) -> Result[T, F]:
    """Bind on the error track: feed an ``Err`` into *func*, keep ``Ok``."""
    if isinstance(result, Err):
        return func(result.error)
    return result


def or_else(func: Callable[[E], Result[T, F]], result: Result[T, E]) -> Result[T, F]:
    """Recover from an ``Err`` by calling *func*; an ``Ok`` is returned as-is."""
    return and_then_err(func, result)


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------


def transpose_results(results: Iterable[Result[T, E]]) -> Result[list[T], E]:
    """Turn a sequence of results into a result of a list.

    Returns ``Ok([...])`` when every item is ``Ok``, otherwise the first
    ``Err`` encountered.
    """
    values: list[T] = []
    for result in results:
        if isinstance(result, Err):
            return result
        values.append(result.value)
    return Ok(values)


def collect_oks(results: Iterable[Result[T, Any]]) -> list[T]:
    """Values of every ``Ok``, errors dropped."""
    return [r.value for r in results if isinstance(r, Ok)]


def collect_errs(results: Iterable[Result[Any, E]]) -> list[E]:
    """Errors of every ``Err``, values dropped."""
    return [r.error for r in results if isinstance(r, Err)]
