"""Tests for the railway Result helpers (quicktemplates.result)."""

from __future__ import annotations

import pytest

from quicktemplates.result import (
    Err,
    Ok,
    and_then,
    and_then_err,
    collect_errs,
    collect_oks,
    is_err,
    is_ok,
    map_err,
    map_ok,
    or_else,
    transpose_results,
    unwrap,
    unwrap_or,
)

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Inspection
# ---------------------------------------------------------------------------


class TestInspection:
    def test_is_ok_and_is_err(self):
        assert is_ok(Ok(1)) and not is_err(Ok(1))
        assert is_err(Err("boom")) and not is_ok(Err("boom"))

    def test_unwrap_ok(self):
        assert unwrap(Ok("value")) == "value"

    def test_unwrap_err_raises(self):
        with pytest.raises(ValueError, match="boom"):
            unwrap(Err("boom"))

    def test_unwrap_or(self):
        assert unwrap_or(0, Ok(5)) == 5
        assert unwrap_or(0, Err("boom")) == 0

    def test_results_are_immutable(self):
        result = Ok(1)
        with pytest.raises(AttributeError):
            result.value = 2  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Chaining
# ---------------------------------------------------------------------------


class TestChaining:
    def test_map_ok_only_touches_ok(self):
        assert map_ok(lambda v: v * 2, Ok(3)) == Ok(6)
        assert map_ok(lambda v: v * 2, Err("e")) == Err("e")

    def test_map_err_only_touches_err(self):
        assert map_err(str.upper, Err("e")) == Err("E")
        assert map_err(str.upper, Ok(1)) == Ok(1)

    def test_and_then_short_circuits(self):
        def halve(v: int):
            return Ok(v // 2) if v % 2 == 0 else Err(f"{v} is odd")

        assert and_then(halve, Ok(4)) == Ok(2)
        assert and_then(halve, Ok(3)) == Err("3 is odd")
        assert and_then(halve, Err("earlier")) == Err("earlier")

    def test_error_recovery(self):
        assert and_then_err(lambda e: Ok(len(e)), Err("abc")) == Ok(3)
        assert and_then_err(lambda e: Ok(len(e)), Ok(9)) == Ok(9)
        assert or_else(lambda e: Ok("fallback"), Err("x")) == Ok("fallback")


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------


class TestCollections:
    def test_transpose_all_ok(self):
        assert transpose_results([Ok(1), Ok(2)]) == Ok([1, 2])

    def test_transpose_returns_first_err(self):
        assert transpose_results([Ok(1), Err("a"), Err("b")]) == Err("a")

    def test_collect(self):
        results = [Ok(1), Err("a"), Ok(2), Err("b")]
        assert collect_oks(results) == [1, 2]
        assert collect_errs(results) == ["a", "b"]
