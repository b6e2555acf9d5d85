"""Tests for rbi.core.result module."""

from __future__ import annotations

from rbi.core.result import Err, Ok, Result, is_err, is_ok


def _half(n: int) -> Result[int, str]:
    if n % 2:
        return Err(f"{n} is odd")
    return Ok(n // 2)


class TestOk:
    def test_accessors(self) -> None:
        ok = Ok(3)
        assert ok.is_ok() and not ok.is_err()
        assert ok.unwrap() == 3
        assert ok.unwrap_or(0) == 3

    def test_map(self) -> None:
        assert Ok(2).map(lambda v: v * 10) == Ok(20)
        assert Ok(2).map_err(str.upper) == Ok(2)


class TestErr:
    def test_accessors(self) -> None:
        err: Err[str] = Err("boom")
        assert err.is_err() and not err.is_ok()
        assert err.unwrap_or(7) == 7

    def test_map(self) -> None:
        assert Err("boom").map_err(str.upper) == Err("BOOM")


def test_pattern_matching() -> None:
    match _half(4):
        case Ok(value):
            assert value == 2
        case Err(_):
            raise AssertionError("expected Ok")

    match _half(3):
        case Ok(_):
            raise AssertionError("expected Err")
        case Err(message):
            assert message == "3 is odd"


def test_type_guards() -> None:
    assert is_ok(_half(2))
    assert is_err(_half(1))
