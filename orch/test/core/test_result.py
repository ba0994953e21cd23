"""Tests for orch.core.result module."""

import pytest

from orch.core.result import Err, Ok, Result, is_err, is_ok


class TestOk:
    """Tests for Ok type."""

    def test_ok_is_ok(self) -> None:
        result = Ok(42)
        assert result.is_ok() is True
        assert result.is_err() is False

    def test_ok_unwrap(self) -> None:
        """Ok.unwrap() returns the value."""
        assert Ok("v1.2.3").unwrap() == "v1.2.3"

    def test_ok_unwrap_or_ignores_default(self) -> None:
        assert Ok(42).unwrap_or(0) == 42

    def test_ok_map(self) -> None:
        """Ok.map() transforms the value."""
        assert Ok(21).map(lambda x: x * 2) == Ok(42)

    def test_ok_map_err_is_noop(self) -> None:
        result = Ok(42)
        assert result.map_err(lambda e: f"error: {e}") == Ok(42)

    def test_ok_repr(self) -> None:
        assert repr(Ok("main")) == "Ok('main')"

    def test_ok_frozen(self) -> None:
        """Ok is immutable."""
        result = Ok(42)
        with pytest.raises(AttributeError):
            result.value = 0  # type: ignore[misc]


class TestErr:
    """Tests for Err type."""

    def test_err_is_err(self) -> None:
        result = Err("boom")
        assert result.is_err() is True
        assert result.is_ok() is False

    def test_err_unwrap_raises(self) -> None:
        """Err.unwrap() raises ValueError carrying the error."""
        with pytest.raises(ValueError, match="called unwrap on Err: boom"):
            Err("boom").unwrap()

    def test_err_unwrap_or_returns_default(self) -> None:
        assert Err("boom").unwrap_or(False) is False

    def test_err_map_is_noop(self) -> None:
        result: Result[int, str] = Err("boom")
        assert result.map(lambda x: x * 2) == Err("boom")

    def test_err_map_err(self) -> None:
        """Err.map_err() transforms the error."""
        assert Err("boom").map_err(lambda e: f"git: {e}") == Err("git: boom")

    def test_err_repr(self) -> None:
        assert repr(Err("boom")) == "Err('boom')"


class TestTypeGuards:
    def test_is_ok(self) -> None:
        assert is_ok(Ok(1))
        assert not is_ok(Err("x"))

    def test_is_err(self) -> None:
        assert is_err(Err("x"))
        assert not is_err(Ok(1))

    def test_pattern_matching(self) -> None:
        """Results work with structural pattern matching."""

        def describe(result: Result[str | None, str]) -> str:
            match result:
                case Ok(None):
                    return "detached"
                case Ok(branch):
                    return f"on {branch}"
                case Err(e):
                    return f"failed: {e}"

        assert describe(Ok(None)) == "detached"
        assert describe(Ok("main")) == "on main"
        assert describe(Err("boom")) == "failed: boom"
