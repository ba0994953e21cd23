"""Tests for orch.output.console module."""

from __future__ import annotations

import pytest

from orch.output.console import (
    ConsoleProtocol,
    MockConsole,
    OutputRecord,
    RichConsole,
    Style,
)


class TestStyle:
    def test_str_conversion(self) -> None:
        assert str(Style.SUCCESS) == "success"
        assert str(Style.DIM) == "dim"


class TestMockConsole:
    """Test MockConsole captures output correctly."""

    def test_print_captures_message(self) -> None:
        console = MockConsole()
        console.print("hello")
        assert console.outputs == [OutputRecord("hello", Style.DEFAULT)]

    def test_shortcuts_prefix_messages(self) -> None:
        console = MockConsole()
        console.success("tagged")
        console.error("push failed")
        console.warning("retrying")
        console.info("releasing v1.0.0")
        console.hint("re-run with --resume")

        assert console.messages == [
            "OK tagged",
            "error: push failed",
            "warning: retrying",
            "info: releasing v1.0.0",
            "hint: re-run with --resume",
        ]

    def test_header_and_status_styles(self) -> None:
        console = MockConsole()
        console.header("installer (2/4)")
        console.status("waiting for assets")

        assert console.outputs[0].style == Style.HEADER
        assert console.outputs[1].style == Style.DIM

    def test_text_property(self) -> None:
        console = MockConsole()
        console.print("a")
        console.print("b")
        assert console.text == "a\nb"

    def test_has_error(self) -> None:
        console = MockConsole()
        assert not console.has_error()
        console.error("boom")
        assert console.has_error()

    def test_find(self) -> None:
        console = MockConsole()
        console.status("[truthdb] waiting for assets (missing 1): x")
        console.status("[installer] waiting for assets (missing 2): y, z")

        assert len(console.find("[truthdb]")) == 1
        assert len(console.find("waiting for assets")) == 2

    def test_count(self) -> None:
        console = MockConsole()
        console.status("one")
        console.status("two")
        console.success("done")
        assert console.count(Style.DIM) == 2
        assert console.count(Style.SUCCESS) == 1


class TestRichConsole:
    """Test RichConsole integration."""

    def test_implements_protocol(self) -> None:
        console: ConsoleProtocol = RichConsole()
        assert hasattr(console, "status")
        assert hasattr(console, "hint")

    def test_markup_in_messages_is_escaped(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Repo names like [truthdb] are printed literally."""
        console = RichConsole()
        console.error("[truthdb] push failed")

        out = capsys.readouterr().out
        assert "[truthdb] push failed" in out

    def test_header_prefix(self, capsys: pytest.CaptureFixture[str]) -> None:
        RichConsole().header("Summary")
        assert "==> Summary" in capsys.readouterr().out

    def test_stderr_console(self, capsys: pytest.CaptureFixture[str]) -> None:
        RichConsole(stderr=True).warning("slow")
        captured = capsys.readouterr()
        assert "slow" in captured.err
        assert captured.out == ""
