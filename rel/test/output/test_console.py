"""Tests for rel.output.console module."""

from __future__ import annotations

import pytest

from rel.output.console import MockConsole, RichConsole, Style


class TestStyle:
    def test_str(self) -> None:
        assert str(Style.ACTION) == "action"


class TestMockConsole:
    """Test MockConsole recording."""

    def test_prefixes(self) -> None:
        console = MockConsole()
        console.success("done")
        console.error("bad")
        console.warning("careful")
        console.info("fyi")
        console.action("Running [a]: A")
        console.header("Title")

        assert console.messages == [
            "OK done",
            "error: bad",
            "warning: careful",
            "info: fyi",
            ">> Running [a]: A",
            "Title",
        ]

    def test_helpers(self) -> None:
        console = MockConsole()
        console.print("plain")
        console.print("quiet", Style.DIM)
        console.warning("w")

        assert console.has_warning()
        assert not console.has_error()
        assert console.count(Style.DIM) == 1
        assert [o.message for o in console.find("qu")] == ["quiet"]
        assert console.text == "plain\nquiet\nwarning: w"

    def test_newline(self) -> None:
        console = MockConsole()
        console.newline()
        assert console.messages == [""]


class TestRichConsole:
    """Test RichConsole renders without interpreting markup."""

    def test_brackets_survive(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = RichConsole()
        console.print("[red]not markup[/red]")
        console.action("Running [seed]: Seed data")

        out = capsys.readouterr().out
        assert "[red]not markup[/red]" in out
        assert ">> Running [seed]: Seed data" in out

    def test_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        RichConsole(stderr=True).error("boom")
        captured = capsys.readouterr()
        assert "error: boom" in captured.err
        assert captured.out == ""
