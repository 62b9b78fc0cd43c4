from __future__ import annotations

import pytest

from pubdist.output.console import MockConsole, RichConsole, Style


def test_mock_console_records_styles() -> None:
    console = MockConsole()
    console.header("Publishing foo 1.0.0")
    console.info("upload /foo/package.json")
    console.warning("no index")
    console.success("https://dist.mpflutter.com/foo/versions/1.0.0.tar.gz")

    assert console.messages == [
        "Publishing foo 1.0.0",
        "info: upload /foo/package.json",
        "warning: no index",
        "OK https://dist.mpflutter.com/foo/versions/1.0.0.tar.gz",
    ]
    assert console.has_warning()
    assert not console.has_error()
    assert console.outputs[0].style == Style.HEADER


def test_mock_console_find() -> None:
    console = MockConsole()
    console.error("archive upload failed")
    console.print("hint: check credentials", Style.DIM)
    assert console.has_error()
    assert len(console.find("upload")) == 1
    assert "hint: check credentials" in console.text


def test_rich_console_escapes_markup(capsys: pytest.CaptureFixture[str]) -> None:
    console = RichConsole()
    console.success("published [1.0.0]")
    console.warning("index [malformed]")

    captured = capsys.readouterr()
    assert "OK published [1.0.0]" in captured.out
    assert "warning: index [malformed]" in captured.err
