import builtins
from collections.abc import Iterator

import pytest

import wlparse.wl_repl
from conftest import parse
from wlparse.wl_repl import bracket_depth, print_errors, print_traceback, start_repl


def feed(monkeypatch: pytest.MonkeyPatch, *lines: str) -> list[str]:
    """Replaces `input` with a scripted session; returns the prompts shown."""
    prompts: list[str] = []
    script: Iterator[str] = iter(lines)

    def fake_input(prompt: str) -> str:
        prompts.append(prompt)
        try:
            return next(script)
        except StopIteration:
            raise EOFError from None

    monkeypatch.setattr(builtins, "input", fake_input)
    return prompts


@pytest.mark.parametrize("word", ["quit", "exit", "  exit  "])  # type: ignore[misc]
def test_repl_quit(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], word: str
) -> None:
    feed(monkeypatch, word)
    start_repl()
    out = capsys.readouterr().out
    assert "wlparse REPL [format=fullform]" in out
    assert "Exiting wlparse REPL." in out


def test_repl_prints_fullform(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    feed(monkeypatch, "a + b c", "quit")
    start_repl()
    assert "Plus[a,Times[b,c]]" in capsys.readouterr().out


def test_repl_eof_exits(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    feed(monkeypatch)
    start_repl()
    assert capsys.readouterr().out.endswith("Exiting wlparse REPL.\n")


def test_repl_keyboard_interrupt(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    def interrupt(prompt: str) -> str:
        raise KeyboardInterrupt

    monkeypatch.setattr(builtins, "input", interrupt)
    start_repl()
    assert "Exiting wlparse REPL." in capsys.readouterr().out


def test_repl_continues_open_brackets(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    prompts = feed(monkeypatch, "Module[{x},", "  x + 1", "]", "quit")
    start_repl()
    assert prompts == [">>> ", "... ", "... ", ">>> "]
    assert "Module[List[x],Plus[x,1]]" in capsys.readouterr().out


def test_repl_reports_syntax_errors(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    feed(monkeypatch, "f[a)]", "quit")
    start_repl()
    assert "[syntax] >>> 1:4: Unexpected token ')'" in capsys.readouterr().out


def test_repl_switches_format(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    feed(monkeypatch, ":json", "x", ":fullform", "y", "quit")
    start_repl()
    out = capsys.readouterr().out
    assert "[mode] >>> Output format json" in out
    assert '"kind": "File"' in out
    assert "[mode] >>> Output format fullform" in out
    assert "\ny\n" in out


def test_repl_verbose_prints_tree(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    feed(monkeypatch, ":verbose", "x", ":verbose", "quit")
    start_repl()
    out = capsys.readouterr().out
    assert "[mode] >>> Verbose mode ON" in out
    assert "[tree] >>> Node(File" in out
    assert "[mode] >>> Verbose mode OFF" in out


def test_repl_resolve(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    feed(monkeypatch, ":resolve x", "x = 1; x", ":resolve x", ":resolve", "quit")
    start_repl()
    out = capsys.readouterr().out
    assert "[error] >>> Nothing parsed yet." in out
    assert "[resolve] >>> x at 1:1: defined at 1:1" in out
    assert "[error] >>> Usage: :resolve NAME" in out


def test_repl_prints_traceback(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    def broken(*args: object) -> None:
        raise RuntimeError("boom")

    monkeypatch.setattr(wlparse.wl_repl, "tokenize", broken)
    feed(monkeypatch, "x", "quit")
    start_repl()
    out = capsys.readouterr().out
    assert "[error] >>>" in out
    assert "RuntimeError: boom" in out


def test_print_traceback(capsys: pytest.CaptureFixture[str]) -> None:
    try:
        raise ValueError("bad")
    except ValueError:
        print_traceback()
    assert "ValueError: bad" in capsys.readouterr().out


def test_print_errors(capsys: pytest.CaptureFixture[str]) -> None:
    print_errors(parse("f[a"))
    assert capsys.readouterr().out.strip() == "[syntax] >>> 1:4: ']' expected"


@pytest.mark.parametrize(  # type: ignore[misc]
    "text,depth",
    [
        ("f[x]", 0),
        ("Module[{x},", 1),
        ("{{", 2),
        ("(a", 1),
        ('"[" <> f[', 1),
        ('"a\\"[" <> x', 0),
        ("]", -1),
        ("f[{(a)", 2),
    ],
)
def test_bracket_depth(text: str, depth: int) -> None:
    assert bracket_depth(text) == depth
