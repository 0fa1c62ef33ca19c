"""Tests for log.py — timestamped output + GA formatting."""

import re


def test_info(capsys):
    from shellz.log import info

    info("test message")
    out = capsys.readouterr().out
    assert re.match(r"\[\d{2}:\d{2}:\d{2}\] test message\n", out)


def test_failure(capsys):
    from shellz.log import failure

    failure("cat -b: exit status 1")
    out = capsys.readouterr().out
    assert "✗ cat -b: exit status 1" in out


def test_github_actions_failure(capsys, monkeypatch):
    monkeypatch.setenv("GITHUB_ACTIONS", "true")
    from shellz.log import failure

    failure("make build: exit status 2")
    out = capsys.readouterr().out
    assert "::error::make build: exit status 2" in out


def test_error(capsys):
    from shellz.log import error

    error("presets file not found")
    err = capsys.readouterr().err
    assert "ERROR: presets file not found" in err


def test_command(capsys):
    from shellz.log import command

    command("cat", "-b", 3)
    out = capsys.readouterr().out
    assert re.match(r"\[\d{2}:\d{2}:\d{2}\] \$ cat -b 3\n", out)


def test_command_writes_to_current_stdout(capsys):
    from shellz.capture import capture_output
    from shellz.log import command

    with capture_output() as c:
        command("env")
    assert "$ env" in c.get_out_string()
    assert capsys.readouterr().out == ""


def test_github_actions_error(capsys, monkeypatch):
    monkeypatch.setenv("GITHUB_ACTIONS", "true")
    from shellz.log import error

    error("unknown command: build")
    captured = capsys.readouterr()
    assert "::error::unknown command: build" in captured.out
    assert "ERROR: unknown command: build" in captured.err
