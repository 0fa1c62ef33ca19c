"""Tests for capture.py — process-wide stdout/stderr capture."""

import io
import os
import sys

import pytest

from shellz.capture import OutputCapture, capture_output
from shellz.command import Command
from shellz.errors import Fatal


def _write_both():
    print("to out")
    print("to err", file=sys.stderr)


def test_captures_stdout_and_stderr():
    c = capture_output()
    _write_both()
    assert c.get_out_string() == "to out\n"
    assert c.get_err_string() == "to err\n"
    assert c.get_out() == b"to out\n"
    assert c.get_err() == b"to err\n"


def test_restores_streams():
    orig_out, orig_err = sys.stdout, sys.stderr
    c = OutputCapture()
    assert sys.stdout is not orig_out
    assert sys.stderr is not orig_err
    c.close()
    assert sys.stdout is orig_out
    assert sys.stderr is orig_err


def test_accessor_order_does_not_matter():
    a = capture_output()
    _write_both()
    a_out = a.get_out()
    a_err = a.get_err()

    b = capture_output()
    _write_both()
    b_err = b.get_err()
    b_out = b.get_out()

    assert a_out == b_out
    assert a_err == b_err


def test_close_is_idempotent(monkeypatch):
    orig_out = sys.stdout
    c = capture_output()
    print("once")
    assert c.get_out_string() == "once\n"
    assert c.closed
    assert sys.stdout is orig_out

    replacement = io.StringIO()
    monkeypatch.setattr(sys, "stdout", replacement)
    c.close()
    c.close()
    assert sys.stdout is replacement
    assert c.get_out_string() == "once\n"


def test_writes_after_close_not_captured():
    c = capture_output()
    print("inside")
    c.close()
    print("outside")
    assert c.get_out_string() == "inside\n"


def test_context_manager():
    orig_out = sys.stdout
    with capture_output() as c:
        print("managed")
        assert not c.closed
    assert c.closed
    assert sys.stdout is orig_out
    assert c.get_out_string() == "managed\n"


def test_context_manager_restores_on_error():
    orig_out = sys.stdout
    with pytest.raises(ValueError):
        with capture_output():
            raise ValueError("boom")
    assert sys.stdout is orig_out


def test_captures_child_process_output():
    with capture_output() as c:
        Command("sh", "-c", "echo child-out; echo child-err >&2").set_logf(None).run()
    assert c.get_out_string() == "child-out\n"
    assert c.get_err_string() == "child-err\n"


def test_preserves_order_with_child_output():
    with capture_output() as c:
        print("before")
        Command("echo", "child").set_logf(None).run()
        print("after")
    assert c.get_out_string() == "before\nchild\nafter\n"


def test_large_output_does_not_block():
    payload = "x" * 300_000
    with capture_output() as c:
        print(payload)
    assert c.get_out_string() == payload + "\n"


def test_setup_failure_is_fatal(monkeypatch):
    def pipe():
        raise OSError("too many open files")

    orig_out = sys.stdout
    monkeypatch.setattr(os, "pipe", pipe)
    with pytest.raises(Fatal, match="too many open files"):
        OutputCapture()
    assert sys.stdout is orig_out


def _is_open(fd):
    try:
        os.fstat(fd)
        return True
    except OSError:
        return False


def test_second_pipe_failure_closes_first(monkeypatch):
    real_pipe = os.pipe
    created = []

    def pipe():
        if created:
            raise OSError("too many open files")
        fds = real_pipe()
        created.extend(fds)
        return fds

    orig_out = sys.stdout
    monkeypatch.setattr(os, "pipe", pipe)
    with pytest.raises(Fatal):
        OutputCapture()
    assert len(created) == 2
    assert not any(_is_open(fd) for fd in created)
    assert sys.stdout is orig_out


def test_fdopen_failure_closes_pipes(monkeypatch):
    real_pipe = os.pipe
    created = []

    def pipe():
        fds = real_pipe()
        created.extend(fds)
        return fds

    def fdopen(*args, **kwargs):
        raise OSError("fdopen failed")

    monkeypatch.setattr(os, "pipe", pipe)
    monkeypatch.setattr(os, "fdopen", fdopen)
    with pytest.raises(Fatal, match="fdopen failed"):
        OutputCapture()
    assert len(created) == 4
    assert not any(_is_open(fd) for fd in created)


def test_finalize_failure_is_fatal_and_restores_streams():
    orig_out, orig_err = sys.stdout, sys.stderr
    c = OutputCapture()

    def wait():
        raise OSError("read failed")

    c._out_drain.wait = wait
    with pytest.raises(Fatal, match="read failed"):
        c.close()
    assert sys.stdout is orig_out
    assert sys.stderr is orig_err
    assert c.closed
    c.close()
    assert sys.stdout is orig_out
