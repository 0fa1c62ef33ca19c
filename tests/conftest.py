"""Shared test fixtures."""

import pytest

from shellz.capture import OutputCapture


@pytest.fixture
def captured():
    """Capture stdout/stderr for the duration of a test."""
    c = OutputCapture()
    yield c
    c.close()


@pytest.fixture
def fake_execve(monkeypatch):
    """Replace os.execve with a recorder so exec() returns."""
    import os

    calls = []

    def execve(path, argv, env):
        calls.append((path, argv, env))

    monkeypatch.setattr(os, "execve", execve)
    return calls
