"""Timestamped output + GitHub Actions formatting."""

import os
import sys
from datetime import datetime


def _timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


def _is_github_actions() -> bool:
    return os.environ.get("GITHUB_ACTIONS") == "true"


def info(msg: str) -> None:
    print(f"[{_timestamp()}] {msg}", flush=True)


def failure(msg: str) -> None:
    if _is_github_actions():
        print(f"::error::{msg}", flush=True)
    info(f"  ✗ {msg}")


def error(msg: str) -> None:
    if _is_github_actions():
        print(f"::error::{msg}", flush=True)
    print(f"[{_timestamp()}] ERROR: {msg}", file=sys.stderr, flush=True)


def command(program: str, *params) -> None:
    """Default Command log hook: echo the command line before it runs."""
    argv = " ".join(str(p) for p in (program, *params))
    info(f"$ {argv}")
