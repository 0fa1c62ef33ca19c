"""Command builder — run, capture output, or exec external programs."""

import io
import os
import shutil
import subprocess
import sys
from typing import NoReturn

from shellz import errors, log


def native_args(params: list) -> list:
    """Arguments as handed to spawn: str, bytes and path-likes pass through."""
    return [p if isinstance(p, (str, bytes, os.PathLike)) else str(p) for p in params]


def display_args(params: list) -> list[str]:
    """Arguments rendered as strings: str verbatim, everything else via str()."""
    return [p if isinstance(p, str) else str(p) for p in params]


def _fileno(stream) -> int | None:
    """Return the stream's OS-level descriptor, or None if it has none."""
    try:
        return stream.fileno()
    except (AttributeError, OSError, ValueError):
        # io.UnsupportedOperation is both an OSError and a ValueError
        return None


def _writer(stream):
    """Resolve an output stream into (Popen target, sink to copy into)."""
    if stream is None:
        return None, None
    fd = _fileno(stream)
    if fd is not None:
        stream.flush()
        return fd, None
    return subprocess.PIPE, stream


def _emit(sink, data: bytes | None) -> None:
    if sink is None or not data:
        return
    if isinstance(sink, io.TextIOBase):
        sink.write(data.decode(errors="replace"))
    else:
        sink.write(data)
    sink.flush()


class Command:
    """A command to be spawned, configured fluently.

    Every setter mutates and returns the same instance. Nothing is checked
    until one of the execution methods is called.
    """

    def __init__(self, program: str, *params):
        self._program = program
        self._params = list(params)
        self._logf = log.command
        self._env: dict[str, str] = {}
        self._dir = ""
        self._stdin = None
        self._stdout = None
        self._stderr = None

    def __repr__(self) -> str:
        return f"Command({self._program!r}, {self._params!r})"

    @property
    def program(self) -> str:
        return self._program

    @property
    def params(self) -> list:
        return list(self._params)

    @property
    def env(self) -> dict[str, str]:
        return dict(self._env)

    @property
    def dir(self) -> str:
        return self._dir

    def args(self) -> list:
        """Full argv as passed to spawn (program first)."""
        return [self._program, *native_args(self._params)]

    # Configuration

    def add_params(self, *params) -> "Command":
        self._params.extend(params)
        return self

    def add_params_string(self, *params: str) -> "Command":
        self._params.extend(str(p) for p in params)
        return self

    def set_logf(self, logf) -> "Command":
        """Override the log hook for this command. None disables logging."""
        self._logf = logf
        return self

    def set_dir(self, dir: str | None) -> "Command":
        self._dir = dir or ""
        return self

    def set_stdin(self, stdin) -> "Command":
        self._stdin = stdin
        return self

    def set_stdout(self, stdout) -> "Command":
        self._stdout = stdout
        return self

    def set_stderr(self, stderr) -> "Command":
        self._stderr = stderr
        return self

    def set_env(self, key: str, value: str) -> "Command":
        self._env[key] = value
        return self

    def set_env_map(self, env: dict[str, str]) -> "Command":
        for key, value in env.items():
            self._env[key] = value
        return self

    # Execution

    def run(self) -> None:
        """Run the command, streaming to the configured (or current) stdio.

        Raises CommandError on spawn failure or non-zero exit.
        """
        stdout = self._stdout if self._stdout is not None else sys.stdout
        stderr = self._stderr if self._stderr is not None else sys.stderr
        self._execute(stdout, stderr, capture=False)

    def must_run(self) -> None:
        """Like run, but any failure is Fatal."""
        try:
            self.run()
        except errors.CommandError as e:
            errors.abort(e)

    def output(self) -> str:
        """Run the command and return its combined stdout/stderr, trimmed.

        A stderr override still receives stderr separately; stdout overrides
        are ignored.
        """
        out = self._execute(None, self._stderr, capture=True)
        return out.decode(errors="replace").strip()

    def must_output(self) -> str:
        """Like output, but any failure is Fatal."""
        try:
            return self.output()
        except errors.CommandError as e:
            errors.abort(e)

    def exec(self) -> NoReturn:
        """Replace the current process image with the command. Never returns on success.

        Stdio overrides are ignored: the new image inherits fds 0/1/2.
        Every failure is Fatal.
        """
        argv = [self._program, *display_args(self._params)]
        if self._logf is not None:
            self._logf(self._program, *self._params)

        env = self._environ()
        path = shutil.which(self._program, path=env.get("PATH", os.defpath))
        if path is None:
            errors.abort(
                errors.CommandError(
                    self._program,
                    self._params,
                    reason="executable file not found in $PATH",
                )
            )
        path = os.path.abspath(path)

        for stream in (sys.stdout, sys.stderr):
            if stream is not None:
                stream.flush()

        try:
            try:
                if self._dir:
                    os.chdir(self._dir)
                os.execve(path, argv, env)
            except (OSError, ValueError) as e:
                raise errors.CommandError(self._program, self._params, reason=str(e)) from e
        except errors.CommandError as e:
            errors.abort(e)

    def _environ(self) -> dict[str, str]:
        """Inherited environment with overrides applied; overrides win."""
        return {**os.environ, **{k: str(v) for k, v in self._env.items()}}

    def _stdin_source(self):
        """Resolve stdin into (Popen target, bytes to feed)."""
        stdin = self._stdin
        if stdin is None:
            # Inherit the current sys.stdin when it is a real file, else fd 0.
            fd = _fileno(sys.stdin) if sys.stdin is not None else None
            return fd, None
        if isinstance(stdin, str):
            return subprocess.PIPE, stdin.encode()
        if isinstance(stdin, bytes):
            return subprocess.PIPE, stdin
        fd = _fileno(stdin)
        if fd is not None:
            return fd, None
        data = stdin.read()
        if isinstance(data, str):
            data = data.encode()
        return subprocess.PIPE, data

    def _execute(self, stdout, stderr, capture: bool) -> bytes:
        if self._logf is not None:
            self._logf(self._program, *self._params)

        stdin_target, input_data = self._stdin_source()
        if capture:
            stdout_target, stdout_sink = subprocess.PIPE, None
            if stderr is None:
                stderr_target, stderr_sink = subprocess.STDOUT, None
            else:
                stderr_target, stderr_sink = _writer(stderr)
        else:
            stdout_target, stdout_sink = _writer(stdout)
            stderr_target, stderr_sink = _writer(stderr)

        argv = self.args()
        try:
            proc = subprocess.Popen(
                argv,
                stdin=stdin_target,
                stdout=stdout_target,
                stderr=stderr_target,
                env=self._environ(),
                cwd=self._dir or None,
            )
            out, err = proc.communicate(input_data)
        except (OSError, ValueError, TypeError) as e:
            # ValueError: embedded NUL in argv or env; TypeError: non-str env key
            raise errors.CommandError(self._program, self._params, reason=str(e)) from e

        try:
            _emit(stdout_sink, out)
            _emit(stderr_sink, err)
        except (OSError, ValueError, TypeError) as e:
            raise errors.CommandError(
                self._program, self._params, reason=f"writing output: {e}"
            ) from e

        if proc.returncode != 0:
            output = out.decode(errors="replace").strip() if capture and out else ""
            cause = subprocess.CalledProcessError(proc.returncode, argv, out, err)
            raise errors.CommandError(
                self._program, self._params, returncode=proc.returncode, output=output
            ) from cause

        return out if capture and out is not None else b""


def new_command(program: str, *params) -> Command:
    """Create a new Command."""
    return Command(program, *params)
