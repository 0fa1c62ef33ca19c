"""Capture process-wide standard output and standard error, for tests.

Only one OutputCapture may be active at a time: it replaces sys.stdout and
sys.stderr for the whole process. Commands run while a capture is active
inherit the capture pipes, so their output is captured too.
"""

import os
import sys
import threading

from shellz import errors


class _Drain:
    """Reads a pipe to EOF on a background thread."""

    def __init__(self, fd: int):
        self._fd = fd
        self._chunks: list[bytes] = []
        self._error: OSError | None = None
        self._thread = threading.Thread(target=self._read, daemon=True)
        self._thread.start()

    def _read(self) -> None:
        try:
            while True:
                chunk = os.read(self._fd, 65536)
                if not chunk:
                    break
                self._chunks.append(chunk)
        except OSError as e:
            self._error = e
        finally:
            os.close(self._fd)

    def wait(self) -> bytes:
        """Block until EOF and return everything read."""
        self._thread.join()
        if self._error is not None:
            raise self._error
        return b"".join(self._chunks)


class OutputCapture:
    """Redirects sys.stdout/sys.stderr into pipes until closed.

    Always close it, either explicitly, through one of the getters, or by
    using it as a context manager.
    """

    def __init__(self):
        self._orig_stdout = sys.stdout
        self._orig_stderr = sys.stderr
        self._out = b""
        self._err = b""
        self._closed = False

        fds: list[int] = []
        try:
            out_r, out_w = os.pipe()
            fds += [out_r, out_w]
            err_r, err_w = os.pipe()
            fds += [err_r, err_w]
            self._out_w = os.fdopen(out_w, "w", buffering=1, encoding="utf-8")
            fds.remove(out_w)
            self._err_w = os.fdopen(err_w, "w", buffering=1, encoding="utf-8")
            fds.remove(err_w)
        except OSError as e:
            for fd in fds:
                os.close(fd)
            if hasattr(self, "_out_w"):
                self._out_w.close()
            errors.abort(e)

        self._out_drain = _Drain(out_r)
        self._err_drain = _Drain(err_r)

        sys.stdout = self._out_w
        sys.stderr = self._err_w

    def __enter__(self) -> "OutputCapture":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def get_out(self) -> bytes:
        """Close the capture and return the captured standard output."""
        self.close()
        return self._out

    def get_out_string(self) -> str:
        self.close()
        return self._out.decode(errors="replace")

    def get_err(self) -> bytes:
        """Close the capture and return the captured standard error."""
        self.close()
        return self._err

    def get_err_string(self) -> str:
        self.close()
        return self._err.decode(errors="replace")

    def close(self) -> None:
        """Flush and collect both pipes, then restore the original streams.

        Calling it again is a no-op.
        """
        if self._closed:
            return

        try:
            self._out_w.close()
            self._err_w.close()
            self._out = self._out_drain.wait()
            self._err = self._err_drain.wait()
        except OSError as e:
            errors.abort(e)
        finally:
            sys.stdout = self._orig_stdout
            sys.stderr = self._orig_stderr
            self._closed = True


def capture_output() -> OutputCapture:
    """Start capturing standard output and standard error."""
    return OutputCapture()
