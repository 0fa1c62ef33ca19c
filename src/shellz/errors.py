"""Recoverable command errors + the fatal abort kind."""


class CommandError(RuntimeError):
    """A command failed to spawn or exited non-zero.

    Always raised chained to the underlying cause.
    """

    def __init__(
        self,
        program: str,
        params: list | None = None,
        returncode: int | None = None,
        output: str = "",
        reason: str = "",
    ):
        self.program = program
        self.params = list(params or [])
        self.returncode = returncode
        self.output = output
        self.reason = reason
        super().__init__(self._message())

    def _message(self) -> str:
        argv = " ".join(str(p) for p in [self.program, *self.params])
        if self.returncode is None:
            return f"{argv}: {self.reason or 'failed to start'}"
        msg = f"{argv}: exit status {self.returncode}"
        if self.output:
            msg += f"\n{self.output}"
        return msg


class Fatal(BaseException):
    """Unrecoverable failure; terminates the caller unless a harness intercepts it.

    Derives from BaseException so `except Exception` never swallows it.
    """

    def __init__(self, cause: BaseException | str):
        self.cause = cause
        super().__init__(str(cause))


def abort(cause: BaseException | str):
    """Raise Fatal chained to cause."""
    if isinstance(cause, BaseException):
        raise Fatal(cause) from cause
    raise Fatal(cause)


class ConfigError(ValueError):
    """The presets file is missing or malformed."""
