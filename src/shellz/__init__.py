try:
    from importlib.metadata import version

    __version__ = version("shellz")
except Exception:
    __version__ = "0.0.0"

from shellz.capture import OutputCapture, capture_output  # noqa: E402
from shellz.command import Command, display_args, native_args, new_command  # noqa: E402
from shellz.errors import CommandError, ConfigError, Fatal  # noqa: E402

__all__ = [
    "Command",
    "CommandError",
    "ConfigError",
    "Fatal",
    "OutputCapture",
    "capture_output",
    "display_args",
    "native_args",
    "new_command",
]
