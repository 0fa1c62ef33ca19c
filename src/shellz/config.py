"""Parse shellz.yml command presets into Command objects."""

import os
from dataclasses import dataclass, field

import yaml

from shellz.command import Command
from shellz.errors import ConfigError

PRESETS_FILE = "shellz.yml"


@dataclass
class Preset:
    name: str
    cmd: list[str]
    env: dict[str, str] = field(default_factory=dict)
    dir: str | None = None
    quiet: bool = False
    file_order: int = 0

    def to_command(self, *extra) -> Command:
        """Build a Command for this preset, with extra params appended."""
        command = Command(self.cmd[0], *self.cmd[1:]).add_params(*extra).set_env_map(self.env)
        if self.dir:
            command.set_dir(self.dir)
        if self.quiet:
            command.set_logf(None)
        return command


def resolve_path(path: str | None = None) -> str:
    """Resolve the presets file to use.

    Order: explicit path → SHELLZ_FILE env → shellz.yml.
    """
    return path or os.environ.get("SHELLZ_FILE") or PRESETS_FILE


def load_presets(path: str | None = None) -> dict:
    """Read the presets file and return the raw YAML document."""
    path = resolve_path(path)
    try:
        with open(path) as f:
            doc = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"presets file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e

    if doc is None:
        return {}
    if not isinstance(doc, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    return doc


def _parse_cmd(name: str, raw) -> list[str]:
    if isinstance(raw, str):
        cmd = raw.split()
    elif isinstance(raw, list):
        cmd = [str(part) for part in raw]
    else:
        cmd = []
    if not cmd:
        raise ConfigError(f"command {name!r}: cmd must be a non-empty string or list")
    return cmd


def _parse_env(name: str, raw) -> dict[str, str]:
    if raw is None:
        return {}
    if isinstance(raw, list):
        # Convert list format ["KEY=value", ...] to dict
        parsed = {}
        for item in raw:
            k, _, v = str(item).partition("=")
            parsed[k] = v
        return parsed
    if isinstance(raw, dict):
        return {str(k): "" if v is None else str(v) for k, v in raw.items()}
    raise ConfigError(f"{name}: env must be a mapping or a list of KEY=value")


def parse_presets(doc: dict) -> list[Preset]:
    """Parse a presets document into Preset objects, in file order.

    x-shellz top-level env is merged under each command's env;
    a per-command dir overrides the x-shellz default.
    """
    defaults = doc.get("x-shellz") or {}
    if not isinstance(defaults, dict):
        raise ConfigError("x-shellz must be a mapping")
    commands = doc.get("commands") or {}
    if not isinstance(commands, dict):
        raise ConfigError("commands must be a mapping")

    default_env = _parse_env("x-shellz", defaults.get("env"))
    presets = []

    for idx, (name, spec) in enumerate(commands.items()):
        if not isinstance(spec, dict):
            # Shorthand: `name: make build`
            spec = {"cmd": spec}

        env = {**default_env, **_parse_env(name, spec.get("env"))}
        presets.append(
            Preset(
                name=str(name),
                cmd=_parse_cmd(name, spec.get("cmd")),
                env=env,
                dir=spec.get("dir") or defaults.get("dir"),
                quiet=bool(spec.get("quiet", defaults.get("quiet", False))),
                file_order=idx,
            )
        )

    return presets


def find_preset(presets: list[Preset], name: str) -> Preset:
    """Return the preset called name."""
    for preset in presets:
        if preset.name == name:
            return preset
    raise ConfigError(f"unknown command: {name}")
