"""Click entry point — all commands."""

import sys

import click

from shellz import __version__, config, errors, log


@click.group()
@click.version_option(version=__version__, prog_name="shellz")
@click.option(
    "--file", "-f", "presets_file", default=None, help="Presets file (default: $SHELLZ_FILE or shellz.yml)"
)
@click.pass_context
def main(ctx, presets_file):
    """Run named command presets."""
    ctx.obj = {"file": presets_file}


def _presets(ctx) -> list[config.Preset]:
    try:
        return config.parse_presets(config.load_presets(ctx.obj["file"]))
    except errors.ConfigError as e:
        log.error(str(e))
        sys.exit(1)


def _preset(ctx, name: str) -> config.Preset:
    try:
        return config.find_preset(_presets(ctx), name)
    except errors.ConfigError as e:
        log.error(str(e))
        sys.exit(1)


@main.command(name="list")
@click.pass_context
def list_cmd(ctx):
    """Show all presets and their command lines."""
    for preset in _presets(ctx):
        log.info(f"{preset.name}: {' '.join(preset.cmd)}")


@main.command(context_settings={"ignore_unknown_options": True})
@click.argument("name")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def run(ctx, name, args):
    """Run a preset, streaming its output."""
    command = _preset(ctx, name).to_command(*args)
    try:
        command.run()
    except errors.CommandError as e:
        log.failure(str(e))
        sys.exit(1)


@main.command(context_settings={"ignore_unknown_options": True})
@click.argument("name")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def output(ctx, name, args):
    """Run a preset and print its trimmed combined output."""
    command = _preset(ctx, name).to_command(*args).set_logf(None)
    try:
        text = command.output()
    except errors.CommandError as e:
        log.failure(str(e))
        sys.exit(1)
    click.echo(text)


@main.command(name="exec", context_settings={"ignore_unknown_options": True})
@click.argument("name")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def exec_cmd(ctx, name, args):
    """Replace this process with a preset."""
    command = _preset(ctx, name).to_command(*args)
    try:
        command.exec()
    except errors.Fatal as e:
        log.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
