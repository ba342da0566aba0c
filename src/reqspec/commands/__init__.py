import importlib.metadata

import click

ENTRY_POINT_GROUP = "reqspec.cli"


def _load_commands() -> list[click.Command]:
    """Load subcommands registered in the reqspec.cli entry point group

    The entry point name must match the click command name.
    """
    loaded: dict[str, click.Command] = {}

    for ep in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
        try:
            command = ep.load()
        except Exception as e:
            raise RuntimeError(
                f"Unable to load {ENTRY_POINT_GROUP!r} entry point {ep.value!r}"
            ) from e
        if not isinstance(command, click.Command):
            raise RuntimeError(f"{ep.value!r} is not a click.Command: {command}")
        if command.name != ep.name:
            raise ValueError(
                f"{ep.value!r}: command name {command.name!r} does not match "
                f"entry point name {ep.name!r}"
            )
        if ep.name in loaded:
            raise ValueError(f"{ep.name!r} is defined more than once")
        loaded[ep.name] = command

    return [loaded[name] for name in sorted(loaded)]


commands = _load_commands()
