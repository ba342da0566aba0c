import logging
import pathlib

import click

from reqspec import clickext, context, lockfile
from reqspec.errors import RequirementsError

logger = logging.getLogger(__name__)


@click.command()
@click.argument(
    "output_file",
    type=clickext.ClickPath(dir_okay=False),
)
@click.option(
    "-U",
    "--upgrade",
    default=False,
    is_flag=True,
    help="ignore all pinned versions",
)
@click.option(
    "-P",
    "--upgrade-package",
    "upgrade_packages",
    multiple=True,
    type=clickext.PackageName(),
    help="ignore the pinned version of this package",
)
@click.pass_obj
def preferences(
    rctx: context.ReadContext,
    output_file: pathlib.Path,
    upgrade: bool,
    upgrade_packages: tuple[str, ...],
) -> None:
    """Show the pinned versions of a lockfile that re-resolution would keep"""
    try:
        prefs = lockfile.read_lockfile(
            output_file,
            lockfile.Upgrade.from_args(upgrade, upgrade_packages),
            working_dir=rctx.working_dir,
        )
    except (RequirementsError, OSError) as err:
        raise click.ClickException(str(err)) from err

    for pref in prefs:
        click.echo(str(pref))
