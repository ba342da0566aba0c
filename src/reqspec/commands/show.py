import logging
import sys

import click

from reqspec import aggregator, clickext, context, sources
from reqspec.errors import RequirementsError
from reqspec.extras import ExtrasSpecification
from reqspec.specification import NamedRequirements

logger = logging.getLogger(__name__)


def _confirm(prompt: str) -> bool:
    return click.confirm(prompt, default=True, err=True)


@click.command()
@click.argument("packages", nargs=-1)
@click.option(
    "-e",
    "--editable",
    "editables",
    multiple=True,
    help="install a local project in editable mode",
)
@click.option(
    "-r",
    "--requirement",
    "requirement_files",
    multiple=True,
    help="read requirements from a requirements.txt or pyproject.toml file",
)
@click.option(
    "-c",
    "--constraint",
    "constraint_files",
    multiple=True,
    help="constrain versions using the given file",
)
@click.option(
    "--override",
    "override_files",
    multiple=True,
    help="override versions using the given file",
)
@click.option(
    "--extra",
    "extras",
    multiple=True,
    type=clickext.PackageName(),
    help="include optional dependencies of this extra",
)
@click.option(
    "--all-extras",
    default=False,
    is_flag=True,
    help="include all optional dependencies",
)
@click.option(
    "-j",
    "--jobs",
    type=click.IntRange(min=1),
    default=None,
    help="maximum number of sources to read in parallel",
)
@click.pass_obj
def show(
    rctx: context.ReadContext,
    packages: tuple[str, ...],
    editables: tuple[str, ...],
    requirement_files: tuple[str, ...],
    constraint_files: tuple[str, ...],
    override_files: tuple[str, ...],
    extras: tuple[str, ...],
    all_extras: bool,
    jobs: int | None,
) -> None:
    """Show the combined requirements of all sources with inferred names"""
    confirm = _confirm if sys.stdin.isatty() else None
    requirements: list[sources.RequirementsSource] = [
        sources.from_package(p, confirm) for p in packages
    ]
    requirements.extend(sources.EditableSource(e) for e in editables)
    requirements.extend(sources.from_path(f) for f in requirement_files)

    if not requirements:
        raise click.UsageError("no packages, editables or requirements files given")

    try:
        spec = aggregator.from_sources(
            requirements,
            constraints=[sources.from_path(f) for f in constraint_files],
            overrides=[sources.from_path(f) for f in override_files],
            extras=ExtrasSpecification.from_args(extras, all_extras),
            connectivity=rctx.connectivity,
            working_dir=rctx.working_dir,
            settings=rctx.settings,
            max_jobs=jobs,
        )
        named = NamedRequirements.from_spec(spec)
    except (RequirementsError, OSError) as err:
        raise click.ClickException(str(err)) from err

    _print_named_requirements(named)


def _print_named_requirements(named: NamedRequirements) -> None:
    if named.project:
        click.echo(f"# project: {named.project}")
    if named.extras:
        click.echo(f"# extras: {', '.join(sorted(named.extras))}")
    if named.index_url:
        click.echo(f"--index-url {named.index_url}")
    for url in named.extra_index_urls:
        click.echo(f"--extra-index-url {url}")
    if named.no_index:
        click.echo("--no-index")
    for location in named.find_links:
        click.echo(f"--find-links {location}")
    for editable in named.editables:
        click.echo(str(editable))
    for req in named.requirements:
        click.echo(str(req))
    if named.constraints:
        click.echo("# constraints")
        for req in named.constraints:
            click.echo(str(req))
    if named.overrides:
        click.echo("# overrides")
        for req in named.overrides:
            click.echo(str(req))
