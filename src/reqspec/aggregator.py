"""Combine requirement sources into a single specification

Sources are grouped by role. Requirements sources contribute everything
they contain. Everything read from a constraints source becomes a
constraint and everything read from an overrides source becomes an
override. Index options merge the same way for all roles: the first
``--index-url`` wins and a different one later on is an error.
"""

from __future__ import annotations

import concurrent.futures
import functools
import logging
import pathlib
import typing

from packaging.requirements import Requirement

from . import sources
from .errors import ConflictError, RoleViolationError
from .extras import ExtrasSpecification
from .read import Connectivity
from .settings import Settings
from .specification import RequirementsSpecification

logger = logging.getLogger(__name__)


def _read_sources(
    source_list: typing.Sequence[sources.RequirementsSource],
    *,
    extras: ExtrasSpecification,
    connectivity: Connectivity,
    working_dir: pathlib.Path,
    settings: Settings,
    max_jobs: int | None,
) -> list[RequirementsSpecification]:
    """Read sources, possibly in parallel; results keep the input order"""
    read = functools.partial(
        sources.read_source,
        extras=extras,
        connectivity=connectivity,
        working_dir=working_dir,
        settings=settings,
    )
    if not max_jobs or max_jobs == 1 or len(source_list) < 2:
        return [read(source) for source in source_list]

    logger.debug("reading %d sources with %d threads", len(source_list), max_jobs)
    with concurrent.futures.ThreadPoolExecutor(
        max_workers=max_jobs, thread_name_prefix="reqspec-read"
    ) as executor:
        return list(executor.map(read, source_list))


def _merge_index_options(
    spec: RequirementsSpecification, source: RequirementsSpecification
) -> None:
    if source.index_url is not None:
        if spec.index_url is not None and spec.index_url != source.index_url:
            raise ConflictError(spec.index_url, source.index_url)
        spec.index_url = source.index_url
    spec.no_index |= source.no_index
    spec.extra_index_urls.extend(source.extra_index_urls)
    spec.find_links.extend(source.find_links)


def _named_only(
    role: str, source: RequirementsSpecification
) -> typing.Iterator[Requirement]:
    """Everything a source requires, constrains or overrides"""
    for requirement in source.requirements:
        if not isinstance(requirement, Requirement):
            raise RoleViolationError(role, requirement)
        yield requirement
    yield from source.constraints
    yield from source.overrides
    for editable in source.editables:
        logger.warning("ignoring editable %s, not allowed as %s", editable, role)


def from_sources(
    requirements: typing.Sequence[sources.RequirementsSource],
    constraints: typing.Sequence[sources.RequirementsSource] = (),
    overrides: typing.Sequence[sources.RequirementsSource] = (),
    extras: ExtrasSpecification | None = None,
    connectivity: Connectivity = Connectivity.ONLINE,
    working_dir: pathlib.Path | None = None,
    settings: Settings | None = None,
    max_jobs: int | None = None,
) -> RequirementsSpecification:
    """Read the combined requirements and constraints from a set of sources"""
    extras = extras or ExtrasSpecification.none()
    working_dir = working_dir or pathlib.Path.cwd()
    settings = settings or Settings()
    if max_jobs is None:
        max_jobs = settings.max_jobs
    read_kwargs: dict[str, typing.Any] = dict(
        extras=extras,
        connectivity=connectivity,
        working_dir=working_dir,
        settings=settings,
        max_jobs=max_jobs,
    )

    spec = RequirementsSpecification()

    # A requirements file can contain a `-c constraints.txt` directive, so
    # reading requirements can also add constraints.
    for source in _read_sources(requirements, **read_kwargs):
        spec.requirements.extend(source.requirements)
        spec.constraints.extend(source.constraints)
        spec.overrides.extend(source.overrides)
        spec.extras.update(source.extras)
        spec.editables.extend(source.editables)
        # Use the first project name discovered.
        if spec.project is None:
            spec.project = source.project
        _merge_index_options(spec, source)

    # Treat everything in a constraints source as a constraint.
    for source in _read_sources(constraints, **read_kwargs):
        spec.constraints.extend(_named_only("constraints", source))
        _merge_index_options(spec, source)

    # Treat everything in an overrides source as an override.
    for source in _read_sources(overrides, **read_kwargs):
        spec.overrides.extend(_named_only("overrides", source))
        _merge_index_options(spec, source)

    logger.debug(
        "read %d requirements, %d constraints, %d overrides, %d editables",
        len(spec.requirements),
        len(spec.constraints),
        len(spec.overrides),
        len(spec.editables),
    )
    return spec


def from_simple_sources(
    requirements: typing.Sequence[sources.RequirementsSource],
    connectivity: Connectivity = Connectivity.ONLINE,
    working_dir: pathlib.Path | None = None,
    settings: Settings | None = None,
) -> RequirementsSpecification:
    """Read the requirements from a set of sources"""
    return from_sources(
        requirements,
        extras=ExtrasSpecification.none(),
        connectivity=connectivity,
        working_dir=working_dir,
        settings=settings,
    )
