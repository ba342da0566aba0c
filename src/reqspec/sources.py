"""Read a single requirements source into a specification"""

from __future__ import annotations

import dataclasses
import logging
import pathlib
import typing

import tomlkit
from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import InvalidName, NormalizedName, canonicalize_name
from tomlkit.exceptions import ParseError as TOMLParseError

from . import extras as extras_mod
from . import requirements_file
from .errors import InvalidNameError, ParseError
from .log import source_ctxvar_context
from .read import Connectivity
from .settings import Settings
from .specification import RequirementsSpecification

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class PackageSource:
    """A package given on the command line, e.g. ``flask`` or ``./project``"""

    text: str

    def __str__(self) -> str:
        return self.text


@dataclasses.dataclass(frozen=True, slots=True)
class EditableSource:
    """An editable path given on the command line, e.g. ``-e ../flask``"""

    text: str

    def __str__(self) -> str:
        return f"-e {self.text}"


@dataclasses.dataclass(frozen=True, slots=True)
class RequirementsTxtSource:
    """A ``requirements.txt`` file, e.g. ``-r requirements.txt``"""

    path: str | pathlib.Path

    def __str__(self) -> str:
        return str(self.path)


@dataclasses.dataclass(frozen=True, slots=True)
class PyprojectTomlSource:
    """A ``pyproject.toml`` manifest"""

    path: pathlib.Path

    def __str__(self) -> str:
        return str(self.path)


RequirementsSource = (
    PackageSource | EditableSource | RequirementsTxtSource | PyprojectTomlSource
)


def from_path(path: str | pathlib.Path) -> RequirementsSource:
    """Return a manifest source for ``pyproject.toml``, otherwise a file source"""
    if pathlib.Path(path).name == "pyproject.toml":
        return PyprojectTomlSource(pathlib.Path(path))
    return RequirementsTxtSource(path)


def from_package(
    name: str, confirm: typing.Callable[[str], bool] | None = None
) -> RequirementsSource:
    """Return a package source, or a file source if the user meant ``-r``

    A value like ``requirements.txt`` that names an existing file was
    probably meant as a requirements file. ``confirm`` is asked whether to
    read it as one.
    """
    if confirm is not None and name.endswith((".txt", ".in")):
        if pathlib.Path(name).is_file():
            prompt = (
                f"`{name}` looks like a requirements file but was passed as a "
                f"package name. Did you mean `-r {name}`?"
            )
            if confirm(prompt):
                return RequirementsTxtSource(pathlib.Path(name))
    return PackageSource(name)


def read_source(
    source: RequirementsSource,
    extras: extras_mod.ExtrasSpecification | None = None,
    connectivity: Connectivity = Connectivity.ONLINE,
    working_dir: pathlib.Path | None = None,
    settings: Settings | None = None,
) -> RequirementsSpecification:
    """Read the requirements and constraints from a source"""
    extras = extras or extras_mod.ExtrasSpecification.none()
    working_dir = working_dir or pathlib.Path.cwd()
    settings = settings or Settings()

    with source_ctxvar_context(source):
        logger.debug("reading source")
        match source:
            case PackageSource(text=text):
                requirement = requirements_file.parse_requirement(text, working_dir)
                return RequirementsSpecification(requirements=[requirement])
            case EditableSource(text=text):
                editable = requirements_file.parse_editable(text, working_dir)
                return RequirementsSpecification(editables=[editable])
            case RequirementsTxtSource(path=path):
                return _read_requirements_txt(path, working_dir, connectivity)
            case PyprojectTomlSource(path=path):
                if not path.is_absolute():
                    path = working_dir / path
                return _read_pyproject_toml(path, extras, settings)
    raise TypeError(f"unsupported requirements source {source!r}")


def _read_requirements_txt(
    path: str | pathlib.Path,
    working_dir: pathlib.Path,
    connectivity: Connectivity,
) -> RequirementsSpecification:
    requirements_txt = requirements_file.parse_requirements_txt(
        path, working_dir, connectivity
    )
    return RequirementsSpecification(
        requirements=[
            entry.requirement
            for entry in requirements_txt.requirements
            if not entry.editable
        ],
        constraints=requirements_txt.constraints,
        editables=requirements_txt.editables,
        index_url=requirements_txt.index_url,
        extra_index_urls=requirements_txt.extra_index_urls,
        no_index=requirements_txt.no_index,
        find_links=requirements_txt.find_links,
    )


def _parse_requirements(
    path: pathlib.Path, field: str, values: typing.Any
) -> list[Requirement]:
    if not isinstance(values, list):
        raise ParseError(f"Failed to parse `{path}`: `{field}` must be a list")
    requirements = []
    for value in values:
        try:
            requirements.append(Requirement(str(value)))
        except InvalidRequirement as err:
            raise ParseError(
                f"Failed to parse `{path}`: invalid requirement `{value}` in `{field}`: {err}"
            ) from err
    return requirements


def _read_pyproject_toml(
    path: pathlib.Path,
    extras: extras_mod.ExtrasSpecification,
    settings: Settings,
) -> RequirementsSpecification:
    contents = path.read_text(encoding="utf-8")
    try:
        pyproject_toml: dict[str, typing.Any] = tomlkit.parse(contents).unwrap()
    except TOMLParseError as err:
        raise ParseError(f"Failed to parse `{path}`: {err}") from err

    requirements: list[Requirement] = []
    used_extras: set[NormalizedName] = set()
    project_name: NormalizedName | None = None

    project = pyproject_toml.get("project")
    if project is not None:
        if not isinstance(project, dict):
            raise ParseError(f"Failed to parse `{path}`: `project` must be a table")
        if "name" in project:
            try:
                project_name = canonicalize_name(str(project["name"]), validate=True)
            except InvalidName as err:
                raise InvalidNameError(
                    f"Invalid `project.name` in {path}: {err}"
                ) from err

        # default dependencies are always included
        requirements.extend(
            _parse_requirements(
                path, "project.dependencies", project.get("dependencies", [])
            )
        )

        optional_dependencies = project.get("optional-dependencies", {})
        if not extras.is_none and optional_dependencies:
            if not isinstance(optional_dependencies, dict):
                raise ParseError(
                    f"Failed to parse `{path}`: `project.optional-dependencies` "
                    "must be a table"
                )
            groups = {
                extra_name: _parse_requirements(
                    path, f"project.optional-dependencies.{extra_name}", group
                )
                for extra_name, group in optional_dependencies.items()
            }
            for extra_name, group in groups.items():
                normalized = extras_mod.normalize_extra(extra_name)
                if not extras.contains(normalized):
                    continue
                if project_name is None:
                    raise InvalidNameError(
                        f"Missing `project.name` in {path}, required to "
                        f"include the optional dependencies of `{extra_name}`"
                    )
                logger.debug("including optional dependencies of extra %s", normalized)
                used_extras.add(normalized)
                requirements.extend(
                    extras_mod.flatten_extra(project_name, group, groups)
                )

    if not requirements and _uses_legacy_build_backend(pyproject_toml, settings):
        logger.warning(
            "`%s` does not contain any dependencies (hint: specify dependencies "
            "in the `project.dependencies` section; `tool.poetry.dependencies` "
            "is not currently supported)",
            path,
        )

    return RequirementsSpecification(
        project=project_name,
        requirements=list(requirements),
        extras=used_extras,
    )


def _uses_legacy_build_backend(
    pyproject_toml: dict[str, typing.Any], settings: Settings
) -> bool:
    """Does ``[build-system] requires`` name a backend we cannot read?"""
    build_system = pyproject_toml.get("build-system")
    if not isinstance(build_system, dict):
        return False
    prefixes = tuple(settings.legacy_build_backends)
    if not prefixes:
        return False
    for reqstr in build_system.get("requires", []):
        try:
            req = Requirement(str(reqstr))
        except InvalidRequirement:
            continue
        dist_info_name = canonicalize_name(req.name).replace("-", "_")
        if dist_info_name.startswith(prefixes):
            return True
    return False
