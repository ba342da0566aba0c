"""Infer package names for requirements given only as a URL or path

The strategies run in order and the first one that produces a valid name
wins. Filename strategies only look at the URL. Directory strategies read
metadata files from a local project directory; nothing is downloaded or
built.
"""

from __future__ import annotations

import configparser
import logging
import pathlib
import re
import typing
from urllib.parse import unquote, urlparse

import tomlkit
from packaging.metadata import parse_email
from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import (
    InvalidName,
    InvalidSdistFilename,
    InvalidWheelFilename,
    NormalizedName,
    canonicalize_name,
    parse_sdist_filename,
    parse_wheel_filename,
)
from tomlkit.exceptions import ParseError as TOMLParseError

from .errors import NameInferenceError, ParseError
from .requirements_file import UnnamedRequirement

logger = logging.getLogger(__name__)

SETUP_PY_NAME = re.compile(r"""name\s*[=:]\s*['"](?P<name>[^'"]+)['"]""")

UrlProbe = typing.Callable[[UnnamedRequirement], NormalizedName | None]
DirectoryProbe = typing.Callable[[pathlib.Path], NormalizedName | None]


def _valid_name(name: typing.Any) -> NormalizedName | None:
    if not isinstance(name, str):
        return None
    try:
        return canonicalize_name(name.strip(), validate=True)
    except InvalidName:
        return None


def _url_filename(url: str) -> str:
    return unquote(urlparse(url).path.rstrip("/").rpartition("/")[-1])


def from_wheel_filename(requirement: UnnamedRequirement) -> NormalizedName | None:
    """Ex) ``anyio-4.3.0-py3-none-any.whl``"""
    filename = _url_filename(requirement.url)
    if not filename.lower().endswith(".whl"):
        return None
    try:
        name, _, _, _ = parse_wheel_filename(filename)
    except InvalidWheelFilename as err:
        logger.debug("%s is not a valid wheel filename: %s", filename, err)
        return None
    logger.debug("found name %s in wheel filename %s", name, filename)
    return name


def from_sdist_filename(requirement: UnnamedRequirement) -> NormalizedName | None:
    """Ex) ``anyio-4.3.0.tar.gz``

    Not guaranteed to work, sdist filenames are ambiguous when the project
    name was not normalized.
    """
    filename = _url_filename(requirement.url)
    try:
        name, _ = parse_sdist_filename(filename)
    except InvalidSdistFilename:
        return None
    logger.debug("found name %s in sdist filename %s", name, filename)
    return name


def from_pkg_info(path: pathlib.Path) -> NormalizedName | None:
    try:
        raw, _ = parse_email(path.joinpath("PKG-INFO").read_bytes())
    except (OSError, ValueError):
        return None
    name = _valid_name(raw.get("name"))
    if name:
        logger.debug("found PKG-INFO metadata for %s (%s)", path, name)
    return name


def from_pyproject_toml(path: pathlib.Path) -> NormalizedName | None:
    try:
        contents = path.joinpath("pyproject.toml").read_text(encoding="utf-8")
        doc = tomlkit.parse(contents).unwrap()
    except (OSError, TOMLParseError):
        return None

    project = doc.get("project")
    if isinstance(project, dict) and "name" in project:
        name = _valid_name(project["name"])
        if name:
            logger.debug(
                "found PEP 621 metadata for %s in pyproject.toml (%s)", path, name
            )
        return name

    tool = doc.get("tool")
    poetry = tool.get("poetry") if isinstance(tool, dict) else None
    if isinstance(poetry, dict):
        name = _valid_name(poetry.get("name"))
        if name:
            logger.debug(
                "found Poetry metadata for %s in pyproject.toml (%s)", path, name
            )
        return name
    return None


def from_setup_cfg(path: pathlib.Path) -> NormalizedName | None:
    parser = configparser.ConfigParser(interpolation=None)
    try:
        parser.read_string(path.joinpath("setup.cfg").read_text(encoding="utf-8"))
    except (OSError, configparser.Error):
        return None
    name = _valid_name(parser.get("metadata", "name", fallback=None))
    if name:
        logger.debug("found setuptools metadata for %s in setup.cfg (%s)", path, name)
    return name


def from_setup_py(path: pathlib.Path) -> NormalizedName | None:
    try:
        contents = path.joinpath("setup.py").read_text(encoding="utf-8")
    except OSError:
        return None
    match = SETUP_PY_NAME.search(contents)
    if not match:
        return None
    name = _valid_name(match.group("name"))
    if name:
        logger.debug("found setuptools metadata for %s in setup.py (%s)", path, name)
    return name


URL_PROBES: tuple[UrlProbe, ...] = (
    from_wheel_filename,
    from_sdist_filename,
)

DIRECTORY_PROBES: tuple[DirectoryProbe, ...] = (
    from_pkg_info,
    from_pyproject_toml,
    from_setup_cfg,
    from_setup_py,
)


def infer_name(requirement: UnnamedRequirement) -> NormalizedName:
    """Return the package name of an unnamed requirement"""
    for url_probe in URL_PROBES:
        name = url_probe(requirement)
        if name:
            return name

    path = requirement.path
    if path is not None:
        if not path.exists():
            raise NameInferenceError(f"Unnamed requirement at {path} not found")
        directory = path.resolve()
        for directory_probe in DIRECTORY_PROBES:
            name = directory_probe(directory)
            if name:
                return name

    raise NameInferenceError(
        f"Unable to infer package name for the unnamed requirement: {requirement}"
    )


def name_requirement(requirement: UnnamedRequirement) -> Requirement:
    """Turn an unnamed requirement into ``name[extras] @ url ; marker``"""
    name = infer_name(requirement)
    text = str(name)
    if requirement.extras:
        text += f"[{','.join(sorted(requirement.extras))}]"
    text += f" @ {requirement.url}"
    if requirement.marker:
        text += f" ; {requirement.marker}"
    try:
        named = Requirement(text)
    except InvalidRequirement as err:
        raise ParseError(f"Failed to parse `{text}`: {err}") from err
    logger.info("inferred name %s for %s", name, requirement)
    return named
