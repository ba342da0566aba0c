"""Requirement strings and ``requirements.txt`` files.

For the file format, see
https://pip.pypa.io/en/stable/reference/requirements-file-format/
"""

from __future__ import annotations

import dataclasses
import logging
import os
import pathlib
import re
import typing
from urllib.parse import urljoin

from packaging.markers import InvalidMarker, Marker
from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import InvalidName, canonicalize_name

from .errors import ParseError
from .read import Connectivity, file_url_to_path, is_remote, open_file_or_url

logger = logging.getLogger(__name__)

# scheme://..., file:..., git+https://...
_URL_SCHEME_RE = re.compile(r"^(?P<scheme>[a-zA-Z][a-zA-Z0-9+.-]*):(//|/)")
# name[extras] @ url
_DIRECT_REFERENCE_RE = re.compile(
    r"^[a-zA-Z0-9]([a-zA-Z0-9._-]*[a-zA-Z0-9])?\s*(\[[^\]]*\])?\s*@"
)
# location[extras]
_LOCATION_EXTRAS_RE = re.compile(r"^(?P<location>.+?)\s*\[(?P<extras>[^\]]*)\]$")
_ARCHIVE_SUFFIXES = (".whl", ".tar.gz", ".tgz", ".tar.bz2", ".tar.xz", ".tar", ".zip")
_OPTION_RE = re.compile(
    r"^(?P<option>--[a-zA-Z][a-zA-Z-]*|-[a-zA-Z])(?:\s*=\s*|\s*)(?P<value>.*)$"
)
_ENV_VAR_RE = re.compile(r"\${([A-Za-z0-9_]+)}")
_IGNORED_REQUIREMENT_OPTIONS_RE = re.compile(
    r"\s--(hash|global-option|install-option|config-settings).*$"
)

FindLink = str | pathlib.Path


@dataclasses.dataclass(frozen=True, slots=True)
class UnnamedRequirement:
    """A requirement given only as a URL or local path"""

    url: str
    extras: frozenset[str] = frozenset()
    marker: Marker | None = None
    given: str | None = dataclasses.field(default=None, compare=False)

    def __str__(self) -> str:
        if self.given:
            return self.given
        text = self.url
        if self.extras:
            text += f"[{','.join(sorted(self.extras))}]"
        if self.marker:
            text += f" ; {self.marker}"
        return text

    @property
    def path(self) -> pathlib.Path | None:
        """Local filesystem path for ``file:`` URLs"""
        if self.url.startswith("file:"):
            return file_url_to_path(self.url)
        return None


@dataclasses.dataclass(frozen=True, slots=True)
class EditableRequirement:
    """A local project to be installed in editable mode"""

    url: str
    path: pathlib.Path | None = None
    extras: frozenset[str] = frozenset()
    given: str | None = dataclasses.field(default=None, compare=False)

    def __str__(self) -> str:
        return f"-e {self.given or self.url}"


ParsedRequirement = Requirement | UnnamedRequirement


@dataclasses.dataclass(frozen=True, slots=True)
class RequirementEntry:
    """One requirement line of a requirements file"""

    requirement: ParsedRequirement
    editable: bool = False


@dataclasses.dataclass
class RequirementsTxt:
    """Parsed contents of a requirements file and the files it includes"""

    requirements: list[RequirementEntry] = dataclasses.field(default_factory=list)
    constraints: list[Requirement] = dataclasses.field(default_factory=list)
    editables: list[EditableRequirement] = dataclasses.field(default_factory=list)
    index_url: str | None = None
    extra_index_urls: list[str] = dataclasses.field(default_factory=list)
    no_index: bool = False
    find_links: list[FindLink] = dataclasses.field(default_factory=list)

    def update_from(self, other: RequirementsTxt) -> None:
        """Merge the contents of an included ``-r`` file"""
        self.requirements.extend(other.requirements)
        self.constraints.extend(other.constraints)
        self.editables.extend(other.editables)
        if other.index_url is not None:
            self.set_index_url(other.index_url)
        self.extra_index_urls.extend(other.extra_index_urls)
        self.no_index |= other.no_index
        self.find_links.extend(other.find_links)

    def set_index_url(self, url: str) -> None:
        if self.index_url is not None and self.index_url != url:
            raise ParseError(
                f"Multiple `--index-url` values provided: `{self.index_url}` vs. `{url}`"
            )
        self.index_url = url


def _has_url_scheme(text: str) -> bool:
    return _URL_SCHEME_RE.match(text) is not None


def _looks_like_url_or_path(location: str) -> bool:
    if _has_url_scheme(location):
        return True
    if location.startswith((".", "/", "~")):
        return True
    if "/" in location or os.sep in location:
        return True
    return location.lower().endswith(_ARCHIVE_SUFFIXES)


def _split_marker(text: str) -> tuple[str, Marker | None]:
    # URLs may contain ';', so a marker after a URL needs leading whitespace
    if _has_url_scheme(text):
        parts = re.split(r"\s+;\s*", text, maxsplit=1)
    else:
        parts = [p.strip() for p in text.split(";", 1)]
    if len(parts) == 1 or not parts[1]:
        return parts[0].strip(), None
    try:
        return parts[0].strip(), Marker(parts[1])
    except InvalidMarker as err:
        raise ParseError(f"Failed to parse marker in `{text}`: {err}") from err


def _split_extras(location: str) -> tuple[str, frozenset[str]]:
    match = _LOCATION_EXTRAS_RE.match(location)
    if not match:
        return location, frozenset()
    extras = frozenset(
        e.strip() for e in match.group("extras").split(",") if e.strip()
    )
    for extra in extras:
        try:
            canonicalize_name(extra, validate=True)
        except InvalidName as err:
            raise ParseError(
                f"Failed to parse `{location}`: invalid extra name `{extra}`"
            ) from err
    return match.group("location"), extras


def _location_to_url(
    location: str, working_dir: pathlib.Path
) -> tuple[str, pathlib.Path | None]:
    if location.startswith("file:"):
        path = file_url_to_path(location)
        if not path.is_absolute():
            path = working_dir / path
        path = path.absolute()
        return path.as_uri(), path
    if _has_url_scheme(location):
        return location, None
    path = pathlib.Path(location).expanduser()
    if not path.is_absolute():
        path = working_dir / path
    path = pathlib.Path(os.path.normpath(path))
    return path.as_uri(), path


def parse_unnamed_requirement(
    text: str, working_dir: pathlib.Path | None = None
) -> UnnamedRequirement:
    """Parse ``location[extras] ; marker`` where location is a URL or path"""
    working_dir = working_dir or pathlib.Path.cwd()
    location, marker = _split_marker(text)
    location, extras = _split_extras(location)
    if not location:
        raise ParseError(f"Failed to parse `{text}`: missing URL or path")
    url, _ = _location_to_url(location, working_dir)
    return UnnamedRequirement(url=url, extras=extras, marker=marker, given=text)


def parse_requirement(
    text: str, working_dir: pathlib.Path | None = None
) -> ParsedRequirement:
    """Parse a requirement string into a named or an unnamed requirement

    ``flask>=2`` and ``flask @ https://...`` are named. A bare URL or
    local path (``./project``, ``anyio-4.3.0-py3-none-any.whl``) is unnamed.
    """
    text = text.strip()
    if not text:
        raise ParseError("Failed to parse ``: empty requirement")
    location = text.split(";", 1)[0].strip()
    if _DIRECT_REFERENCE_RE.match(text) or not _looks_like_url_or_path(location):
        try:
            return Requirement(text)
        except InvalidRequirement as err:
            raise ParseError(f"Failed to parse `{text}`: {err}") from err
    return parse_unnamed_requirement(text, working_dir)


def parse_editable(
    text: str, working_dir: pathlib.Path | None = None
) -> EditableRequirement:
    """Parse the argument of ``-e``/``--editable``"""
    working_dir = working_dir or pathlib.Path.cwd()
    text = text.strip()
    location, extras = _split_extras(text)
    if not location:
        raise ParseError(f"Failed to parse `{text}`: missing editable path")
    if not _looks_like_url_or_path(location) and not (working_dir / location).is_dir():
        raise ParseError(
            f"Failed to parse `{text}`: editable requirements must be a local path or URL"
        )
    url, path = _location_to_url(location, working_dir)
    return EditableRequirement(url=url, path=path, extras=extras, given=text)


def _logical_lines(
    lines: typing.Iterable[str],
) -> typing.Iterator[tuple[int, str]]:
    """Join continuation lines, strip comments, expand environment variables"""
    buffer: list[str] = []
    start_line = 0
    for line_no, line in enumerate(lines, start=1):
        if not buffer:
            start_line = line_no
        stripped = line.strip()
        if re.search(r"(^|[^\\])\\$", stripped):
            buffer.append(stripped[:-1])
            continue
        buffer.append(stripped)
        logical = re.sub(r"(^|\s+)#.*$", "", " ".join(buffer)).strip()
        buffer = []
        if logical:
            yield start_line, logical
    if buffer:
        logical = re.sub(r"(^|\s+)#.*$", "", " ".join(buffer)).strip()
        if logical:
            yield start_line, logical


def _expand_env_vars(text: str, location: str) -> str:
    def expand(match: re.Match[str]) -> str:
        value = os.environ.get(match.group(1))
        if value is None:
            raise ParseError(
                f"{location}: no value for environment variable ${match.group(1)} is set"
            )
        return value

    return _ENV_VAR_RE.sub(expand, text)


def _resolve_location(base: str, relative: str, base_is_remote: bool) -> str:
    if is_remote(relative) or relative.startswith("file:"):
        return relative
    if base_is_remote:
        return urljoin(base, relative)
    path = pathlib.Path(relative).expanduser()
    if not path.is_absolute():
        path = pathlib.Path(base).parent / path
    return str(path)


def _normalize_location(location: str) -> str:
    if is_remote(location):
        return location
    if location.startswith("file:"):
        location = str(file_url_to_path(location))
    return os.path.normpath(os.path.abspath(location))


def _same_location(location: str, chain: tuple[str, ...]) -> bool:
    """Is ``location`` one of the files currently being read?"""
    normalized = _normalize_location(location)
    return any(_normalize_location(c) == normalized for c in chain)


def parse_requirements_txt(
    requirements_txt: str | pathlib.Path,
    working_dir: pathlib.Path | None = None,
    connectivity: Connectivity = Connectivity.ONLINE,
) -> RequirementsTxt:
    """Read a requirements file, following nested ``-r`` and ``-c`` files

    Relative requirement paths resolve against ``working_dir``; nested
    files resolve against the file that includes them.
    """
    working_dir = working_dir or pathlib.Path.cwd()
    location = str(requirements_txt)
    if not is_remote(location) and not location.startswith("file:"):
        path = pathlib.Path(location)
        if not path.is_absolute():
            location = str(working_dir / path)
    return _parse(location, working_dir, connectivity, is_constraints=False, chain=())


def _parse(
    location: str,
    working_dir: pathlib.Path,
    connectivity: Connectivity,
    is_constraints: bool,
    chain: tuple[str, ...],
) -> RequirementsTxt:
    """Parse one file; ``chain`` holds the files currently including it"""
    kind = "constraints" if is_constraints else "requirements"
    logger.debug("reading %s file %s", kind, location)
    result = RequirementsTxt()
    remote = is_remote(location)
    with open_file_or_url(location, connectivity) as f:
        lines = list(_logical_lines(f))

    for line_no, line in lines:
        where = f"{location}:{line_no}"
        text = _expand_env_vars(line, where)
        try:
            if text.startswith("-"):
                _handle_option(
                    text,
                    where,
                    location,
                    remote,
                    working_dir,
                    connectivity,
                    result,
                    chain + (location,),
                )
                continue
            text = _IGNORED_REQUIREMENT_OPTIONS_RE.sub("", text)
            requirement = parse_requirement(text, working_dir)
        except ParseError as err:
            raise ParseError(f"{where}: {err}") from err
        result.requirements.append(RequirementEntry(requirement))

    if is_constraints:
        return _as_constraints(location, result)
    return result


def _handle_option(
    text: str,
    where: str,
    location: str,
    remote: bool,
    working_dir: pathlib.Path,
    connectivity: Connectivity,
    result: RequirementsTxt,
    chain: tuple[str, ...],
) -> None:
    match = _OPTION_RE.match(text)
    if not match:
        raise ParseError(f"Unrecognized option `{text}`")
    option, value = match.group("option"), match.group("value").strip()

    if option in ("-r", "--requirement", "-c", "--constraint"):
        if not value:
            raise ParseError(f"Missing file name for `{option}`")
        nested = _resolve_location(location, value, remote)
        if _same_location(nested, chain):
            raise ParseError(f"recursive include of {nested}")
        is_constraints = option in ("-c", "--constraint")
        included = _parse(nested, working_dir, connectivity, is_constraints, chain)
        if is_constraints:
            result.constraints.extend(included.constraints)
        else:
            result.update_from(included)
    elif option in ("-e", "--editable"):
        editable = parse_editable(value, working_dir)
        result.editables.append(editable)
        result.requirements.append(
            RequirementEntry(
                UnnamedRequirement(
                    url=editable.url, extras=editable.extras, given=editable.given
                ),
                editable=True,
            )
        )
    elif option in ("-i", "--index-url"):
        if not value:
            raise ParseError(f"Missing URL for `{option}`")
        result.set_index_url(value)
    elif option == "--extra-index-url":
        if not value:
            raise ParseError(f"Missing URL for `{option}`")
        result.extra_index_urls.append(value)
    elif option == "--no-index":
        result.no_index = True
    elif option in ("-f", "--find-links"):
        if not value:
            raise ParseError(f"Missing location for `{option}`")
        if value.startswith("file:"):
            result.find_links.append(file_url_to_path(value))
        elif _has_url_scheme(value) or remote:
            result.find_links.append(_resolve_location(location, value, remote))
        else:
            result.find_links.append(
                pathlib.Path(_resolve_location(location, value, remote))
            )
    else:
        logger.debug("%s: ignoring unsupported option %s", where, option)


def _as_constraints(location: str, parsed: RequirementsTxt) -> RequirementsTxt:
    """Turn the contents of a ``-c`` file into constraints"""
    if parsed.editables:
        raise ParseError(
            f"{location}: editable requirements are not allowed in constraints files"
        )
    constraints: list[Requirement] = []
    for entry in parsed.requirements:
        if not isinstance(entry.requirement, Requirement):
            raise ParseError(
                f"{location}: unnamed requirements are not allowed in constraints "
                f"files (found: `{entry.requirement}`)"
            )
        constraints.append(entry.requirement)
    constraints.extend(parsed.constraints)
    return RequirementsTxt(constraints=constraints)
