"""Optional dependency groups (extras) of a project manifest"""

from __future__ import annotations

import dataclasses
import logging
import typing

from packaging.requirements import Requirement
from packaging.utils import InvalidName, NormalizedName, canonicalize_name

from .errors import InvalidNameError

logger = logging.getLogger(__name__)


def normalize_extra(name: str) -> NormalizedName:
    """Validate and normalize an extra name"""
    try:
        return canonicalize_name(name, validate=True)
    except InvalidName as err:
        raise InvalidNameError(f"Invalid extra name `{name}`: {err}") from err


@dataclasses.dataclass(frozen=True, slots=True)
class ExtrasSpecification:
    """Which optional dependency groups to include

    ``include_all`` selects every group, otherwise only the groups in
    ``names``. The default selects nothing.
    """

    include_all: bool = False
    names: frozenset[NormalizedName] = frozenset()

    @classmethod
    def none(cls) -> ExtrasSpecification:
        return cls()

    @classmethod
    def all(cls) -> ExtrasSpecification:
        return cls(include_all=True)

    @classmethod
    def some(cls, names: typing.Iterable[str]) -> ExtrasSpecification:
        return cls(names=frozenset(normalize_extra(n) for n in names))

    @classmethod
    def from_args(
        cls, extras: typing.Iterable[str], all_extras: bool
    ) -> ExtrasSpecification:
        if all_extras:
            return cls.all()
        extras = list(extras)
        if extras:
            return cls.some(extras)
        return cls.none()

    @property
    def is_none(self) -> bool:
        return not self.include_all and not self.names

    def contains(self, name: str) -> bool:
        """Returns true if a name is included in the extra specification"""
        if self.include_all:
            return True
        return canonicalize_name(name) in self.names


def flatten_extra(
    project_name: NormalizedName,
    requirements: typing.Iterable[Requirement],
    extras: typing.Mapping[str, typing.Sequence[Requirement]],
) -> list[Requirement]:
    """Flatten an extra that may refer to other extras of the same project

    For example::

        [project]
        name = "my-project"

        [project.optional-dependencies]
        test = ["pep517"]
        dev = ["my-project[test]", "black"]

    flattens ``dev`` to ``["pep517", "black"]``. The requirements of a
    referenced extra are inlined where the reference appears, recursively.
    Each extra is expanded at most once per call, so self references and
    cycles terminate.
    """
    groups: dict[NormalizedName, list[Requirement]] = {}
    for name, group in extras.items():
        groups.setdefault(normalize_extra(name), []).extend(group)

    seen: set[NormalizedName] = set()
    return _flatten(project_name, requirements, groups, seen)


def _flatten(
    project_name: NormalizedName,
    requirements: typing.Iterable[Requirement],
    groups: dict[NormalizedName, list[Requirement]],
    seen: set[NormalizedName],
) -> list[Requirement]:
    flattened: list[Requirement] = []
    for req in requirements:
        if canonicalize_name(req.name) != project_name:
            flattened.append(req)
            continue
        for extra in sorted(req.extras):
            extra_name = normalize_extra(extra)
            if extra_name in seen:
                logger.debug(
                    "%s: extra %r already expanded, skipping", project_name, extra
                )
                continue
            seen.add(extra_name)
            flattened.extend(
                _flatten(project_name, groups.get(extra_name, []), groups, seen)
            )
    return flattened
