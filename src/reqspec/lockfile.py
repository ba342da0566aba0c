"""Preferred versions from an existing lockfile"""

from __future__ import annotations

import dataclasses
import logging
import pathlib
import typing

from packaging.requirements import Requirement
from packaging.utils import NormalizedName, canonicalize_name
from packaging.version import InvalidVersion, Version

from . import requirements_file
from .errors import PreferenceConversionError
from .read import Connectivity

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class Upgrade:
    """Which pinned versions of a lockfile to ignore"""

    all_packages: bool = False
    packages: frozenset[NormalizedName] = frozenset()

    @classmethod
    def keep_all(cls) -> Upgrade:
        return cls()

    @classmethod
    def discard_all(cls) -> Upgrade:
        return cls(all_packages=True)

    @classmethod
    def discard_packages(cls, names: typing.Iterable[str]) -> Upgrade:
        return cls(packages=frozenset(canonicalize_name(n) for n in names))

    @classmethod
    def from_args(cls, upgrade: bool, upgrade_packages: typing.Iterable[str]) -> Upgrade:
        if upgrade:
            return cls.discard_all()
        upgrade_packages = list(upgrade_packages)
        if upgrade_packages:
            return cls.discard_packages(upgrade_packages)
        return cls.keep_all()

    @property
    def is_all(self) -> bool:
        return self.all_packages

    def allows(self, name: str) -> bool:
        """Is the pinned version of a package kept?"""
        if self.all_packages:
            return False
        return canonicalize_name(name) not in self.packages


@dataclasses.dataclass(frozen=True, slots=True)
class Preference:
    """A pinned version from a lockfile"""

    name: NormalizedName
    version: Version
    requirement: Requirement = dataclasses.field(compare=False)

    def __str__(self) -> str:
        return f"{self.name}=={self.version}"

    @classmethod
    def from_requirement(
        cls, requirement: requirements_file.ParsedRequirement
    ) -> Preference:
        if not isinstance(requirement, Requirement):
            raise PreferenceConversionError(
                f"Unnamed requirement `{requirement}` cannot be used as a preference"
            )
        specifiers = list(requirement.specifier)
        if (
            requirement.url
            or len(specifiers) != 1
            or specifiers[0].operator not in ("==", "===")
            or specifiers[0].version.endswith(".*")
        ):
            raise PreferenceConversionError(
                f"Requirement `{requirement}` is not pinned to a single version"
            )
        try:
            version = Version(specifiers[0].version)
        except InvalidVersion as err:
            raise PreferenceConversionError(
                f"Requirement `{requirement}` has an invalid version: {err}"
            ) from err
        return cls(
            name=canonicalize_name(requirement.name),
            version=version,
            requirement=requirement,
        )


def read_lockfile(
    output_file: pathlib.Path | None,
    upgrade: Upgrade,
    working_dir: pathlib.Path | None = None,
) -> list[Preference]:
    """Load the preferred requirements from an existing lockfile

    Nothing is read when every package is upgraded anyway.
    """
    if output_file is None or upgrade.is_all:
        return []
    if working_dir is not None and not output_file.is_absolute():
        output_file = working_dir / output_file
    if not output_file.exists():
        logger.debug("lockfile %s does not exist", output_file)
        return []

    requirements_txt = requirements_file.parse_requirements_txt(
        output_file, working_dir, Connectivity.OFFLINE
    )
    preferences = [
        Preference.from_requirement(entry.requirement)
        for entry in requirements_txt.requirements
        if not entry.editable
    ]
    kept = [p for p in preferences if upgrade.allows(p.name)]
    logger.info(
        "using %d of %d pinned versions from %s",
        len(kept),
        len(preferences),
        output_file,
    )
    return kept
