from __future__ import annotations

import dataclasses
import logging

from packaging.requirements import Requirement
from packaging.utils import NormalizedName

from . import naming
from .requirements_file import (
    EditableRequirement,
    FindLink,
    ParsedRequirement,
    UnnamedRequirement,
)

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class RequirementsSpecification:
    """Requirements, constraints and index options read from sources"""

    project: NormalizedName | None = None
    """The name of the project specifying requirements"""

    requirements: list[ParsedRequirement] = dataclasses.field(default_factory=list)
    """The requirements for the project, named or unnamed"""

    constraints: list[Requirement] = dataclasses.field(default_factory=list)
    overrides: list[Requirement] = dataclasses.field(default_factory=list)
    editables: list[EditableRequirement] = dataclasses.field(default_factory=list)

    extras: set[NormalizedName] = dataclasses.field(default_factory=set)
    """The extras used to collect requirements"""

    index_url: str | None = None
    extra_index_urls: list[str] = dataclasses.field(default_factory=list)
    no_index: bool = False
    find_links: list[FindLink] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class NamedRequirements:
    """Like RequirementsSpecification, but every requirement has a name"""

    project: NormalizedName | None = None
    requirements: list[Requirement] = dataclasses.field(default_factory=list)
    constraints: list[Requirement] = dataclasses.field(default_factory=list)
    overrides: list[Requirement] = dataclasses.field(default_factory=list)
    editables: list[EditableRequirement] = dataclasses.field(default_factory=list)
    extras: set[NormalizedName] = dataclasses.field(default_factory=set)
    index_url: str | None = None
    extra_index_urls: list[str] = dataclasses.field(default_factory=list)
    no_index: bool = False
    find_links: list[FindLink] = dataclasses.field(default_factory=list)

    @classmethod
    def from_spec(cls, spec: RequirementsSpecification) -> NamedRequirements:
        """Infer names for all unnamed requirements of a specification"""
        requirements: list[Requirement] = []
        for requirement in spec.requirements:
            if isinstance(requirement, UnnamedRequirement):
                requirement = naming.name_requirement(requirement)
            requirements.append(requirement)
        return cls(
            project=spec.project,
            requirements=requirements,
            constraints=list(spec.constraints),
            overrides=list(spec.overrides),
            editables=list(spec.editables),
            extras=set(spec.extras),
            index_url=spec.index_url,
            extra_index_urls=list(spec.extra_index_urls),
            no_index=spec.no_index,
            find_links=list(spec.find_links),
        )
