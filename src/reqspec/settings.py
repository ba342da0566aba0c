import logging
import pathlib
import typing

import pydantic
import yaml
from pydantic import Field

from .read import Connectivity

logger = logging.getLogger(__name__)

MODEL_CONFIG = pydantic.ConfigDict(
    # don't accept unknown keys
    extra="forbid",
    # all fields are immutable
    frozen=True,
    # read inline doc strings
    use_attribute_docstrings=True,
)


class Settings(pydantic.BaseModel):
    """reqspec settings

    ::

      legacy_build_backends:
        - poetry
      max_jobs: 4
      offline: false
    """

    model_config = MODEL_CONFIG

    legacy_build_backends: list[str] = Field(default_factory=lambda: ["poetry"])
    """Build requirement name prefixes whose dependency declarations are not
    read from pyproject.toml. A manifest without ``[project] dependencies``
    that requires one of these gets a warning."""

    max_jobs: int | None = Field(default=None, ge=1)
    """Read sources concurrently with up to this many threads"""

    offline: bool = False
    """Never read requirements files over the network"""

    @pydantic.field_validator("legacy_build_backends")
    @classmethod
    def validate_legacy_build_backends(cls, v: list[str]) -> list[str]:
        # compared against dist-info names, e.g. "poetry_core"
        return [name.strip().lower().replace("-", "_") for name in v]

    @property
    def connectivity(self) -> Connectivity:
        return Connectivity.OFFLINE if self.offline else Connectivity.ONLINE

    @classmethod
    def from_file(cls, filename: pathlib.Path) -> "Settings":
        """Load settings from a YAML file, use defaults if it does not exist"""
        filename = filename.absolute()
        if not filename.is_file():
            logger.debug("settings file %s does not exist, using defaults", filename)
            return cls()
        logger.info("loading settings from %s", filename)
        raw: typing.Any = yaml.safe_load(filename.read_text(encoding="utf-8"))
        return cls.model_validate(raw or {})
