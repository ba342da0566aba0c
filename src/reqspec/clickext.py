import os
import pathlib

import click
from packaging.utils import InvalidName, NormalizedName, canonicalize_name


class ClickPath(click.Path):
    """ClickPath that returns pathlib.Path"""

    def convert(
        self,
        value: str | os.PathLike[str],
        param: click.core.Parameter | None,
        ctx: click.core.Context | None,
    ) -> pathlib.Path:
        path = super().convert(value=value, param=param, ctx=ctx)
        if isinstance(path, bytes):
            return pathlib.Path(os.fsdecode(path))
        return pathlib.Path(path)


class PackageName(click.ParamType):
    """Package or extra name type that returns a normalized name"""

    name = "package_name"

    def convert(
        self,
        value: str,
        param: click.core.Parameter | None,
        ctx: click.core.Context | None,
    ) -> NormalizedName:
        try:
            return canonicalize_name(value, validate=True)
        except InvalidName as e:
            self.fail(
                f"Invalid name '{value}' ({e})",
                param,
                ctx,
            )
