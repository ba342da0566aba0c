import pathlib
import textwrap
import threading
import time
from unittest.mock import patch

import pytest
from packaging.requirements import Requirement

from reqspec import aggregator, sources
from reqspec.errors import ConflictError, ParseError, RoleViolationError
from reqspec.extras import ExtrasSpecification
from reqspec.requirements_file import UnnamedRequirement
from reqspec.settings import Settings
from reqspec.specification import NamedRequirements, RequirementsSpecification


def _write_manifest(path: pathlib.Path, name: str, deps: list[str]) -> pathlib.Path:
    path.mkdir(parents=True, exist_ok=True)
    manifest = path / "pyproject.toml"
    manifest.write_text(
        textwrap.dedent(f"""
        [project]
        name = "{name}"
        dependencies = {deps!r}

        [project.optional-dependencies]
        dev = ["pytest"]
        """).replace("'", '"')
    )
    return manifest


def test_from_sources_packages(tmp_path: pathlib.Path) -> None:
    spec = aggregator.from_sources(
        [sources.PackageSource("flask"), sources.PackageSource("django>=4")],
        working_dir=tmp_path,
    )
    assert spec == RequirementsSpecification(
        requirements=[Requirement("flask"), Requirement("django>=4")]
    )


def test_from_sources_first_project_wins(tmp_path: pathlib.Path) -> None:
    first = _write_manifest(tmp_path / "a", "project-a", ["tomli"])
    second = _write_manifest(tmp_path / "b", "project-b", ["anyio"])
    spec = aggregator.from_sources(
        [sources.PyprojectTomlSource(first), sources.PyprojectTomlSource(second)],
        extras=ExtrasSpecification.some(["dev"]),
        working_dir=tmp_path,
    )
    assert spec.project == "project-a"
    assert [str(r) for r in spec.requirements] == [
        "tomli",
        "pytest",
        "anyio",
        "pytest",
    ]
    assert spec.extras == {"dev"}


def test_from_sources_index_conflict(tmp_path: pathlib.Path) -> None:
    tmp_path.joinpath("a.txt").write_text("--index-url https://a.example.com\nflask\n")
    tmp_path.joinpath("b.txt").write_text("--index-url https://b.example.com\nidna\n")
    with pytest.raises(ConflictError) as excinfo:
        aggregator.from_sources(
            [sources.RequirementsTxtSource("a.txt")],
            constraints=[sources.RequirementsTxtSource("b.txt")],
            working_dir=tmp_path,
        )
    assert str(excinfo.value) == (
        "Multiple index URLs specified: "
        "`https://a.example.com` vs. `https://b.example.com`"
    )


def test_from_sources_same_index(tmp_path: pathlib.Path) -> None:
    tmp_path.joinpath("a.txt").write_text("--index-url https://a.example.com\nflask\n")
    tmp_path.joinpath("b.txt").write_text("-i https://a.example.com\nidna\n")
    spec = aggregator.from_sources(
        [sources.RequirementsTxtSource("a.txt"), sources.RequirementsTxtSource("b.txt")],
        working_dir=tmp_path,
    )
    assert spec.index_url == "https://a.example.com"
    assert spec.requirements == [Requirement("flask"), Requirement("idna")]


def test_from_sources_merges_index_options(tmp_path: pathlib.Path) -> None:
    tmp_path.joinpath("a.txt").write_text(
        "--extra-index-url https://x.example.com\n--find-links ./wheels\nflask\n"
    )
    tmp_path.joinpath("b.txt").write_text(
        "--extra-index-url https://x.example.com\n--no-index\nidna\n"
    )
    spec = aggregator.from_sources(
        [sources.RequirementsTxtSource("a.txt")],
        overrides=[sources.RequirementsTxtSource("b.txt")],
        working_dir=tmp_path,
    )
    assert spec.no_index
    # duplicates are kept
    assert spec.extra_index_urls == ["https://x.example.com", "https://x.example.com"]
    assert spec.find_links == [tmp_path / "wheels"]
    assert spec.overrides == [Requirement("idna")]


def test_from_sources_constraints_role(tmp_path: pathlib.Path) -> None:
    tmp_path.joinpath("nested.txt").write_text("anyio<5\n")
    tmp_path.joinpath("constraints.txt").write_text("-c nested.txt\nidna<4\n")
    spec = aggregator.from_sources(
        [sources.PackageSource("flask")],
        constraints=[sources.RequirementsTxtSource("constraints.txt")],
        working_dir=tmp_path,
    )
    assert spec.requirements == [Requirement("flask")]
    assert spec.constraints == [Requirement("idna<4"), Requirement("anyio<5")]
    assert not spec.overrides


def test_from_sources_nested_constraints_in_requirements(tmp_path: pathlib.Path) -> None:
    tmp_path.joinpath("constraints.txt").write_text("idna<4\n")
    tmp_path.joinpath("requirements.txt").write_text("-c constraints.txt\nflask\n")
    spec = aggregator.from_sources(
        [sources.RequirementsTxtSource("requirements.txt")],
        working_dir=tmp_path,
    )
    assert spec.requirements == [Requirement("flask")]
    assert spec.constraints == [Requirement("idna<4")]


@pytest.mark.parametrize("role", ["constraints", "overrides"])
def test_from_sources_unnamed_not_allowed(tmp_path: pathlib.Path, role: str) -> None:
    tmp_path.joinpath("other.txt").write_text("./project\n")
    with pytest.raises(RoleViolationError) as excinfo:
        aggregator.from_sources(
            [sources.PackageSource("flask")],
            working_dir=tmp_path,
            **{role: [sources.RequirementsTxtSource("other.txt")]},
        )
    assert str(excinfo.value) == (
        f"Unnamed requirements are not allowed as {role} (found: `./project`)"
    )


def test_from_sources_editable_in_overrides_ignored(
    tmp_path: pathlib.Path, caplog: pytest.LogCaptureFixture
) -> None:
    tmp_path.joinpath("overrides.txt").write_text("-e ./local\nidna==3.7\n")
    spec = aggregator.from_sources(
        [sources.PackageSource("flask")],
        overrides=[sources.RequirementsTxtSource("overrides.txt")],
        working_dir=tmp_path,
    )
    assert spec.overrides == [Requirement("idna==3.7")]
    assert not spec.editables
    assert "not allowed as overrides" in caplog.text


def test_from_sources_parallel_keeps_order(tmp_path: pathlib.Path) -> None:
    names = [f"pkg{i}" for i in range(8)]
    seen_threads: set[str] = set()
    original = sources.read_source

    def slow_read(source: sources.RequirementsSource, **kwargs):
        seen_threads.add(threading.current_thread().name)
        # later sources finish first
        time.sleep(0.01 * (len(names) - names.index(str(source))))
        return original(source, **kwargs)

    with patch.object(sources, "read_source", side_effect=slow_read):
        spec = aggregator.from_sources(
            [sources.PackageSource(n) for n in names],
            working_dir=tmp_path,
            max_jobs=4,
        )
    assert [str(r) for r in spec.requirements] == names
    assert all(name.startswith("reqspec-read") for name in seen_threads)


def test_from_sources_max_jobs_from_settings(tmp_path: pathlib.Path) -> None:
    with patch("concurrent.futures.ThreadPoolExecutor") as executor:
        aggregator.from_sources(
            [sources.PackageSource("flask"), sources.PackageSource("idna")],
            working_dir=tmp_path,
            settings=Settings(max_jobs=1),
        )
    executor.assert_not_called()


def test_from_simple_sources(tmp_path: pathlib.Path) -> None:
    manifest = _write_manifest(tmp_path, "demo", ["tomli"])
    spec = aggregator.from_simple_sources(
        [sources.PyprojectTomlSource(manifest)], working_dir=tmp_path
    )
    assert spec.project == "demo"
    assert spec.requirements == [Requirement("tomli")]
    assert spec.extras == set()


def test_named_requirements_from_spec(tmp_path: pathlib.Path) -> None:
    project = tmp_path / "project"
    project.mkdir()
    project.joinpath("setup.py").write_text('setup(name="local-project")\n')
    tmp_path.joinpath("requirements.txt").write_text(
        "flask>=2\n./project[dev] ; python_version >= '3.8'\n"
    )
    spec = aggregator.from_simple_sources(
        [sources.RequirementsTxtSource("requirements.txt")], working_dir=tmp_path
    )
    assert isinstance(spec.requirements[1], UnnamedRequirement)

    named = NamedRequirements.from_spec(spec)
    assert named.requirements[0] == Requirement("flask>=2")
    local = named.requirements[1]
    assert local.name == "local-project"
    assert local.extras == {"dev"}
    assert local.url == project.as_uri()
    assert str(local.marker) == 'python_version >= "3.8"'


def test_from_simple_sources_self_include(tmp_path: pathlib.Path) -> None:
    tmp_path.joinpath("requirements.txt").write_text("-r requirements.txt\nflask\n")
    with pytest.raises(ParseError, match="recursive include"):
        aggregator.from_simple_sources(
            [sources.RequirementsTxtSource("requirements.txt")], working_dir=tmp_path
        )
