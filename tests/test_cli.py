import pathlib

from click.testing import CliRunner
from packaging.requirements import Requirement

from reqspec.__main__ import main as reqspec
from reqspec.commands import commands

KNOWN_COMMANDS: set[str] = {
    "preferences",
    "show",
}


def test_reqspec_version(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(reqspec, ["--version"])
    assert result.exit_code == 0
    assert result.stdout.startswith("reqspec, version")


def test_registered_eps() -> None:
    registered = {c.name for c in commands}
    assert registered == KNOWN_COMMANDS


def test_show_packages(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(reqspec, ["show", "flask", "django>=4"])
    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines() == ["flask", "django>=4"]


def test_show_requires_a_source(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(reqspec, ["show"])
    assert result.exit_code == 2
    assert "no packages, editables or requirements files given" in result.output


def test_show_requirements_and_constraints(cli_runner: CliRunner) -> None:
    pathlib.Path("requirements.txt").write_text(
        "--index-url https://index.example.com/simple\nflask>=2\n"
    )
    pathlib.Path("constraints.txt").write_text("werkzeug<4\n")
    result = cli_runner.invoke(
        reqspec, ["show", "-r", "requirements.txt", "-c", "constraints.txt"]
    )
    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines() == [
        "--index-url https://index.example.com/simple",
        "flask>=2",
        "# constraints",
        "werkzeug<4",
    ]


def test_show_infers_names(cli_runner: CliRunner) -> None:
    project = pathlib.Path("project").absolute()
    project.mkdir()
    project.joinpath("setup.py").write_text('setup(name="local-project")\n')
    result = cli_runner.invoke(reqspec, ["show", "./project"])
    assert result.exit_code == 0, result.output
    assert [Requirement(line) for line in result.stdout.splitlines()] == [
        Requirement(f"local-project @ {project.as_uri()}")
    ]


def test_show_pyproject_extras(cli_runner: CliRunner, testdata_path: pathlib.Path) -> None:
    manifest = testdata_path / "manifests" / "recursive" / "pyproject.toml"
    result = cli_runner.invoke(
        reqspec, ["show", "-r", str(manifest), "--extra", "Dev", "-j", "2"]
    )
    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines() == [
        "# project: my-project",
        "# extras: dev",
        "tomli",
        "ruff",
        "pep517",
        "black",
    ]


def test_show_index_conflict(cli_runner: CliRunner) -> None:
    pathlib.Path("a.txt").write_text("-i https://a.example.com\nflask\n")
    pathlib.Path("b.txt").write_text("-i https://b.example.com\nidna\n")
    result = cli_runner.invoke(reqspec, ["show", "-r", "a.txt", "-r", "b.txt"])
    assert result.exit_code == 1
    assert "Multiple index URLs specified" in result.output


def test_show_missing_file(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(reqspec, ["show", "-r", "missing.txt"])
    assert result.exit_code == 1
    assert "missing.txt" in result.output


def test_show_offline(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(
        reqspec,
        ["--offline", "show", "-r", "https://example.com/requirements.txt"],
    )
    assert result.exit_code == 1
    assert "Network access is disabled" in result.output


def test_show_working_dir(cli_runner: CliRunner, tmp_path: pathlib.Path) -> None:
    other = tmp_path / "other"
    other.mkdir()
    other.joinpath("requirements.txt").write_text("anyio\n")
    result = cli_runner.invoke(
        reqspec, ["-C", str(other), "show", "-r", "requirements.txt"]
    )
    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines() == ["anyio"]


def test_preferences(cli_runner: CliRunner) -> None:
    pathlib.Path("requirements.lock").write_text("foo==1.0\nbar==2.0\n")
    result = cli_runner.invoke(
        reqspec, ["preferences", "requirements.lock", "-P", "Foo"]
    )
    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines() == ["bar==2.0"]

    result = cli_runner.invoke(reqspec, ["preferences", "requirements.lock", "-U"])
    assert result.exit_code == 0, result.output
    assert result.stdout == ""


def test_preferences_not_pinned(cli_runner: CliRunner) -> None:
    pathlib.Path("requirements.lock").write_text("foo>=1.0\n")
    result = cli_runner.invoke(reqspec, ["preferences", "requirements.lock"])
    assert result.exit_code == 1
    assert "not pinned" in result.output


def test_preferences_missing_include(cli_runner: CliRunner) -> None:
    pathlib.Path("requirements.lock").write_text("-r missing.txt\nfoo==1.0\n")
    result = cli_runner.invoke(reqspec, ["preferences", "requirements.lock"])
    assert result.exit_code == 1
    assert "missing.txt" in result.output
    assert "Traceback" not in result.output


def test_preferences_remote_include_offline(cli_runner: CliRunner) -> None:
    pathlib.Path("requirements.lock").write_text(
        "-r https://example.com/requirements.txt\n"
    )
    result = cli_runner.invoke(reqspec, ["preferences", "requirements.lock"])
    assert result.exit_code == 1
    assert "Network access is disabled" in result.output
