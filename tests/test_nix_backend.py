from collections.abc import Callable
from pathlib import Path

import pytest

from cratenix.backends.nix import NixBuildBackend, dump_with_lines
from cratenix.errors import BuildFailed, ProcessSpawnFailed


def test_build_args_are_deterministic() -> None:
    backend = NixBuildBackend()

    args = backend.build_args("rootCrate.build", ["default", 'with"quote'])

    assert args == [
        "nix",
        "--show-trace",
        "build",
        "-f",
        "default.nix",
        "rootCrate.build",
        "--arg",
        "rootFeatures",
        '[ "default" "with\\"quote" ]',
    ]
    assert backend.build_args("rootCrate.build", ["default", 'with"quote']) == args


def test_build_runs_in_project_dir(
    tmp_path: Path,
    write_script: Callable[[str, str], Path],
    capfd: pytest.CaptureFixture[str],
) -> None:
    project = _project(tmp_path)
    nix = write_script("nix", 'pwd > invoked-in.txt\nprintf "%s\\n" "$@" > args.txt\necho building')
    backend = NixBuildBackend(nix_command=str(nix))

    backend.build(project, "rootCrate.build", ["default"])

    assert (project / "invoked-in.txt").read_text(encoding="utf-8").strip() == str(project.resolve())
    args = (project / "args.txt").read_text(encoding="utf-8").splitlines()
    assert args[-2:] == ["rootFeatures", '[ "default" ]']
    captured = capfd.readouterr()
    assert "building" in captured.out
    assert f"Built {project} successfully." in captured.err
    assert [record["message"] for record in backend.logger.records_for_operation("build")] == [
        "Starting nix build.",
        "nix build succeeded.",
    ]


def test_build_failure_dumps_numbered_build_file(
    tmp_path: Path,
    write_script: Callable[[str, str], Path],
    capfd: pytest.CaptureFixture[str],
) -> None:
    project = _project(tmp_path)
    nix = write_script("nix", "echo 'error: undefined variable' >&2\nexit 3")
    backend = NixBuildBackend(nix_command=str(nix))

    with pytest.raises(BuildFailed) as excinfo:
        backend.build(project, "rootCrate.build")

    assert excinfo.value.returncode == 3
    assert "exited with: 3" in str(excinfo.value)
    captured = capfd.readouterr()
    assert "    1: { pkgs ? import <nixpkgs> {} }:" in captured.out
    assert "    2: pkgs.hello" in captured.out
    assert "error: undefined variable" in captured.err


def test_build_failure_with_undecodable_build_file_keeps_exit_code(
    tmp_path: Path,
    write_script: Callable[[str, str], Path],
    capfd: pytest.CaptureFixture[str],
) -> None:
    project = _project(tmp_path)
    (project / "default.nix").write_bytes(b"let x = \xff\xfe;\nin x\n")
    nix = write_script("nix", "exit 2")
    backend = NixBuildBackend(nix_command=str(nix))

    with pytest.raises(BuildFailed) as excinfo:
        backend.build(project, "rootCrate.build")

    assert excinfo.value.returncode == 2
    out = capfd.readouterr().out
    assert "    1: let x = " in out
    assert "    2: in x" in out


def test_build_without_nix_in_path_fails_to_spawn(tmp_path: Path) -> None:
    backend = NixBuildBackend(nix_command=str(tmp_path / "missing-nix"))

    with pytest.raises(ProcessSpawnFailed) as excinfo:
        backend.build(_project(tmp_path), "rootCrate.build")

    assert "missing-nix" in str(excinfo.value)


def test_dump_with_lines_right_aligns_numbers(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    path = tmp_path / "default.nix"
    path.write_text("\n".join(f"line {index}" for index in range(1, 12)) + "\n", encoding="utf-8")

    dump_with_lines(path)

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "    1: line 1"
    assert lines[10] == "   11: line 11"
    assert len(lines) == 11


def _project(tmp_path: Path) -> Path:
    project = tmp_path / "project"
    project.mkdir(exist_ok=True)
    (project / "default.nix").write_text("{ pkgs ? import <nixpkgs> {} }:\npkgs.hello\n", encoding="utf-8")
    return project
