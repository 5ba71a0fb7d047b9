from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from repo_concat import __version__, cli, source
from repo_concat.settings import CLONE_TIMEOUT_ENV

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


@pytest.mark.unit
def test_parse_args_reads_source_and_options(tmp_path: Path) -> None:
    settings = cli.parse_args(
        [
            "https://example.com/org/repo.git",
            "--output-dir",
            str(tmp_path),
            "--clone-timeout",
            "45",
        ],
    )

    assert settings.source == "https://example.com/org/repo.git"
    assert settings.output_dir == tmp_path
    assert settings.clone_timeout == 45.0  # noqa: PLR2004
    assert settings.output_path == tmp_path / "repo.md"


@pytest.mark.unit
@pytest.mark.parametrize("argv", [[], ["one", "two"]])
def test_parse_args_requires_exactly_one_source(argv: list[str], capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.parse_args(argv)

    assert exc_info.value.code != 0
    assert "usage:" in capsys.readouterr().err


@pytest.mark.unit
def test_parse_args_rejects_non_positive_timeout(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.parse_args(["repo", "--clone-timeout", "-1"])

    assert exc_info.value.code != 0
    assert "clone_timeout" in capsys.readouterr().err


@pytest.mark.unit
def test_parse_args_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.parse_args(["--version"])

    assert exc_info.value.code == 0
    assert __version__ in capsys.readouterr().out


@pytest.mark.unit
def test_main_writes_markdown_for_local_directory(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    repo = tmp_path / "my.project"
    (repo / "src").mkdir(parents=True)
    (repo / "src" / "app.py").write_text("print('hello')\n", encoding="utf-8")
    out_dir = tmp_path / "out"

    exit_code = cli.main([str(repo), "--output-dir", str(out_dir)])

    assert exit_code == 0
    output = out_dir / "my-project.md"
    assert output.exists()
    content = output.read_text(encoding="utf-8")
    assert content.startswith("# Repository Structure\n\n```json\n")
    assert "## src/app.py\n\n```python\nprint('hello')\n" in content
    assert f"Successfully generated {output}" in capsys.readouterr().out


@pytest.mark.unit
def test_main_missing_directory_fails_without_output(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    out_dir = tmp_path / "out"

    exit_code = cli.main([str(tmp_path / "nope"), "--output-dir", str(out_dir)])

    assert exit_code == 1
    assert not out_dir.exists()
    assert "Filesystem error" in capsys.readouterr().err


@pytest.mark.unit
def test_main_clone_failure_fails_without_output(
    tmp_path: Path,
    mocker: MockerFixture,
    capsys: pytest.CaptureFixture[str],
) -> None:
    mocker.patch.object(
        source.subprocess,
        "run",
        return_value=subprocess.CompletedProcess(args=[], returncode=128, stdout="", stderr="fatal: denied\n"),
    )
    out_dir = tmp_path / "out"

    exit_code = cli.main(["git@example.com:org/private.git", "--output-dir", str(out_dir)])

    assert exit_code == 1
    assert not (out_dir / "private.md").exists()
    assert "Cannot use source" in capsys.readouterr().err


@pytest.mark.unit
def test_run_does_not_write_when_generation_fails(tmp_path: Path, mocker: MockerFixture) -> None:
    (tmp_path / "repo").mkdir()
    (tmp_path / "repo" / "a.py").write_text("a = 1\n", encoding="utf-8")
    write_mock = mocker.patch.object(cli, "write_output")
    mocker.patch.object(cli, "generate_markdown", side_effect=cli.RepoConcatError())
    settings = cli.parse_args([str(tmp_path / "repo"), "--output-dir", str(tmp_path / "out")])

    with pytest.raises(cli.RepoConcatError):
        cli.run(settings)

    write_mock.assert_not_called()


@pytest.mark.unit
@pytest.mark.parametrize("raw", ["abc", "-5"])
def test_parse_args_reports_invalid_timeout_from_environment(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    raw: str,
) -> None:
    monkeypatch.setenv(CLONE_TIMEOUT_ENV, raw)

    with pytest.raises(SystemExit) as exc_info:
        cli.parse_args(["repo"])

    assert exc_info.value.code == 2  # noqa: PLR2004
    assert "clone_timeout" in capsys.readouterr().err


@pytest.mark.unit
def test_main_reports_unwritable_output(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / "a.py").write_text("a = 1\n", encoding="utf-8")
    blocker = tmp_path / "out"
    blocker.write_text("not a directory", encoding="utf-8")

    exit_code = cli.main([str(repo), "--output-dir", str(blocker)])

    assert exit_code == 1
    assert blocker.read_text(encoding="utf-8") == "not a directory"
    assert "Error: Filesystem error" in capsys.readouterr().err


@pytest.mark.unit
@pytest.mark.skipif(sys.platform != "linux", reason="needs a filesystem accepting non-UTF-8 names")
def test_main_handles_non_utf8_file_names(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / os.fsdecode(b"bad\xff.txt")).write_text("still here\n", encoding="utf-8")
    out_dir = tmp_path / "out"

    exit_code = cli.main([str(repo), "--output-dir", str(out_dir)])

    assert exit_code == 0
    content = (out_dir / "repo.md").read_text(encoding="utf-8")
    assert '"name": "bad\ufffd.txt"' in content
    assert "## bad\ufffd.txt\n\n```\nstill here\n\n```" in content
