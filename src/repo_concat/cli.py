"""
repo_concat: turn a repository into a single Markdown document.

Overview
--------
Given a local directory or a remote clone URL, the tool writes
``<output-dir>/<name>.md`` containing:

1) a ``# Repository Structure`` section with the filtered tree as JSON,
2) a ``# File Contents`` section with one fenced block per file.

Version-control metadata, build outputs, lock files and common binary formats
are left out. Remote references are cloned with ``git`` into a temporary
directory that is removed afterwards.

Usage
-----
    repo-concat path/to/project
    repo-concat https://github.com/org/project.git --output-dir exports
    repo-concat git@github.com:org/project.git --log-file run.log
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from repo_concat import __version__
from repo_concat.exceptions import FilesystemError, RepoConcatError
from repo_concat.logging import logger, setup_logging
from repo_concat.output_construction import generate_markdown
from repo_concat.settings import Settings
from repo_concat.source import resolve_source

if TYPE_CHECKING:
    from collections.abc import Sequence


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser.

    Returns:
        argparse.ArgumentParser: the configured parser
    """
    parser = argparse.ArgumentParser(
        prog="repo-concat",
        description="Concatenate a repository's structure and file contents into one Markdown file.",
    )
    parser.add_argument(
        "source",
        help="Local directory, or remote URL (https://, ssh://, user@host:path) cloned with git.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory the Markdown file is written to (default: $REPO_CONCAT_OUTPUT_DIR or ./output).",
    )
    parser.add_argument(
        "--clone-timeout",
        type=float,
        default=None,
        help="Abort git clone after this many seconds (default: wait forever).",
    )
    parser.add_argument("--log-file", type=str, default="", help="Write logs to this file instead of stderr.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse command line arguments into settings.

    Options left unset fall back to the environment defaults of `Settings`.

    Args:
        argv (Sequence[str] | None): command line arguments, ``sys.argv[1:]`` when None

    Returns:
        Settings: the run configuration
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    values = {k: v for k, v in vars(args).items() if v is not None}
    try:
        return Settings.model_validate(values)
    except ValidationError as e:
        parser.error(str(e))


def write_output(path: Path, markdown: str) -> Path:
    """Write the document, creating the output directory if needed.

    Raises:
        FilesystemError: if the directory cannot be created or the file cannot be written.

    Returns:
        Path: the written file
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(markdown, encoding="utf-8")
    except OSError as e:
        raise FilesystemError(path=path, reason=e.strerror or str(e)) from e
    return path


def run(settings: Settings) -> Path:
    """Resolve the source, generate the document and write it.

    Nothing is written if any step before the final write fails.

    Args:
        settings (Settings): the run configuration

    Raises:
        SourceUnavailable: if a remote source cannot be cloned.
        FilesystemError: if the repository tree cannot be read or the output cannot be written.
        SerializationError: if the structure cannot be serialized.

    Returns:
        Path: the written Markdown file
    """
    with resolve_source(settings.source, timeout=settings.clone_timeout) as root:
        markdown = generate_markdown(root)
    out_path = write_output(settings.output_path, markdown)
    logger.info("document_written", path=str(out_path), chars=len(markdown))
    return out_path


def main(argv: Sequence[str] | None = None) -> int:
    """Command line entry point.

    Args:
        argv (Sequence[str] | None): command line arguments, ``sys.argv[1:]`` when None

    Returns:
        int: process exit code
    """
    settings = parse_args(argv)
    if settings.log_file:
        setup_logging(settings.log_file)
    try:
        out_path = run(settings)
    except RepoConcatError as e:
        logger.error("run_failed", source=settings.source, error=str(e))
        sys.stderr.write(f"Error: {e}\n")
        return 1
    print(f"Successfully generated {out_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
