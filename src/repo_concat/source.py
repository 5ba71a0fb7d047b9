"""Resolve a user-supplied location into a local directory to traverse.

Remote references (``http(s)://``, ``ssh://`` and the ``user@host:path``
shorthand) are cloned with ``git`` into a temporary directory that lives for
the duration of the ``resolve_source`` context. Anything else is treated as a
local directory path and handed over untouched.
"""

from __future__ import annotations

import contextlib
import re
import subprocess  # noqa: S404
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from repo_concat.exceptions import SourceUnavailable
from repo_concat.logging import logger

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    Cloner = Callable[[str, Path], None]

HTTP_PREFIXES = ("http://", "https://")
SSH_PREFIX = "ssh://"
SSH_ACCEPT_NEW_HOST_KEYS = "core.sshCommand=ssh -o StrictHostKeyChecking=accept-new"
FALLBACK_REPO_NAME = "repository"

_SSH_SHORTHAND = re.compile(r"^[A-Za-z0-9._-]+@[A-Za-z0-9._-]+:")
_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def is_ssh_shorthand(location: str) -> bool:
    """Check for the scp-like ``user@host:path`` form (e.g. ``git@github.com:org/repo.git``)."""
    return _SSH_SHORTHAND.match(location) is not None


def uses_ssh(location: str) -> bool:
    """Check whether cloning `location` goes through SSH transport."""
    return location.startswith(SSH_PREFIX) or is_ssh_shorthand(location)


def is_remote(location: str) -> bool:
    """Check whether `location` must be cloned rather than read from disk.

    Args:
        location (str): user-supplied path or URL

    Returns:
        bool: True for http(s), ssh:// and ``user@host:path`` references
    """
    return location.startswith(HTTP_PREFIXES) or uses_ssh(location)


def derive_repo_name(location: str) -> str:
    """Derive a file-system safe repository name from a path or URL.

    The last path segment is kept (splitting on ``:`` as well for the SSH
    shorthand), a trailing ``.git`` is stripped and every character outside
    ``[A-Za-z0-9_-]`` is replaced with ``-``.

    Args:
        location (str): user-supplied path or URL

    Returns:
        str: the derived name, or ``repository`` if nothing is left
    """
    trimmed = location.rstrip("/")
    separators = r"[/:]" if is_ssh_shorthand(trimmed) else r"/"
    name = re.split(separators, trimmed)[-1]
    name = name.removesuffix(".git")
    name = _UNSAFE_NAME_CHARS.sub("-", name)
    return name or FALLBACK_REPO_NAME


def build_clone_command(location: str, destination: Path) -> list[str]:
    """Build the ``git clone`` command line for `location`.

    For SSH transport, unknown host keys are accepted on first use.

    Args:
        location (str): remote reference to clone
        destination (Path): directory to clone into

    Returns:
        list[str]: the command and its arguments
    """
    cmd = ["git", "clone"]
    if uses_ssh(location):
        cmd += ["-c", SSH_ACCEPT_NEW_HOST_KEYS]
    cmd += [location, str(destination)]
    return cmd


def git_clone(location: str, destination: Path, *, timeout: float | None = None) -> None:
    """Clone `location` into `destination` with the ``git`` executable.

    Anything git writes on stderr is logged, whatever the exit status.

    Args:
        location (str): remote reference to clone
        destination (Path): directory to clone into
        timeout (float | None): seconds before the clone is abandoned; None waits forever

    Raises:
        SourceUnavailable: if git is missing, times out or exits with a non-zero status.
    """
    if uses_ssh(location):
        logger.warning("ssh_host_key_auto_accept", location=location)
    cmd = build_clone_command(location, destination)
    logger.info("clone_started", location=location, destination=str(destination))
    try:
        out = subprocess.run(  # noqa: S603
            cmd,
            text=True,
            capture_output=True,
            check=False,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise SourceUnavailable(location=location, reason=f"git clone timed out after {timeout}s") from e
    except OSError as e:
        raise SourceUnavailable(location=location, reason=f"cannot run git: {e}") from e

    if out.stderr and out.stderr.strip():
        logger.warning("git_stderr", location=location, stderr=out.stderr.strip())
    if out.returncode != 0:
        logger.error("clone_failed", location=location, returncode=out.returncode)
        raise SourceUnavailable(location=location, reason=f"git clone exited with status {out.returncode}")


@contextlib.contextmanager
def resolve_source(
    location: str,
    *,
    timeout: float | None = None,
    cloner: Cloner | None = None,
) -> Iterator[Path]:
    """Yield a local directory holding the repository at `location`.

    Remote references are cloned into a temporary directory removed when the
    context exits, on success and on failure alike. Local paths are yielded
    as is; their existence is checked when the tree is built.

    Args:
        location (str): user-supplied path or URL
        timeout (float | None): git clone timeout in seconds, used by the default cloner
        cloner (Cloner | None): replacement for `git_clone`, called as ``cloner(location, destination)``

    Yields:
        Path: the root directory to traverse

    Raises:
        SourceUnavailable: if a remote reference cannot be cloned.
    """
    if not is_remote(location):
        yield Path(location)
        return

    clone = cloner or (lambda loc, dst: git_clone(loc, dst, timeout=timeout))
    with tempfile.TemporaryDirectory(prefix="repo_concat_") as tmp:
        destination = Path(tmp)
        clone(location, destination)
        if not destination.is_dir():
            raise SourceUnavailable(location=location, reason="clone produced no directory")
        yield destination
