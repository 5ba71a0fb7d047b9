from __future__ import annotations

import os
from pathlib import Path

from repo_concat.config import DEFAULT_IGNORE_POLICY, DirectoryNode, FileNode, IgnorePolicy, TreeNode
from repo_concat.exceptions import FilesystemError
from repo_concat.logging import logger

BINARY_PLACEHOLDER = "[Binary or non-UTF8 file content skipped]"


def join_rel(parent: str, name: str) -> str:
    """Join a relative parent path and a base name with a POSIX separator.

    Args:
        parent (str): relative path of the parent directory, "" for the root
        name (str): base name of the child

    Returns:
        str: the child's relative path
    """
    return f"{parent}/{name}" if parent else name


def list_entries(directory: Path) -> list[os.DirEntry[str]]:
    """List a directory, sorted by name.

    Args:
        directory (Path): the directory to list

    Raises:
        FilesystemError: if the directory is missing, not a directory or unreadable.

    Returns:
        list[os.DirEntry[str]]: the directory entries sorted by name
    """
    try:
        with os.scandir(directory) as it:
            entries = list(it)
    except OSError as e:
        raise FilesystemError(path=directory, reason=e.strerror or str(e)) from e
    return sorted(entries, key=lambda entry: entry.name)


def display_name(name: str) -> str:
    """Make a file name safe to serialize as UTF-8.

    Bytes that are not valid UTF-8 come back from the filesystem as lone
    surrogates; they are replaced with U+FFFD.

    Args:
        name (str): a name as returned by `os.scandir`

    Returns:
        str: the name with undecodable bytes replaced
    """
    return name.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def _build_level(directory: Path, rel: str, disk_rel: str, policy: IgnorePolicy) -> list[TreeNode]:
    nodes: list[TreeNode] = []
    for entry in list_entries(directory):
        name = entry.name
        shown = display_name(name)
        child_rel = join_rel(rel, shown)
        child_disk_rel = join_rel(disk_rel, name)
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
            is_dir_link = not is_dir and entry.is_symlink() and entry.is_dir()
        except OSError as e:
            raise FilesystemError(path=Path(entry.path), reason=e.strerror or str(e)) from e

        if is_dir_link:
            logger.debug("symlinked_directory_skipped", path=child_rel)
            continue

        if is_dir:
            if policy.is_ignored_dir(name):
                continue
            children = _build_level(Path(entry.path), child_rel, child_disk_rel, policy)
            if children:
                nodes.append(DirectoryNode(name=shown, path=child_rel, children=children))
            continue

        if policy.is_ignored_file(name):
            continue
        try:
            size = entry.stat(follow_symlinks=False).st_size
        except OSError as e:
            raise FilesystemError(path=Path(entry.path), reason=e.strerror or str(e)) from e
        disk_path = child_disk_rel if child_disk_rel != child_rel else None
        nodes.append(FileNode(name=shown, path=child_rel, size=size, disk_path=disk_path))
    return nodes


def build_tree(root_dir: Path, policy: IgnorePolicy = DEFAULT_IGNORE_POLICY) -> list[TreeNode]:
    """Build the filtered repository structure under `root_dir`.

    The walk is depth-first with entries sorted by name. Ignored directories
    are skipped with everything beneath them, ignored files are dropped, and a
    directory left without any file is pruned from the result.

    Args:
        root_dir (Path): the root directory to traverse
        policy (IgnorePolicy): names and extensions to skip

    Raises:
        FilesystemError: if a directory cannot be listed or a file's metadata cannot be read.

    Returns:
        list[TreeNode]: the top-level nodes of the structure
    """
    nodes = _build_level(Path(root_dir), "", "", policy)
    logger.info("tree_built", root=str(root_dir), entries=len(nodes))
    return nodes


def read_file_text(path: Path) -> str:
    """Read a file as UTF-8 text, never raising.

    Unreadable or non-UTF-8 files are logged and replaced by a placeholder.

    Args:
        path (Path): the file to read

    Returns:
        str: the decoded content, or `BINARY_PLACEHOLDER`
    """
    try:
        return path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("file_unreadable", path=str(path), error=str(e))
        return BINARY_PLACEHOLDER
