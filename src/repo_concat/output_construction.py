from __future__ import annotations

import io
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import TypeAdapter
from pydantic_core import PydanticSerializationError

from repo_concat.config import DEFAULT_IGNORE_POLICY, DirectoryNode, FileNode, IgnorePolicy, TreeNode, language_for
from repo_concat.exceptions import SerializationError
from repo_concat.file_manipulation import build_tree, read_file_text

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

STRUCTURE_HEADING = "# Repository Structure"
CONTENTS_HEADING = "# File Contents"

_TREE_ADAPTER: TypeAdapter[list[TreeNode]] = TypeAdapter(list[TreeNode])


def iter_files(tree: Sequence[TreeNode]) -> Iterator[FileNode]:
    """Yield the file nodes of `tree` in depth-first order.

    Args:
        tree (Sequence[TreeNode]): the repository structure

    Yields:
        Iterator[FileNode]: every file, in the order its section is rendered
    """
    for node in tree:
        if isinstance(node, DirectoryNode):
            yield from iter_files(node.children)
        else:
            yield node


def render_file_section(node: FileNode, content: str) -> str:
    """Format the markdown section of one file.

    Args:
        node (FileNode): the file being rendered
        content (str): its text, or the binary placeholder

    Returns:
        str: a ``##`` heading with the relative path followed by a fenced block
    """
    lang = language_for(node.name)
    return f"## {node.path}\n\n```{lang}\n{content}\n```\n\n"


def render_contents(tree: Sequence[TreeNode], root_dir: Path) -> str:
    """Render the contents of every file in `tree`.

    Files that cannot be read or decoded as UTF-8 are rendered with a
    placeholder body; rendering itself never fails.

    Args:
        tree (Sequence[TreeNode]): the repository structure
        root_dir (Path): the directory the relative paths start from

    Returns:
        str: one section per file, in depth-first order
    """
    out = io.StringIO()
    root = Path(root_dir)
    for node in iter_files(tree):
        content = read_file_text(root / (node.disk_path or node.path))
        out.write(render_file_section(node, content))
    return out.getvalue()


def serialize_tree(tree: Sequence[TreeNode]) -> str:
    """Serialize the structure as pretty-printed JSON.

    Keys come in the order type, name, path, then size or children.

    Raises:
        SerializationError: if the structure cannot be serialized.
    """
    try:
        return _TREE_ADAPTER.dump_json(list(tree), indent=2).decode("utf-8")
    except (PydanticSerializationError, ValueError) as e:
        raise SerializationError(reason=str(e)) from e


def assemble_document(tree: Sequence[TreeNode], rendered_body: str) -> str:
    """Combine the structure summary and the rendered file sections.

    Args:
        tree (Sequence[TreeNode]): the repository structure
        rendered_body (str): output of `render_contents`

    Returns:
        str: the complete markdown document
    """
    out = io.StringIO()
    out.write(f"{STRUCTURE_HEADING}\n\n")
    out.write("```json\n")
    out.write(serialize_tree(tree))
    out.write("\n```\n\n")
    out.write(f"{CONTENTS_HEADING}\n\n")
    out.write(rendered_body)
    return out.getvalue()


def generate_markdown(root_dir: Path, policy: IgnorePolicy = DEFAULT_IGNORE_POLICY) -> str:
    """Build, render and assemble the document for a local directory.

    Raises:
        FilesystemError: if the tree cannot be built.
        SerializationError: if the tree cannot be serialized.
    """
    tree = build_tree(root_dir, policy)
    body = render_contents(tree, root_dir)
    return assemble_document(tree, body)
