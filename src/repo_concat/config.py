from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

IGNORED_DIRS: frozenset[str] = frozenset({
    ".git",
    "node_modules",
    "target",
    "dist",
    "build",
})

IGNORED_FILES: frozenset[str] = frozenset({
    ".DS_Store",
    "yarn.lock",
})

IGNORED_EXTENSIONS: frozenset[str] = frozenset({
    # binaries
    "exe",
    "dll",
    "so",
    "dylib",
    # images
    "png",
    "jpg",
    "jpeg",
    "gif",
    "ico",
    "bmp",
    "tiff",
    "webp",
    # archives
    "zip",
    "rar",
    "7z",
    "tar",
    "gz",
    "bz2",
    # documents and compiled artefacts
    "pdf",
    "doc",
    "docx",
    "xls",
    "xlsx",
    "ppt",
    "pptx",
    "class",
    "pyc",
    "pyo",
    "pyd",
    # audio / video
    "mp3",
    "mp4",
    "wav",
    "avi",
    "mov",
    "flv",
    "mkv",
    # databases
    "db",
    "sqlite",
    "sqlite3",
})

EXT2LANG: dict[str, str] = {
    "bash": "bash",
    "c": "c",
    "cpp": "cpp",
    "cs": "csharp",
    "css": "css",
    "dart": "dart",
    "erl": "erlang",
    "ex": "elixir",
    "exs": "elixir",
    "fs": "fsharp",
    "fsx": "fsharp",
    "go": "go",
    "h": "c",
    "hpp": "cpp",
    "hs": "haskell",
    "html": "html",
    "java": "java",
    "js": "javascript",
    "json": "json",
    "jsx": "javascript",
    "kt": "kotlin",
    "lua": "lua",
    "md": "markdown",
    "perl": "perl",
    "php": "php",
    "pl": "perl",
    "py": "python",
    "r": "r",
    "rb": "ruby",
    "rs": "rust",
    "scala": "scala",
    "scss": "scss",
    "sh": "bash",
    "sql": "sql",
    "swift": "swift",
    "toml": "toml",
    "ts": "typescript",
    "tsx": "typescript",
    "xml": "xml",
    "yaml": "yaml",
    "yml": "yaml",
}


def file_extension(name: str) -> str:
    """Return the extension of a file name, without the leading dot.

    A name whose only dot is its first character (``.bashrc``) has no extension.

    Args:
        name (str): base name of the file

    Returns:
        str: the extension, or an empty string when there is none
    """
    stem, dot, ext = name.rpartition(".")
    if not dot or not stem:
        return ""
    return ext


def language_for(name: str) -> str:
    """Get the code fence language for a file name.

    The lookup is case-insensitive on the extension.

    Args:
        name (str): base name of the file

    Returns:
        str: the fence language, or an empty string if the extension is unknown
    """
    return EXT2LANG.get(file_extension(name).lower(), "")


class IgnorePolicy(BaseModel):
    """Names and extensions excluded from both the structure summary and the contents."""

    model_config = ConfigDict(frozen=True)

    dirs: frozenset[str] = Field(default=IGNORED_DIRS, description="Directory names skipped with their subtree.")
    files: frozenset[str] = Field(default=IGNORED_FILES, description="File names skipped.")
    extensions: frozenset[str] = Field(
        default=IGNORED_EXTENSIONS,
        description="Lowercase file extensions skipped, without the leading dot.",
    )

    def is_ignored_dir(self, name: str) -> bool:
        """Check whether a directory (and everything beneath it) is skipped."""
        return name in self.dirs

    def is_ignored_file(self, name: str) -> bool:
        """Check whether a file is skipped, by exact name or by extension.

        Args:
            name (str): base name of the file

        Returns:
            bool: True if the file must not appear in the output
        """
        if name in self.files:
            return True
        ext = file_extension(name)
        return bool(ext) and ext.lower() in self.extensions


DEFAULT_IGNORE_POLICY = IgnorePolicy()


class FileNode(BaseModel):
    """A file kept in the repository structure.

    Attributes:
        type: Discriminator, always "file".
        name: Base name of the file.
        path: Path relative to the traversal root, "/"-joined.
        size: File size in bytes.
        disk_path: Relative path to read from, set only when it differs from `path`.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["file"] = "file"
    name: str
    path: str
    size: int = Field(..., ge=0, description="File size in bytes")
    disk_path: str | None = Field(
        default=None,
        exclude=True,
        repr=False,
        description="On-disk relative path when `path` had undecodable bytes replaced",
    )


class DirectoryNode(BaseModel):
    """A directory kept in the repository structure.

    Only directories with at least one surviving descendant file are built.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["directory"] = "directory"
    name: str
    path: str
    children: list[TreeNode] = Field(..., min_length=1)


TreeNode = Annotated[FileNode | DirectoryNode, Field(discriminator="type")]

DirectoryNode.model_rebuild()
