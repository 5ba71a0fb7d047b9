from dataclasses import dataclass
from pathlib import Path


@dataclass(eq=False)
class RepoConcatError(Exception):
    """Base exception for errors in the repo_concat module."""


@dataclass(eq=False)
class SourceUnavailable(RepoConcatError):  # noqa: N818
    """Raised when a remote repository cannot be cloned into a usable directory."""

    location: str
    reason: str

    def __str__(self) -> str:
        return f"Cannot use source {self.location!r}: {self.reason}"


@dataclass(eq=False)
class FilesystemError(RepoConcatError):
    """Raised when a directory cannot be listed or a file's metadata cannot be read."""

    path: Path
    reason: str

    def __str__(self) -> str:
        return f"Filesystem error on {self.path}: {self.reason}"


@dataclass(eq=False)
class SerializationError(RepoConcatError):
    """Raised when the repository structure cannot be serialized."""

    reason: str

    def __str__(self) -> str:
        return f"Cannot serialize repository structure: {self.reason}"
