"""Repository to single Markdown document conversion."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("repo-concat")
except PackageNotFoundError:
    __version__ = "unknown"
