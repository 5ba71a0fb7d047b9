from __future__ import annotations

import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field, computed_field

from repo_concat.source import derive_repo_name

ENV_FILE = find_dotenv(usecwd=True)
load_dotenv(ENV_FILE, override=False)

OUTPUT_DIR_ENV = "REPO_CONCAT_OUTPUT_DIR"
CLONE_TIMEOUT_ENV = "REPO_CONCAT_CLONE_TIMEOUT"


def _default_output_dir() -> Path:
    return Path(os.environ.get(OUTPUT_DIR_ENV) or "output")


def _default_clone_timeout() -> str | None:
    raw = os.environ.get(CLONE_TIMEOUT_ENV, "").strip()
    return raw or None


class Settings(BaseModel):
    """Configuration settings for the repo_concat module."""

    model_config = ConfigDict(arbitrary_types_allowed=True, validate_default=True)

    source: str = Field(..., min_length=1, description="Local directory or remote clone URL.")
    output_dir: Path = Field(default_factory=_default_output_dir, description="Output directory.")
    clone_timeout: float | None = Field(
        default_factory=_default_clone_timeout,
        gt=0,
        description="Seconds before git clone is abandoned; None waits forever.",
    )
    log_file: str = Field(default="", description="Log file path.")

    @computed_field
    @property
    def output_path(self) -> Path:
        """Markdown file written for this source."""
        return self.output_dir / f"{derive_repo_name(self.source)}.md"
