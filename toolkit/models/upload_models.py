from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from toolkit.core.config import settings
from toolkit.core.validation import DEFAULT_MAX_FILE_SIZE


class UploadedFile(BaseModel):
    """A file accepted and written to disk by the upload pipeline."""

    model_config = ConfigDict(frozen=True)

    original_name: str
    new_name: str
    size: int


class UploadConfig(BaseModel):
    """Per-call upload options; unset values fall back to the settings."""

    max_file_size: int = Field(default_factory=lambda: settings.max_file_size, ge=0)
    allowed_types: frozenset[str] = Field(default_factory=lambda: frozenset(settings.allowed_file_types))
    upload_dir: Path = Field(default_factory=lambda: settings.upload_dir)
    rename: bool = Field(default_factory=lambda: settings.rename_uploads)

    @property
    def effective_max_file_size(self) -> int:
        """The per-file limit, with 0 meaning the built-in default."""
        return self.max_file_size or DEFAULT_MAX_FILE_SIZE
