"""Application configuration settings.

This module defines the toolkit-wide defaults using Pydantic's BaseSettings.
Values are loaded from environment variables and an optional .env file;
every helper still accepts per-call overrides, so these are only defaults.
"""

from pathlib import Path
from typing import Annotated

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import NoDecode

from toolkit.core.validation import DEFAULT_MAX_FILE_SIZE
from toolkit.core.validation import DEFAULT_MAX_JSON_SIZE
from toolkit.core.validation import RANDOM_NAME_LENGTH


class Settings(BaseSettings):
    """Manages toolkit settings, loading them from environment variables or an .env file.

    Attributes:
        max_file_size: Per-file upload limit in bytes.
        max_json_size: Maximum accepted JSON request body in bytes.
        allow_unknown_fields: Whether JSON bodies may carry keys the target schema does not declare.
        allowed_file_types: Sniffed MIME types accepted for uploads; empty accepts everything.
        upload_dir: Directory uploaded files are written to.
        rename_uploads: Whether uploaded files get a random base name.
        random_name_length: Length of the random base name for renamed uploads.
        download_dir: Directory served by the static download endpoint.
        push_timeout: Timeout in seconds for remote JSON pushes.
        log_level: Level for the toolkit loggers.
    """

    max_file_size: int = Field(default=DEFAULT_MAX_FILE_SIZE)
    max_json_size: int = Field(default=DEFAULT_MAX_JSON_SIZE)
    allow_unknown_fields: bool = Field(default=False)

    allowed_file_types: Annotated[list[str], NoDecode] = Field(default_factory=list)
    upload_dir: Path = Field(default=Path("uploads"))
    rename_uploads: bool = Field(default=True)
    random_name_length: int = Field(default=RANDOM_NAME_LENGTH)

    download_dir: Path = Field(default=Path("static"))

    push_timeout: float = Field(default=10.0, description="Remote JSON push timeout in seconds.")
    log_level: str = Field(default="DEBUG")

    model_config = {
        "env_file": ".env",
        "env_prefix": "",  # No prefix for environment variables
        "extra": "ignore",  # Ignore extra fields
    }

    @field_validator("allowed_file_types", mode="before")  # type: ignore
    @classmethod
    def assemble_allowed_file_types(cls, v: str | list[str] | None) -> list[str]:
        """Assembles the list of allowed upload MIME types.

        If 'v' is a string, it splits it by commas. If 'v' is already a list,
        it's used directly. Otherwise, no restriction is applied.

        Args:
            v: The value from the environment or direct assignment.

        Returns:
            A list of MIME type strings.
        """
        if isinstance(v, str):
            return [mime.strip() for mime in v.split(",") if mime.strip()]
        elif isinstance(v, list):
            return v
        return []


settings = Settings()
