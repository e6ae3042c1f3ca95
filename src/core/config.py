"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TASKTREE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    data_file: Path | None = Field(
        default=None,
        description="Explicit collection file; skips discovery when set",
    )
    data_file_name: str = Field(
        default=".todos.json",
        description="File name looked up from the working directory upwards",
    )
    home_dir: Path = Field(default_factory=Path.home)
    json_indent: int = Field(default=2, ge=0)

    # Display
    short_id_length: int = Field(default=7, ge=1)

    # Logging
    log_level: str = Field(default="WARNING")
    log_json: bool = Field(default=False)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def home_data_file(self) -> Path:
        """Fallback collection file in the home directory."""
        return self.home_dir / self.data_file_name

    def resolve_data_file(self, cwd: Path | None = None) -> Path:
        """Pick the collection file for this run.

        An explicit ``data_file`` always wins. Otherwise the nearest
        ``data_file_name`` in ``cwd`` or one of its parents is used, and
        the home directory file is the last resort.
        """
        if self.data_file is not None:
            return self.data_file.expanduser()

        start = (cwd or Path.cwd()).resolve()
        for directory in (start, *start.parents):
            candidate = directory / self.data_file_name
            if candidate.is_file():
                return candidate

        return self.home_data_file


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
