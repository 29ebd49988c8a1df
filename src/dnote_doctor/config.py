"""Configuration module for dnote doctor."""

import logging
import os
import shlex
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

from dnote_doctor import semver
from dnote_doctor.exceptions import ConfigurationError, ErrorCode, SemverParseError
from dnote_doctor.semver import Version

# Load environment variables from the project root .env file.
# Anchored to __file__ so it works regardless of the process CWD.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# User-level config. Kept outside ~/.dnote because the store directory is
# copied and moved around while the doctor runs.
_USER_ENV = Path.home() / ".config" / "dnote-doctor" / ".env"
load_dotenv(_USER_ENV)


logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _optional_path(env_var: str) -> Optional[Path]:
    value = os.getenv(env_var)
    return Path(value).expanduser() if value else None


class DoctorConfig(BaseModel):
    """Configuration for a dnote doctor run.

    Values read from the environment arrive as strings and go through the
    same validators as explicit arguments.
    """

    model_config = {"validate_default": True}

    # Home directory holding the store. None means the current user's home.
    home_dir: Optional[Path] = Field(
        default_factory=lambda: _optional_path("DNOTE_DOCTOR_HOME_DIR")
    )
    # Name of the store directory inside the home directory
    store_dir_name: str = Field(
        default_factory=lambda: os.getenv("DNOTE_DOCTOR_STORE_DIR_NAME", ".dnote")
    )
    # Command that prints the installed dnote version
    version_command: List[str] = Field(
        default_factory=lambda: os.getenv("DNOTE_DOCTOR_VERSION_COMMAND", "dnote version")
    )
    # Program name preceding the version number in the command output
    version_program_name: str = Field(
        default_factory=lambda: os.getenv("DNOTE_DOCTOR_VERSION_PROGRAM", "dnote")
    )
    version_timeout: float = Field(
        default_factory=lambda: os.getenv("DNOTE_DOCTOR_VERSION_TIMEOUT", "30")
    )
    # Verbose diagnostics, only enabled by the literal value "1"
    debug: bool = Field(
        default_factory=lambda: os.getenv("DNOTE_DOCTOR_DEBUG") == "1"
    )
    log_level: str = Field(
        default_factory=lambda: os.getenv("DNOTE_DOCTOR_LOG_LEVEL", "WARNING")
    )
    # Rotating file log is written here when set
    log_dir: Optional[Path] = Field(
        default_factory=lambda: _optional_path("DNOTE_DOCTOR_LOG_DIR")
    )
    # Lower bound of the duplicate-json-note-uuid issue
    duplicate_uuid_min_version: str = Field(
        default_factory=lambda: os.getenv(
            "DNOTE_DOCTOR_DUPLICATE_UUID_MIN_VERSION", "0.4.0"
        )
    )

    @field_validator("version_command", mode="before")
    @classmethod
    def split_version_command(cls, v):
        """Split a command line string into its arguments."""
        if isinstance(v, str):
            try:
                return shlex.split(v)
            except ValueError as e:
                raise ValueError(f"version_command is not a valid command line: {e}") from e
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and check the log level name."""
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level

    @field_validator("duplicate_uuid_min_version")
    @classmethod
    def validate_min_version(cls, v: str) -> str:
        """The issue bound must be a parseable version."""
        try:
            semver.parse(v)
        except SemverParseError as e:
            raise ValueError(str(e)) from e
        return v.strip()

    @model_validator(mode="after")
    def _validate_probe(self) -> "DoctorConfig":
        """Validate the version probe settings."""
        if not self.version_command:
            raise ValueError("version_command cannot be empty")
        if self.version_timeout <= 0:
            raise ValueError("version_timeout must be > 0")
        return self

    def effective_log_level(self) -> int:
        """Logging level to use, forced to DEBUG by the debug flag."""
        if self.debug:
            return logging.DEBUG
        return getattr(logging, self.log_level, logging.WARNING)

    def resolve_home_dir(self) -> Path:
        """Get the home directory, defaulting to the current user's.

        Raises:
            ConfigurationError: If no home directory can be determined.
        """
        if self.home_dir is not None:
            return self.home_dir.expanduser().resolve()
        try:
            return Path.home()
        except RuntimeError as e:
            raise ConfigurationError(
                f"getting the current user's home directory: {e}",
                config_key="home_dir",
                code=ErrorCode.HOME_DIR_UNRESOLVED,
            ) from e

    def get_store_dir(self) -> Path:
        """Get the absolute path to the dnote store directory."""
        return self.resolve_home_dir() / self.store_dir_name

    def get_duplicate_uuid_min_version(self) -> Version:
        """Lower version bound of the duplicate-json-note-uuid issue.

        Raises:
            ConfigurationError: If the bound was overridden with a bad version.
        """
        try:
            return semver.parse(self.duplicate_uuid_min_version)
        except SemverParseError as e:
            raise ConfigurationError(
                str(e), config_key="duplicate_uuid_min_version"
            ) from e
