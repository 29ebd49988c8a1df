"""Detection of the installed dnote version.

The installed dnote CLI is asked for its version with the store moved
aside, so that it reports its own version instead of trying to migrate a
half-migrated store.
"""

import logging
import re
import subprocess
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from dnote_doctor import semver
from dnote_doctor.backup import BackupManager, BackupMode
from dnote_doctor.exceptions import (
    BackupError,
    ErrorCode,
    RestoreError,
    SemverParseError,
    VersionDetectionError,
)
from dnote_doctor.semver import Version

logger = logging.getLogger(__name__)

DEFAULT_VERSION_COMMAND = ["dnote", "version"]
DEFAULT_PROGRAM_NAME = "dnote"
DEFAULT_TIMEOUT = 30.0


class VersionSource(ABC):
    """Something that can report the version of the installed store."""

    @abstractmethod
    def get_version(self) -> Version:
        """Return the installed version.

        Raises:
            VersionDetectionError: If the version cannot be determined.
        """


class CommandVersionSource(VersionSource):
    """Runs an external command and reads the version from its output.

    The command must print a line containing ``<program_name> M.m.p``.
    """

    def __init__(
        self,
        command: Optional[Sequence[str]] = None,
        program_name: str = DEFAULT_PROGRAM_NAME,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.command: List[str] = list(command or DEFAULT_VERSION_COMMAND)
        self.program_name = program_name
        self.timeout = timeout
        self._pattern = re.compile(rf"{re.escape(program_name)} (\d+\.\d+\.\d+)")

    def _run(self) -> str:
        """Run the command and return its standard output."""
        try:
            result = subprocess.run(
                self.command,
                check=False,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise VersionDetectionError(
                f"{self.command[0]} is not installed or not in PATH",
                original_error=e,
            ) from e
        except subprocess.TimeoutExpired as e:
            raise VersionDetectionError(
                f"{' '.join(self.command)} timed out after {self.timeout}s",
                original_error=e,
            ) from e
        except OSError as e:
            raise VersionDetectionError(
                f"running {' '.join(self.command)}", original_error=e
            ) from e

        if result.returncode != 0:
            raise VersionDetectionError(
                f"running {' '.join(self.command)} exited with {result.returncode}",
                output=result.stderr or result.stdout,
            )

        return result.stdout

    def parse_output(self, output: str) -> Version:
        """Extract the version from the command output."""
        match = self._pattern.search(output)
        if match is None:
            raise VersionDetectionError(
                "unrecognized version output",
                output=output,
                code=ErrorCode.VERSION_OUTPUT_UNRECOGNIZED,
            )

        try:
            return semver.parse(match.group(1))
        except SemverParseError as e:
            raise VersionDetectionError(
                "parsing semver",
                output=output,
                code=ErrorCode.VERSION_OUTPUT_UNRECOGNIZED,
                original_error=e,
            ) from e

    def get_version(self) -> Version:
        output = self._run()
        logger.debug(f"{' '.join(self.command)} printed: {output.strip()}")
        return self.parse_output(output)


def detect_version(source: VersionSource, backup_manager: BackupManager) -> Version:
    """Ask ``source`` for the version with the store renamed aside.

    The store is always moved back, whether or not the probe succeeded.

    Raises:
        VersionDetectionError: If the store could not be moved aside or
            back, or if the source could not report a version.
    """
    try:
        backup_path = backup_manager.backup_store(BackupMode.RENAME)
    except BackupError as e:
        raise VersionDetectionError("backing up dnote", original_error=e) from e

    try:
        version = source.get_version()
    finally:
        try:
            backup_manager.restore_backup(backup_path)
        except RestoreError as e:
            raise VersionDetectionError(
                "restoring backup after version check",
                backup_path=backup_path,
                code=ErrorCode.VERSION_RESTORE_FAILED,
                original_error=e,
            ) from e

    logger.debug(f"using version {version}")
    return version
