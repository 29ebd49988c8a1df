"""Backup utilities for the dnote store directory.

Two strategies are provided:
- COPY duplicates the store tree and is taken before every fix
- RENAME moves the store aside while the installed dnote is asked for
  its version, and is undone with ``restore_backup``

Backups live beside the store in the home directory and are named
``.dnote-backup-<unix nanoseconds>``.
"""
import logging
import shutil
import time
from enum import Enum
from pathlib import Path
from typing import Callable, Union

from dnote_doctor.exceptions import BackupError, ErrorCode, RestoreError

logger = logging.getLogger(__name__)

BACKUP_PREFIX = ".dnote-backup-"

# How many fresh timestamps to try before giving up on a name collision
DEFAULT_MAX_ATTEMPTS = 5

RESTORE_FAILED_MESSAGE = """Failed to restore backup from dnote doctor.
Don't worry. Your data is still intact in the backup at {backup_path}.
Move it back to {store_dir} manually, or reach out on
https://github.com/dnote/cli/issues so that we can help you."""


class BackupMode(str, Enum):
    """How the store directory is backed up."""

    COPY = "copy"
    RENAME = "rename"


class BackupManager:
    """Creates and restores backups of a dnote store directory."""

    def __init__(
        self,
        home_dir: Union[str, Path],
        store_dir: Union[str, Path],
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        clock: Callable[[], int] = time.time_ns,
    ):
        """Initialize the backup manager.

        Args:
            home_dir: Directory the backups are created in
            store_dir: The store directory to back up
            max_attempts: Timestamps to try when a backup name already exists
            clock: Source of the nanosecond timestamp used in backup names
        """
        self.home_dir = Path(home_dir)
        self.store_dir = Path(store_dir)
        self.max_attempts = max_attempts
        self._clock = clock

    def _new_backup_path(self) -> Path:
        """Pick a backup path that does not exist yet."""
        for attempt in range(self.max_attempts):
            candidate = self.home_dir / f"{BACKUP_PREFIX}{self._clock()}"
            if not candidate.exists():
                return candidate
            logger.debug(
                f"Backup path {candidate} already exists, retry {attempt + 1}/{self.max_attempts}"
            )

        raise BackupError(
            f"Could not find a free backup name after {self.max_attempts} attempts",
            source=self.store_dir,
            code=ErrorCode.BACKUP_COLLISION,
        )

    def backup_store(self, mode: BackupMode) -> Path:
        """Back up the store directory.

        Args:
            mode: COPY to leave the store in place, RENAME to move it aside

        Returns:
            Path to the backup directory.

        Raises:
            BackupError: If the store could not be backed up.
        """
        backup_path = self._new_backup_path()
        logger.debug(f"backing up {self.store_dir} to {backup_path} ({mode.value})")

        try:
            if mode is BackupMode.COPY:
                shutil.copytree(self.store_dir, backup_path, symlinks=True)
            else:
                self.store_dir.rename(backup_path)
        except OSError as e:
            raise BackupError(
                f"backing up {self.store_dir} using {mode.value} mode",
                source=self.store_dir,
                backup_path=backup_path,
                mode=mode.value,
                original_error=e,
            ) from e

        logger.info(f"Store backup created: {backup_path} ({mode.value})")
        return backup_path

    def restore_backup(self, backup_path: Union[str, Path]) -> None:
        """Move a backup back into the store location.

        Whatever is currently at the store location is removed first.

        Raises:
            RestoreError: If the backup could not be moved back. The backup
                is left where it is.
        """
        backup_path = Path(backup_path)
        logger.debug(f"restoring {backup_path} to {self.store_dir}")

        try:
            if self.store_dir.exists():
                shutil.rmtree(self.store_dir)
            backup_path.rename(self.store_dir)
        except OSError as e:
            logger.error(
                RESTORE_FAILED_MESSAGE.format(
                    backup_path=backup_path, store_dir=self.store_dir
                )
            )
            raise RestoreError(
                "Failed to move backup data to the original directory",
                backup_path=backup_path,
                store_dir=self.store_dir,
                original_error=e,
            ) from e

        logger.info(f"Store restored from: {backup_path}")
