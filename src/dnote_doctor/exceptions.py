"""Custom exceptions for dnote doctor.

Provides a structured exception hierarchy with error codes and
machine-readable error information so that every failure reported to the
user names the stage and the files involved.
"""
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union


class ErrorCode(Enum):
    """Error codes for machine-readable error identification."""

    # Configuration errors (1xxx)
    CONFIG_INVALID = 1001
    HOME_DIR_UNRESOLVED = 1002

    # Parse errors (2xxx)
    SEMVER_INVALID = 2001
    SNAPSHOT_INVALID_JSON = 2002
    SNAPSHOT_INVALID_SHAPE = 2003
    SNAPSHOT_READ_FAILED = 2004
    SNAPSHOT_WRITE_FAILED = 2005

    # Backup errors (3xxx)
    BACKUP_FAILED = 3001
    BACKUP_COLLISION = 3002
    RESTORE_FAILED = 3003

    # Version detection errors (4xxx)
    VERSION_PROBE_FAILED = 4001
    VERSION_OUTPUT_UNRECOGNIZED = 4002
    VERSION_RESTORE_FAILED = 4003

    # Fix errors (5xxx)
    FIX_FAILED = 5001
    FIX_INTERRUPTED = 5002


class DoctorError(Exception):
    """Base exception for all dnote doctor errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_INVALID,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for serialization."""
        return {
            "error": self.__class__.__name__,
            "code": self.code.value,
            "code_name": self.code.name,
            "message": self.message,
            "details": self.details
        }

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"[{self.code.name}] {self.message} ({detail_str})"
        return f"[{self.code.name}] {self.message}"


class ConfigurationError(DoctorError):
    """Raised for configuration-related errors."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        code: ErrorCode = ErrorCode.CONFIG_INVALID
    ):
        details = {}
        if config_key:
            details["config_key"] = config_key

        super().__init__(message, code=code, details=details)
        self.config_key = config_key


class SemverParseError(DoctorError):
    """Raised when a version string is not MAJOR.MINOR.PATCH[-PRERELEASE]."""

    def __init__(self, value: str):
        super().__init__(
            f"invalid semver {value!r}",
            code=ErrorCode.SEMVER_INVALID,
            details={"value": value[:100]}
        )
        self.value = value


class SnapshotDecodeError(DoctorError):
    """Raised when the legacy JSON store cannot be decoded."""

    def __init__(
        self,
        message: str,
        path: Optional[Union[str, Path]] = None,
        code: ErrorCode = ErrorCode.SNAPSHOT_INVALID_SHAPE,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if path:
            details["path"] = str(path)
        if original_error:
            details["original_error"] = str(original_error)[:200]

        super().__init__(message, code=code, details=details)
        self.path = path
        self.original_error = original_error


class SnapshotWriteError(DoctorError):
    """Raised when the legacy JSON store cannot be written back."""

    def __init__(
        self,
        message: str,
        path: Union[str, Path],
        original_error: Optional[Exception] = None
    ):
        details: Dict[str, Any] = {"path": str(path)}
        if original_error:
            details["original_error"] = str(original_error)[:200]

        super().__init__(message, code=ErrorCode.SNAPSHOT_WRITE_FAILED, details=details)
        self.path = path
        self.original_error = original_error


class BackupError(DoctorError):
    """Raised when the store directory cannot be backed up."""

    def __init__(
        self,
        message: str,
        source: Optional[Union[str, Path]] = None,
        backup_path: Optional[Union[str, Path]] = None,
        mode: Optional[str] = None,
        code: ErrorCode = ErrorCode.BACKUP_FAILED,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if source:
            details["source"] = str(source)
        if backup_path:
            details["backup_path"] = str(backup_path)
        if mode:
            details["mode"] = mode
        if original_error:
            details["original_error"] = str(original_error)[:200]

        super().__init__(message, code=code, details=details)
        self.source = source
        self.backup_path = backup_path
        self.mode = mode
        self.original_error = original_error


class RestoreError(DoctorError):
    """Raised when a backup cannot be moved back into place.

    The user's data is intact in ``backup_path`` when this is raised.
    """

    def __init__(
        self,
        message: str,
        backup_path: Union[str, Path],
        store_dir: Union[str, Path],
        original_error: Optional[Exception] = None
    ):
        details: Dict[str, Any] = {
            "backup_path": str(backup_path),
            "store_dir": str(store_dir),
        }
        if original_error:
            details["original_error"] = str(original_error)[:200]

        super().__init__(message, code=ErrorCode.RESTORE_FAILED, details=details)
        self.backup_path = backup_path
        self.store_dir = store_dir
        self.original_error = original_error


class VersionDetectionError(DoctorError):
    """Raised when the installed store version cannot be determined."""

    def __init__(
        self,
        message: str,
        output: Optional[str] = None,
        backup_path: Optional[Union[str, Path]] = None,
        code: ErrorCode = ErrorCode.VERSION_PROBE_FAILED,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if output is not None:
            details["output"] = output.strip()[:200]
        if backup_path:
            details["backup_path"] = str(backup_path)
        if original_error:
            details["original_error"] = str(original_error)[:200]

        super().__init__(message, code=code, details=details)
        self.output = output
        self.backup_path = backup_path
        self.original_error = original_error


class FixError(DoctorError):
    """Raised (or recorded) when applying an issue's fix fails.

    Attributes:
        issue_name: Name of the issue being fixed
        stage: Where the attempt failed ("backup", "fix" or "interrupted")
        backup_path: Backup taken before the attempt, if any
        original_error: The underlying exception if applicable
    """

    def __init__(
        self,
        issue_name: str,
        stage: str,
        backup_path: Optional[Union[str, Path]] = None,
        original_error: Optional[BaseException] = None,
        code: ErrorCode = ErrorCode.FIX_FAILED
    ):
        reason = str(original_error) if original_error else "unknown error"
        details: Dict[str, Any] = {"issue": issue_name, "stage": stage}
        if backup_path:
            details["backup_path"] = str(backup_path)

        super().__init__(
            f"failed to diagnose {issue_name} during {stage}: {reason}",
            code=code,
            details=details
        )
        self.issue_name = issue_name
        self.stage = stage
        self.backup_path = backup_path
        self.original_error = original_error
