#!/usr/bin/env python
"""Main entry point for dnote doctor."""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from dnote_doctor import __version__
from dnote_doctor.backup import BackupManager
from dnote_doctor.config import DoctorConfig
from dnote_doctor.exceptions import ConfigurationError, VersionDetectionError
from dnote_doctor.issues import Issue, default_catalog
from dnote_doctor.models.schema import DoctorContext
from dnote_doctor.observability import configure_logging
from dnote_doctor.services.doctor_service import (
    DoctorReport,
    DoctorService,
    FixOutcome,
    IssueResult,
)
from dnote_doctor.version_source import CommandVersionSource, VersionSource, detect_version

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130

HELP_TEXT = """dnote-doctor

Automatically diagnose and fix any issues with local dnote copy.

Usage:
$ dnote-doctor [--home-dir PATH] [--log-level LEVEL]
$ dnote-doctor version
$ dnote-doctor help

Every fix is preceded by a copy of ~/.dnote in ~/.dnote-backup-<timestamp>.
Set DNOTE_DOCTOR_DEBUG=1 to print diagnostic output.
"""


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="dnote-doctor",
        description="Diagnose and fix issues with the local dnote store",
        add_help=False,
    )
    parser.add_argument(
        "--home-dir",
        "--homeDir",
        dest="home_dir",
        help="the full path to the home directory",
        type=str,
        default=None,
    )
    parser.add_argument(
        "--log-level",
        help="Logging level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
    )
    parser.add_argument("command", nargs="?", default=None)
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> DoctorConfig:
    """Build the configuration and apply command line overrides.

    Raises:
        ConfigurationError: If the environment holds invalid settings.
    """
    try:
        config = DoctorConfig()
    except ValidationError as e:
        raise ConfigurationError(f"invalid configuration: {e}") from e

    overrides = {}
    if args.home_dir:
        overrides["home_dir"] = Path(args.home_dir)
    if args.log_level:
        overrides["log_level"] = args.log_level
    return config.model_copy(update=overrides)


def _print_start(issue: Issue) -> None:
    print(f"diagnosing: {issue.name}...")


def _print_result(result: IssueResult) -> None:
    if result.outcome is FixOutcome.FIXED:
        print("✔ fixed")
    elif result.outcome is FixOutcome.NO_ISSUE_FOUND:
        print("✔ no issue found")
    else:
        print(f"⨯ Failed to diagnose {result.issue_name}: {result.error}")
        if result.backup_path is not None:
            print(f"  Your data before this fix is backed up at {result.backup_path}")


def run_doctor(
    config: DoctorConfig,
    version_source: Optional[VersionSource] = None,
) -> DoctorReport:
    """Detect the store version and fix every relevant issue.

    Raises:
        ConfigurationError: If the home directory or the issue bounds are invalid.
        VersionDetectionError: If the installed version cannot be determined.
    """
    home_dir = config.resolve_home_dir()
    store_dir = config.get_store_dir()
    backup_manager = BackupManager(home_dir=home_dir, store_dir=store_dir)

    if version_source is None:
        version_source = CommandVersionSource(
            command=config.version_command,
            program_name=config.version_program_name,
            timeout=config.version_timeout,
        )

    catalog = default_catalog(config.get_duplicate_uuid_min_version())
    version = detect_version(version_source, backup_manager)

    ctx = DoctorContext(version=version, home_dir=home_dir, store_dir=store_dir)
    service = DoctorService(catalog=catalog, backup_manager=backup_manager)

    return service.run(ctx, on_start=_print_start, on_result=_print_result)


def main(
    argv: Optional[List[str]] = None,
    version_source: Optional[VersionSource] = None,
) -> int:
    """Run dnote doctor and return the process exit code."""
    args = parse_args(argv)

    if args.command == "version":
        print(f"dnote-doctor {__version__}")
        return EXIT_OK
    if args.command == "help":
        print(HELP_TEXT)
        return EXIT_OK
    if args.command is not None:
        print(f"unknown command {args.command}")
        return EXIT_USAGE

    try:
        config = load_config(args)
    except ConfigurationError as e:
        configure_logging()
        logger.error(f"Configuration error: {e}")
        return EXIT_FATAL

    try:
        configure_logging(
            level=config.effective_log_level(),
            console=True,
            log_dir=config.log_dir,
        )
        report = run_doctor(config, version_source=version_source)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_FATAL
    except VersionDetectionError as e:
        logger.error(f"Checking version failed: {e}")
        return EXIT_FATAL

    if report.interrupted:
        print("⨯ interrupted, remaining issues were not checked")
        return EXIT_INTERRUPTED

    print("✔ done")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
