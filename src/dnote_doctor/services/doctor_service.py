"""Backup-protected execution of issue fixes.

Every relevant issue goes through the same steps: copy the store to a
backup, apply the fix, report the outcome. Backups are never deleted by the
doctor. After a failed fix the store may be partially rewritten, and the
backup is the way back.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from dnote_doctor.backup import BackupManager, BackupMode
from dnote_doctor.exceptions import ErrorCode, FixError
from dnote_doctor.issues import Issue, IssueCatalog, scan_issues
from dnote_doctor.models.schema import DoctorContext
from dnote_doctor.observability import timed_operation

logger = logging.getLogger(__name__)


class FixOutcome(str, Enum):
    """What happened to a single issue."""

    FIXED = "fixed"
    NO_ISSUE_FOUND = "no issue found"
    FAILED = "failed"


@dataclass
class IssueResult:
    """Outcome of running one issue's fix.

    Attributes:
        issue_name: Name of the issue
        outcome: Fixed, no issue found, or failed
        backup_path: Backup taken before the fix, if one was made
        error: Why the attempt failed, for failed outcomes
    """

    issue_name: str
    outcome: FixOutcome
    backup_path: Optional[Path] = None
    error: Optional[FixError] = None

    @property
    def ok(self) -> bool:
        return self.outcome is not FixOutcome.FAILED

    @property
    def interrupted(self) -> bool:
        return self.error is not None and self.error.code is ErrorCode.FIX_INTERRUPTED


@dataclass
class DoctorReport:
    """Results of a doctor run, in the order the issues were processed."""

    results: List[IssueResult] = field(default_factory=list)
    interrupted: bool = False

    @property
    def failed(self) -> List[IssueResult]:
        return [r for r in self.results if r.outcome is FixOutcome.FAILED]

    @property
    def fixed(self) -> List[IssueResult]:
        return [r for r in self.results if r.outcome is FixOutcome.FIXED]


class DoctorService:
    """Runs the fixes of a catalog against a store, one issue at a time."""

    def __init__(self, catalog: IssueCatalog, backup_manager: BackupManager):
        self.catalog = catalog
        self.backup_manager = backup_manager

    def _failed(
        self,
        issue: Issue,
        stage: str,
        error: BaseException,
        backup_path: Optional[Path] = None,
        code: ErrorCode = ErrorCode.FIX_FAILED,
    ) -> IssueResult:
        return IssueResult(
            issue_name=issue.name,
            outcome=FixOutcome.FAILED,
            backup_path=backup_path,
            error=FixError(
                issue.name,
                stage,
                backup_path=backup_path,
                original_error=error,
                code=code,
            ),
        )

    def fix_issue(self, issue: Issue, ctx: DoctorContext) -> IssueResult:
        """Back up the store and apply ``issue``'s fix.

        Failures are returned as a failed result, never raised, so that the
        remaining issues still run. A KeyboardInterrupt is also turned into
        a failed result, marked as interrupted.
        """
        try:
            backup_path = self.backup_manager.backup_store(BackupMode.COPY)
        except KeyboardInterrupt as e:
            logger.error(f"Interrupted while backing up before {issue.name}")
            return self._failed(issue, "interrupted", e, code=ErrorCode.FIX_INTERRUPTED)
        except Exception as e:
            logger.error(f"Backup before {issue.name} failed: {e}")
            return self._failed(issue, "backup", e)

        try:
            with timed_operation("fix", issue=issue.name) as op:
                changed = issue.fix.apply(ctx)
                op["changed"] = changed
        except KeyboardInterrupt as e:
            logger.error(
                f"Interrupted while fixing {issue.name}. "
                f"The store before the fix is backed up at {backup_path}"
            )
            return self._failed(
                issue, "interrupted", e, backup_path, code=ErrorCode.FIX_INTERRUPTED
            )
        except Exception as e:
            logger.error(
                f"Fix for {issue.name} failed: {e}. "
                f"The store before the fix is backed up at {backup_path}",
                exc_info=True,
            )
            return self._failed(issue, "fix", e, backup_path)

        outcome = FixOutcome.FIXED if changed else FixOutcome.NO_ISSUE_FOUND
        logger.info(f"{issue.name}: {outcome.value} (backup at {backup_path})")
        return IssueResult(issue_name=issue.name, outcome=outcome, backup_path=backup_path)

    def run(
        self,
        ctx: DoctorContext,
        on_start: Optional[Callable[[Issue], None]] = None,
        on_result: Optional[Callable[[IssueResult], None]] = None,
    ) -> DoctorReport:
        """Fix every issue relevant to ``ctx.version``, in catalog order.

        Args:
            ctx: Context of this run
            on_start: Called with each issue before it is processed
            on_result: Called with each result after its issue is processed

        Returns:
            A report of every processed issue. After an interrupted issue
            the report is marked interrupted and no further issues run.
        """
        issues = scan_issues(self.catalog, ctx.version)
        logger.debug(f"{len(issues)} issues apply to version {ctx.version}")

        report = DoctorReport()
        for issue in issues:
            if on_start is not None:
                on_start(issue)

            result = self.fix_issue(issue, ctx)
            report.results.append(result)
            if on_result is not None:
                on_result(result)

            if result.interrupted:
                report.interrupted = True
                break

        return report
