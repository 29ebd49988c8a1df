"""Catalog of known dnote store issues and their fixes.

Each issue is scoped to a range of dnote versions and carries a fix
strategy. The catalog is an immutable value built once at start-up and
passed to whatever needs it.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from dnote_doctor.models.schema import DoctorContext
from dnote_doctor.semver import Version
from dnote_doctor.services.dedupe import dedupe
from dnote_doctor.storage.snapshot_codec import read_snapshot, write_snapshot

logger = logging.getLogger(__name__)

DUPLICATE_NOTE_UUID = "duplicate-json-note-uuid"

# Lowest dnote version the duplicate UUID fix is applied to by default
DEFAULT_DUPLICATE_UUID_MIN_VERSION = Version(major=0, minor=4, patch=0)


class FixStrategy(ABC):
    """How an issue is repaired.

    ``apply`` returns True when the store was changed and False when it was
    already clean. It must return False, not raise, when the data it repairs
    does not exist.
    """

    @abstractmethod
    def apply(self, ctx: DoctorContext) -> bool:
        """Apply the fix to the store described by ``ctx``."""


class DuplicateNoteUUIDFix(FixStrategy):
    """Keep only the latest edit of notes sharing a UUID in the JSON store."""

    def apply(self, ctx: DoctorContext) -> bool:
        note_path = ctx.legacy_store_path
        # Stores that never used the JSON format have nothing to fix
        if not note_path.exists():
            logger.debug(f"No legacy store at {note_path}, skipping")
            return False

        snapshot = read_snapshot(note_path)
        deduped, changed = dedupe(snapshot)
        if not changed:
            return False

        logger.info(
            f"Removed {snapshot.note_count() - deduped.note_count()} "
            f"duplicate notes from {note_path}"
        )
        write_snapshot(note_path, deduped)
        return True


@dataclass(frozen=True)
class Issue:
    """A known problem with a dnote store.

    Attributes:
        name: Unique name of the issue
        description: What goes wrong and how the fix repairs it
        fix: Strategy that repairs the issue
        min_version: Lowest affected version, or None for no lower bound
        max_version: Highest affected version, or None for no upper bound
    """

    name: str
    description: str
    fix: FixStrategy
    min_version: Optional[Version] = None
    max_version: Optional[Version] = None

    def relevant(self, version: Version) -> bool:
        """Check if the issue applies to a store at ``version``."""
        return (self.min_version is None or version.gte(self.min_version)) and (
            self.max_version is None or version.lte(self.max_version)
        )


class IssueCatalog:
    """An ordered, immutable collection of issues with unique names."""

    def __init__(self, issues: Tuple[Issue, ...] = ()):
        names = [issue.name for issue in issues]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise ValueError(f"Duplicate issue names in catalog: {sorted(duplicates)}")
        self._issues = tuple(issues)

    @property
    def issues(self) -> Tuple[Issue, ...]:
        return self._issues

    def __iter__(self) -> Iterator[Issue]:
        return iter(self._issues)

    def __len__(self) -> int:
        return len(self._issues)

    def get(self, name: str) -> Optional[Issue]:
        """Look up an issue by name."""
        for issue in self._issues:
            if issue.name == name:
                return issue
        return None


def scan_issues(catalog: IssueCatalog, version: Version) -> List[Issue]:
    """Return the catalog's issues that apply to ``version``, in catalog order."""
    return [issue for issue in catalog if issue.relevant(version)]


def default_catalog(
    duplicate_uuid_min_version: Version = DEFAULT_DUPLICATE_UUID_MIN_VERSION,
) -> IssueCatalog:
    """Build the catalog of all known issues.

    Args:
        duplicate_uuid_min_version: Lower bound of the duplicate UUID issue.
            The bound has moved between releases of this tool, so it is
            configurable rather than fixed here.
    """
    return IssueCatalog((
        Issue(
            name=DUPLICATE_NOTE_UUID,
            min_version=duplicate_uuid_min_version,
            max_version=None,
            description=(
                "Under 0.4.4, some notes have duplicate uuids if they were edited. "
                "Duplicates have the same added_on but successively incrementing "
                "edited_on values. The fix keeps the note with the latest edited_on "
                "value and discards the outdated ones. This can no longer happen in "
                "v0.4.5 and above because SQLite enforces unique note uuids."
            ),
            fix=DuplicateNoteUUIDFix(),
        ),
    ))
