"""Tests for the issue catalog, applicability and the duplicate UUID fix."""
import json

import pytest

from dnote_doctor.exceptions import SnapshotDecodeError
from dnote_doctor.issues import (
    DEFAULT_DUPLICATE_UUID_MIN_VERSION,
    DUPLICATE_NOTE_UUID,
    DuplicateNoteUUIDFix,
    Issue,
    IssueCatalog,
    default_catalog,
    scan_issues,
)
from dnote_doctor.semver import Version
from tests.fakes import RecordingFix


def _issue(name, min_version=None, max_version=None):
    return Issue(
        name=name,
        description=f"{name} description",
        fix=RecordingFix(),
        min_version=min_version,
        max_version=max_version,
    )


class TestRelevance:
    """Tests for Issue.relevant."""

    def test_unbounded_issue_always_relevant(self):
        issue = _issue("any")
        assert issue.relevant(Version(0, 0, 0))
        assert issue.relevant(Version(9, 9, 9))

    def test_min_version_only(self):
        """1.0.0 is relevant to an issue starting at 0.2.0."""
        issue = _issue("min", min_version=Version(0, 2, 0))
        assert issue.relevant(Version(1, 0, 0))
        assert issue.relevant(Version(0, 2, 0))

    def test_min_version_excludes_when_every_component_smaller(self):
        issue = _issue("min", min_version=Version(1, 2, 1))
        assert not issue.relevant(Version(0, 1, 0))

    def test_min_version_component_wise(self):
        """0.1.9 counts as at least 0.4.0 because the major components match."""
        issue = _issue("min", min_version=Version(0, 4, 0))
        assert issue.relevant(Version(0, 1, 9))

    def test_max_version(self):
        issue = _issue("max", max_version=Version(0, 4, 4))
        assert issue.relevant(Version(0, 4, 3))
        assert not issue.relevant(Version(0, 4, 4))
        assert not issue.relevant(Version(0, 5, 5))

    def test_relevant_for_every_version_at_or_above_min(self):
        min_version = Version(0, 4, 0)
        issue = _issue("min", min_version=min_version)
        for version in [Version(0, 4, 0), Version(0, 4, 4), Version(0, 5, 0), Version(1, 0, 0)]:
            assert version.gte(min_version)
            assert issue.relevant(version)


class TestCatalog:
    """Tests for IssueCatalog and scan_issues."""

    def test_scan_keeps_catalog_order(self):
        catalog = IssueCatalog((
            _issue("first"),
            _issue("skipped", max_version=Version(0, 0, 1)),
            _issue("second", min_version=Version(0, 1, 0)),
        ))
        names = [i.name for i in scan_issues(catalog, Version(0, 4, 4))]
        assert names == ["first", "second"]

    def test_scan_can_be_empty(self):
        catalog = IssueCatalog((_issue("old", max_version=Version(0, 0, 1)),))
        assert scan_issues(catalog, Version(0, 4, 4)) == []
        assert scan_issues(IssueCatalog(), Version(0, 4, 4)) == []

    def test_duplicate_names_rejected(self):
        with pytest.raises(ValueError):
            IssueCatalog((_issue("same"), _issue("same")))

    def test_get_by_name(self):
        catalog = IssueCatalog((_issue("one"), _issue("two")))
        assert catalog.get("two").name == "two"
        assert catalog.get("three") is None

    def test_catalog_is_immutable(self):
        catalog = default_catalog()
        assert isinstance(catalog.issues, tuple)
        with pytest.raises(AttributeError):
            catalog.issues[0].name = "renamed"

    def test_default_catalog(self):
        catalog = default_catalog()
        assert len(catalog) == 1
        issue = catalog.get(DUPLICATE_NOTE_UUID)
        assert issue.min_version == DEFAULT_DUPLICATE_UUID_MIN_VERSION
        assert issue.max_version is None
        assert isinstance(issue.fix, DuplicateNoteUUIDFix)

    def test_default_catalog_min_version_is_configurable(self):
        catalog = default_catalog(Version(0, 2, 0))
        assert catalog.get(DUPLICATE_NOTE_UUID).min_version == Version(0, 2, 0)


class TestDuplicateNoteUUIDFix:
    """Tests for the duplicate-json-note-uuid fix."""

    def test_fix_removes_duplicates(self, ctx, write_store, duplicated_books, deduplicated_books):
        path = write_store(duplicated_books)

        changed = DuplicateNoteUUIDFix().apply(ctx)

        assert changed is True
        assert json.loads(path.read_text()) == deduplicated_books

    def test_fix_writes_pretty_json(self, ctx, write_store, duplicated_books):
        path = write_store(duplicated_books)
        DuplicateNoteUUIDFix().apply(ctx)
        assert path.read_text().startswith('{\n  "css": {\n')

    def test_missing_legacy_file(self, ctx, store_dir):
        """Stores that never used the JSON format are left alone."""
        assert DuplicateNoteUUIDFix().apply(ctx) is False
        assert list(store_dir.iterdir()) == []

    def test_clean_store_not_rewritten(self, ctx, write_store, deduplicated_books):
        path = write_store(deduplicated_books)
        before = path.read_bytes()

        assert DuplicateNoteUUIDFix().apply(ctx) is False
        assert path.read_bytes() == before

    def test_second_run_finds_nothing(self, ctx, write_store, duplicated_books):
        write_store(duplicated_books)
        fix = DuplicateNoteUUIDFix()

        assert fix.apply(ctx) is True
        assert fix.apply(ctx) is False

    def test_corrupt_store_raises(self, ctx, store_dir):
        path = store_dir / "dnote"
        path.write_text("{broken")

        with pytest.raises(SnapshotDecodeError):
            DuplicateNoteUUIDFix().apply(ctx)
        assert path.read_text() == "{broken"
