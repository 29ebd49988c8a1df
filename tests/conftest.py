"""Common test fixtures for dnote doctor."""

import json
from pathlib import Path
from typing import Any, Dict, List

import pytest

from dnote_doctor.backup import BACKUP_PREFIX, BackupManager
from dnote_doctor.models.schema import DoctorContext
from dnote_doctor.semver import Version


def make_note(uuid: str, content: str, edited_on: int, added_on: int = 1) -> Dict[str, Any]:
    """Build a note in the legacy JSON shape."""
    return {
        "uuid": uuid,
        "content": content,
        "added_on": added_on,
        "edited_on": edited_on,
        "public": False,
    }


def list_backups(home_dir: Path) -> List[Path]:
    """All backup directories in ``home_dir``, oldest name first."""
    return sorted(p for p in home_dir.iterdir() if p.name.startswith(BACKUP_PREFIX))


@pytest.fixture
def home_dir(tmp_path):
    """A fake home directory."""
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def store_dir(home_dir):
    """An existing, empty dnote store directory."""
    store = home_dir / ".dnote"
    store.mkdir()
    return store


@pytest.fixture
def ctx(home_dir, store_dir):
    """A doctor context for dnote 0.4.4."""
    return DoctorContext(version=Version(0, 4, 4), home_dir=home_dir, store_dir=store_dir)


@pytest.fixture
def backup_manager(home_dir, store_dir):
    """A BackupManager for the fake store."""
    return BackupManager(home_dir=home_dir, store_dir=store_dir)


@pytest.fixture
def write_store(store_dir):
    """Write a legacy JSON store file and return its path."""

    def _write(books: Dict[str, Any]) -> Path:
        path = store_dir / "dnote"
        path.write_text(json.dumps(books))
        return path

    return _write


@pytest.fixture
def duplicated_books():
    """Books with notes duplicated by successive edits."""
    return {
        "js": {
            "name": "js",
            "notes": [
                make_note("uuid1", "content 1", 2),
                make_note("uuid1", "content 1-edited-v1", 3),
                make_note("uuid1", "content 1-edited-v2", 4),
                make_note("uuid2", "content 2", 2),
                make_note("uuid3", "content 3", 2),
                make_note("uuid3", "content 3-edited", 3),
            ],
        },
        "css": {
            "name": "css",
            "notes": [
                make_note("uuid4", "content 4", 0),
                make_note("uuid5", "content 5", 0),
                make_note("uuid5", "content 5-edited", 3),
            ],
        },
    }


@pytest.fixture
def deduplicated_books():
    """The expected result of deduplicating ``duplicated_books``."""
    return {
        "js": {
            "name": "js",
            "notes": [
                make_note("uuid1", "content 1-edited-v2", 4),
                make_note("uuid2", "content 2", 2),
                make_note("uuid3", "content 3-edited", 3),
            ],
        },
        "css": {
            "name": "css",
            "notes": [
                make_note("uuid4", "content 4", 0),
                make_note("uuid5", "content 5-edited", 3),
            ],
        },
    }
