"""Codec for the legacy dnote JSON store.

The legacy store is a single JSON object mapping book names to books. It is
written pretty-printed with two-space indentation and book names in sorted
order, so rewriting an unchanged store produces identical bytes.
"""

import json
import logging
import os
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from dnote_doctor.exceptions import ErrorCode, SnapshotDecodeError, SnapshotWriteError
from dnote_doctor.models.schema import Snapshot

logger = logging.getLogger(__name__)

# Mode used by dnote for the store file
STORE_FILE_MODE = 0o644


def decode(data: Union[bytes, str]) -> Snapshot:
    """Decode the legacy JSON store.

    Raises:
        SnapshotDecodeError: If the input is not JSON or not a mapping of books.
    """
    try:
        raw = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise SnapshotDecodeError(
            "store is not valid JSON",
            code=ErrorCode.SNAPSHOT_INVALID_JSON,
            original_error=e,
        ) from e

    if not isinstance(raw, dict):
        raise SnapshotDecodeError(
            f"store must be a JSON object of books, got {type(raw).__name__}"
        )

    try:
        return Snapshot.model_validate(raw)
    except ValidationError as e:
        raise SnapshotDecodeError(
            "store does not match the book mapping shape", original_error=e
        ) from e


def encode(snapshot: Snapshot) -> bytes:
    """Encode a snapshot as pretty-printed UTF-8 JSON."""
    payload = {book.name: book.model_dump() for book in snapshot.books()}
    return json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")


def read_snapshot(path: Path) -> Snapshot:
    """Read and decode the store file at ``path``."""
    try:
        data = path.read_bytes()
    except OSError as e:
        raise SnapshotDecodeError(
            "reading note content",
            path=path,
            code=ErrorCode.SNAPSHOT_READ_FAILED,
            original_error=e,
        ) from e

    try:
        snapshot = decode(data)
    except SnapshotDecodeError as e:
        e.path = path
        e.details["path"] = str(path)
        raise

    logger.debug(f"Read {snapshot.note_count()} notes in {len(snapshot)} books from {path}")
    return snapshot


def write_snapshot(path: Path, snapshot: Snapshot) -> None:
    """Write the snapshot to ``path`` atomically via a temp file."""
    temp_path = path.with_name(f".{path.name}.tmp")
    try:
        try:
            with open(temp_path, "wb") as f:
                f.write(encode(snapshot))
                f.flush()
                os.fsync(f.fileno())
            os.chmod(temp_path, STORE_FILE_MODE)
            os.replace(temp_path, path)
        except BaseException:
            # Also covers KeyboardInterrupt, the store must not keep a stray temp file
            temp_path.unlink(missing_ok=True)
            raise
    except OSError as e:
        raise SnapshotWriteError("writing dnote file", path=path, original_error=e) from e

    logger.debug(f"Wrote {snapshot.note_count()} notes in {len(snapshot)} books to {path}")
