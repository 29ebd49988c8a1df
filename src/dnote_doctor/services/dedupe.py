"""Collapse notes that share a UUID into their most recently edited variant.

dnote 0.4.x could write a new entry for every edit of a note instead of
replacing the old one. The duplicates share ``uuid`` and ``added_on`` and
have increasing ``edited_on`` values, so the newest edit is the one to keep.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple

from dnote_doctor.models.schema import Book, Note, Snapshot


@dataclass
class _TaggedNote:
    """A note along with the name of the book it came from."""

    note: Note
    book_name: str


def _flatten(snapshot: Snapshot) -> List[_TaggedNote]:
    return [_TaggedNote(note=note, book_name=name) for name, note in snapshot.iter_notes()]


def _collapse(tagged: List[_TaggedNote]) -> Tuple[List[_TaggedNote], bool]:
    """Keep one entry per run of equal UUIDs in an already sorted list.

    The running winner is only replaced by a strictly newer ``edited_on``,
    so on a tie the entry seen first stays.
    """
    deduped: List[_TaggedNote] = []
    changed = False

    i = 0
    while i < len(tagged):
        current = tagged[i]
        j = i + 1
        while j < len(tagged) and tagged[j].note.uuid == current.note.uuid:
            changed = True
            if tagged[j].note.edited_on > current.note.edited_on:
                current = tagged[j]
            j += 1

        deduped.append(current)
        i = j

    return deduped, changed


def _assemble(deduped: List[_TaggedNote]) -> Snapshot:
    notes_by_book: Dict[str, List[Note]] = {}
    for entry in deduped:
        notes_by_book.setdefault(entry.book_name, []).append(entry.note)

    return Snapshot({
        name: Book(name=name, notes=notes) for name, notes in notes_by_book.items()
    })


def dedupe(snapshot: Snapshot) -> Tuple[Snapshot, bool]:
    """Remove duplicate UUIDs across the whole snapshot.

    Args:
        snapshot: The decoded legacy store.

    Returns:
        A tuple of the deduplicated snapshot and whether any duplicate was
        found. Surviving notes stay in the book recorded with them and are
        ordered by UUID within each book.
    """
    tagged = _flatten(snapshot)
    # list.sort is stable, so equal UUIDs keep their original relative order
    tagged.sort(key=lambda entry: entry.note.uuid)

    deduped, changed = _collapse(tagged)
    return _assemble(deduped), changed
