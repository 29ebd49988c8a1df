"""Data models for the legacy dnote JSON store and the doctor run context."""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, Field, RootModel, field_validator, model_validator

from dnote_doctor.semver import Version

# Name of the legacy JSON store file inside the store directory
LEGACY_STORE_FILENAME = "dnote"


class Note(BaseModel):
    """A note as stored by dnote 0.4.x in the legacy JSON file."""

    uuid: str = Field(..., description="UUID of the note")
    content: str = Field(default="", description="Content of the note")
    added_on: int = Field(
        default=0, description="When the note was added (unix seconds)"
    )
    edited_on: int = Field(
        default=0, description="When the note was last edited (unix seconds)"
    )
    public: bool = Field(default=False, description="Whether the note is public")

    model_config = {"frozen": True}


class Book(BaseModel):
    """A named, ordered collection of notes."""

    name: str = Field(..., description="Name of the book")
    notes: List[Note] = Field(default_factory=list, description="Notes in the book")

    model_config = {"frozen": True}

    @field_validator("notes", mode="before")
    @classmethod
    def validate_notes(cls, v: Optional[List]) -> List:
        """Treat a null notes list as empty."""
        if v is None:
            return []
        return v


class Snapshot(RootModel[Dict[str, Book]]):
    """The whole legacy store: a mapping of book name to book."""

    root: Dict[str, Book] = Field(default_factory=dict)

    @model_validator(mode="after")
    def validate_book_names(self) -> "Snapshot":
        """Each book must be stored under its own name."""
        for key, book in self.root.items():
            if key != book.name:
                raise ValueError(
                    f"book stored under {key!r} is named {book.name!r}"
                )
        return self

    def __len__(self) -> int:
        return len(self.root)

    def __getitem__(self, name: str) -> Book:
        return self.root[name]

    def books(self) -> List[Book]:
        """Return the books in sorted name order."""
        return [self.root[name] for name in sorted(self.root)]

    def iter_notes(self) -> Iterator[Tuple[str, Note]]:
        """Yield (book name, note) pairs for every note in the store."""
        for name, book in self.root.items():
            for note in book.notes:
                yield name, note

    def note_count(self) -> int:
        """Total number of notes across all books."""
        return sum(len(book.notes) for book in self.root.values())


@dataclass(frozen=True)
class DoctorContext:
    """Runtime configuration of a single doctor run.

    Attributes:
        version: Version of the installed dnote CLI.
        home_dir: Home directory that holds the store.
        store_dir: The dnote store directory (normally ``~/.dnote``).
    """

    version: Version
    home_dir: Path
    store_dir: Path

    @property
    def legacy_store_path(self) -> Path:
        """Path to the legacy JSON store file."""
        return self.store_dir / LEGACY_STORE_FILENAME
