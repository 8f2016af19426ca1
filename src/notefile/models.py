"""Defines classes for representing notes and the outcomes of operations on them.

The most important class is :class:`Note`.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Union


@dataclass
class Note:
    """A single entry in the notes file."""

    id: str
    """Short identifier, unique within a store. Assigned when the note is created and never changed."""

    timestamp: datetime
    """When the note was created. Always timezone-aware."""

    content: List[str] = field(default_factory=list)
    """The lines of the note, without line terminators. May be empty."""

    @property
    def text(self) -> str:
        return '\n'.join(self.content)

    def as_json(self) -> dict:
        """Returns a dict representing the instance, suitable for serializing as json."""
        return {
            'id': self.id,
            'timestamp': self.timestamp.isoformat(),
            'content': list(self.content),
        }


@dataclass
class Removed:
    """Returned by :meth:`notefile.store.NoteStore.remove` when exactly one note matched and was deleted."""

    note: Note


@dataclass
class NotFound:
    """Returned by :meth:`notefile.store.NoteStore.remove` when no note's id starts with the given prefix."""

    partial_id: str


@dataclass
class Ambiguous:
    """Returned by :meth:`notefile.store.NoteStore.remove` when several notes match the given prefix.

    Nothing is deleted in this case; the caller should retry with a longer prefix.
    """

    partial_id: str

    notes: List[Note] = field(default_factory=list)
    """Every note whose id starts with :attr:`partial_id`, in store order."""


RemoveResult = Union[Removed, NotFound, Ambiguous]
