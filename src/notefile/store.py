"""Provides the :class:`NoteStore` class, which loads, changes, and saves the notes file.

The whole file is read at the start of an operation and rewritten at the end. There is no locking, so if two
processes change the notes at the same moment, the last one to save wins.
"""

from __future__ import annotations
from datetime import datetime, tzinfo
import logging
from operator import attrgetter
import os
import os.path
import string
from tempfile import mkstemp
from typing import List, Optional, Sequence, Set

import shortuuid

from notefile.codec import decode, encode
from notefile.models import Ambiguous, Note, NotFound, Removed, RemoveResult

ID_ALPHABET = string.ascii_lowercase + string.digits
ID_LENGTH = 4

logger = logging.getLogger(__name__)

_id_generator = shortuuid.ShortUUID(alphabet=ID_ALPHABET)


class StoreFullError(Exception):
    """Raised when every possible id is already in use."""


def allocate_id(taken: Set[str]) -> str:
    """Returns a random id that is not in ``taken``.

    Candidates are drawn uniformly from :data:`ID_ALPHABET` and rejected until one is free.
    """
    usable = {i for i in taken if len(i) == ID_LENGTH and set(i) <= set(ID_ALPHABET)}
    if len(usable) >= len(ID_ALPHABET) ** ID_LENGTH:
        raise StoreFullError(f'All {len(usable)} possible note ids are in use')
    while True:
        candidate = _id_generator.random(length=ID_LENGTH)
        if candidate not in taken:
            return candidate
        logger.debug('Generated id %s is already taken, retrying', candidate)


class NoteStore:
    """Holds the notes from one notes file in memory.

    Call :meth:`load` before anything else. Methods that change notes save the whole file immediately.

    .. attribute:: path
       :type: str

    .. attribute:: tz
       :type: Optional[datetime.tzinfo]

       Timezone for new notes and for stored timestamps lacking an offset. None means the local timezone.

    .. attribute:: notes
       :type: List[notefile.models.Note]

       The notes in file order.
    """
    def __init__(self, path: str, tz: Optional[tzinfo] = None):
        self.path = path
        self.tz = tz
        self.notes: List[Note] = []

    def load(self) -> List[Note]:
        """Reads all notes from the file, replacing any already in memory.

        A missing file counts as empty. Raises :exc:`notefile.codec.FormatError` if the file is corrupt, in which
        case the notes in memory are left unchanged.
        """
        try:
            with open(self.path, 'r', encoding='utf-8') as file:
                text = file.read()
        except FileNotFoundError:
            logger.debug('No notes file at %s, starting empty', self.path)
            self.notes = []
            return self.notes
        self.notes = list(decode(text, self.tz))
        logger.debug('Loaded %d notes from %s', len(self.notes), self.path)
        return self.notes

    def ids(self) -> Set[str]:
        return {note.id for note in self.notes}

    def now(self) -> datetime:
        if self.tz:
            now = datetime.now(self.tz)
        else:
            now = datetime.now().astimezone()
        return now.replace(microsecond=0)

    def create(self, content: Sequence[str]) -> Note:
        """Adds a note with a new id and the current time, and saves."""
        note = Note(allocate_id(self.ids()), self.now(), list(content))
        self.notes.append(note)
        self.persist()
        return note

    def list(self) -> List[Note]:
        """Returns the notes sorted newest first. Notes with equal timestamps keep their file order."""
        return sorted(self.notes, key=attrgetter('timestamp'), reverse=True)

    def remove(self, partial_id: str) -> RemoveResult:
        """Deletes the note whose id starts with ``partial_id``, if there is exactly one.

        Matching is case-sensitive. If several notes match, nothing is deleted and they are all returned in an
        :class:`notefile.models.Ambiguous` so the user can pick a longer prefix.

        Raises :exc:`ValueError` if ``partial_id`` is empty.
        """
        if not partial_id:
            raise ValueError('Note id must not be empty')
        matches = [note for note in self.notes if note.id.startswith(partial_id)]
        if not matches:
            return NotFound(partial_id)
        if len(matches) > 1:
            return Ambiguous(partial_id, matches)
        removed = matches[0]
        self.notes = [note for note in self.notes if note is not removed]
        self.persist()
        return Removed(removed)

    def persist(self) -> None:
        """Writes all notes to the file, newest first.

        The text goes to a temporary file in the same directory, which then replaces the notes file, so a crash
        never leaves a truncated file behind.
        """
        text = encode(self.list())
        parent = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(parent, exist_ok=True)
        fd, tmp = mkstemp(prefix='.notes-', suffix='.tmp', dir=parent)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8', newline='') as file:
                file.write(text)
                file.flush()
                os.fsync(file.fileno())
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise
        logger.debug('Saved %d notes to %s', len(self.notes), self.path)
