"""Provides the main entry point for using the library, :class:`Notebook`"""

from __future__ import annotations
import logging
import sys
from typing import List, Optional, Sequence, TextIO

from notefile.codec import decode, encode
from notefile.conf import NoteConf
from notefile.models import Note, RemoveResult
from notefile.store import NoteStore, allocate_id

logger = logging.getLogger(__name__)


class Error(Exception):
    pass


class Notebook:
    """Main entry point for working programmatically with your notes.

    Generally, you should get an instance using the :meth:`Notebook.for_user` method. The notes file is loaded when
    the instance is created; each method that changes notes saves the file before returning.

    .. attribute:: conf
       :type: notefile.conf.NoteConf

    .. attribute:: store
       :type: notefile.store.NoteStore

    Here's an example that copies every note mentioning "recipe" into a separate file:

    .. code-block:: python

       from notefile.api import Notebook
       from notefile.codec import encode
       nb = Notebook.for_user()
       recipes = [n for n in nb.list() if 'recipe' in n.text.lower()]
       with open('recipes.txt', 'w') as file:
           file.write(encode(recipes))
    """

    @staticmethod
    def for_user() -> Notebook:
        """Creates an instance using the user's ``~/.notefile.conf.py`` file, or the defaults if there is none."""
        return NoteConf.for_user().instantiate()

    def __init__(self, conf: NoteConf):
        self.conf = conf
        self.store = NoteStore(conf.notes_path, conf.tz)
        self.store.load()

    def add(self, content: Sequence[str]) -> Note:
        """Creates a note from the given lines. See :meth:`notefile.store.NoteStore.create`."""
        return self.store.create(content)

    def list(self) -> List[Note]:
        """Returns all notes, newest first."""
        return self.store.list()

    def remove(self, partial_id: str) -> RemoveResult:
        """See :meth:`notefile.store.NoteStore.remove`."""
        return self.store.remove(partial_id)

    def export(self, dest: Optional[TextIO] = None) -> str:
        """Writes all notes in the notes file format to ``dest``, or to stdout if it is None.

        Returns the text that was written. The notes are not changed.
        """
        text = encode(self.store.list())
        if dest is None:
            dest = sys.stdout
        dest.write(text)
        return text

    def import_notes(self, source: TextIO) -> int:
        """Adds all notes from ``source``, which must be in the notes file format, and saves.

        Imported notes keep their timestamps and content. They keep their ids too, unless the id is already used
        (by an existing note or an earlier note in the same source), in which case a new id is generated.

        The whole source is parsed before anything is added, so if it raises :exc:`notefile.codec.FormatError`
        the store is unchanged.

        Returns the number of notes added.
        """
        imported = list(decode(source.read(), self.conf.tz))
        if not imported:
            return 0
        taken = self.store.ids()
        for note in imported:
            if note.id in taken:
                old_id = note.id
                note.id = allocate_id(taken)
                logger.debug('Imported note %s conflicts with an existing id, renamed to %s', old_id, note.id)
            taken.add(note.id)
            self.store.notes.append(note)
        self.store.persist()
        return len(imported)
