from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import tzinfo
import os
import os.path
from typing import Optional

APP_NAME = 'note'
CONF_FILENAME = '.notefile.conf.py'


def default_notes_path() -> str:
    """Returns the platform location of the notes file.

    This is ``$XDG_DATA_HOME/note/notes.txt``, falling back to ``~/.local/share/note/notes.txt`` when
    ``XDG_DATA_HOME`` is not set.
    """
    base = os.environ.get('XDG_DATA_HOME')
    if not base:
        base = os.path.join(os.path.expanduser('~'), '.local', 'share')
    return os.path.join(base, APP_NAME, 'notes.txt')


@dataclass
class NoteConf:
    notes_path: str = field(default_factory=default_notes_path)
    """Where notes are stored. The file and its parent directories are created when the first note is saved."""

    tz: Optional[tzinfo] = None
    """Timezone for new notes and for dates in the notes file that have no UTC offset.

    If None, the local timezone is used. For example:

    .. code-block:: python

       from zoneinfo import ZoneInfo
       conf.tz = ZoneInfo('Europe/Berlin')
    """

    @classmethod
    def user_conf_path(cls) -> str:
        return os.path.expanduser(os.path.join('~', CONF_FILENAME))

    @classmethod
    def for_user(cls) -> NoteConf:
        """Loads the config from ``~/.notefile.conf.py``, or returns the defaults if that file does not exist.

        The file is a Python script that must assign an instance of :class:`NoteConf` to the variable ``conf``.
        """
        from notefile.api import Error
        path = cls.user_conf_path()
        if not os.path.exists(path):
            return cls()
        with open(path, 'r') as file:
            conf_script = file.read()
        context = {}
        exec(conf_script, context)
        if 'conf' not in context or not isinstance(context['conf'], cls):
            raise Error('You need to assign an instance of NoteConf to the variable `conf` '
                        f'in your config file: {path}')
        return context['conf']

    def standardize(self):
        return replace(
            self,
            notes_path=os.path.abspath(os.path.expanduser(self.notes_path))
        )

    def instantiate(self):
        from notefile.api import Notebook
        return Notebook(self.standardize())
