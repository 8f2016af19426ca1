"""Reads and writes the notes file format.

A notes file is plain UTF-8 text. Each note starts with a header line holding its id and timestamp, followed by
its content lines; notes are separated by a single blank line::

   #k3v9 2025-06-15T09:30:00+02:00
   Buy milk
   \\# this line really starts with a pound sign

   #a1b2 2025/1/1
   Happy new year

Content lines that would otherwise look like headers are escaped with a backslash. Use :func:`encode` and
:func:`decode` rather than the helpers in this module.

Only the single blank line right before a header is a separator. Any other blank line belongs to the note above it,
so a note can start or end with blank lines and still read back unchanged. When editing the file by hand, extra blank
lines between notes (or at the end of the file) become empty content lines.
"""

from __future__ import annotations
from datetime import datetime, tzinfo
import re
from typing import Iterable, Iterator, List, Optional

from notefile.models import Note

ID_RE = re.compile(r'^[A-Za-z0-9]{4}$')
HEADER_RE = re.compile(r'^#([A-Za-z0-9]{4}) (.+)$')
NEEDS_ESCAPE_RE = re.compile(r'^\\*#')
ESCAPED_RE = re.compile(r'^\\+#')
BARE_DATE_RE = re.compile(r'^(\d{4})([/-])(\d{1,2})\2(\d{1,2})$')

_DATETIME_FORMATS = ['%Y-%m-%d %H:%M:%S %z', '%Y-%m-%d %H:%M:%S']


class FormatError(Exception):
    """Raised when text cannot be decoded as a notes file.

    .. attribute:: line_number

       1-based number of the offending line.

    .. attribute:: line

       The raw text of the offending line.
    """
    def __init__(self, line_number: int, line: str, message: str):
        super().__init__(message)
        self.line_number = line_number
        self.line = line
        self.message = message

    def __str__(self):
        return f'line {self.line_number}: {self.message}: {self.line!r}'


def _localize(dt: datetime, tz: Optional[tzinfo]) -> datetime:
    if dt.tzinfo:
        return dt
    if tz:
        return dt.replace(tzinfo=tz)
    return dt.astimezone()


def parse_timestamp(value: str, tz: Optional[tzinfo] = None) -> datetime:
    """Parses the timestamp portion of a header line.

    Accepts ISO-8601/RFC-3339 timestamps (with ``T`` or a space between date and time, and ``Z`` for UTC),
    ``YYYY-MM-DD HH:MM:SS`` with an optional ``+HHMM`` offset, and bare dates like ``2025/3/21`` or ``2025-7-31``,
    which mean midnight.

    Values without an offset are placed in ``tz``, or in the local timezone if ``tz`` is None.

    Raises :exc:`ValueError` if the value is not in any supported format.
    """
    value = value.strip()
    match = BARE_DATE_RE.match(value)
    if match:
        year, _, month, day = match.groups()
        return _localize(datetime(int(year), int(month), int(day)), tz)

    iso = value[:-1] + '+00:00' if value.endswith(('Z', 'z')) else value
    try:
        return _localize(datetime.fromisoformat(iso), tz)
    except ValueError:
        pass
    for fmt in _DATETIME_FORMATS:
        try:
            return _localize(datetime.strptime(value, fmt), tz)
        except ValueError:
            continue
    raise ValueError(f'unrecognized date format: {value}')


def format_timestamp(timestamp: datetime) -> str:
    return timestamp.isoformat()


def escape_line(line: str) -> str:
    """Prefixes a backslash to lines starting with ``#`` (or with backslashes followed by ``#``)."""
    if NEEDS_ESCAPE_RE.match(line):
        return '\\' + line
    return line


def unescape_line(line: str) -> str:
    """Reverses :func:`escape_line`."""
    if ESCAPED_RE.match(line):
        return line[1:]
    return line


def _split_lines(text: str) -> List[str]:
    lines = text.replace('\r\n', '\n').split('\n')
    if lines[-1] == '':
        lines.pop()
    return lines


def _parse_header(line_number: int, line: str, tz: Optional[tzinfo]) -> Note:
    match = HEADER_RE.match(line)
    if not match:
        raise FormatError(line_number, line, 'malformed note header (expected "#<4-char id> <date>")')
    try:
        timestamp = parse_timestamp(match.group(2), tz)
    except ValueError as e:
        raise FormatError(line_number, line, f'unparseable date ({e})') from e
    return Note(match.group(1), timestamp)


def _finish(note: Note) -> Note:
    # The blank line before the next header is a separator, not content.
    if note.content and not note.content[-1]:
        note.content.pop()
    return note


def encode(notes: Iterable[Note]) -> str:
    """Returns the text of a notes file containing the given notes, in the given order.

    Raises :exc:`ValueError` if a note has an invalid id or a content line containing a line break, since such
    notes could not be read back.
    """
    blocks = []
    for note in notes:
        if not ID_RE.match(note.id):
            raise ValueError(f'Invalid note id: {note.id!r}')
        lines = [f'#{note.id} {format_timestamp(note.timestamp)}']
        for line in note.content:
            if '\n' in line or '\r' in line:
                raise ValueError(f'Content line of note {note.id} contains a line break: {line!r}')
            lines.append(escape_line(line))
        blocks.append(''.join(f'{line}\n' for line in lines))
    return '\n'.join(blocks)


def decode(text: str, tz: Optional[tzinfo] = None) -> Iterator[Note]:
    """Yields the notes in the given text, in file order.

    Parsing happens lazily, so a :exc:`FormatError` is raised only when iteration reaches the bad line. Call
    ``list(decode(text))`` to validate the whole text up front.

    ``tz`` is used for timestamps that do not specify an offset; see :func:`parse_timestamp`.
    """
    note = None
    for line_number, line in enumerate(_split_lines(text), start=1):
        if line.startswith('#'):
            header = _parse_header(line_number, line, tz)
            if note:
                yield _finish(note)
            note = header
        elif note:
            note.content.append(unescape_line(line))
        elif line.strip():
            raise FormatError(line_number, line, 'text found before the first note header')
    if note:
        yield note
