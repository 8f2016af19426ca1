"""Command-line interface for notefile."""


import argparse
from dataclasses import replace
import json
import logging
import sys
from typing import List
from terminaltables import AsciiTable
from notefile.api import Error, Notebook
from notefile.codec import FormatError
from notefile.conf import NoteConf
from notefile.models import Ambiguous, Note, NotFound, Removed
from notefile.store import StoreFullError

COMMANDS = {'ls', 'add', 'rm', 'output', 'import'}
_GLOBAL_FLAGS = {'-v', '--verbose'}
_GLOBAL_OPTIONS_WITH_VALUE = {'--file'}
_HELP_FLAGS = {'-h', '--help'}


def _short_date(note: Note) -> str:
    return note.timestamp.strftime('%b %d')


def _preview(note: Note, width: int = 50) -> str:
    text = ' '.join(note.content)
    if len(text) > width:
        return text[:width] + '...'
    return text


def _notes_table(notes: List[Note]) -> AsciiTable:
    data = [('ID', 'Date', 'Content')]
    data.extend((n.id, n.timestamp.strftime('%Y-%m-%d %H:%M'), n.text) for n in notes)
    return AsciiTable(data)


def _print_notes(notes: List[Note]) -> None:
    for index, note in enumerate(notes):
        if index > 0:
            print('  ' + '-' * 36)
        print(f'  [{note.id}] {_short_date(note)}')
        for line in note.content:
            print(f'  {line}')


def _ls(args, nb: Notebook) -> int:
    notes = nb.list()
    if args.json:
        print(json.dumps([n.as_json() for n in notes]))
    elif args.table:
        print(_notes_table(notes).table)
    elif not notes:
        print('No notes yet. Create your first note with: note "your text here"')
    else:
        _print_notes(notes)
    return 0


def _add(args, nb: Notebook) -> int:
    note = nb.add(' '.join(args.text).splitlines())
    print(f'Note saved [{note.id}]')
    return 0


def _rm(args, nb: Notebook) -> int:
    partial_id = args.id[0]
    if not partial_id:
        print('Please give the id (or the start of the id) of the note to remove.', file=sys.stderr)
        return 1
    result = nb.remove(partial_id)
    if isinstance(result, Removed):
        print(f'Note [{result.note.id}] removed')
    elif isinstance(result, NotFound):
        print(f'No notes found matching [{partial_id}]')
    elif isinstance(result, Ambiguous):
        print(f'Multiple notes match [{partial_id}]. Please be more specific. Matching notes:')
        data = [('ID', 'Date', 'Content')]
        data.extend((n.id, _short_date(n), _preview(n)) for n in result.notes)
        print(AsciiTable(data).table)
    return 0


def _output(args, nb: Notebook) -> int:
    if args.file:
        with open(args.file, 'w', encoding='utf-8') as file:
            nb.export(file)
        print(f'Notes exported to {args.file}')
    else:
        nb.export()
    return 0


def _import(args, nb: Notebook) -> int:
    path = args.file[0]
    with open(path, 'r', encoding='utf-8') as file:
        count = nb.import_notes(file)
    print(f'{count} {"note" if count == 1 else "notes"} imported from {path}')
    return 0


def with_default_command(args: List[str]) -> List[str]:
    """Inserts the command name when it was left implicit.

    With no command, ``ls`` is assumed; if the first positional argument is not a command, it is the start of a
    new note's text and ``add`` is assumed.
    """
    args = list(args)
    i = 0
    while i < len(args):
        arg = args[i]
        if arg in _HELP_FLAGS:
            return args
        if arg in _GLOBAL_FLAGS or arg.startswith('--file='):
            i += 1
        elif arg in _GLOBAL_OPTIONS_WITH_VALUE:
            i += 2
        else:
            break
    if i >= len(args):
        return args + ['ls']
    if args[i] not in COMMANDS:
        args.insert(i, 'add')
    return args


def argparser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='note',
        description='A simple command-line note-taking application. '
                    'Run with some text to save a note, or with no arguments to list your notes.',
        epilog=f'Notes are stored in {NoteConf().notes_path} unless ~/.notefile.conf.py or --file says otherwise.')
    parser.add_argument('--file', dest='notes_file', metavar='PATH',
                        help='Use this notes file instead of the configured one.')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log debugging details to stderr.')
    parser.set_defaults(func=None)

    subs = parser.add_subparsers(title='Commands')

    p_ls = subs.add_parser('ls', help='List notes, newest first. This is the default when no arguments are given.')
    p_ls_formats = p_ls.add_mutually_exclusive_group()
    p_ls_formats.add_argument('-j', '--json', action='store_true', help='Output as JSON.')
    p_ls_formats.add_argument('-t', '--table', action='store_true', help='Format output as a table.')
    p_ls.set_defaults(func=_ls)

    p_add = subs.add_parser(
        'add',
        help='Save a new note. The words are joined with spaces. You can usually leave out "add" and just '
             'give the text, unless the text starts with one of the command names.')
    p_add.add_argument('text', nargs='+', help='Text of the note.')
    p_add.set_defaults(func=_add)

    p_rm = subs.add_parser(
        'rm',
        help='Remove a note. You only need to type enough of the id to identify one note; if several notes '
             'match, they are listed and nothing is removed.')
    p_rm.add_argument('id', nargs=1, help='Note id or the beginning of it.')
    p_rm.set_defaults(func=_rm)

    p_out = subs.add_parser('output', help='Print all notes in the notes file format, or write them to a file.')
    p_out.add_argument('file', nargs='?', help='File to write to. Notes are printed to stdout if omitted.')
    p_out.set_defaults(func=_output)

    p_import = subs.add_parser(
        'import',
        help='Add all notes from a file in the notes file format. Notes whose ids are already in use get new ids. '
             'If the file cannot be parsed, nothing is imported.')
    p_import.add_argument('file', nargs=1, help='File to import.')
    p_import.set_defaults(func=_import)

    return parser


def main(args=None) -> int:
    """Runs the tool and returns its exit code.

    args may be an array of string command-line arguments; if absent,
    the process's arguments are used.
    """
    parser = argparser()
    args = parser.parse_args(with_default_command(sys.argv[1:] if args is None else args))
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')
    if not args.func:
        parser.print_help()
        return 1
    try:
        conf = NoteConf.for_user()
        if args.notes_file:
            conf = replace(conf, notes_path=args.notes_file)
        nb = conf.instantiate()
        return args.func(args, nb)
    except FormatError as e:
        print(f'Cannot parse notes: {e}', file=sys.stderr)
    except (Error, StoreFullError, OSError) as e:
        print(f'Error: {e}', file=sys.stderr)
    return 1
