from datetime import datetime, timezone
import itertools
import os
from pathlib import Path
import pytest
from freezegun import freeze_time
from notefile.codec import FormatError
from notefile.models import Ambiguous, Note, NotFound, Removed
from notefile.store import NoteStore, StoreFullError, allocate_id


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def test_load_missing_file(store):
    assert store.load() == []
    assert not Path('/notes/notes.txt').exists()


def test_load(fs):
    fs.create_file('/notes/notes.txt', contents='#a1b2 2025/1/1\nhello\n\n#c3d4 2025-01-02T03:04:05+00:00\n')
    store = NoteStore('/notes/notes.txt', timezone.utc)
    assert store.load() == [Note('a1b2', utc(2025, 1, 1), ['hello']), Note('c3d4', utc(2025, 1, 2, 3, 4, 5))]
    assert store.notes == store.load()


def test_load_corrupt_file(store):
    store.notes = [Note('keep', utc(2025, 1, 1))]
    Path('/notes/notes.txt').write_text('#a1b2 2025/1/1\nfine\n#ab Not-A-Date\n')
    with pytest.raises(FormatError) as excinfo:
        store.load()
    assert excinfo.value.line_number == 3
    assert store.notes == [Note('keep', utc(2025, 1, 1))]


@freeze_time('2025-06-15T09:30:00.123Z')
def test_create(store, mocker):
    mocker.patch('notefile.store._id_generator.random', return_value='k3v9')
    note = store.create(['hello', '#world'])
    assert note == Note('k3v9', utc(2025, 6, 15, 9, 30), ['hello', '#world'])
    assert store.notes == [note]
    assert Path('/notes/notes.txt').read_text() == '#k3v9 2025-06-15T09:30:00+00:00\nhello\n\\#world\n'


def test_create_retries_on_collision(store, mocker):
    store.notes = [Note('aaaa', utc(2025, 1, 1)), Note('bbbb', utc(2025, 1, 2))]
    random = mocker.patch('notefile.store._id_generator.random', side_effect=['aaaa', 'bbbb', 'cccc'])
    note = store.create(['third'])
    assert note.id == 'cccc'
    assert random.call_count == 3
    assert [n.id for n in store.notes] == ['aaaa', 'bbbb', 'cccc']


def test_create_generates_unique_ids(store):
    for i in range(50):
        store.create([f'note {i}'])
    ids = [n.id for n in store.notes]
    assert len(set(ids)) == 50
    assert all(len(i) == 4 and i.isalnum() for i in ids)
    assert len(store.load()) == 50


def test_allocate_id_uses_lowercase_alphanumerics():
    for _ in range(20):
        new_id = allocate_id(set())
        assert len(new_id) == 4
        assert set(new_id) <= set('abcdefghijklmnopqrstuvwxyz0123456789')


def test_allocate_id_when_full(mocker):
    mocker.patch('notefile.store.ID_ALPHABET', 'ab')
    taken = {''.join(chars) for chars in itertools.product('ab', repeat=4)}
    with pytest.raises(StoreFullError):
        allocate_id(taken)


def test_list_sorts_newest_first(store):
    store.notes = [
        Note('n001', utc(2025, 1, 1)),
        Note('n002', utc(2025, 6, 15)),
        Note('n003', utc(2024, 12, 31)),
    ]
    assert [n.id for n in store.list()] == ['n002', 'n001', 'n003']
    assert [n.id for n in store.notes] == ['n001', 'n002', 'n003']


def test_list_keeps_order_of_ties(store):
    store.notes = [
        Note('tie1', utc(2025, 1, 1)),
        Note('new1', utc(2025, 2, 1)),
        Note('tie2', utc(2025, 1, 1)),
        Note('tie3', utc(2025, 1, 1)),
    ]
    assert [n.id for n in store.list()] == ['new1', 'tie1', 'tie2', 'tie3']


def prefix_setup(store):
    store.notes = [
        Note('a1b2', utc(2025, 1, 1), ['first']),
        Note('a1c3', utc(2025, 1, 2), ['second']),
        Note('d4e5', utc(2025, 1, 3), ['third']),
    ]


def test_remove_ambiguous(store):
    prefix_setup(store)
    result = store.remove('a1')
    assert isinstance(result, Ambiguous)
    assert [n.id for n in result.notes] == ['a1b2', 'a1c3']
    assert len(store.notes) == 3
    assert not Path('/notes/notes.txt').exists()


def test_remove_exact(store):
    prefix_setup(store)
    result = store.remove('a1b2')
    assert result == Removed(Note('a1b2', utc(2025, 1, 1), ['first']))
    assert [n.id for n in store.notes] == ['a1c3', 'd4e5']
    assert [n.id for n in store.load()] == ['d4e5', 'a1c3']


def test_remove_unique_prefix(store):
    prefix_setup(store)
    result = store.remove('d')
    assert isinstance(result, Removed)
    assert result.note.id == 'd4e5'


def test_remove_not_found(store):
    prefix_setup(store)
    assert store.remove('zz') == NotFound('zz')
    assert store.remove('A1') == NotFound('A1')
    assert len(store.notes) == 3
    assert not Path('/notes/notes.txt').exists()


def test_remove_empty_prefix(store):
    prefix_setup(store)
    with pytest.raises(ValueError):
        store.remove('')


def test_persist(store):
    prefix_setup(store)
    store.persist()
    assert Path('/notes/notes.txt').read_text() == """#d4e5 2025-01-03T00:00:00+00:00
third

#a1c3 2025-01-02T00:00:00+00:00
second

#a1b2 2025-01-01T00:00:00+00:00
first
"""
    assert os.listdir('/notes') == ['notes.txt']


def test_persist_replaces_existing_file(store):
    Path('/notes/notes.txt').write_text('#old1 2020/1/1\nold\n')
    store.load()
    store.notes.append(Note('new1', utc(2025, 1, 1), ['new']))
    store.persist()
    assert Path('/notes/notes.txt').read_text() == (
        '#new1 2025-01-01T00:00:00+00:00\nnew\n\n#old1 2020-01-01T00:00:00+00:00\nold\n')
    assert os.listdir('/notes') == ['notes.txt']


def test_persist_creates_directories(fs):
    store = NoteStore('/deeply/nested/notes.txt', timezone.utc)
    store.notes = [Note('a1b2', utc(2025, 1, 1))]
    store.persist()
    assert Path('/deeply/nested/notes.txt').read_text() == '#a1b2 2025-01-01T00:00:00+00:00\n'
