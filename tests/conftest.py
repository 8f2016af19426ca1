from datetime import timezone
import pytest
from notefile.store import NoteStore


@pytest.fixture
def store(fs):
    fs.create_dir('/notes')
    result = NoteStore('/notes/notes.txt', timezone.utc)
    result.load()
    return result
