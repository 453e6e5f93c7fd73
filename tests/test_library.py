import os

import pytest

from library import PARENT_NAME, DirectoryNavigator, list_entries
from models import EntryKind


def test_list_entries_orders_parent_dirs_then_files(music_dir):
    entries = list_entries(str(music_dir))

    assert [e.name for e in entries] == [PARENT_NAME, "A_album", "b_album", "A.flac", "b.mp3", "c.wav"]
    assert entries[0].kind == EntryKind.PARENT
    assert entries[0].path == os.path.dirname(str(music_dir))
    assert [e.kind for e in entries[1:3]] == [EntryKind.DIRECTORY] * 2
    assert all(e.is_playable for e in entries[3:])


def test_list_entries_respects_extension_filter(music_dir):
    names = [e.name for e in list_entries(str(music_dir), {".wav"})]
    assert names == [PARENT_NAME, "A_album", "b_album", "c.wav"]


def test_list_entries_has_no_parent_at_root():
    entries = list_entries(os.path.abspath(os.sep))
    assert all(e.kind != EntryKind.PARENT for e in entries)


def test_list_entries_missing_directory_raises(tmp_path):
    with pytest.raises(OSError):
        list_entries(str(tmp_path / "missing"))


def test_cursor_wraps_both_ways(music_dir):
    nav = DirectoryNavigator(str(music_dir))
    count = len(nav.entries)

    nav.move_up()
    assert nav.cursor == count - 1
    nav.move_down()
    assert nav.cursor == 0
    nav.move_down()
    assert nav.selected.name == "A_album"


def test_enter_directory_and_back_to_parent(music_dir):
    nav = DirectoryNavigator(str(music_dir))
    nav.move_down()
    nav.enter(nav.selected)

    assert nav.directory == str(music_dir / "A_album")
    assert nav.cursor == 0
    assert [e.name for e in nav.entries] == [PARENT_NAME]

    nav.enter(nav.entries[0])
    assert nav.directory == str(music_dir)
    assert nav.selected.name == "A_album"


def test_enter_failure_keeps_listing(music_dir):
    nav = DirectoryNavigator(str(music_dir))
    nav.move_down()
    nav.move_down()
    target = nav.selected
    os.rmdir(target.path)
    before = (nav.directory, nav.entries, nav.cursor)

    with pytest.raises(OSError):
        nav.enter(target)

    assert (nav.directory, nav.entries, nav.cursor) == before


def test_enter_rejects_files(music_dir):
    nav = DirectoryNavigator(str(music_dir))
    file_entry = next(e for e in nav.entries if e.is_playable)
    with pytest.raises(ValueError):
        nav.enter(file_entry)


def test_select_path(music_dir):
    nav = DirectoryNavigator(str(music_dir))

    assert nav.select_path(str(music_dir / "c.wav"))
    assert nav.selected.name == "c.wav"
    assert not nav.select_path(str(music_dir / "nope.mp3"))
    assert nav.selected.name == "c.wav"


def test_empty_listing_cursor_is_stable(tmp_path):
    nav = DirectoryNavigator(str(tmp_path))
    nav.entries = ()
    nav.move_down()
    nav.move_up()
    assert nav.cursor == 0
    assert nav.selected is None
