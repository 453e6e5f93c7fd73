"""
Directory browsing for the file list.

Lists one directory at a time: a parent marker (unless at the filesystem
root), then sub-directories, then supported audio files, each group sorted
by name. Read failures propagate as OSError and leave the current listing
untouched.
"""

from __future__ import annotations

import logging
import os
from typing import List, Optional, Set

from config import AUDIO_EXTENSIONS
from models import BrowserEntry, EntryKind

logger = logging.getLogger(__name__)

PARENT_NAME = ".."


def _is_audio_file(path: str, extensions: Set[str] = AUDIO_EXTENSIONS) -> bool:
    """Check if a file path has a supported audio extension."""
    ext = os.path.splitext(path)[1].lower()
    return ext in extensions


def list_entries(directory: str, extensions: Set[str] = AUDIO_EXTENSIONS) -> List[BrowserEntry]:
    """
    List the browsable entries of a directory.

    Args:
        directory: Absolute directory path.
        extensions: Lower-case file extensions (with dot) to include.

    Returns:
        Parent marker, directories, then audio files.

    Raises:
        OSError: If the directory cannot be read.
    """
    directory = os.path.abspath(directory)
    dirs: List[BrowserEntry] = []
    files: List[BrowserEntry] = []

    with os.scandir(directory) as it:
        for entry in it:
            if entry.name.startswith("."):
                continue
            try:
                is_dir = entry.is_dir()
            except OSError:
                continue
            if is_dir:
                dirs.append(BrowserEntry(entry.path, entry.name, EntryKind.DIRECTORY))
            elif _is_audio_file(entry.name, extensions):
                files.append(BrowserEntry(entry.path, entry.name, EntryKind.FILE))

    dirs.sort(key=lambda e: e.name.lower())
    files.sort(key=lambda e: e.name.lower())

    entries: List[BrowserEntry] = []
    parent = os.path.dirname(directory)
    if parent and parent != directory:
        entries.append(BrowserEntry(parent, PARENT_NAME, EntryKind.PARENT))
    entries.extend(dirs)
    entries.extend(files)
    return entries


class DirectoryNavigator:
    """Current directory listing plus a wrapping selection cursor."""

    def __init__(self, start_dir: Optional[str] = None, extensions: Set[str] = AUDIO_EXTENSIONS):
        self._extensions = extensions
        self.directory = os.path.abspath(start_dir or os.getcwd())
        self.entries: tuple[BrowserEntry, ...] = tuple(list_entries(self.directory, extensions))
        self.cursor = 0

    @property
    def selected(self) -> Optional[BrowserEntry]:
        if 0 <= self.cursor < len(self.entries):
            return self.entries[self.cursor]
        return None

    def move_down(self) -> None:
        if not self.entries:
            return
        self.cursor = 0 if self.cursor >= len(self.entries) - 1 else self.cursor + 1

    def move_up(self) -> None:
        if not self.entries:
            return
        self.cursor = len(self.entries) - 1 if self.cursor <= 0 else self.cursor - 1

    def enter(self, entry: BrowserEntry) -> None:
        """Switch to `entry`'s directory. Raises OSError, keeping the old listing."""
        if not entry.is_navigable:
            raise ValueError(f"Not a directory entry: {entry.path}")
        target = os.path.abspath(entry.path)
        entries = tuple(list_entries(target, self._extensions))
        previous = self.directory
        self.directory = target
        self.entries = entries
        self.cursor = 0
        if entry.kind == EntryKind.PARENT:
            # Land on the directory we just left.
            self.select_path(previous)
        logger.debug("Entered %s (%d entries)", target, len(entries))

    def select_path(self, path: str) -> bool:
        for i, entry in enumerate(self.entries):
            if entry.kind != EntryKind.PARENT and entry.path == path:
                self.cursor = i
                return True
        return False
