from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

import numpy as np


@dataclass(frozen=True)
class BufferPreset:
    blocksize_frames: int
    latency: str | float
    target_sec: float
    high_sec: float
    ring_max_seconds: float


@dataclass(frozen=True)
class Track:
    path: str
    title: str = ""

    @property
    def display_name(self) -> str:
        return self.title or os.path.basename(self.path)


@dataclass(frozen=True)
class AudioInfo:
    duration_sec: Optional[float]
    sample_rate: int
    channels: int


class PlayerState(Enum):
    STOPPED = auto()
    PLAYING = auto()
    PAUSED = auto()

    @property
    def label(self) -> str:
        return self.name.capitalize()


class EntryKind(Enum):
    PARENT = auto()
    DIRECTORY = auto()
    FILE = auto()


@dataclass(frozen=True)
class BrowserEntry:
    path: str
    name: str
    kind: EntryKind

    @property
    def is_playable(self) -> bool:
        return self.kind == EntryKind.FILE

    @property
    def is_navigable(self) -> bool:
        return self.kind in (EntryKind.PARENT, EntryKind.DIRECTORY)


@dataclass(frozen=True)
class PlayerSnapshot:
    """Read-only view of the player handed to the renderer once per tick."""

    bars: np.ndarray
    state: PlayerState
    track: Optional[Track]
    elapsed_sec: float
    total_sec: float
    volume: float
    continuous_play: bool
    error: Optional[str]
    directory: str
    entries: tuple[BrowserEntry, ...] = field(default_factory=tuple)
    cursor: int = 0
    current_track_index: Optional[int] = None

    @property
    def progress(self) -> float:
        if self.total_sec <= 0:
            return 0.0
        return min(1.0, max(0.0, self.elapsed_sec / self.total_sec))
