from __future__ import annotations

import pytest

from audio.engine import TrackOpenError


class FakeEngine:
    """In-memory stand-in for PlayerEngine: no device, no ffmpeg."""

    def __init__(self, sample_rate=44100, duration=120.0):
        self.sample_rate = sample_rate
        self.duration = duration
        self.failing = set()
        self.calls = []
        self.queue_empty = False
        self.volume = None
        self.errors = []
        self.closed = False

    def play(self, path):
        if path in self.failing:
            raise TrackOpenError(f"Cannot decode {path}")
        self.calls.append(("play", path))
        # Pending errors belong to the old decoder and are dropped on play.
        self.errors.clear()
        self.queue_empty = False
        return self.duration

    def pause(self):
        self.calls.append(("pause", None))

    def stop(self):
        self.calls.append(("stop", None))

    def is_queue_empty(self):
        return self.queue_empty

    def set_volume(self, v):
        self.volume = v

    def consume_error(self):
        return self.errors.pop(0) if self.errors else None

    def log_metrics_if_needed(self):
        pass

    def close(self):
        self.closed = True

    @property
    def played(self):
        return [path for kind, path in self.calls if kind == "play"]


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def music_dir(tmp_path):
    (tmp_path / "b_album").mkdir()
    (tmp_path / "A_album").mkdir()
    (tmp_path / ".hidden").mkdir()
    for name in ("b.mp3", "A.flac", "c.wav", "notes.txt", ".secret.mp3"):
        (tmp_path / name).write_bytes(b"")
    return tmp_path
