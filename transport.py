from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Protocol, Sequence

from audio.engine import TrackOpenError
from config import DEFAULT_TRACK_DURATION_SEC
from models import BrowserEntry, PlayerState, Track

logger = logging.getLogger(__name__)


class TransportEngine(Protocol):
    def play(self, path: str) -> Optional[float]:
        ...

    def pause(self) -> None:
        ...

    def stop(self) -> None:
        ...

    def is_queue_empty(self) -> bool:
        ...


class PlaybackTransport:
    """
    Play/pause/stop state machine with a wall-clock elapsed timer and
    next/previous sequencing over the listing a track was chosen from.

    Resuming from Paused restarts the track from the beginning; the engine
    offers no seek. Elapsed time is measured from the start instant and is
    only refreshed on tick, so it is approximate around pause.
    """

    def __init__(
        self,
        engine: TransportEngine,
        clock: Callable[[], float] = time.monotonic,
        default_duration: float = DEFAULT_TRACK_DURATION_SEC,
    ):
        self._engine = engine
        self._clock = clock
        self._default_duration = float(default_duration)
        self.state = PlayerState.STOPPED
        self.track: Optional[Track] = None
        self.current_index: Optional[int] = None
        self.entries: tuple[BrowserEntry, ...] = ()
        self.elapsed_sec = 0.0
        self.total_sec = 0.0
        self.continuous_play = False
        self.error: Optional[str] = None
        self._started_at: Optional[float] = None

    @property
    def is_playing(self) -> bool:
        return self.state == PlayerState.PLAYING

    def select(self, entries: Sequence[BrowserEntry], index: int) -> bool:
        """Start the file at `index`. Directories are not transport actions."""
        if not 0 <= index < len(entries):
            return False
        if not entries[index].is_playable:
            return False
        return self._start(tuple(entries), index)

    def _start(self, entries: tuple[BrowserEntry, ...], index: int) -> bool:
        entry = entries[index]
        try:
            duration = self._engine.play(entry.path)
        except TrackOpenError as e:
            self.error = str(e)
            logger.warning("Cannot play %s: %s", entry.path, e)
            return False

        self.entries = entries
        self.current_index = index
        self.track = Track(path=entry.path, title=entry.name)
        self._begin_playback(duration)
        return True

    def _begin_playback(self, duration: Optional[float]) -> None:
        self.total_sec = float(duration) if duration and duration > 0 else self._default_duration
        self.elapsed_sec = 0.0
        self._started_at = self._clock()
        self.error = None
        self.state = PlayerState.PLAYING

    def _set_stopped(self) -> None:
        self._engine.stop()
        self.state = PlayerState.STOPPED
        self.elapsed_sec = 0.0
        self._started_at = None

    def toggle(self) -> None:
        if self.track is None:
            return
        if self.state == PlayerState.PLAYING:
            self._engine.pause()
            self.state = PlayerState.PAUSED
            self.error = None
            return

        # Paused or Stopped: restart the selected track from the top.
        try:
            duration = self._engine.play(self.track.path)
        except TrackOpenError as e:
            self.error = str(e)
            logger.warning("Cannot restart %s: %s", self.track.path, e)
            return
        self._begin_playback(duration)

    def stop(self) -> None:
        if self.state != PlayerState.STOPPED:
            logger.info("Stopped")
        self._set_stopped()
        self.error = None

    def toggle_continuous(self) -> None:
        self.continuous_play = not self.continuous_play

    def tick(self) -> None:
        if self.state != PlayerState.PLAYING:
            return
        if self._engine.is_queue_empty():
            logger.info("Track finished: %s", self.track.path if self.track else None)
            if not self.continuous_play or not self.next():
                self._set_stopped()
            return
        if self._started_at is not None:
            self.elapsed_sec = min(self._clock() - self._started_at, self.total_sec)

    def next(self) -> bool:
        if self.current_index is None:
            return False
        current = self.current_index
        candidates = list(range(current + 1, len(self.entries)))
        if self.continuous_play:
            candidates.extend(range(0, current))
        for i in candidates:
            if self.entries[i].is_playable:
                return self._start(self.entries, i)
        self._set_stopped()
        return False

    def previous(self) -> bool:
        if self.current_index is None:
            return False
        for i in range(self.current_index - 1, -1, -1):
            if self.entries[i].is_playable:
                return self._start(self.entries, i)
        return False
