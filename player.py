from __future__ import annotations

import logging
from typing import Optional, Protocol

from audio.engine import CaptureTap, PlayerEngine
from buffers import SampleCaptureBuffer
from config import CAPTURE_CAPACITY, DEFAULT_VOLUME, VOLUME_STEP
from library import DirectoryNavigator
from models import PlayerSnapshot
from spectrum import SpectrumAnalyzer
from transport import PlaybackTransport, TransportEngine
from utils import clamp

logger = logging.getLogger(__name__)


class PlayerEngineLike(TransportEngine, Protocol):
    sample_rate: int

    def set_volume(self, v: float) -> None:
        ...

    def consume_error(self) -> Optional[str]:
        ...

    def log_metrics_if_needed(self) -> None:
        ...

    def close(self) -> None:
        ...


class VolumeControl:
    def __init__(self, engine: PlayerEngineLike, initial: float = DEFAULT_VOLUME, step: float = VOLUME_STEP):
        self._engine = engine
        self._step = step
        self.value = 0.0
        self.set(initial)

    def set(self, v: float) -> float:
        # Rounded so repeated steps land exactly on 0.0 / 1.0.
        self.value = round(clamp(float(v), 0.0, 1.0), 4)
        self._engine.set_volume(self.value)
        return self.value

    def increase(self) -> float:
        return self.set(self.value + self._step)

    def decrease(self) -> float:
        return self.set(self.value - self._step)


class Player:
    """
    Composes the engine, transport, analyzer and navigator behind one
    command surface and exposes an immutable snapshot for rendering.

    The capture buffer is created here and shared with exactly two parties:
    the engine's capture tap (writer) and the analyzer (reader).
    """

    def __init__(
        self,
        engine: PlayerEngineLike,
        capture: SampleCaptureBuffer,
        navigator: DirectoryNavigator,
        transport: Optional[PlaybackTransport] = None,
    ):
        self.engine = engine
        self.navigator = navigator
        self.transport = transport or PlaybackTransport(engine)
        self.analyzer = SpectrumAnalyzer(capture)
        self.volume = VolumeControl(engine)
        self._nav_error: Optional[str] = None
        self._decode_error: Optional[str] = None

    @classmethod
    def create(cls, start_dir: Optional[str] = None) -> "Player":
        """Build the full player. Raises AudioOutputUnavailable if no output device."""
        navigator = DirectoryNavigator(start_dir)
        capture = SampleCaptureBuffer(CAPTURE_CAPACITY)
        engine = PlayerEngine(CaptureTap(capture))
        return cls(engine, capture, navigator)

    # -- commands --------------------------------------------------------

    def move_down(self) -> None:
        self.navigator.move_down()

    def move_up(self) -> None:
        self.navigator.move_up()

    def select(self) -> None:
        entry = self.navigator.selected
        if entry is None:
            return
        if entry.is_navigable:
            try:
                self.navigator.enter(entry)
            except OSError as e:
                self._nav_error = f"Cannot open {entry.path}: {e.strerror or e}"
                logger.warning("Navigation failed: %s", e)
                return
            self._clear_errors()
            self.transport.error = None
            return
        self._clear_errors()
        self.transport.select(self.navigator.entries, self.navigator.cursor)

    def activate(self, index: int) -> None:
        """Move the cursor to `index` and select it (mouse double-click)."""
        if 0 <= index < len(self.navigator.entries):
            self.navigator.cursor = index
            self.select()

    def toggle_playback(self) -> None:
        self._clear_errors()
        self.transport.toggle()

    def stop(self) -> None:
        self._clear_errors()
        self.transport.stop()

    def next_track(self) -> None:
        self._clear_errors()
        if self.transport.next():
            self._follow_track()

    def previous_track(self) -> None:
        self._clear_errors()
        if self.transport.previous():
            self._follow_track()

    def toggle_continuous(self) -> None:
        self.transport.toggle_continuous()
        logger.info("Continuous play %s", "on" if self.transport.continuous_play else "off")

    def volume_up(self) -> None:
        self.volume.increase()

    def volume_down(self) -> None:
        self.volume.decrease()

    def set_volume(self, v: float) -> None:
        self.volume.set(v)

    def _clear_errors(self) -> None:
        # Transport errors are cleared by the transport itself on success.
        self._nav_error = None
        self._decode_error = None

    def _follow_track(self) -> None:
        track = self.transport.track
        if track is not None:
            self.navigator.select_path(track.path)

    # -- loop ------------------------------------------------------------

    def tick(self) -> None:
        # Drain before tick: an auto-advance starts a new track and must not
        # hide why the previous one ended.
        engine_error = self.engine.consume_error()
        if engine_error:
            self._decode_error = engine_error

        previous_track = self.transport.track
        self.transport.tick()
        if self.transport.track is not previous_track:
            self._follow_track()

        if self.transport.is_playing:
            self.analyzer.update(self.engine.sample_rate)
        else:
            self.analyzer.decay()
        self.engine.log_metrics_if_needed()

    def snapshot(self) -> PlayerSnapshot:
        t = self.transport
        return PlayerSnapshot(
            bars=self.analyzer.bars,
            state=t.state,
            track=t.track,
            elapsed_sec=t.elapsed_sec,
            total_sec=t.total_sec,
            volume=self.volume.value,
            continuous_play=t.continuous_play,
            error=self._nav_error or self._decode_error or t.error,
            directory=self.navigator.directory,
            entries=self.navigator.entries,
            cursor=self.navigator.cursor,
            current_track_index=self._visible_track_index(),
        )

    def _visible_track_index(self) -> Optional[int]:
        t = self.transport
        if t.track is None:
            return None
        for i, entry in enumerate(self.navigator.entries):
            if entry.path == t.track.path:
                return i
        return None

    def close(self) -> None:
        self.transport.stop()
        self.engine.close()
