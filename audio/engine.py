from __future__ import annotations

import logging
import os
import threading
import time
from typing import Callable, Optional

import numpy as np

try:
    import sounddevice as sd
    _sounddevice_import_error = None
except Exception as e:
    sd = None
    _sounddevice_import_error = e

from audio.sources import FfmpegPcmSource, PcmSource
from buffers import PlaybackQueue, SampleCaptureBuffer
from config import CHANNELS, DEFAULT_VOLUME, PLAYBACK_BUFFER, SAMPLE_RATE
from metadata.media_info import MediaInfoError, read_audio_info
from models import BufferPreset
from utils import clamp, env_flag, have_exe

logger = logging.getLogger(__name__)


class AudioOutputUnavailable(RuntimeError):
    pass


class TrackOpenError(RuntimeError):
    pass


# -----------------------------
# Capture tap
# -----------------------------

class CaptureTap:
    """
    Pipeline stage between the playback queue and the device: records every
    block it sees into the capture buffer and hands it on untouched.
    """

    def __init__(self, capture: SampleCaptureBuffer):
        self._capture = capture

    def process(self, frames: np.ndarray) -> np.ndarray:
        self._capture.push_frames(frames)
        return frames

    def reset(self) -> None:
        self._capture.clear()


# -----------------------------
# Decoder thread
# -----------------------------

class DecoderThread(threading.Thread):
    """
    Reads float32 PCM from a source and pushes it into the playback queue.
    """
    def __init__(self,
                 source: PcmSource,
                 ring: PlaybackQueue,
                 buffer_preset: BufferPreset,
                 state_cb: Callable[["DecoderThread", str, Optional[str]], None]):
        super().__init__(daemon=True)
        self.source = source
        self.ring = ring
        self.sample_rate = source.sample_rate
        self._buffer_preset = buffer_preset
        self._read_frames = max(1, buffer_preset.blocksize_frames * 2)
        self._stop = threading.Event()
        self._state_cb = state_cb
        self.frames_decoded = 0

    def stop(self):
        self._stop.set()
        self.source.close()

    def _wait_for_space(self) -> None:
        # Backpressure: keep the decoder a bounded distance ahead of playback.
        target_frames = int(self._buffer_preset.target_sec * self.sample_rate)
        high_frames = int(self._buffer_preset.high_sec * self.sample_rate)
        target_frames = min(target_frames, int(self.ring.max_frames * 0.95))
        high_frames = min(high_frames, self.ring.max_frames)
        if self.ring.frames_available() > high_frames:
            while (not self._stop.is_set()) and self.ring.frames_available() > target_frames:
                time.sleep(0.01)

    def run(self):
        try:
            while not self._stop.is_set():
                x = self.source.read(self._read_frames)
                if x is None:
                    break
                self.ring.push(x, stop_event=self._stop)
                self.frames_decoded += x.shape[0]
                self._wait_for_space()

            if not self._stop.is_set():
                code = self.source.wait()
                if self.frames_decoded == 0 or (code not in (None, 0)):
                    detail = self.source.error_output() or f"ffmpeg exited with {code}"
                    self._state_cb(self, "error", f"Decode failed: {detail}")
        except Exception as e:
            logger.exception("Decoder error on %s", self.source.path)
            self._state_cb(self, "error", f"Decoder error: {e}")
        finally:
            self.source.close()
            self._state_cb(self, "eof", None)


# -----------------------------
# Player engine
# -----------------------------

class PlayerEngine:
    """
    Decode/output engine: ffmpeg decoder thread feeding a sounddevice output
    stream. The stream is opened once for the whole session and plays
    silence whenever nothing is queued.
    """

    def __init__(
        self,
        capture_tap: CaptureTap,
        sample_rate: int = SAMPLE_RATE,
        channels: int = CHANNELS,
        buffer_preset: BufferPreset = PLAYBACK_BUFFER,
        output_device: Optional[int] = None,
        stream_factory: Optional[Callable[..., object]] = None,
    ):
        self.sample_rate = sample_rate
        self.channels = channels
        self._tap = capture_tap
        self._buffer_preset = buffer_preset
        self._ring = PlaybackQueue(
            channels,
            max_seconds=buffer_preset.ring_max_seconds,
            sample_rate=sample_rate,
        )
        self._decoder: Optional[DecoderThread] = None
        self._decoder_done = True
        self._state_lock = threading.Lock()
        self._pending_error: Optional[str] = None

        self._volume = DEFAULT_VOLUME
        self._playing = False
        self._paused = False

        self._callback_calls = 0
        self._callback_underflows = 0
        self._callback_time_total = 0.0
        self._callback_time_max = 0.0
        self._metrics_enabled = env_flag("SPECTRUM_DEBUG_METRICS")
        self._metrics_last_log = time.monotonic()
        self._fade_out_ramp = np.linspace(1.0, 0.0, 32, dtype=np.float32)

        self._stream = self._open_stream(output_device, stream_factory)

    # -- output stream -------------------------------------------------

    def _open_stream(self, device: Optional[int], factory: Optional[Callable[..., object]]):
        if factory is None:
            if sd is None:
                raise AudioOutputUnavailable(f"sounddevice not available: {_sounddevice_import_error}")
            factory = sd.OutputStream
        try:
            stream = factory(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="float32",
                blocksize=self._buffer_preset.blocksize_frames,
                latency=self._buffer_preset.latency,
                device=device,
                callback=self._callback,
            )
            stream.start()
        except Exception as e:
            raise AudioOutputUnavailable(f"Audio output error: {e}") from e
        logger.info(
            "Audio output opened: %d Hz, %d ch, blocksize=%d",
            self.sample_rate,
            self.channels,
            self._buffer_preset.blocksize_frames,
        )
        return stream

    def _callback(self, outdata, frames, time_info, status):
        start = time.perf_counter()
        self._callback_calls += 1
        if status and getattr(status, "output_underflow", False):
            self._callback_underflows += 1

        if not self._playing or self._paused:
            outdata.fill(0)
        else:
            filled = self._ring.pop_into(outdata)
            if filled:
                self._tap.process(outdata[:filled])
            if filled < frames:
                fade_samples = min(filled, self._fade_out_ramp.shape[0])
                if fade_samples > 1:
                    outdata[filled - fade_samples:filled] *= self._fade_out_ramp[:fade_samples, None]
            vol = self._volume
            if vol == 0.0:
                outdata.fill(0)
            elif vol != 1.0:
                outdata *= vol

        elapsed = time.perf_counter() - start
        self._callback_time_total += elapsed
        if elapsed > self._callback_time_max:
            self._callback_time_max = elapsed

    # -- decode ----------------------------------------------------------

    def open(self, path: str) -> tuple[FfmpegPcmSource, int, Optional[float]]:
        if not path or not os.path.isfile(path):
            raise TrackOpenError(f"File not found: {path}")
        if not have_exe("ffmpeg"):
            raise TrackOpenError("ffmpeg not found in PATH.")
        try:
            info = read_audio_info(path)
        except MediaInfoError as e:
            raise TrackOpenError(f"Cannot decode {os.path.basename(path)}: {e}") from e

        duration = info.duration_sec if info is not None else None
        if info is not None and info.sample_rate and info.sample_rate != self.sample_rate:
            logger.debug("Resampling %s from %d Hz to %d Hz", path, info.sample_rate, self.sample_rate)
        source = FfmpegPcmSource(path, self.sample_rate, self.channels, duration_sec=duration)
        try:
            source.start()
        except OSError as e:
            raise TrackOpenError(f"Failed to start ffmpeg: {e}") from e
        return source, self.sample_rate, duration

    def play(self, path: str) -> Optional[float]:
        """Start `path` from the beginning. Returns its duration if known."""
        source, _, duration = self.open(path)
        self.stop()

        self._ring.clear()
        self._tap.reset()
        with self._state_lock:
            self._decoder_done = False
        self._decoder = DecoderThread(
            source=source,
            ring=self._ring,
            buffer_preset=self._buffer_preset,
            state_cb=self._on_decoder_state,
        )
        self._paused = False
        self._playing = True
        self._decoder.start()
        logger.info("Playing %s (duration=%s)", path, duration)
        return duration

    def _on_decoder_state(self, decoder: DecoderThread, kind: str, msg: Optional[str]) -> None:
        with self._state_lock:
            if decoder is not self._decoder:
                return
            if kind == "error":
                logger.warning("%s", msg)
                self._pending_error = msg or "Unknown error"
            elif kind == "eof":
                self._decoder_done = True

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def stop(self) -> None:
        self._playing = False
        self._paused = False
        decoder = self._decoder
        with self._state_lock:
            self._decoder = None
            self._decoder_done = True
        if decoder is not None:
            decoder.stop()
        self._ring.clear()
        self._tap.reset()

    def close(self) -> None:
        self.stop()
        if self._stream is not None:
            try:
                self._stream.stop()
                self._stream.close()
            except Exception as e:
                logger.debug("Closing output stream failed: %s", e)
            self._stream = None

    # -- state -----------------------------------------------------------

    @property
    def volume(self) -> float:
        return self._volume

    def set_volume(self, v: float) -> None:
        self._volume = clamp(float(v), 0.0, 1.0)

    @property
    def is_paused(self) -> bool:
        return self._paused

    def is_queue_empty(self) -> bool:
        if not self._playing:
            return True
        with self._state_lock:
            done = self._decoder_done
        return done and self._ring.frames_available() == 0

    def consume_error(self) -> Optional[str]:
        with self._state_lock:
            msg = self._pending_error
            self._pending_error = None
            return msg

    def log_metrics_if_needed(self) -> None:
        if not self._playing:
            self._metrics_last_log = time.monotonic()
            return
        now = time.monotonic()
        elapsed = now - self._metrics_last_log
        if elapsed < 1.0:
            return
        self._metrics_last_log = now

        calls = self._callback_calls
        underflows = self._callback_underflows
        time_total = self._callback_time_total
        time_max = self._callback_time_max
        self._callback_calls = 0
        self._callback_underflows = 0
        self._callback_time_total = 0.0
        self._callback_time_max = 0.0

        ring_underruns = self._ring.consume_underruns()
        fill_frames = self._ring.frames_available()
        log = logger.info if self._metrics_enabled else logger.debug
        log(
            "Audio metrics: buffer=%.2fs (frames=%d) ring_underruns=%.2f/s "
            "cb_underflows=%.2f/s cb_avg=%.2fms cb_max=%.2fms",
            fill_frames / float(self.sample_rate),
            fill_frames,
            ring_underruns / elapsed,
            underflows / elapsed,
            (time_total / calls) * 1000.0 if calls else 0.0,
            time_max * 1000.0,
        )
