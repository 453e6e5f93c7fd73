from __future__ import annotations

import logging
import subprocess
import threading
from collections import deque
from typing import IO, Optional, Protocol

import numpy as np

logger = logging.getLogger(__name__)


class PcmSource(Protocol):
    """Anything that yields float32 PCM blocks shaped (n, channels)."""

    path: str
    channels: int
    sample_rate: int
    duration_sec: Optional[float]

    def read(self, frames: int) -> Optional[np.ndarray]:
        ...

    def error_output(self) -> str:
        ...

    def wait(self, timeout: float = 1.0) -> Optional[int]:
        ...

    def close(self) -> None:
        ...


def make_ffmpeg_cmd(path: str, sample_rate: int, channels: int) -> list[str]:
    return [
        "ffmpeg", "-hide_banner", "-loglevel", "error",
        "-i", path,
        "-vn",
        "-ac", str(channels),
        "-ar", str(sample_rate),
        "-f", "f32le",
        "pipe:1"
    ]


class FfmpegPcmSource:
    """Decodes a file to interleaved float32 PCM through an ffmpeg pipe."""

    def __init__(
        self,
        path: str,
        sample_rate: int,
        channels: int,
        duration_sec: Optional[float] = None,
    ):
        self.path = path
        self.sample_rate = sample_rate
        self.channels = channels
        self.duration_sec = duration_sec
        self._frame_bytes = channels * 4
        self._byte_buffer = bytearray()
        self._proc: Optional[subprocess.Popen] = None
        self._stderr_thread: Optional[threading.Thread] = None
        self._stderr_tail: deque[str] = deque(maxlen=20)
        self._closed = False

    def start(self) -> None:
        cmd = make_ffmpeg_cmd(self.path, self.sample_rate, self.channels)
        self._proc = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        if self._proc.stderr is not None:
            # ffmpeg blocks once the stderr pipe fills, so keep it drained.
            self._stderr_thread = threading.Thread(
                target=self._stderr_reader,
                args=(self._proc.stderr,),
                daemon=True,
            )
            self._stderr_thread.start()

    def _stderr_reader(self, stderr: IO[bytes]) -> None:
        try:
            for raw_line in iter(stderr.readline, b""):
                line = raw_line.decode("utf-8", errors="ignore").strip()
                if line:
                    self._stderr_tail.append(line)
        except (OSError, ValueError):
            return

    @property
    def stdout(self) -> Optional[IO[bytes]]:
        return self._proc.stdout if self._proc else None

    def read(self, frames: int) -> Optional[np.ndarray]:
        stdout = self.stdout
        if stdout is None or self._closed:
            return None
        read_bytes = max(1, frames) * self._frame_bytes
        while len(self._byte_buffer) < self._frame_bytes:
            try:
                chunk = stdout.read(read_bytes)
            except (OSError, ValueError):
                # Pipe closed under us by close() from another thread.
                if self._closed:
                    return None
                raise
            if not chunk:
                break
            self._byte_buffer.extend(chunk)
        if len(self._byte_buffer) < self._frame_bytes:
            return None
        available_frames = len(self._byte_buffer) // self._frame_bytes
        take_bytes = min(available_frames, max(1, frames)) * self._frame_bytes
        data = bytes(self._byte_buffer[:take_bytes])
        del self._byte_buffer[:take_bytes]
        return np.frombuffer(data, dtype=np.float32).reshape((-1, self.channels))

    def error_output(self) -> str:
        """Last line ffmpeg wrote to stderr, once the process has exited."""
        if self._proc is None or self._proc.poll() is None:
            return ""
        if self._stderr_thread is not None:
            self._stderr_thread.join(timeout=0.5)
        return self._stderr_tail[-1] if self._stderr_tail else ""

    def wait(self, timeout: float = 1.0) -> Optional[int]:
        if self._proc is None:
            return None
        try:
            return self._proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            return None

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._byte_buffer.clear()
        proc = self._proc
        if proc is None:
            return
        if proc.poll() is None:
            try:
                proc.terminate()
                proc.wait(timeout=1.0)
            except subprocess.TimeoutExpired:
                logger.debug("ffmpeg did not exit on terminate, killing %s", self.path)
                proc.kill()
                proc.wait(timeout=1.0)
            except OSError as e:
                logger.debug("ffmpeg terminate failed: %s", e)
        for pipe in (proc.stdout, proc.stderr):
            if pipe is not None:
                try:
                    pipe.close()
                except OSError as e:
                    logger.debug("Closing ffmpeg pipe failed: %s", e)
        if self._stderr_thread is not None:
            self._stderr_thread.join(timeout=0.5)
