from __future__ import annotations

import threading
from typing import Optional

import numpy as np


class PlaybackQueue:
    """
    Bounded FIFO of decoded frames between the decoder thread and the output
    callback, stored in one preallocated (max_frames, channels) array.

    push(frames, stop_event): blocks while full unless stop_event is set
    pop_into(out): fills `out` from the head, zero-padding on underrun
    """

    def __init__(self, channels: int, max_seconds: float, sample_rate: int):
        self.channels = channels
        self.max_frames = max(1, int(max_seconds * sample_rate))
        self._data = np.zeros((self.max_frames, channels), dtype=np.float32)
        self._head = 0
        self._frames = 0
        self._underruns = 0
        self._cond = threading.Condition()

    def clear(self) -> None:
        with self._cond:
            self._head = 0
            self._frames = 0
            self._cond.notify_all()

    def frames_available(self) -> int:
        with self._cond:
            return self._frames

    def push(self, frames: np.ndarray, stop_event: Optional[threading.Event] = None) -> None:
        if frames.ndim != 2 or frames.shape[1] != self.channels:
            raise ValueError(f"frames must be (n,{self.channels}), got {frames.shape}")
        offset = 0
        total = frames.shape[0]
        with self._cond:
            while offset < total:
                if stop_event is not None and stop_event.is_set():
                    return
                space = self.max_frames - self._frames
                if space <= 0:
                    self._cond.wait(timeout=0.05)
                    continue
                take = min(space, total - offset)
                self._write(frames[offset : offset + take])
                offset += take

    def _write(self, block: np.ndarray) -> None:
        n = block.shape[0]
        tail = (self._head + self._frames) % self.max_frames
        first = min(n, self.max_frames - tail)
        self._data[tail : tail + first] = block[:first]
        if first < n:
            self._data[: n - first] = block[first:]
        self._frames += n

    def pop_into(self, out: np.ndarray) -> int:
        if out.ndim != 2 or out.shape[1] != self.channels:
            raise ValueError(f"out must be (n,{self.channels}), got {out.shape}")
        n = out.shape[0]
        with self._cond:
            take = min(n, self._frames)
            first = min(take, self.max_frames - self._head)
            out[:first] = self._data[self._head : self._head + first]
            if first < take:
                out[first:take] = self._data[: take - first]
            self._head = (self._head + take) % self.max_frames
            self._frames -= take
            if take < n:
                self._underruns += 1
            if take:
                self._cond.notify_all()
        if take < n:
            out[take:].fill(0)
        return take

    def consume_underruns(self) -> int:
        with self._cond:
            underruns = self._underruns
            self._underruns = 0
            return underruns


class SampleCaptureBuffer:
    """
    Bounded FIFO of the most recent mono samples, shared between the
    audio callback (writer) and the analyzer (reader).

    push(sample): append one sample, evicting the oldest when full
    push_frames(frames): append a block, (n,) or (n, ch) downmixed to mono
    snapshot(count): up to `count` most recent samples, oldest first
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = int(capacity)
        self._buffer = np.zeros(self.capacity, dtype=np.float32)
        self._write_index = 0
        self._filled = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return self._filled

    def clear(self) -> None:
        with self._lock:
            self._write_index = 0
            self._filled = 0

    def push(self, sample: float) -> None:
        with self._lock:
            self._buffer[self._write_index] = sample
            self._write_index = (self._write_index + 1) % self.capacity
            self._filled = min(self.capacity, self._filled + 1)

    def push_frames(self, frames: np.ndarray) -> None:
        if frames.size == 0:
            return
        if frames.ndim == 2:
            mono = frames.mean(axis=1, dtype=np.float32)
        else:
            mono = frames.reshape(-1).astype(np.float32, copy=False)

        # Only the tail can survive eviction.
        if mono.shape[0] > self.capacity:
            mono = mono[-self.capacity :]

        n = mono.shape[0]
        with self._lock:
            end = self._write_index + n
            if end <= self.capacity:
                self._buffer[self._write_index : end] = mono
            else:
                first = self.capacity - self._write_index
                self._buffer[self._write_index :] = mono[:first]
                self._buffer[: end - self.capacity] = mono[first:]
            self._write_index = end % self.capacity
            self._filled = min(self.capacity, self._filled + n)

    def snapshot(self, count: int) -> np.ndarray:
        if count <= 0:
            return np.zeros(0, dtype=np.float32)
        with self._lock:
            n = min(int(count), self._filled)
            start = (self._write_index - n) % self.capacity
            end = start + n
            if end <= self.capacity:
                data = self._buffer[start:end].copy()
            else:
                data = np.concatenate((self._buffer[start:], self._buffer[: end - self.capacity]))
        return data
