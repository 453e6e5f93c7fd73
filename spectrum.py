"""
Spectrum analysis for the bar visualizer.

Each tick the analyzer takes the newest FFT_SIZE captured samples, applies a
Hann window, runs a real FFT, averages bin magnitudes into log-spaced bands,
normalizes against the loudest band, compresses the dynamic range and
low-pass filters the result into the bar levels. While nothing is playing
the bars decay towards the floor instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from buffers import SampleCaptureBuffer
from config import (
    BAR_CEILING,
    BAR_COUNT,
    BAR_FLOOR,
    BAR_INITIAL,
    COMPRESSION_EXPONENT,
    FFT_SIZE,
    IDLE_DECAY,
    MAX_FREQ_HZ,
    MIN_FREQ_HZ,
    SENSITIVITY,
    SMOOTHING,
)

logger = logging.getLogger(__name__)


def hann_window(size: int) -> np.ndarray:
    i = np.arange(size, dtype=np.float64)
    return (0.5 * (1.0 - np.cos(2.0 * np.pi * i / size))).astype(np.float32)


@dataclass(frozen=True)
class FrequencyBandMap:
    """
    Log-spaced bar bands and their FFT bin ranges for one sample rate.

    Bin bounds are truncated, so where a band is narrower than a bin (the
    lowest seven bands at 44.1 kHz / 2048) it reads the bin below its own
    frequencies, and a band may own no bin at all.
    """

    sample_rate: int
    fft_size: int = FFT_SIZE
    bar_count: int = BAR_COUNT
    min_freq: float = MIN_FREQ_HZ
    max_freq: float = MAX_FREQ_HZ

    def edges_hz(self) -> np.ndarray:
        t = np.arange(self.bar_count + 1, dtype=np.float64) / self.bar_count
        return self.min_freq * (self.max_freq / self.min_freq) ** t

    def band_hz(self, index: int) -> tuple[float, float]:
        edges = self.edges_hz()
        return float(edges[index]), float(edges[index + 1])

    def bin_ranges(self) -> list[tuple[int, int]]:
        max_bin = self.fft_size // 2
        if self.sample_rate <= 0:
            return [(0, 0)] * self.bar_count
        bin_hz = self.sample_rate / self.fft_size
        edges = self.edges_hz()
        ranges: list[tuple[int, int]] = []
        for i in range(self.bar_count):
            start = min(int(edges[i] / bin_hz), max_bin)
            end = int(min(edges[i + 1] / bin_hz, max_bin))
            ranges.append((start, max(start, end)))
        return ranges

    def band_for_frequency(self, freq_hz: float) -> Optional[int]:
        if not self.min_freq <= freq_hz < self.max_freq:
            return None
        edges = self.edges_hz()
        idx = int(np.searchsorted(edges, freq_hz, side="right")) - 1
        return min(max(idx, 0), self.bar_count - 1)


class SpectrumAnalyzer:
    def __init__(
        self,
        capture: SampleCaptureBuffer,
        fft_size: int = FFT_SIZE,
        bar_count: int = BAR_COUNT,
    ):
        self._capture = capture
        self.fft_size = int(fft_size)
        self.bar_count = int(bar_count)
        self._window = hann_window(self.fft_size)
        self._band_map: Optional[FrequencyBandMap] = None
        self._bin_ranges: list[tuple[int, int]] = []
        self._bars = np.full(self.bar_count, BAR_INITIAL, dtype=np.float32)

    @property
    def bars(self) -> np.ndarray:
        return self._bars.copy()

    def reset(self) -> None:
        self._bars.fill(BAR_INITIAL)

    def band_map(self, sample_rate: int) -> FrequencyBandMap:
        if self._band_map is None or self._band_map.sample_rate != sample_rate:
            self._band_map = FrequencyBandMap(
                sample_rate=sample_rate,
                fft_size=self.fft_size,
                bar_count=self.bar_count,
            )
            self._bin_ranges = self._band_map.bin_ranges()
            logger.debug("Band map rebuilt for %d Hz", sample_rate)
        return self._band_map

    def update(self, sample_rate: int) -> bool:
        """Recompute the bars from live samples. Returns False if skipped."""
        samples = self._capture.snapshot(self.fft_size)
        if samples.shape[0] < self.fft_size:
            return False
        self.band_map(sample_rate)

        magnitudes = np.abs(np.fft.rfft(samples * self._window))

        raw = np.zeros(self.bar_count, dtype=np.float64)
        has_bins = np.zeros(self.bar_count, dtype=bool)
        for i, (start, end) in enumerate(self._bin_ranges):
            if end > start:
                raw[i] = float(np.mean(magnitudes[start:end]))
                has_bins[i] = True
        if not has_bins.any():
            return False

        peak = float(raw.max())
        if peak > 0:
            raw /= peak

        shaped = np.clip((raw * SENSITIVITY) ** COMPRESSION_EXPONENT, 0.0, 1.0)
        smoothed = self._bars * SMOOTHING + shaped * (1.0 - SMOOTHING)
        smoothed = np.clip(smoothed, BAR_FLOOR, BAR_CEILING)
        self._bars = np.where(has_bins, smoothed, self._bars).astype(np.float32)
        return True

    def decay(self) -> None:
        self._bars = np.maximum(self._bars * IDLE_DECAY, BAR_FLOOR).astype(np.float32)
