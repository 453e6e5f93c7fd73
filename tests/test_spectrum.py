import numpy as np
import pytest

from buffers import SampleCaptureBuffer
from config import BAR_CEILING, BAR_FLOOR, BAR_INITIAL, CAPTURE_CAPACITY, FFT_SIZE
from spectrum import FrequencyBandMap, SpectrumAnalyzer, hann_window

SR = 44100


def _analyzer(samples=None):
    capture = SampleCaptureBuffer(CAPTURE_CAPACITY)
    if samples is not None:
        capture.push_frames(np.asarray(samples, dtype=np.float32))
    return SpectrumAnalyzer(capture), capture


def _tone(freq_hz, n=FFT_SIZE, sample_rate=SR, amplitude=0.5):
    t = np.arange(n, dtype=np.float64) / sample_rate
    return (amplitude * np.sin(2.0 * np.pi * freq_hz * t)).astype(np.float32)


def test_hann_window_shape():
    w = hann_window(8)
    assert w.shape == (8,)
    assert w[0] == pytest.approx(0.0)
    assert w[4] == pytest.approx(1.0)


def test_band_edges_are_log_spaced_and_increasing():
    band_map = FrequencyBandMap(sample_rate=SR)
    edges = band_map.edges_hz()

    assert edges.shape == (33,)
    assert edges[0] == pytest.approx(60.0)
    assert edges[-1] == pytest.approx(16000.0)
    assert np.all(np.diff(edges) > 0)
    ratios = edges[1:] / edges[:-1]
    assert np.allclose(ratios, ratios[0])


def test_bin_ranges_are_clamped_to_nyquist():
    band_map = FrequencyBandMap(sample_rate=8000)
    for start, end in band_map.bin_ranges():
        assert 0 <= start <= end <= FFT_SIZE // 2


def test_bin_ranges_empty_for_invalid_sample_rate():
    assert FrequencyBandMap(sample_rate=0).bin_ranges() == [(0, 0)] * 32


def test_band_for_frequency():
    band_map = FrequencyBandMap(sample_rate=SR)
    assert band_map.band_for_frequency(60.0) == 0
    assert band_map.band_for_frequency(15999.0) == 31
    assert band_map.band_for_frequency(30.0) is None
    lo, hi = band_map.band_hz(10)
    assert band_map.band_for_frequency((lo + hi) / 2) == 10


# Below band 7 (~200 Hz) the 21.5 Hz bins are wider than the bands.
@pytest.mark.parametrize("band", range(7, 32))
def test_pure_tone_peaks_in_its_band(band):
    band_map = FrequencyBandMap(sample_rate=SR)
    lo, hi = band_map.band_hz(band)
    freq = float(np.sqrt(lo * hi))
    analyzer, _ = _analyzer(_tone(freq))

    for _ in range(10):
        assert analyzer.update(SR)

    assert int(np.argmax(analyzer.bars)) == band_map.band_for_frequency(freq) == band


def test_low_bands_truncate_to_the_bin_below():
    band_map = FrequencyBandMap(sample_rate=SR)
    ranges = band_map.bin_ranges()

    assert ranges[:3] == [(2, 3), (3, 3), (3, 4)]
    for band in range(7):
        lo, hi = band_map.band_hz(band)
        freq = float(np.sqrt(lo * hi))
        analyzer, _ = _analyzer(_tone(freq))
        for _ in range(10):
            analyzer.update(SR)
        assert int(np.argmax(analyzer.bars)) > band
    # Band 1 owns no bin and never moves off its initial level.
    assert analyzer.bars[1] == np.float32(BAR_INITIAL)


@pytest.mark.parametrize(
    "samples",
    [
        np.zeros(FFT_SIZE),
        np.random.default_rng(1).uniform(-1.0, 1.0, FFT_SIZE),
        np.full(FFT_SIZE, 1e6),
        _tone(1000.0, amplitude=1e-9),
    ],
    ids=["silence", "noise", "huge", "tiny"],
)
def test_bars_stay_in_range(samples):
    analyzer, capture = _analyzer(samples)
    for _ in range(20):
        analyzer.update(SR)
        bars = analyzer.bars
        assert np.all(bars >= BAR_FLOOR)
        assert np.all(bars <= BAR_CEILING)
        capture.push_frames(np.random.default_rng(2).normal(0, 3, 512).astype(np.float32))


def test_update_skipped_without_enough_samples():
    analyzer, _ = _analyzer(_tone(440.0, n=FFT_SIZE - 1))

    assert analyzer.update(SR) is False
    assert np.all(analyzer.bars == np.float32(BAR_INITIAL))


def test_update_skipped_for_invalid_sample_rate():
    analyzer, _ = _analyzer(_tone(440.0))

    assert analyzer.update(0) is False
    assert np.all(analyzer.bars == np.float32(BAR_INITIAL))


def test_idle_decay_from_high_value():
    analyzer, _ = _analyzer()
    analyzer._bars[:] = 0.9

    analyzer.decay()
    assert np.all(analyzer.bars <= 0.81 + 1e-6)
    assert np.all(analyzer.bars >= BAR_FLOOR)

    for _ in range(100):
        analyzer.decay()
    assert np.allclose(analyzer.bars, BAR_FLOOR)
    analyzer.decay()
    assert np.allclose(analyzer.bars, BAR_FLOOR)


def test_bars_property_returns_copy_and_reset():
    analyzer, _ = _analyzer(_tone(440.0))
    analyzer.update(SR)
    bars = analyzer.bars
    bars[:] = 0.0
    assert np.all(analyzer.bars >= BAR_FLOOR)

    analyzer.reset()
    assert np.all(analyzer.bars == np.float32(BAR_INITIAL))
