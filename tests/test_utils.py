import math

import pytest

from models import PlayerSnapshot, PlayerState, Track
from utils import clamp, env_flag, format_time, safe_float


@pytest.mark.parametrize(
    "seconds, expected",
    [(0, "00:00"), (59.9, "00:59"), (61, "01:01"), (3725, "1:02:05"), (-4, "00:00"), (math.nan, "00:00")],
)
def test_format_time(seconds, expected):
    assert format_time(seconds) == expected


def test_clamp_and_safe_float():
    assert clamp(2.0, 0.0, 1.0) == 1.0
    assert clamp(-2.0, 0.0, 1.0) == 0.0
    assert clamp(0.25, 0.0, 1.0) == 0.25
    assert safe_float("1.5") == 1.5
    assert safe_float("N/A", 3.0) == 3.0
    assert safe_float(None) == 0.0


def test_env_flag(monkeypatch):
    monkeypatch.delenv("SPECTRUM_DEBUG_METRICS", raising=False)
    assert env_flag("SPECTRUM_DEBUG_METRICS") is False
    assert env_flag("SPECTRUM_DEBUG_METRICS", default=True) is True
    monkeypatch.setenv("SPECTRUM_DEBUG_METRICS", " Yes ")
    assert env_flag("SPECTRUM_DEBUG_METRICS") is True
    monkeypatch.setenv("SPECTRUM_DEBUG_METRICS", "0")
    assert env_flag("SPECTRUM_DEBUG_METRICS") is False


def test_snapshot_progress_and_track_name():
    snap = PlayerSnapshot(
        bars=None,
        state=PlayerState.PLAYING,
        track=Track("/music/Song.flac"),
        elapsed_sec=30.0,
        total_sec=120.0,
        volume=0.5,
        continuous_play=False,
        error=None,
        directory="/music",
    )
    assert snap.progress == 0.25
    assert snap.track.display_name == "Song.flac"
    assert PlayerState.PAUSED.label == "Paused"
