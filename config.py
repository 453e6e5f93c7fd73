from __future__ import annotations

from models import BufferPreset

# Output / decode
SAMPLE_RATE = 44100
CHANNELS = 2

PLAYBACK_BUFFER = BufferPreset(
    blocksize_frames=1024,
    latency="high",
    target_sec=0.35,
    high_sec=0.60,
    ring_max_seconds=2.0,
)

# UI loop
TICK_INTERVAL_MS = 50

# Sample capture / spectrum
CAPTURE_CAPACITY = 8192
FFT_SIZE = 2048
BAR_COUNT = 32
MIN_FREQ_HZ = 60.0
MAX_FREQ_HZ = 16000.0
BAR_FLOOR = 0.05
BAR_CEILING = 0.95
BAR_INITIAL = 0.1
SENSITIVITY = 0.8
COMPRESSION_EXPONENT = 0.7
SMOOTHING = 0.7
IDLE_DECAY = 0.9

# Transport
DEFAULT_TRACK_DURATION_SEC = 180.0

# Volume
DEFAULT_VOLUME = 0.5
VOLUME_STEP = 0.05

AUDIO_EXTENSIONS = {
    ".mp3",
    ".flac",
    ".wav",
    ".ogg",
    ".m4a",
    ".opus",
}
