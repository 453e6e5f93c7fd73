"""
PySide6 music player with a live FFT spectrum display.

Backend pipeline:
- Decode: ffmpeg -> float32 PCM (stereo) at a fixed sample rate
- Capture: the output callback tees every block into a mono ring buffer
- Analyze: Hann-windowed FFT over the latest 2048 samples -> 32 log-spaced bars
- Output: sounddevice (PortAudio) callback pulling from a thread-safe ring buffer

Requirements:
  pip install PySide6 numpy sounddevice
  ffmpeg + ffprobe installed and on PATH

Env vars:
- SPECTRUM_LOG_LEVEL = DEBUG | INFO | WARNING | ERROR (default INFO)
- SPECTRUM_DEBUG_METRICS = 1 to log output callback timing at INFO
"""

from __future__ import annotations

import logging
import os
import sys

from PySide6 import QtWidgets

from audio.engine import AudioOutputUnavailable
from player import Player
from theme import DARK, build_palette, build_stylesheet
from ui.main_window import MainWindow

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging() -> None:
    level_name = os.environ.get("SPECTRUM_LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


def main():
    setup_logging()
    app = QtWidgets.QApplication(sys.argv)
    app.setApplicationName("Spectrum Music Player")
    app.setStyle("Fusion")
    app.setPalette(build_palette(DARK))
    app.setStyleSheet(build_stylesheet(DARK))

    start_dir = os.getcwd()
    try:
        player = Player.create(start_dir)
    except AudioOutputUnavailable as e:
        logger.critical("Audio output unavailable: %s", e)
        QtWidgets.QMessageBox.critical(None, "Audio output unavailable", str(e))
        sys.exit(1)
    except OSError as e:
        logger.critical("Cannot open directory %s: %s", start_dir, e)
        QtWidgets.QMessageBox.critical(None, "Cannot open directory", f"{start_dir}\n\n{e}")
        sys.exit(1)

    w = MainWindow(player)
    w.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
