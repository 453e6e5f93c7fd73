from __future__ import annotations

import logging

from PySide6 import QtCore, QtGui, QtWidgets

from config import BAR_COUNT, TICK_INTERVAL_MS
from models import PlayerState
from player import Player
from ui.keymap import HELP_TEXT, dispatch, resolve_key
from ui.widgets import BrowserWidget, NowPlayingWidget, SpectrumWidget, VolumeWidget

logger = logging.getLogger(__name__)

SPECIAL_KEYS = {
    int(QtCore.Qt.Key.Key_Down): "down",
    int(QtCore.Qt.Key.Key_Up): "up",
    int(QtCore.Qt.Key.Key_Return): "enter",
    int(QtCore.Qt.Key.Key_Enter): "enter",
    int(QtCore.Qt.Key.Key_Escape): "escape",
}

# Main Window
# -----------------------------

class MainWindow(QtWidgets.QMainWindow):
    def __init__(self, player: Player):
        super().__init__()
        self.setWindowTitle("Spectrum Music Player")
        self.resize(1100, 640)
        self.player = player

        self.browser = BrowserWidget()
        self.now_playing = NowPlayingWidget()
        self.volume = VolumeWidget()
        self.spectrum = SpectrumWidget(BAR_COUNT)

        spectrum_box = QtWidgets.QGroupBox("Spectrum (FFT)")
        spectrum_layout = QtWidgets.QVBoxLayout(spectrum_box)
        spectrum_layout.addWidget(self.spectrum)

        help_label = QtWidgets.QLabel(HELP_TEXT)
        help_label.setObjectName("help_label")
        help_label.setWordWrap(True)

        right = QtWidgets.QWidget()
        right_layout = QtWidgets.QVBoxLayout(right)
        right_layout.addWidget(self.now_playing)
        right_layout.addWidget(self.volume)
        right_layout.addWidget(spectrum_box, 1)
        right_layout.addWidget(help_label)

        splitter = QtWidgets.QSplitter(QtCore.Qt.Orientation.Horizontal)
        splitter.addWidget(self.browser)
        splitter.addWidget(right)
        splitter.setStretchFactor(0, 2)
        splitter.setStretchFactor(1, 3)
        self.setCentralWidget(splitter)
        self.setFocusPolicy(QtCore.Qt.FocusPolicy.StrongFocus)

        self.browser.entryActivated.connect(self._on_entry_activated)

        # Timer
        self._timer = QtCore.QTimer(self)
        self._timer.setInterval(TICK_INTERVAL_MS)
        self._timer.timeout.connect(self._tick)
        self._timer.start()

        self._render()

    def keyPressEvent(self, e: QtGui.QKeyEvent):
        command = resolve_key(SPECIAL_KEYS.get(int(e.key())), e.text())
        if command is None:
            super().keyPressEvent(e)
            return
        if not dispatch(self.player, command):
            self.close()
            return
        self._render()

    def _on_entry_activated(self, idx: int):
        self.player.activate(idx)
        self._render()

    def _tick(self):
        self.player.tick()
        self._render()

    def _render(self):
        snap = self.player.snapshot()
        self.browser.set_listing(snap.directory, snap.entries, snap.cursor, snap.current_track_index)
        self.now_playing.update_from(snap)
        self.volume.set_volume(snap.volume)
        self.spectrum.set_levels(snap.bars, snap.state == PlayerState.PLAYING)

    def closeEvent(self, e: QtGui.QCloseEvent):
        self._timer.stop()
        self.player.close()
        logger.info("Player closed")
        super().closeEvent(e)
