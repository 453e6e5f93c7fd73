from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
from PySide6 import QtCore, QtGui, QtWidgets

from models import BrowserEntry, EntryKind, PlayerSnapshot, PlayerState
from utils import format_time

# UI Widgets
# -----------------------------

ENTRY_ICONS = {
    EntryKind.PARENT: "📁",
    EntryKind.DIRECTORY: "📁",
    EntryKind.FILE: "🎵",
}

STATUS_TEXT = {
    PlayerState.PLAYING: "▶ Playing",
    PlayerState.PAUSED: "⏸ Paused",
    PlayerState.STOPPED: "⏹ Stopped",
}


def volume_icon(volume: float) -> str:
    percent = int(volume * 100)
    if percent == 0:
        return "🔇"
    if percent < 33:
        return "🔈"
    if percent < 66:
        return "🔉"
    return "🔊"


class SpectrumWidget(QtWidgets.QWidget):
    """Draws the bar levels; each bar is split into green/yellow/red zones by height."""

    ZONE_COLORS = ("#22c55e", "#eab308", "#ef4444")

    def __init__(self, bar_count: int, parent=None):
        super().__init__(parent)
        self._bar_levels = np.zeros(bar_count, dtype=np.float32)
        self._active = False
        self.setMinimumHeight(160)
        self.setSizePolicy(QtWidgets.QSizePolicy.Policy.Expanding, QtWidgets.QSizePolicy.Policy.Expanding)

    def set_levels(self, levels: np.ndarray, active: bool) -> None:
        self._bar_levels = levels
        self._active = active
        self.update()

    def paintEvent(self, event: QtGui.QPaintEvent) -> None:
        painter = QtGui.QPainter(self)
        painter.setRenderHint(QtGui.QPainter.RenderHint.Antialiasing, False)
        palette = self.palette()
        background = palette.color(QtGui.QPalette.ColorRole.Base)
        text_color = palette.color(QtGui.QPalette.ColorRole.Text)
        painter.fillRect(self.rect(), background)

        rect = self.rect().adjusted(12, 12, -12, -12)
        if rect.width() <= 0 or rect.height() <= 0:
            return

        baseline_y = rect.bottom()
        painter.setPen(QtGui.QPen(text_color, 1))
        painter.drawLine(rect.left(), baseline_y, rect.right(), baseline_y)

        bar_count = len(self._bar_levels)
        if bar_count == 0:
            return
        bar_width = rect.width() / bar_count
        full = rect.height()
        zone_height = full / 3.0
        painter.setPen(QtCore.Qt.PenStyle.NoPen)
        for i, level in enumerate(self._bar_levels):
            bar_height = full * float(level)
            if bar_height <= 1:
                continue
            x = rect.left() + i * bar_width
            for zone, color_name in enumerate(self.ZONE_COLORS):
                zone_bottom = zone * zone_height
                if bar_height <= zone_bottom:
                    break
                h = min(bar_height, zone_bottom + zone_height) - zone_bottom
                color = QtGui.QColor(color_name)
                if not self._active:
                    color = color.darker(160)
                painter.setBrush(QtGui.QBrush(color))
                y = rect.bottom() - zone_bottom - h
                painter.drawRect(QtCore.QRectF(x + 1, y, bar_width - 2, h))


class NowPlayingWidget(QtWidgets.QGroupBox):
    def __init__(self, parent=None):
        super().__init__("Now Playing", parent)
        self.track_label = QtWidgets.QLabel("No track selected")
        font = self.track_label.font()
        font.setBold(True)
        self.track_label.setFont(font)
        self.track_label.setTextInteractionFlags(QtCore.Qt.TextInteractionFlag.NoTextInteraction)

        self.progress = QtWidgets.QProgressBar()
        self.progress.setRange(0, 1000)
        self.progress.setTextVisible(True)
        self.progress.setFormat("00:00 / 00:00")

        self.status_label = QtWidgets.QLabel(STATUS_TEXT[PlayerState.STOPPED])
        self.continuous_label = QtWidgets.QLabel()
        self.error_label = QtWidgets.QLabel()
        self.error_label.setObjectName("error_label")
        self.error_label.setWordWrap(True)
        self.error_label.setVisible(False)

        status_row = QtWidgets.QHBoxLayout()
        status_row.addWidget(self.status_label)
        status_row.addStretch(1)
        status_row.addWidget(self.continuous_label)

        layout = QtWidgets.QVBoxLayout(self)
        layout.addWidget(self.track_label)
        layout.addWidget(self.progress)
        layout.addLayout(status_row)
        layout.addWidget(self.error_label)

    def update_from(self, snap: PlayerSnapshot) -> None:
        name = snap.track.display_name if snap.track else "No track selected"
        if self.track_label.text() != name:
            self.track_label.setText(name)
        self.progress.setValue(int(round(snap.progress * 1000)))
        self.progress.setFormat(f"{format_time(snap.elapsed_sec)} / {format_time(snap.total_sec)}")
        self.status_label.setText(STATUS_TEXT[snap.state])
        self.continuous_label.setText(f"🔁 Continuous: {'ON' if snap.continuous_play else 'OFF'}")
        self.continuous_label.setEnabled(snap.continuous_play)
        if snap.error:
            self.error_label.setText(f"⚠ {snap.error}")
        self.error_label.setVisible(bool(snap.error))


class VolumeWidget(QtWidgets.QGroupBox):
    def __init__(self, parent=None):
        super().__init__("Volume", parent)
        self.gauge = QtWidgets.QProgressBar()
        self.gauge.setRange(0, 100)
        self.gauge.setTextVisible(True)
        layout = QtWidgets.QVBoxLayout(self)
        layout.addWidget(self.gauge)

    def set_volume(self, volume: float) -> None:
        percent = int(round(volume * 100))
        self.gauge.setValue(percent)
        self.gauge.setFormat(f"{volume_icon(volume)} {percent}%")


class BrowserWidget(QtWidgets.QWidget):
    entryActivated = QtCore.Signal(int)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.header = QtWidgets.QLabel()
        self.header.setObjectName("browser_header")
        self.header.setWordWrap(True)

        self.list = QtWidgets.QListWidget()
        self.list.setSelectionMode(QtWidgets.QAbstractItemView.SelectionMode.SingleSelection)
        self.list.setUniformItemSizes(True)
        # Keys go to the main window's dispatcher, not the list.
        self.list.setFocusPolicy(QtCore.Qt.FocusPolicy.NoFocus)

        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(8, 8, 8, 8)
        layout.setSpacing(6)
        layout.addWidget(self.header)
        layout.addWidget(self.list, 1)

        self.list.itemDoubleClicked.connect(self._on_double)
        self._entries: Sequence[BrowserEntry] = ()
        self._playing_index: Optional[int] = None

    def _on_double(self, item: QtWidgets.QListWidgetItem):
        self.entryActivated.emit(self.list.row(item))

    def set_listing(
        self,
        directory: str,
        entries: Sequence[BrowserEntry],
        cursor: int,
        playing_index: Optional[int],
    ) -> None:
        if entries is not self._entries:
            self.header.setText(f"📂 {directory}")
            self.list.clear()
            for entry in entries:
                self.list.addItem(f"{ENTRY_ICONS[entry.kind]} {entry.name}")
            self._entries = entries
            self._playing_index = None

        if playing_index != self._playing_index:
            for idx in (self._playing_index, playing_index):
                item = self.list.item(idx) if idx is not None else None
                if item is not None:
                    font = item.font()
                    font.setBold(idx == playing_index)
                    item.setFont(font)
            self._playing_index = playing_index

        if self.list.currentRow() != cursor:
            self.list.setCurrentRow(cursor)
