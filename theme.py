from __future__ import annotations

from dataclasses import dataclass

from PySide6 import QtGui


@dataclass(frozen=True)
class Theme:
    name: str
    window: str
    base: str
    text: str
    highlight: str
    accent: str
    card: str


DARK = Theme(
    name="Dark",
    window="#0f172a",
    base="#0b1220",
    text="#e2e8f0",
    highlight="#334155",
    accent="#22d3ee",
    card="#111c30",
)


def adjust_color(color: str, *, lighter: int | None = None, darker: int | None = None) -> str:
    qt_color = QtGui.QColor(color)
    if lighter is not None:
        qt_color = qt_color.lighter(lighter)
    if darker is not None:
        qt_color = qt_color.darker(darker)
    return qt_color.name()


def build_palette(theme: Theme) -> QtGui.QPalette:
    window_color = QtGui.QColor(theme.window)
    base_color = QtGui.QColor(theme.base)
    text_color = QtGui.QColor(theme.text)
    highlight_color = QtGui.QColor(theme.highlight)
    palette = QtGui.QPalette()
    palette.setColor(QtGui.QPalette.ColorRole.Window, window_color)
    palette.setColor(QtGui.QPalette.ColorRole.WindowText, text_color)
    palette.setColor(QtGui.QPalette.ColorRole.Base, base_color)
    palette.setColor(QtGui.QPalette.ColorRole.AlternateBase, window_color.darker(110))
    palette.setColor(QtGui.QPalette.ColorRole.Text, text_color)
    palette.setColor(QtGui.QPalette.ColorRole.Button, window_color)
    palette.setColor(QtGui.QPalette.ColorRole.ButtonText, text_color)
    palette.setColor(QtGui.QPalette.ColorRole.Highlight, highlight_color)
    palette.setColor(QtGui.QPalette.ColorRole.HighlightedText, QtGui.QColor("#ffffff"))
    return palette


def build_stylesheet(theme: Theme) -> str:
    border = adjust_color(theme.card, lighter=140)
    gauge_track = adjust_color(theme.base, darker=120)
    return f"""
        QMainWindow {{
            background: {theme.window};
        }}
        QGroupBox {{
            border: 1px solid {border};
            border-radius: 8px;
            margin-top: 14px;
            padding: 6px;
            background: {theme.card};
        }}
        QGroupBox::title {{
            subcontrol-origin: margin;
            left: 10px;
            padding: 0 4px;
            color: {theme.accent};
        }}
        QListWidget {{
            border: 1px solid {border};
            border-radius: 8px;
        }}
        QProgressBar {{
            border: 1px solid {border};
            border-radius: 6px;
            background: {gauge_track};
            text-align: center;
            color: {theme.text};
        }}
        QProgressBar::chunk {{
            border-radius: 6px;
            background: {theme.accent};
        }}
        QLabel#browser_header {{
            color: {theme.accent};
            font-weight: bold;
        }}
        QLabel#error_label {{
            color: #f87171;
        }}
        QLabel#help_label {{
            color: {adjust_color(theme.text, darker=160)};
        }}
    """
