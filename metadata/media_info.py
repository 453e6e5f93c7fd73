from __future__ import annotations

import json
import logging
import os
import subprocess
from typing import Optional

from models import AudioInfo
from utils import have_exe, safe_float

logger = logging.getLogger(__name__)


class MediaInfoError(RuntimeError):
    pass


def _startupinfo():
    # Avoid popping up a console window on Windows.
    if os.name != "nt":
        return None
    startupinfo = subprocess.STARTUPINFO()
    startupinfo.dwFlags |= subprocess.STARTF_USESHOWWINDOW
    return startupinfo


def read_audio_info(path: str, timeout: float = 10.0) -> Optional[AudioInfo]:
    """
    Read the first audio stream of `path` with ffprobe.

    Returns None when ffprobe is not installed. Raises MediaInfoError when the
    file cannot be read or carries no audio stream.
    """
    if not have_exe("ffprobe"):
        return None

    cmd = [
        "ffprobe",
        "-v",
        "error",
        "-print_format",
        "json",
        "-show_entries",
        "format=duration:stream=codec_type,sample_rate,channels,duration",
        path,
    ]
    try:
        p = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
            startupinfo=_startupinfo(),
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise MediaInfoError(f"ffprobe failed: {e}") from e

    if p.returncode != 0:
        detail = (p.stderr or "").strip().splitlines()
        raise MediaInfoError(detail[-1] if detail else f"ffprobe exited with {p.returncode}")

    try:
        data = json.loads(p.stdout or "{}")
    except json.JSONDecodeError as e:
        raise MediaInfoError(f"Unreadable ffprobe output: {e}") from e

    streams = data.get("streams", []) or []
    audio = next((s for s in streams if s.get("codec_type") == "audio"), None)
    if audio is None:
        raise MediaInfoError("No audio stream")

    fmt = data.get("format", {}) or {}
    duration = safe_float(str(fmt.get("duration", "")), 0.0)
    if duration <= 0.0:
        duration = safe_float(str(audio.get("duration", "")), 0.0)

    info = AudioInfo(
        duration_sec=duration if duration > 0.0 else None,
        sample_rate=int(safe_float(str(audio.get("sample_rate", "0")), 0.0)),
        channels=int(audio.get("channels") or 0),
    )
    logger.debug("Read stream info for %s: %s", path, info)
    return info
