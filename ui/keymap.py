from __future__ import annotations

from enum import Enum
from typing import Optional

from player import Player


class Command(Enum):
    MOVE_DOWN = "move_down"
    MOVE_UP = "move_up"
    SELECT = "select"
    TOGGLE_PLAYBACK = "toggle_playback"
    STOP = "stop"
    VOLUME_UP = "volume_up"
    VOLUME_DOWN = "volume_down"
    NEXT_TRACK = "next_track"
    PREVIOUS_TRACK = "previous_track"
    TOGGLE_CONTINUOUS = "toggle_continuous"
    QUIT = "quit"


# Keys are either the typed character or a named special key.
KEY_BINDINGS: dict[str, Command] = {
    "down": Command.MOVE_DOWN,
    "j": Command.MOVE_DOWN,
    "up": Command.MOVE_UP,
    "k": Command.MOVE_UP,
    "enter": Command.SELECT,
    " ": Command.TOGGLE_PLAYBACK,
    "s": Command.STOP,
    "+": Command.VOLUME_UP,
    "=": Command.VOLUME_UP,
    "-": Command.VOLUME_DOWN,
    "_": Command.VOLUME_DOWN,
    "n": Command.NEXT_TRACK,
    "p": Command.PREVIOUS_TRACK,
    "c": Command.TOGGLE_CONTINUOUS,
    "q": Command.QUIT,
    "escape": Command.QUIT,
}

HELP_TEXT = (
    "↑/k ↓/j move · Enter select · Space play/pause · s stop · "
    "n/p next/prev · +/- volume · c continuous · q quit"
)


def resolve_key(special: Optional[str], text: str) -> Optional[Command]:
    if special:
        return KEY_BINDINGS.get(special)
    if text:
        return KEY_BINDINGS.get(text)
    return None


def dispatch(player: Player, command: Command) -> bool:
    """Run `command` on the player. Returns False when the app should quit."""
    if command == Command.QUIT:
        return False
    getattr(player, command.value)()
    return True
