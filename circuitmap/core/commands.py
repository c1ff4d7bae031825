from __future__ import annotations

from enum import Enum
from typing import Dict, Optional


class Command(str, Enum):
    ADVANCE = "advance"
    RESET = "reset"
    TOGGLE_INFO = "toggle_info"
    TOGGLE_MUTE = "toggle_mute"


KEY_BINDINGS: Dict[str, Command] = {
    "n": Command.ADVANCE,
    "r": Command.RESET,
    "a": Command.TOGGLE_INFO,
    "m": Command.TOGGLE_MUTE,
}


def parse_command(text: str) -> Optional[Command]:
    """Map a single typed key to its command, ignoring case."""
    if not text or len(text) != 1:
        return None
    return KEY_BINDINGS.get(text.lower())
