"""Keyboard event handling."""

from typing import Optional

from blessed.keyboard import Keystroke

# Action names understood by the run loop
QUIT = "quit"
TOGGLE_PAUSE = "toggle_pause"
VOLUME_UP = "volume_up"
VOLUME_DOWN = "volume_down"
SEARCH = "search"
NEXT_STATION = "next_station"

KEY_ACTIONS = {
    "q": QUIT,
    "p": TOGGLE_PAUSE,
    "V": VOLUME_UP,
    "v": VOLUME_DOWN,
    "y": SEARCH,
    "n": NEXT_STATION,
}

HELP_TEXT = "p pause  v/V volume  n next station  y search  q quit"


def key_to_action(key: Keystroke) -> Optional[str]:
    """
    Map a keystroke to an action name.

    Args:
        key: blessed Keystroke

    Returns:
        Action name, or None for keys without a binding
    """
    if not key:
        return None

    if key.name == "KEY_ESCAPE" or key == "\x03":  # Esc or Ctrl+C
        return QUIT

    if key.is_sequence:
        return None

    return KEY_ACTIONS.get(str(key))
