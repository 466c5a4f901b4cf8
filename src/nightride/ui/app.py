"""Main event loop and entry point for the blessed UI."""

import sys
import time
from typing import Callable

from blessed import Terminal
from loguru import logger

from nightride.core.config import Config
from nightride.domain.playback import PlayerError, ProcessSpawnError
from nightride.domain.reconcile import (
    advance_station,
    reconcile,
    search_current_track,
    toggle_pause,
    volume_down,
    volume_up,
)
from nightride.domain.state import AppState
from nightride.domain.stations import build_stations

from .keys import (
    NEXT_STATION,
    QUIT,
    SEARCH,
    TOGGLE_PAUSE,
    VOLUME_DOWN,
    VOLUME_UP,
    key_to_action,
)
from .rendering import render

ACTION_HANDLERS: dict[str, Callable[[AppState, Config], object]] = {
    TOGGLE_PAUSE: toggle_pause,
    VOLUME_UP: volume_up,
    VOLUME_DOWN: volume_down,
    NEXT_STATION: advance_station,
}


def handle_action(action: str, state: AppState, config: Config) -> bool:
    """
    Run one user action against the player.

    Player errors are shown in the feedback line. A player that cannot be
    spawned is fatal and propagates.

    Returns:
        True if the loop should quit
    """
    if action == QUIT:
        return True

    if action == SEARCH:
        if search_current_track(state, config):
            state.feedback = None
        else:
            state.feedback = "No track information yet"
        return False

    handler = ACTION_HANDLERS.get(action)
    if handler is None:
        logger.warning(f"Unknown action: {action}")
        return False

    try:
        handler(state, config)
        state.feedback = None
    except ProcessSpawnError:
        raise
    except PlayerError as e:
        logger.warning(f"{action} failed: {e}")
        state.feedback = f"{action.replace('_', ' ')} failed: {e}"

    return False


def main_loop(
    term: Terminal,
    state: AppState,
    config: Config,
    clock: Callable[[], float] = time.monotonic,
) -> AppState:
    """
    Poll the player once per interval and react to keys in between.

    Args:
        term: blessed Terminal instance
        state: App state, updated in place
        config: Application configuration
        clock: Monotonic time source

    Returns:
        The state when the user quit
    """
    stations = build_stations(config.stations)
    next_poll = clock()

    while True:
        now = clock()
        if now >= next_poll:
            reconcile(state, config)
            next_poll = now + config.ui.polling_interval

        render(term, state, stations, config.ui.title)
        sys.stdout.flush()

        key = term.inkey(timeout=max(0.0, next_poll - clock()))
        action = key_to_action(key)
        if action is None:
            continue

        logger.debug(f"Key {key!r} -> {action}")
        if handle_action(action, state, config):
            break
        # Show the result of the action on the next draw
        next_poll = clock()

    return state


def run_interactive_ui(state: AppState, config: Config) -> AppState:
    """
    Run the main interactive UI event loop.

    Args:
        state: Initial app state
        config: Application configuration

    Returns:
        App state after the UI session ends
    """
    term = Terminal()

    with term.fullscreen(), term.cbreak(), term.hidden_cursor():
        try:
            state = main_loop(term, state, config)
        except KeyboardInterrupt:
            logger.info("Ctrl+C detected - leaving UI")

    return state
