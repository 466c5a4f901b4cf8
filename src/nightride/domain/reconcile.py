"""
Reconciliation between the app state snapshot and the live player.

Probes run every tick and never raise: a failed probe keeps the previous value
(or clears the track), so a player that is still starting heals on the next
tick. User actions talk to the player first and update the snapshot only
after the player accepted the change; their failures propagate.
"""

import webbrowser
from typing import Any, Callable, Optional

from loguru import logger

from nightride.core.config import Config
from nightride.domain.playback import (
    PlayerError,
    ProtocolError,
    ensure_playing,
    get_property,
    set_property,
)
from nightride.domain.stations import (
    Station,
    build_stations,
    next_station,
    station_for_filename,
)
from nightride.domain.state import AppState, clamp_volume
from nightride.domain.track import Track, extract_track, search_url

VOLUME_STEP = 5.0

_MISSING = object()


def _probe(config: Config, property_name: str) -> Any:
    """Read a property, returning _MISSING on any failure."""
    try:
        return get_property(
            config.player.socket_path, property_name, config.player.request_timeout
        )
    except PlayerError as e:
        logger.debug(f"Probe {property_name} failed: {e}")
        return _MISSING


def _probe_pause(state: AppState, config: Config) -> None:
    paused = _probe(config, "pause")
    if isinstance(paused, bool):
        state.is_paused = paused


def _probe_volume(state: AppState, config: Config) -> None:
    volume = _probe(config, "volume")
    if isinstance(volume, (int, float)) and not isinstance(volume, bool):
        state.volume = clamp_volume(volume)


def _probe_track(state: AppState, config: Config) -> None:
    state.current_track = read_track(config)


def _probe_station(state: AppState, config: Config, stations: list[Station]) -> None:
    filename = _probe(config, "filename")
    if not isinstance(filename, str):
        return
    station = station_for_filename(stations, filename)
    if station is not None:
        state.station = station


def read_track(config: Config) -> Optional[Track]:
    """Read the current track from the player, None if unknown."""
    metadata = _probe(config, "metadata")
    if metadata is _MISSING:
        return None
    try:
        return extract_track(metadata)
    except PlayerError as e:
        logger.debug(f"Unusable metadata: {e}")
        return None


def reconcile(state: AppState, config: Config) -> AppState:
    """
    Pull the live player state into the snapshot.

    All four probes are issued every time and applied independently:
    pause, volume and station keep their previous value when their probe
    fails, the current track becomes unknown.

    Args:
        state: Snapshot to update in place
        config: Application configuration

    Returns:
        The same state object, for chaining
    """
    stations = build_stations(config.stations)

    _probe_pause(state, config)
    _probe_volume(state, config)
    _probe_track(state, config)
    _probe_station(state, config, stations)

    return state


def toggle_pause(state: AppState, config: Config) -> AppState:
    """Pause or resume playback.

    Raises:
        PlayerError: If the player did not accept the change
    """
    paused = not state.is_paused
    set_property(
        config.player.socket_path, "pause", paused, config.player.request_timeout
    )
    state.is_paused = paused
    logger.info("Paused" if paused else "Resumed")
    return state


def step_volume(state: AppState, config: Config, delta: float) -> AppState:
    """Change the volume by delta, clamped to 0-150.

    The current volume is read from the player, not from the snapshot.

    Raises:
        PlayerError: If the volume could not be read or set
    """
    current = get_property(
        config.player.socket_path, "volume", config.player.request_timeout
    )
    if isinstance(current, bool) or not isinstance(current, (int, float)):
        raise ProtocolError(f"volume is not a number: {current!r}")

    volume = clamp_volume(current + delta)
    set_property(
        config.player.socket_path, "volume", volume, config.player.request_timeout
    )
    state.volume = volume
    logger.info(f"Volume set to {volume}")
    return state


def volume_up(state: AppState, config: Config) -> AppState:
    return step_volume(state, config, VOLUME_STEP)


def volume_down(state: AppState, config: Config) -> AppState:
    return step_volume(state, config, -VOLUME_STEP)


def advance_station(state: AppState, config: Config) -> AppState:
    """Switch to the next station, wrapping after the last one.

    The snapshot keeps the old station if the new player cannot be started.

    Raises:
        ProcessSpawnError: If the player could not be spawned
    """
    stations = build_stations(config.stations)
    station = next_station(stations, state.station)

    ensure_playing(config.player, stations[station])

    state.station = station
    state.current_track = None
    logger.info(f"Switched to station {stations[station].name}")
    return state


def startup(state: AppState, config: Config) -> AppState:
    """Make the player match freshly loaded preferences.

    A spawn failure here is reported through state.feedback, the UI still
    starts and the next user action can retry.
    """
    stations = build_stations(config.stations)
    try:
        ensure_playing(config.player, stations[state.station])
    except PlayerError as e:
        logger.error(f"Could not start player at startup: {e}")
        state.feedback = f"Could not start player: {e}"
    return state


def refresh_track(state: AppState, config: Config) -> Optional[Track]:
    """Re-read the current track into the snapshot and return it."""
    state.current_track = read_track(config)
    return state.current_track


def search_current_track(
    state: AppState,
    config: Config,
    opener: Callable[[str], Any] = webbrowser.open,
) -> bool:
    """Open a web search for the current track.

    Returns:
        True if a search was opened, False if no track is known
    """
    track = refresh_track(state, config)
    if track is None:
        return False

    url = search_url(track, config.search.url)
    logger.info(f"Opening search: {url}")
    opener(url)
    return True
