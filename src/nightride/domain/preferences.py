"""
Preferences persistence.

A small JSON record (station, pause flag, volume, last track) in the data dir.
A missing or broken record is never an error: the defaults are used instead.
"""

import json
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from nightride.core.config import Config, get_preferences_path
from nightride.domain.stations import Station, build_stations, is_valid_station
from nightride.domain.state import AppState, clamp_volume
from nightride.domain.track import track_from_dict


def state_from_dict(data: Any, stations: list[Station]) -> AppState:
    """Build an AppState from a decoded record, replacing bad fields with defaults."""
    state = AppState()
    if not isinstance(data, dict):
        return state

    station = data.get("station")
    if not isinstance(station, bool) and is_valid_station(stations, station):
        state.station = station
    elif station is not None:
        logger.warning(f"Stored station {station!r} is not valid, using station 0")

    is_paused = data.get("is_paused")
    if isinstance(is_paused, bool):
        state.is_paused = is_paused

    volume = data.get("volume")
    if isinstance(volume, (int, float)) and not isinstance(volume, bool):
        state.volume = clamp_volume(volume)

    state.current_track = track_from_dict(data.get("current_track"))
    return state


def load_preferences(config: Config, path: Optional[Path] = None) -> AppState:
    """
    Load the stored preferences.

    Args:
        config: Application configuration (for the station list)
        path: Record location (default: data dir / app.json)

    Returns:
        The stored state, or the default state if the record is absent or
        cannot be parsed
    """
    path = path or get_preferences_path()
    stations = build_stations(config.stations)

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.info(f"No preferences at {path}, using defaults")
        return AppState()
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning(f"Could not read preferences from {path}: {e}")
        return AppState()

    state = state_from_dict(data, stations)
    logger.debug(f"Loaded preferences: {state.to_dict()}")
    return state


def store_preferences(state: AppState, path: Optional[Path] = None) -> Path:
    """
    Write the preferences record, creating its directory if needed.

    Raises:
        OSError: If the directory or file cannot be written
    """
    path = path or get_preferences_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(state.to_dict(), f, indent=2)
    tmp_path.replace(path)

    logger.debug(f"Stored preferences at {path}")
    return path
