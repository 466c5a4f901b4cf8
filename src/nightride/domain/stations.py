"""
Station list.

A station is addressed by its index (StationId) into the configured list.
"""

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional

from nightride.core.config import StationsConfig


@dataclass(frozen=True)
class Station:
    """A stream source: display name plus playback URL."""

    name: str
    url: str


def build_stations(config: StationsConfig) -> list[Station]:
    """Build the ordered station list from config.

    The URL is base_url + name + extension, e.g.
    http://stream.nightride.fm/chillsynth.ogg
    """
    return [
        Station(name=name, url=f"{config.base_url}{name}{config.extension}")
        for name in config.names
    ]


def is_valid_station(stations: list[Station], station_id: int) -> bool:
    """Check that station_id indexes into the station list."""
    return isinstance(station_id, int) and 0 <= station_id < len(stations)


def next_station(stations: list[Station], station_id: int) -> int:
    """Return the station after station_id, wrapping to the first."""
    return (station_id + 1) % len(stations)


def filename_stem(filename: str) -> str:
    """Strip directories and every extension from an observed filename.

    mpv reports the last URL path segment ("chillsynth.ogg"); the
    station is identified by the part before the first dot.
    """
    return PurePosixPath(filename).name.split(".")[0]


def station_for_filename(stations: list[Station], filename: str) -> Optional[int]:
    """Map a filename reported by the player to a StationId, if it is a known station."""
    stem = filename_stem(filename)
    for station_id, station in enumerate(stations):
        if station.name == stem:
            return station_id
    return None


def find_station(stations: list[Station], name: str) -> Optional[int]:
    """Look up a station by name (case-insensitive)."""
    wanted = name.strip().lower()
    for station_id, station in enumerate(stations):
        if station.name.lower() == wanted:
            return station_id
    return None
