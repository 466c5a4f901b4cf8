"""
Track metadata extraction.

mpv appends successive stream metadata to the end of each field, separated by
semicolons, so only the last segment describes the track playing now.
"""

from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import quote_plus

from nightride.domain.playback.exceptions import ProtocolError

TRACK_FIELDS = ("title", "artist", "album")


@dataclass(frozen=True)
class Track:
    """Current track as announced by the stream."""

    title: str
    artist: str
    album: str

    def __str__(self) -> str:
        return f"{self.title} by {self.artist} ({self.album})"

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "artist": self.artist, "album": self.album}


def last_segment(value: str) -> str:
    """Return the text after the last semicolon.

    "Old Title;New Title" -> "New Title"; "" -> ""; "Old;" -> "".
    A trailing empty segment stays empty, there is no fallback to the
    previous segment.
    """
    return value.rsplit(";", 1)[-1]


def _lookup_field(metadata: dict[str, Any], name: str) -> str:
    # Vorbis comments may arrive upper-cased depending on the stream
    for key, value in metadata.items():
        if isinstance(key, str) and key.lower() == name:
            if not isinstance(value, str):
                raise ProtocolError(f"metadata field {name!r} is not a string")
            return value
    raise ProtocolError(f"metadata has no {name!r} field")


def extract_track(metadata: Any) -> Track:
    """Build a Track from a raw metadata property value.

    Raises:
        ProtocolError: If metadata is not an object or lacks a field
    """
    if not isinstance(metadata, dict):
        raise ProtocolError("metadata is not an object")

    values = {name: last_segment(_lookup_field(metadata, name)) for name in TRACK_FIELDS}
    return Track(**values)


def track_from_dict(data: Any) -> Optional[Track]:
    """Rebuild a Track from a stored preferences record (None if unusable)."""
    if not isinstance(data, dict):
        return None
    if not all(isinstance(data.get(name), str) for name in TRACK_FIELDS):
        return None
    return Track(title=data["title"], artist=data["artist"], album=data["album"])


def search_url(track: Track, base_url: str) -> str:
    """Build the web search URL for a track ("title artist")."""
    return base_url + quote_plus(f"{track.title} {track.artist}")
