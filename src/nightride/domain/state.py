"""Application state snapshot read by the UI and persisted between runs."""

from dataclasses import dataclass
from typing import Any, Optional

from nightride.domain.track import Track

MIN_VOLUME = 0.0
MAX_VOLUME = 150.0
DEFAULT_VOLUME = 100.0


def clamp_volume(volume: float) -> float:
    """Clamp a volume to the range mpv accepts by default (0-150)."""
    return max(MIN_VOLUME, min(MAX_VOLUME, float(volume)))


@dataclass
class AppState:
    """
    Snapshot of what the player is doing.

    Owned by the run loop. Reconciliation and user actions update it in place
    and only after the live player confirmed the change.
    """

    station: int = 0
    is_paused: bool = True
    volume: float = DEFAULT_VOLUME
    current_track: Optional[Track] = None

    # Last message for the UI, never persisted
    feedback: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize the persisted fields."""
        data: dict[str, Any] = {
            "is_paused": self.is_paused,
            "volume": self.volume,
            "station": self.station,
        }
        if self.current_track is not None:
            data["current_track"] = self.current_track.to_dict()
        return data
