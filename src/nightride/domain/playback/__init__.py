"""Playback domain - mpv integration.

This domain handles:
- The mpv JSON IPC property protocol
- Starting, stopping and probing the mpv process
"""

from .exceptions import (
    ChannelUnavailable,
    CommandError,
    MissingDataError,
    PlayerError,
    ProcessSpawnError,
    ProtocolError,
)
from .protocol import (
    decode_response,
    encode_request,
    get_property,
    round_trip,
    set_property,
)
from .supervisor import (
    PlayerHandle,
    build_command,
    check_mpv_available,
    ensure_playing,
    get_player_handle,
    is_running_station,
    start_player,
    stop_player,
)

__all__ = [
    # Exceptions
    "PlayerError",
    "ChannelUnavailable",
    "CommandError",
    "MissingDataError",
    "ProcessSpawnError",
    "ProtocolError",
    # Protocol
    "decode_response",
    "encode_request",
    "get_property",
    "round_trip",
    "set_property",
    # Supervisor
    "PlayerHandle",
    "build_command",
    "check_mpv_available",
    "ensure_playing",
    "get_player_handle",
    "is_running_station",
    "start_player",
    "stop_player",
]
