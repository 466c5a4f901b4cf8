"""
mpv JSON IPC property client.

Every call opens a fresh connection to the control socket, writes one
newline-terminated JSON command and reads back one reply line. Nothing is
kept between calls, so a broken socket only fails the call that hit it.
"""

import json
import os
import socket
from typing import Any, Iterator, Optional, Union

from loguru import logger

from .exceptions import (
    ChannelUnavailable,
    CommandError,
    MissingDataError,
    ProtocolError,
)

DEFAULT_TIMEOUT = 2.0
RECV_SIZE = 4096


def encode_request(command: str, property_name: str, *args: Any) -> bytes:
    """Encode a property command as a single JSON line.

    Args:
        command: "get_property" or "set_property"
        property_name: mpv property name (e.g. "pause")
        *args: Extra command arguments (the value for set_property)

    Returns:
        UTF-8 encoded JSON object terminated by a newline
    """
    payload = {"command": [command, property_name, *args]}
    return (json.dumps(payload) + "\n").encode("utf-8")


def decode_response(line: Union[bytes, str]) -> dict[str, Any]:
    """Decode one reply line into a dict.

    Raises:
        ProtocolError: If the line is not a JSON object
    """
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProtocolError(f"Reply is not valid UTF-8: {e}") from e

    try:
        response = json.loads(line)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"Invalid JSON reply: {e}") from e

    if not isinstance(response, dict):
        raise ProtocolError(f"Reply is not a JSON object: {line!r}")

    return response


def _read_lines(sock: socket.socket) -> Iterator[bytes]:
    """Yield complete lines from the socket until it closes."""
    buffer = b""
    while True:
        chunk = sock.recv(RECV_SIZE)
        if not chunk:
            if buffer.strip():
                yield buffer
            return
        buffer += chunk
        while b"\n" in buffer:
            line, buffer = buffer.split(b"\n", 1)
            if line.strip():
                yield line


def _is_event(response: dict[str, Any]) -> bool:
    # mpv pushes unsolicited event lines on every client connection
    return "event" in response and "error" not in response


def round_trip(
    socket_path: Optional[str], request: bytes, timeout: float = DEFAULT_TIMEOUT
) -> dict[str, Any]:
    """Send one request and return the decoded reply.

    Raises:
        ChannelUnavailable: If nothing is listening on socket_path
        ProtocolError: If the reply is missing, malformed, or times out
    """
    if not socket_path or not os.path.exists(socket_path):
        raise ChannelUnavailable(f"Control socket not found: {socket_path}")

    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    sock.settimeout(timeout)
    try:
        try:
            sock.connect(socket_path)
        except socket.timeout as e:
            raise ProtocolError(f"Timed out connecting to {socket_path}") from e
        except OSError as e:
            # FileNotFoundError, ConnectionRefusedError: player gone or still starting
            raise ChannelUnavailable(f"Cannot connect to {socket_path}: {e}") from e

        try:
            sock.sendall(request)
            for line in _read_lines(sock):
                response = decode_response(line)
                if _is_event(response):
                    continue
                return response
        except socket.timeout as e:
            raise ProtocolError(f"No reply from player within {timeout}s") from e
        except (BrokenPipeError, ConnectionResetError) as e:
            raise ChannelUnavailable(f"Connection to {socket_path} lost: {e}") from e
        except OSError as e:
            raise ProtocolError(f"Socket error talking to player: {e}") from e

        raise ProtocolError("Player closed the connection without replying")
    finally:
        sock.close()


def _check_success(response: dict[str, Any], property_name: str) -> None:
    error = response.get("error")
    if error != "success":
        raise CommandError(str(error), property_name)


def get_property(
    socket_path: Optional[str], property_name: str, timeout: float = DEFAULT_TIMEOUT
) -> Any:
    """Get a property value from mpv.

    Args:
        socket_path: Path to the mpv IPC socket
        property_name: Property to read (e.g. "volume")
        timeout: Seconds allowed for the round trip

    Returns:
        The property value as decoded from JSON

    Raises:
        ChannelUnavailable, ProtocolError, CommandError, MissingDataError
    """
    response = round_trip(
        socket_path, encode_request("get_property", property_name), timeout
    )
    _check_success(response, property_name)

    data = response.get("data")
    if data is None:
        raise MissingDataError(f"{property_name}: reply carried no data")

    logger.trace(f"get_property {property_name} -> {data!r}")
    return data


def set_property(
    socket_path: Optional[str],
    property_name: str,
    value: Any,
    timeout: float = DEFAULT_TIMEOUT,
) -> None:
    """Set a property value on mpv.

    Raises:
        ChannelUnavailable, ProtocolError, CommandError
    """
    response = round_trip(
        socket_path, encode_request("set_property", property_name, value), timeout
    )
    _check_success(response, property_name)
    logger.debug(f"set_property {property_name} = {value!r}")
