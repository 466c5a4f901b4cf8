"""
mpv process supervision.

The supervisor never trusts a process handle it kept around: the player can be
killed, crash, or be replaced by another controller at any time. Every check
asks the control socket what is running right now.
"""

import os
import signal
import subprocess
import time
from typing import NamedTuple, Optional

from loguru import logger

from nightride.core.config import PlayerConfig
from nightride.domain.stations import Station, filename_stem

from .exceptions import PlayerError, ProcessSpawnError
from .protocol import get_property

POLL_INTERVAL = 0.05


class PlayerHandle(NamedTuple):
    """A player observed over the control socket."""

    pid: int
    filename: Optional[str] = None


def check_mpv_available(config: PlayerConfig) -> bool:
    """Check if the configured mpv executable can be run."""
    try:
        result = subprocess.run(
            [config.mpv_path, "--version"], capture_output=True, text=True, timeout=5
        )
        return result.returncode == 0
    except (subprocess.SubprocessError, FileNotFoundError, OSError):
        return False


def _get_pid(config: PlayerConfig) -> int:
    pid = get_property(config.socket_path, "pid", config.request_timeout)
    if isinstance(pid, bool) or not isinstance(pid, int) or pid <= 0:
        raise PlayerError(f"Player reported an invalid pid: {pid!r}")
    return pid


def get_player_handle(config: PlayerConfig) -> Optional[PlayerHandle]:
    """Describe the player listening on the socket, or None if there is none."""
    try:
        pid = _get_pid(config)
    except PlayerError as e:
        logger.debug(f"No player on {config.socket_path}: {e}")
        return None

    try:
        filename = get_property(config.socket_path, "filename", config.request_timeout)
    except PlayerError:
        filename = None

    return PlayerHandle(pid=pid, filename=filename if isinstance(filename, str) else None)


def is_running_station(config: PlayerConfig, station: Station) -> bool:
    """Check whether the live player is playing station.

    Any failure to ask counts as "not running this station".
    """
    try:
        filename = get_property(config.socket_path, "filename", config.request_timeout)
    except PlayerError as e:
        logger.debug(f"Liveness probe failed: {e}")
        return False

    if not isinstance(filename, str):
        return False
    return filename_stem(filename) == station.name


def _terminate(pid: int) -> None:
    os.kill(pid, signal.SIGTERM)


def _process_alive(pid: int) -> bool:
    # Reap our own children first, a zombie still answers kill(pid, 0)
    try:
        reaped, _ = os.waitpid(pid, os.WNOHANG)
        if reaped == pid:
            return False
    except ChildProcessError:
        pass

    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


def _wait_for_exit(pid: int, timeout: float) -> bool:
    deadline = time.monotonic() + timeout
    while _process_alive(pid):
        if time.monotonic() >= deadline:
            return False
        time.sleep(POLL_INTERVAL)
    return True


def stop_player(config: PlayerConfig) -> None:
    """Stop the player listening on the socket, if any.

    Best effort: a player that is not running, or a socket nobody answers on,
    is not an error.
    """
    try:
        pid = _get_pid(config)
    except PlayerError as e:
        logger.debug(f"No player to stop: {e}")
        return

    logger.info(f"Stopping player pid={pid}")
    try:
        _terminate(pid)
    except OSError as e:
        # Already gone, or owned by someone else
        logger.warning(f"Could not terminate player pid={pid}: {e}")
        return

    if not _wait_for_exit(pid, config.stop_timeout):
        logger.warning(f"Player pid={pid} still alive after {config.stop_timeout}s")


def build_command(config: PlayerConfig, station: Station) -> list[str]:
    """Build the mpv command line for station."""
    return [
        config.mpv_path,
        station.url,
        f"--input-ipc-server={config.socket_path}",
        *config.extra_args,
    ]


def _remove_stale_socket(config: PlayerConfig) -> None:
    socket_path = config.socket_path
    try:
        pid = _get_pid(config)
    except PlayerError:
        pass
    else:
        # A player we could not stop still owns it
        logger.warning(f"Socket {socket_path} still answers for pid={pid}, keeping it")
        return

    try:
        os.unlink(socket_path)
        logger.debug(f"Removed stale socket: {socket_path}")
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove stale socket {socket_path}: {e}")


def _wait_for_socket(process: subprocess.Popen, config: PlayerConfig) -> bool:
    """Wait for the socket; False if the player is alive but still not ready.

    Raises:
        ProcessSpawnError: If the player exited before opening its socket
    """
    deadline = time.monotonic() + config.startup_timeout
    while not os.path.exists(config.socket_path):
        returncode = process.poll()
        if returncode is not None:
            logger.error(f"Player exited early with code {returncode}")
            raise ProcessSpawnError(f"{config.mpv_path} exited with code {returncode}")
        if time.monotonic() >= deadline:
            logger.warning(
                f"Player socket {config.socket_path} not ready after "
                f"{config.startup_timeout}s"
            )
            return False
        time.sleep(POLL_INTERVAL)
    return True


def start_player(config: PlayerConfig, station: Station) -> subprocess.Popen:
    """Start mpv playing station, detached from this terminal.

    The player runs in its own session so it keeps playing after the
    controlling terminal closes.

    Raises:
        ProcessSpawnError: If the process could not be spawned, or exited
            before opening its control socket
    """
    _remove_stale_socket(config)

    cmd = build_command(config, station)
    logger.info(f"Starting player for {station.name}: {' '.join(cmd)}")

    try:
        process = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except (subprocess.SubprocessError, OSError) as e:
        logger.error(f"Failed to start player: {e}")
        raise ProcessSpawnError(f"Failed to start {config.mpv_path}: {e}") from e

    if _wait_for_socket(process, config):
        logger.info(f"Player started (pid={process.pid})")
    return process


def ensure_playing(config: PlayerConfig, station: Station) -> bool:
    """Make sure the live player is playing station.

    Returns:
        True if the player had to be (re)started, False if it already was
        on station

    Raises:
        ProcessSpawnError: If a new player could not be spawned
    """
    if is_running_station(config, station):
        return False

    stop_player(config)
    start_player(config, station)
    return True
