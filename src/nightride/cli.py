"""
Nightride CLI - entry point.

Without a subcommand the interactive terminal UI runs. The subcommands act on
the player once and exit, which makes them usable from hotkeys.
"""

import argparse
import sys
from typing import Callable, Optional

from loguru import logger

from nightride.core import config as config_module
from nightride.core.config import Config
from nightride.core.console import print_error, safe_print
from nightride.core.output import setup_loguru
from nightride.domain.playback import (
    PlayerError,
    check_mpv_available,
    get_player_handle,
    stop_player,
)
from nightride.domain.preferences import load_preferences, store_preferences
from nightride.domain.reconcile import advance_station, reconcile, startup, toggle_pause
from nightride.domain.state import AppState
from nightride.domain.stations import build_stations, find_station


def _setup(args: argparse.Namespace) -> Config:
    cfg = config_module.load_config()
    config_module.ensure_directories()
    level = args.log_level or cfg.logging.level
    setup_loguru(
        config_module.get_log_file_path(cfg),
        level=level,
        max_file_size_mb=cfg.logging.max_file_size_mb,
        backup_count=cfg.logging.backup_count,
    )
    return cfg


def _store(state: AppState) -> bool:
    try:
        path = store_preferences(state)
    except OSError as e:
        logger.exception("Failed to store preferences")
        print_error(f"could not save preferences: {e}")
        return False
    logger.info(f"Preferences saved to {path}")
    return True


def run_interactive(cfg: Config, station_name: Optional[str] = None) -> int:
    """Run the terminal UI until the user quits.

    Preferences are stored even when the session ends with an error.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    from nightride.ui import run_interactive_ui

    stations = build_stations(cfg.stations)
    state = load_preferences(cfg)

    if station_name:
        station = find_station(stations, station_name)
        if station is None:
            names = ", ".join(s.name for s in stations)
            print_error(f"unknown station {station_name!r} (choose from: {names})")
            return 1
        state.station = station

    if not check_mpv_available(cfg.player):
        logger.warning(f"{cfg.player.mpv_path} --version failed, playback may not start")

    exit_code = 0
    try:
        startup(state, cfg)
        state = run_interactive_ui(state, cfg)
    except PlayerError as e:
        logger.exception("Session ended with a player error")
        print_error(str(e))
        exit_code = 1
    finally:
        if not _store(state):
            exit_code = 1

    return exit_code


def run_status(cfg: Config) -> int:
    """Print what the player is doing right now.

    Read-only: unlike pause and next it never starts a player.
    """
    stations = build_stations(cfg.stations)
    state = reconcile(load_preferences(cfg), cfg)
    handle = get_player_handle(cfg.player)

    if handle is None:
        safe_print("Player: not running", style="yellow")
    else:
        safe_print(f"Player: pid {handle.pid} ({handle.filename or 'unknown source'})")

    safe_print(f"Station: {stations[state.station].name}")
    safe_print(f"State:   {'paused' if state.is_paused else 'playing'}")
    safe_print(f"Track:   {state.current_track or '...'}")
    safe_print(f"Volume:  {state.volume:g}")
    return 0 if handle is not None else 1


def run_action(cfg: Config, action: Callable[[AppState, Config], AppState]) -> int:
    """Apply one user action headlessly and store the result.

    Like the interactive session, the stored station is made to play first,
    so `nightride pause` works when no player is running yet.
    """
    state = startup(load_preferences(cfg), cfg)
    if state.feedback:
        print_error(state.feedback)
    reconcile(state, cfg)
    exit_code = 0
    try:
        action(state, cfg)
    except PlayerError as e:
        logger.warning(f"{action.__name__} failed: {e}")
        print_error(str(e))
        exit_code = 1
    finally:
        if not _store(state):
            exit_code = 1
    return exit_code


def run_stop(cfg: Config) -> int:
    """Stop the player, if one is running."""
    stop_player(cfg.player)
    safe_print("Player stopped")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nightride",
        description="Nightride FM - terminal radio controller for mpv",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--station",
        help="Start on this station instead of the last one played",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the configured log level",
    )

    subparsers = parser.add_subparsers(dest="subcommand", help="Available commands")
    subparsers.add_parser("status", help="Show what the player is doing")
    subparsers.add_parser("pause", help="Toggle pause")
    subparsers.add_parser("next", help="Switch to the next station")
    subparsers.add_parser("stop", help="Stop the player")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for the nightride command."""
    args = build_parser().parse_args(argv)
    cfg = _setup(args)

    if args.subcommand == "status":
        exit_code = run_status(cfg)
    elif args.subcommand == "pause":
        exit_code = run_action(cfg, toggle_pause)
    elif args.subcommand == "next":
        exit_code = run_action(cfg, advance_station)
    elif args.subcommand == "stop":
        exit_code = run_stop(cfg)
    else:
        exit_code = run_interactive(cfg, args.station)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
