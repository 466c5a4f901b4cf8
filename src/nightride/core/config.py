"""
Configuration management for Nightride
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from loguru import logger

DEFAULT_STATIONS = [
    "nightride",
    "chillsynth",
    "datawave",
    "spacesynth",
    "darksynth",
    "horrorsynth",
    "ebsm",
]


@dataclass
class PlayerConfig:
    """Configuration for the external mpv process."""

    mpv_path: str = "mpv"
    socket_path: str = "/tmp/nightride.sock"
    extra_args: List[str] = field(default_factory=lambda: ["--no-video"])
    request_timeout: float = 2.0  # Seconds per IPC round trip
    startup_timeout: float = 5.0  # Seconds to wait for the socket after spawn
    stop_timeout: float = 2.0  # Seconds to wait for the old process to exit


@dataclass
class StationsConfig:
    """Configuration for the stream sources."""

    base_url: str = "http://stream.nightride.fm/"
    extension: str = ".ogg"
    names: List[str] = field(default_factory=lambda: list(DEFAULT_STATIONS))


@dataclass
class UIConfig:
    """Configuration for the terminal interface."""

    title: str = "Nightride FM - The Home of Synthwave"
    polling_interval: float = 1.0  # Seconds between reconciliation ticks


@dataclass
class SearchConfig:
    """Configuration for the 'search current track' action."""

    url: str = "https://music.youtube.com/search?q="


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/nightride/nightride.log)
    )
    max_file_size_mb: int = 10  # Maximum log file size before rotation
    backup_count: int = 5  # Number of backup files to keep


@dataclass
class Config:
    """Main configuration object."""

    player: PlayerConfig = field(default_factory=PlayerConfig)
    stations: StationsConfig = field(default_factory=StationsConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "nightride"
    return Path.home() / ".config" / "nightride"


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. NIGHTRIDE_CONFIG environment variable
    2. Current working directory
    3. XDG_CONFIG_HOME/nightride (or ~/.config/nightride)
    """
    env_config = os.environ.get("NIGHTRIDE_CONFIG")
    if env_config:
        return Path(env_config).expanduser()

    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "nightride"
    return Path.home() / ".local" / "share" / "nightride"


def get_preferences_path() -> Path:
    """Get the path of the persisted user preferences record."""
    return get_data_dir() / "app.json"


def get_log_file_path(config: Config) -> Path:
    """Get the log file path, honouring a custom path from config."""
    if config.logging.log_file:
        return Path(config.logging.log_file).expanduser()
    return get_data_dir() / "nightride.log"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# Nightride Configuration

[player]
# mpv executable (name on PATH or absolute path)
mpv_path = "mpv"

# Control socket mpv listens on (--input-ipc-server)
socket_path = "/tmp/nightride.sock"

# Extra arguments passed to mpv
extra_args = ["--no-video"]

# Seconds allowed for a single property request
request_timeout = 2.0

# Seconds to wait for a freshly started player to open its socket
startup_timeout = 5.0

# Seconds to wait for a stopped player to exit
stop_timeout = 2.0

[stations]
base_url = "http://stream.nightride.fm/"
extension = ".ogg"
names = ["nightride", "chillsynth", "datawave", "spacesynth", "darksynth", "horrorsynth", "ebsm"]

[ui]
title = "Nightride FM - The Home of Synthwave"

# Seconds between player state polls
polling_interval = 1.0

[search]
# Prefix of the search URL opened for the current track
url = "https://music.youtube.com/search?q="

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/nightride/nightride.log)
# log_file = "/path/to/custom/nightride.log"

# Maximum log file size in MB before rotation
max_file_size_mb = 10

# Number of backup log files to keep
backup_count = 5
""".strip()


def _parse_config(toml_data: dict) -> Config:
    """Build a Config from parsed TOML, falling back to defaults per key."""
    config = Config()

    if "player" in toml_data:
        player_data = toml_data["player"]
        config.player = PlayerConfig(
            mpv_path=player_data.get("mpv_path", config.player.mpv_path),
            socket_path=str(
                Path(
                    player_data.get("socket_path", config.player.socket_path)
                ).expanduser()
            ),
            extra_args=list(player_data.get("extra_args", config.player.extra_args)),
            request_timeout=float(
                player_data.get("request_timeout", config.player.request_timeout)
            ),
            startup_timeout=float(
                player_data.get("startup_timeout", config.player.startup_timeout)
            ),
            stop_timeout=float(
                player_data.get("stop_timeout", config.player.stop_timeout)
            ),
        )

    if "stations" in toml_data:
        stations_data = toml_data["stations"]
        names = [str(n) for n in stations_data.get("names", []) if str(n).strip()]
        if not names:
            logger.warning("No stations configured, using the default station list")
            names = list(DEFAULT_STATIONS)
        config.stations = StationsConfig(
            base_url=stations_data.get("base_url", config.stations.base_url),
            extension=stations_data.get("extension", config.stations.extension),
            names=names,
        )

    if "ui" in toml_data:
        ui_data = toml_data["ui"]
        config.ui = UIConfig(
            title=ui_data.get("title", config.ui.title),
            polling_interval=float(
                ui_data.get("polling_interval", config.ui.polling_interval)
            ),
        )

    if "search" in toml_data:
        config.search = SearchConfig(
            url=toml_data["search"].get("url", config.search.url)
        )

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        log_file = logging_data.get("log_file")
        if log_file:
            log_file = str(Path(log_file).expanduser())
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level).upper(),
            log_file=log_file,
            max_file_size_mb=logging_data.get(
                "max_file_size_mb", config.logging.max_file_size_mb
            ),
            backup_count=logging_data.get(
                "backup_count", config.logging.backup_count
            ),
        )

    return config


def _apply_env_overrides(config: Config) -> Config:
    """Apply NIGHTRIDE_* environment variable overrides."""
    socket_path = os.environ.get("NIGHTRIDE_SOCKET_PATH")
    mpv_path = os.environ.get("NIGHTRIDE_MPV_PATH")

    if socket_path:
        config.player.socket_path = socket_path
    if mpv_path:
        config.player.mpv_path = mpv_path

    return config


def load_config() -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - NIGHTRIDE_SOCKET_PATH
    - NIGHTRIDE_MPV_PATH
    """
    # Load .env file from config directory if it exists
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = get_config_path()

    if not config_path.exists():
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(config_path, "w", encoding="utf-8") as f:
                f.write(create_default_config())
            logger.info(f"Created default configuration at: {config_path}")
        except OSError as e:
            logger.warning(f"Could not write default configuration to {config_path}: {e}")
        return _apply_env_overrides(Config())

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
        config = _parse_config(toml_data)
    except (OSError, tomllib.TOMLDecodeError, TypeError, ValueError) as e:
        logger.warning(f"Error loading configuration from {config_path}: {e}")
        logger.warning("Using default configuration.")
        config = Config()

    return _apply_env_overrides(config)


def ensure_directories() -> None:
    """Ensure all necessary directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_data_dir().mkdir(parents=True, exist_ok=True)
