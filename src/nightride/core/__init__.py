"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Logging setup (Loguru)
- Console management (Rich)
"""

from .config import (
    Config,
    LoggingConfig,
    PlayerConfig,
    SearchConfig,
    StationsConfig,
    UIConfig,
    create_default_config,
    ensure_directories,
    get_config_dir,
    get_config_path,
    get_data_dir,
    get_log_file_path,
    get_preferences_path,
    load_config,
)
from .console import get_console, print_error, safe_print
from .output import setup_loguru

__all__ = [
    # Config
    "Config",
    "LoggingConfig",
    "PlayerConfig",
    "SearchConfig",
    "StationsConfig",
    "UIConfig",
    "create_default_config",
    "ensure_directories",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "get_log_file_path",
    "get_preferences_path",
    "load_config",
    # Console
    "get_console",
    "print_error",
    "safe_print",
    # Logging
    "setup_loguru",
]
