"""Core infrastructure layer - no domain dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Logging output (Loguru)
- Console management (Rich)
- Timer scheduling (asyncio loop or virtual clock)
"""

# Configuration
from .config import (
    Config,
    LoggingConfig,
    OverlayConfig,
    PlayerConfig,
    ScrubConfig,
    create_default_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    get_log_file_path,
    load_config,
    save_config,
)

# Console
from .console import get_console, safe_print

# Output
from .output import setup_logging_from_config, setup_loguru

# Scheduling
from .scheduler import ManualScheduler, Scheduler, TimerHandle, cancel_handle

__all__ = [
    # Config
    "Config",
    "LoggingConfig",
    "OverlayConfig",
    "PlayerConfig",
    "ScrubConfig",
    "create_default_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "get_log_file_path",
    "load_config",
    "save_config",
    # Console
    "get_console",
    "safe_print",
    # Output
    "setup_logging_from_config",
    "setup_loguru",
    # Scheduling
    "ManualScheduler",
    "Scheduler",
    "TimerHandle",
    "cancel_handle",
]
