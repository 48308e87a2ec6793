"""
Configuration management for the playback container
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from loguru import logger

APP_NAME = "playback-container"


@dataclass
class PlayerConfig:
    """Configuration for skip behaviour of the remote arrows."""

    jump_forward_interval: float = 15.0
    jump_backward_interval: float = 15.0


@dataclass
class OverlayConfig:
    """Timing configuration for the overlay and its helpers (seconds)."""

    idle_hide_delay: float = 5.0
    hold_threshold: float = 0.3
    acceleration_tick_interval: float = 0.1
    skip_indicator_clear_delay: float = 1.0
    jump_progress_delay: float = 2.0

    def validate(self) -> None:
        """Validate overlay timing values.

        Raises:
            ValueError: If any interval is not strictly positive
        """
        invalid = {
            name: value
            for name, value in (
                ("idle_hide_delay", self.idle_hide_delay),
                ("hold_threshold", self.hold_threshold),
                ("acceleration_tick_interval", self.acceleration_tick_interval),
                ("skip_indicator_clear_delay", self.skip_indicator_clear_delay),
                ("jump_progress_delay", self.jump_progress_delay),
            )
            if value <= 0
        }
        if invalid:
            raise ValueError(f"Overlay intervals must be positive: {invalid}")


@dataclass
class ScrubConfig:
    """Configuration for hold-to-scrub acceleration."""

    max_acceleration: float = 10.0
    acceleration_ramp_rate: float = 0.5  # factor gained per second of hold

    def validate(self) -> None:
        """Validate scrub acceleration values.

        Raises:
            ValueError: If the ramp is not a usable acceleration curve
        """
        if self.max_acceleration < 1.0:
            raise ValueError(
                f"max_acceleration must be >= 1.0, got {self.max_acceleration}"
            )
        if self.acceleration_ramp_rate < 0:
            raise ValueError(
                f"acceleration_ramp_rate must be >= 0, got {self.acceleration_ramp_rate}"
            )


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/playback-container/playback-container.log)
    )
    max_file_size_mb: int = 10  # Maximum log file size before rotation
    backup_count: int = 5  # Number of backup files to keep
    console_output: bool = False  # Also output to console (for debugging)


@dataclass
class Config:
    """Main configuration object."""

    player: PlayerConfig = field(default_factory=PlayerConfig)
    overlay: OverlayConfig = field(default_factory=OverlayConfig)
    scrub: ScrubConfig = field(default_factory=ScrubConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / APP_NAME
    return Path.home() / ".config" / APP_NAME


def _find_project_config() -> Optional[Path]:
    """Find config.toml in project root by looking for pyproject.toml.

    Returns:
        Path to config.toml in project root, or None if not found
    """
    current = Path(__file__).resolve().parent
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            config_path = parent / "config.toml"
            return config_path if config_path.exists() else None
    return None


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Project root (detected via pyproject.toml) - for development
    2. Current working directory
    3. XDG_CONFIG_HOME/playback-container (or ~/.config/playback-container)
    """
    project_config = _find_project_config()
    if project_config:
        return project_config

    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / APP_NAME
    return Path.home() / ".local" / "share" / APP_NAME


def get_log_file_path(config: Config) -> Path:
    """Resolve the log file path from config, defaulting into the data dir."""
    if config.logging.log_file:
        return Path(config.logging.log_file).expanduser()
    return get_data_dir() / f"{APP_NAME}.log"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# Playback Container Configuration

[player]
# Seconds skipped by a single right/left arrow press
jump_forward_interval = 15.0
jump_backward_interval = 15.0

[overlay]
# Seconds of inactivity before the overlay hides itself
idle_hide_delay = 5.0

# How long an arrow must be held before accelerated scrubbing starts
hold_threshold = 0.3

# Interval between accelerated scrub steps
acceleration_tick_interval = 0.1

# How long the skip indicator stays on screen after release
skip_indicator_clear_delay = 1.0

# How long a tap location is remembered for jump gestures
jump_progress_delay = 2.0

[scrub]
# Upper bound of the hold-to-scrub speed multiplier
max_acceleration = 10.0

# Multiplier gained per second of continuous hold (0.5 reaches 10x at 18s)
acceleration_ramp_rate = 0.5

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/playback-container/playback-container.log)
# log_file = "/path/to/custom/playback-container.log"

# Maximum log file size in MB before rotation
max_file_size_mb = 10

# Number of backup log files to keep
backup_count = 5

# Also output logs to console (useful for debugging)
console_output = false
""".strip()


def _parse_config(toml_data: dict) -> Config:
    """Build a Config from parsed TOML, falling back per invalid section."""
    config = Config()

    if "player" in toml_data:
        player_data = toml_data["player"]
        config.player = PlayerConfig(
            jump_forward_interval=float(
                player_data.get(
                    "jump_forward_interval", config.player.jump_forward_interval
                )
            ),
            jump_backward_interval=float(
                player_data.get(
                    "jump_backward_interval", config.player.jump_backward_interval
                )
            ),
        )

    if "overlay" in toml_data:
        overlay_data = toml_data["overlay"]
        config.overlay = OverlayConfig(
            idle_hide_delay=float(
                overlay_data.get("idle_hide_delay", config.overlay.idle_hide_delay)
            ),
            hold_threshold=float(
                overlay_data.get("hold_threshold", config.overlay.hold_threshold)
            ),
            acceleration_tick_interval=float(
                overlay_data.get(
                    "acceleration_tick_interval",
                    config.overlay.acceleration_tick_interval,
                )
            ),
            skip_indicator_clear_delay=float(
                overlay_data.get(
                    "skip_indicator_clear_delay",
                    config.overlay.skip_indicator_clear_delay,
                )
            ),
            jump_progress_delay=float(
                overlay_data.get(
                    "jump_progress_delay", config.overlay.jump_progress_delay
                )
            ),
        )
        try:
            config.overlay.validate()
        except ValueError as e:
            logger.warning(f"Invalid overlay configuration: {e}")
            print(f"Warning: Invalid overlay configuration: {e}")
            print("Using default overlay configuration.")
            config.overlay = OverlayConfig()

    if "scrub" in toml_data:
        scrub_data = toml_data["scrub"]
        config.scrub = ScrubConfig(
            max_acceleration=float(
                scrub_data.get("max_acceleration", config.scrub.max_acceleration)
            ),
            acceleration_ramp_rate=float(
                scrub_data.get(
                    "acceleration_ramp_rate", config.scrub.acceleration_ramp_rate
                )
            ),
        )
        try:
            config.scrub.validate()
        except ValueError as e:
            logger.warning(f"Invalid scrub configuration: {e}")
            print(f"Warning: Invalid scrub configuration: {e}")
            print("Using default scrub configuration.")
            config.scrub = ScrubConfig()

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
            backup_count=logging_data.get("backup_count", config.logging.backup_count),
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )

    return config


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - PLAYBACK_CONTAINER_LOG_LEVEL
    """
    # Load .env file from config directory if it exists
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = config_path or get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        print(f"Created default configuration at: {config_path}")
        config = Config()
    else:
        try:
            with open(config_path, "rb") as f:
                toml_data = tomllib.load(f)
            config = _parse_config(toml_data)
        except (OSError, tomllib.TOMLDecodeError, TypeError, ValueError) as e:
            print(f"Error loading configuration from {config_path}: {e}")
            print("Using default configuration.")
            config = Config()

    log_level = os.environ.get("PLAYBACK_CONTAINER_LOG_LEVEL")
    if log_level:
        config.logging.level = log_level.upper()

    return config


def _toml_bool(value: bool) -> str:
    return "true" if value else "false"


def save_config(config: Config, config_path: Optional[Path] = None) -> bool:
    """Save configuration to file."""
    config_path = config_path or get_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)

        toml_content = f"""# Playback Container Configuration

[player]
jump_forward_interval = {config.player.jump_forward_interval}
jump_backward_interval = {config.player.jump_backward_interval}

[overlay]
idle_hide_delay = {config.overlay.idle_hide_delay}
hold_threshold = {config.overlay.hold_threshold}
acceleration_tick_interval = {config.overlay.acceleration_tick_interval}
skip_indicator_clear_delay = {config.overlay.skip_indicator_clear_delay}
jump_progress_delay = {config.overlay.jump_progress_delay}

[scrub]
max_acceleration = {config.scrub.max_acceleration}
acceleration_ramp_rate = {config.scrub.acceleration_ramp_rate}

[logging]
level = "{config.logging.level}"
max_file_size_mb = {config.logging.max_file_size_mb}
backup_count = {config.logging.backup_count}
console_output = {_toml_bool(config.logging.console_output)}"""

        if config.logging.log_file:
            toml_content += f'\nlog_file = "{config.logging.log_file}"'

        toml_content += "\n"

        with open(config_path, "w", encoding="utf-8") as f:
            f.write(toml_content)

        return True

    except OSError as e:
        print(f"Error saving configuration to {config_path}: {e}")
        return False
