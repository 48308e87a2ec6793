"""Tests for configuration loading and saving."""

from pathlib import Path

import pytest

from playback_container.core.config import (
    Config,
    OverlayConfig,
    ScrubConfig,
    get_config_dir,
    get_data_dir,
    get_log_file_path,
    load_config,
    save_config,
)


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point XDG directories at a temp dir and clear env overrides."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("PLAYBACK_CONTAINER_LOG_LEVEL", raising=False)


class TestPaths:
    """Tests for XDG path resolution."""

    def test_config_dir_uses_xdg(self, tmp_path: Path) -> None:
        assert get_config_dir() == tmp_path / "config" / "playback-container"

    def test_data_dir_uses_xdg(self, tmp_path: Path) -> None:
        assert get_data_dir() == tmp_path / "data" / "playback-container"

    def test_log_file_defaults_to_data_dir(self, tmp_path: Path) -> None:
        path = get_log_file_path(Config())
        assert path == tmp_path / "data" / "playback-container" / "playback-container.log"

    def test_custom_log_file(self, tmp_path: Path) -> None:
        config = Config()
        config.logging.log_file = str(tmp_path / "custom.log")
        assert get_log_file_path(config) == tmp_path / "custom.log"


class TestLoadConfig:
    """Tests for load_config."""

    def test_missing_file_creates_default(self, tmp_path: Path) -> None:
        """A missing config file is created with defaults."""
        config_path = tmp_path / "new" / "config.toml"

        config = load_config(config_path)

        assert config_path.exists()
        assert config.overlay.hold_threshold == 0.3
        assert "[overlay]" in config_path.read_text(encoding="utf-8")

    def test_reads_sections(self, tmp_path: Path) -> None:
        """Values from each section are applied."""
        config_path = tmp_path / "config.toml"
        config_path.write_text(
            """
[player]
jump_forward_interval = 30
jump_backward_interval = 10

[overlay]
idle_hide_delay = 3.5
hold_threshold = 0.5

[scrub]
max_acceleration = 4.0

[logging]
level = "debug"
console_output = true
""",
            encoding="utf-8",
        )

        config = load_config(config_path)

        assert config.player.jump_forward_interval == 30.0
        assert config.player.jump_backward_interval == 10.0
        assert config.overlay.idle_hide_delay == 3.5
        assert config.overlay.hold_threshold == 0.5
        assert config.overlay.acceleration_tick_interval == 0.1
        assert config.scrub.max_acceleration == 4.0
        assert config.scrub.acceleration_ramp_rate == 0.5
        assert config.logging.level == "DEBUG"
        assert config.logging.console_output is True

    def test_invalid_overlay_section_falls_back(self, tmp_path: Path) -> None:
        """Non-positive intervals reset the overlay section to defaults."""
        config_path = tmp_path / "config.toml"
        config_path.write_text(
            "[overlay]\nidle_hide_delay = 0\n\n[player]\njump_forward_interval = 20\n",
            encoding="utf-8",
        )

        config = load_config(config_path)

        assert config.overlay == OverlayConfig()
        assert config.player.jump_forward_interval == 20.0

    def test_invalid_toml_uses_defaults(self, tmp_path: Path) -> None:
        """Unparseable files fall back to the default config."""
        config_path = tmp_path / "config.toml"
        config_path.write_text("[overlay\nbroken", encoding="utf-8")

        config = load_config(config_path)

        assert config == Config()

    def test_env_overrides_log_level(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config_path = tmp_path / "config.toml"
        config_path.write_text('[logging]\nlevel = "INFO"\n', encoding="utf-8")
        monkeypatch.setenv("PLAYBACK_CONTAINER_LOG_LEVEL", "warning")

        config = load_config(config_path)

        assert config.logging.level == "WARNING"


class TestValidation:
    """Tests for section validation."""

    def test_overlay_rejects_non_positive(self) -> None:
        with pytest.raises(ValueError, match="hold_threshold"):
            OverlayConfig(hold_threshold=-0.1).validate()

    def test_scrub_rejects_acceleration_below_one(self) -> None:
        with pytest.raises(ValueError, match="max_acceleration"):
            ScrubConfig(max_acceleration=0.5).validate()


def test_save_then_load_preserves_values(tmp_path: Path) -> None:
    """A saved config loads back with the same values."""
    config_path = tmp_path / "config.toml"
    config = Config()
    config.player.jump_forward_interval = 45.0
    config.overlay.skip_indicator_clear_delay = 2.0
    config.logging.console_output = True

    assert save_config(config, config_path)
    loaded = load_config(config_path)

    assert loaded == config
