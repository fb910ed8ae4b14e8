"""Unit tests for the config module."""

import sys
from typing import Any
from unittest.mock import patch

import pytest

from viewmodel_motion.config import Config


class TestConfigModuleLoad:
    """Tests for module-level config loading."""

    def test_module_loads_with_no_dotenv_file(self) -> None:
        """Test module-level code when no .env file is found."""
        module_name = "viewmodel_motion.config"
        original_module = sys.modules.get(module_name)

        try:
            if module_name in sys.modules:
                del sys.modules[module_name]

            with patch("dotenv.find_dotenv", return_value=""):
                with patch("dotenv.load_dotenv") as mock_load:
                    import viewmodel_motion.config as config_module

                    mock_load.assert_not_called()
                    assert hasattr(config_module, "config")
                    assert hasattr(config_module, "Config")
        finally:
            # Restore the original module to avoid side effects on other tests
            if original_module is not None:
                sys.modules[module_name] = original_module
            elif module_name in sys.modules:
                del sys.modules[module_name]

    def test_module_loads_with_dotenv_file(self, tmp_path: Any) -> None:
        """Test module-level code when a .env file is found."""
        env_file = tmp_path / ".env"
        env_file.write_text("VIEWMODEL_MAX_SWAY=0.3\n")

        module_name = "viewmodel_motion.config"
        original_module = sys.modules.get(module_name)

        try:
            if module_name in sys.modules:
                del sys.modules[module_name]

            with patch("dotenv.find_dotenv", return_value=str(env_file)):
                with patch("dotenv.load_dotenv") as mock_load:
                    import viewmodel_motion.config as config_module

                    mock_load.assert_called_once_with(dotenv_path=str(env_file), override=True)
                    assert hasattr(config_module, "config")
        finally:
            if original_module is not None:
                sys.modules[module_name] = original_module
            elif module_name in sys.modules:
                del sys.modules[module_name]


class TestConfigDefaults:
    """Tests for Config default values."""

    def test_defaults(self, clean_env: None) -> None:
        """Test every setting falls back to its default."""
        cfg = Config()

        assert cfg.DEFAULT_ITEM == "default"
        assert cfg.FRAME_RATE_HZ == 60.0
        assert cfg.REFERENCE_RATE == 60.0
        assert cfg.MAX_SWAY == 0.2
        assert cfg.LATERAL_BOB_RATIO == 0.0
        assert cfg.BOB_SPEED_SCALING is False
        assert cfg.REFERENCE_SPEED == 16.0

    def test_blank_values_use_defaults(self, clean_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test empty strings count as unset."""
        monkeypatch.setenv("VIEWMODEL_DEFAULT_ITEM", "   ")
        monkeypatch.setenv("VIEWMODEL_MAX_SWAY", "")

        cfg = Config()

        assert cfg.DEFAULT_ITEM == "default"
        assert cfg.MAX_SWAY == 0.2


class TestConfigOverrides:
    """Tests for environment overrides."""

    def test_overrides(self, clean_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test values are read from the environment."""
        monkeypatch.setenv("VIEWMODEL_DEFAULT_ITEM", "fists")
        monkeypatch.setenv("VIEWMODEL_FRAME_RATE_HZ", "144")
        monkeypatch.setenv("VIEWMODEL_REFERENCE_RATE", "30")
        monkeypatch.setenv("VIEWMODEL_MAX_SWAY", "0.35")
        monkeypatch.setenv("VIEWMODEL_LATERAL_BOB_RATIO", "0.25")
        monkeypatch.setenv("VIEWMODEL_BOB_SPEED_SCALING", "yes")
        monkeypatch.setenv("VIEWMODEL_REFERENCE_SPEED", "8.5")

        cfg = Config()

        assert cfg.DEFAULT_ITEM == "fists"
        assert cfg.FRAME_RATE_HZ == 144.0
        assert cfg.REFERENCE_RATE == 30.0
        assert cfg.MAX_SWAY == 0.35
        assert cfg.LATERAL_BOB_RATIO == 0.25
        assert cfg.BOB_SPEED_SCALING is True
        assert cfg.REFERENCE_SPEED == 8.5

    @pytest.mark.parametrize(
        "raw,expected",
        [("1", True), ("TRUE", True), ("on", True), ("0", False), ("False", False), ("off", False)],
    )
    def test_bool_parsing(self, clean_env: None, monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool) -> None:
        """Test accepted boolean spellings."""
        monkeypatch.setenv("VIEWMODEL_BOB_SPEED_SCALING", raw)

        assert Config().BOB_SPEED_SCALING is expected

    def test_invalid_bool_falls_back(
        self, clean_env: None, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test unknown boolean spellings warn and use the default."""
        monkeypatch.setenv("VIEWMODEL_BOB_SPEED_SCALING", "maybe")

        assert Config().BOB_SPEED_SCALING is False
        assert "Invalid value for VIEWMODEL_BOB_SPEED_SCALING" in caplog.text

    def test_invalid_float_falls_back(
        self, clean_env: None, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test unparsable numbers warn and use the default."""
        monkeypatch.setenv("VIEWMODEL_MAX_SWAY", "wide")

        assert Config().MAX_SWAY == 0.2
        assert "Invalid value for VIEWMODEL_MAX_SWAY" in caplog.text

    def test_non_positive_rates_fall_back(
        self, clean_env: None, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test zero or negative rates are replaced by 60Hz."""
        monkeypatch.setenv("VIEWMODEL_FRAME_RATE_HZ", "0")
        monkeypatch.setenv("VIEWMODEL_REFERENCE_RATE", "-30")

        cfg = Config()

        assert cfg.FRAME_RATE_HZ == 60.0
        assert cfg.REFERENCE_RATE == 60.0
        assert "VIEWMODEL_FRAME_RATE_HZ must be positive" in caplog.text
        assert "VIEWMODEL_REFERENCE_RATE must be positive" in caplog.text

    def test_sway_and_ratio_are_non_negative(self, clean_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test negative limits are normalised."""
        monkeypatch.setenv("VIEWMODEL_MAX_SWAY", "-0.4")
        monkeypatch.setenv("VIEWMODEL_LATERAL_BOB_RATIO", "-1")

        cfg = Config()

        assert cfg.MAX_SWAY == 0.4
        assert cfg.LATERAL_BOB_RATIO == 0.0
