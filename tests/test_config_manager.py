"""
Unit tests for the configuration manager.
"""

import pytest
import json
import yaml
import tempfile
from pathlib import Path

from tidy.utils.config_manager import ConfigManager
from tidy.utils.error_handler import ConfigurationError


class TestConfigManager:
    """Test the ConfigManager class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.temp_dir = Path(tempfile.mkdtemp())

        self.json_config = self.temp_dir / "config.json"
        self.yaml_config = self.temp_dir / "config.yaml"

        self.sample_config = {
            "sorting": {"output_directory": "/srv/sorted"},
            "concurrency": {"max_workers": 2},
        }

        with open(self.json_config, "w") as f:
            json.dump(self.sample_config, f)

        with open(self.yaml_config, "w") as f:
            yaml.safe_dump(self.sample_config, f)

    def teardown_method(self):
        """Clean up test fixtures."""
        import shutil

        shutil.rmtree(self.temp_dir)

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for key in [
            "TIDY_CONCURRENCY__MAX_WORKERS",
            "TIDY_COPY__VERIFY_INTEGRITY",
            "TIDY_SORTING__OUTPUT_DIRECTORY",
            "TIDY_LOGGING__LEVEL",
            "TIDY_REPORT__PATH",
        ]:
            monkeypatch.delenv(key, raising=False)

    def test_default_config(self):
        config = ConfigManager(load_env_file=False)

        assert config.get("sorting.output_directory") == "./sorted"
        assert config.get("concurrency.max_workers") == 8
        assert config.get("concurrency.channel_capacity") == 48
        assert config.get("copy.verify_integrity") is False
        assert config.get("logging.level") == "INFO"
        assert config.get("report.path") is None

    def test_load_from_json_file(self):
        config = ConfigManager(config_file=self.json_config, load_env_file=False)

        assert config.get("sorting.output_directory") == "/srv/sorted"
        assert config.get("concurrency.max_workers") == 2
        # Defaults are preserved
        assert config.get("concurrency.channel_capacity") == 48

    def test_load_from_yaml_file(self):
        config = ConfigManager(config_file=self.yaml_config, load_env_file=False)

        assert config.get("sorting.output_directory") == "/srv/sorted"
        assert config.get("concurrency.max_workers") == 2

    def test_missing_file(self):
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigManager(config_file=self.temp_dir / "nope.yaml", load_env_file=False)

    def test_unsupported_format(self):
        config_file = self.temp_dir / "config.txt"
        config_file.write_text("max_workers = 2")

        with pytest.raises(ConfigurationError, match="Unsupported"):
            ConfigManager(config_file=config_file, load_env_file=False)

    def test_malformed_json(self):
        config_file = self.temp_dir / "broken.json"
        config_file.write_text("{not json")

        with pytest.raises(ConfigurationError):
            ConfigManager(config_file=config_file, load_env_file=False)

    def test_load_from_env(self, monkeypatch):
        monkeypatch.setenv("TIDY_CONCURRENCY__MAX_WORKERS", "4")
        monkeypatch.setenv("TIDY_COPY__VERIFY_INTEGRITY", "true")
        monkeypatch.setenv("TIDY_SORTING__OUTPUT_DIRECTORY", "/data/out")

        config = ConfigManager(load_env_file=False)

        assert config.get("concurrency.max_workers") == 4
        assert config.get("copy.verify_integrity") is True
        assert config.get("sorting.output_directory") == "/data/out"

    def test_numeric_paths_from_env_stay_strings(self, monkeypatch):
        monkeypatch.setenv("TIDY_SORTING__OUTPUT_DIRECTORY", "2024")
        monkeypatch.setenv("TIDY_REPORT__PATH", "1.5")

        config = ConfigManager(load_env_file=False)

        assert config.get("sorting.output_directory") == "2024"
        assert config.get("report.path") == "1.5"

    def test_non_path_output_directory_is_rejected(self):
        config_file = self.temp_dir / "numeric.yaml"
        config_file.write_text("sorting:\n  output_directory: 2024\n")

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager(config_file=config_file, load_env_file=False)

        assert "sorting.output_directory must be a path" in str(exc_info.value)

    def test_overrides_win_over_env(self, monkeypatch):
        monkeypatch.setenv("TIDY_CONCURRENCY__MAX_WORKERS", "4")

        config = ConfigManager(
            overrides={"concurrency.max_workers": 12, "report.path": None},
            load_env_file=False,
        )

        assert config.get("concurrency.max_workers") == 12
        assert config.get("report.path") is None

    def test_validation_errors_are_collected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager(
                overrides={
                    "concurrency.max_workers": 0,
                    "logging.level": "LOUD",
                },
                load_env_file=False,
            )

        message = str(exc_info.value)
        assert "max_workers" in message
        assert "logging level" in message

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            ConfigManager(
                overrides={"concurrency.channel_capacity": -1}, load_env_file=False
            )

    def test_get_and_set(self):
        config = ConfigManager(load_env_file=False)

        config.set("report.path", "/tmp/report.json")
        config.set("custom.nested.value", 3)

        assert config.get("report.path") == "/tmp/report.json"
        assert config.get("custom.nested.value") == 3
        assert config.get("does.not.exist", "fallback") == "fallback"

    def test_save_yaml(self):
        config = ConfigManager(load_env_file=False)
        output = self.temp_dir / "saved.yaml"

        config.save(output, format="yaml")

        with open(output) as f:
            saved = yaml.safe_load(f)
        assert saved["concurrency"]["max_workers"] == 8

    def test_save_unsupported_format(self):
        config = ConfigManager(load_env_file=False)

        with pytest.raises(ValueError):
            config.save(self.temp_dir / "saved.ini", format="ini")
