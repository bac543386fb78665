"""Unit tests for configuration models and ConfigManager."""

import pytest

from editguard.config import ConfigManager, default_config_path
from editguard.models.config import Config, EditingConfig


class TestEditingConfig:
    """Edit session settings."""

    def test_defaults(self):
        config = EditingConfig()

        assert config.language == "vi"
        assert config.lock_policy == "default"

    def test_invalid_language(self):
        with pytest.raises(ValueError):
            EditingConfig(language="fr")

    def test_invalid_policy(self):
        with pytest.raises(ValueError):
            EditingConfig(lock_policy="sometimes")

    def test_immutable(self):
        config = EditingConfig()

        with pytest.raises(Exception):  # Pydantic ValidationError
            config.language = "en"


class TestConfigLoad:
    """YAML loading."""

    def test_load_from_file(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("editing:\n  language: en\n  lock_policy: lock_all\n")

        config = Config.load(config_file)

        assert config.editing.language == "en"
        assert config.editing.lock_policy == "lock_all"

    def test_missing_section_uses_defaults(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        assert Config.load(config_file).editing.language == "vi"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="lock_policy"):
            Config.load(tmp_path / "nope.yaml")

    def test_non_mapping_root(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- just\n- a list\n")

        with pytest.raises(ValueError, match="mapping"):
            Config.load(config_file)


class TestConfigManager:
    """Manager wrapper."""

    def test_load_from_path(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("editing:\n  language: en\n")

        manager = ConfigManager.load_from_path(config_file)

        assert manager.editing.language == "en"
        assert manager.editing.lock_policy == "default"

    def test_missing_file_propagates(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigManager.load_from_path(tmp_path / "missing.yaml")

    def test_invalid_values_become_value_error(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("editing:\n  language: klingon\n")

        with pytest.raises(ValueError, match="Configuration validation failed"):
            ConfigManager.load_from_path(config_file)

    def test_load_default_missing_ok(self):
        """Test built-in defaults when ~/.config/editguard/config.yaml is absent."""
        manager = ConfigManager.load_default(missing_ok=True)

        assert manager.editing == EditingConfig()

    def test_load_default_missing_raises(self):
        with pytest.raises(FileNotFoundError):
            ConfigManager.load_default()

    def test_load_default_reads_file(self, isolated_home):
        config_file = default_config_path()
        config_file.parent.mkdir(parents=True, exist_ok=True)
        config_file.write_text("editing:\n  lock_policy: unlock_all\n")
        assert config_file.is_relative_to(isolated_home)

        assert ConfigManager.load_default(missing_ok=True).editing.lock_policy == "unlock_all"
