"""Configuration management with lazy validation."""

from functools import cached_property
from pathlib import Path

from editguard.models.config import Config, EditingConfig
from editguard.utils.logging import get_logger


logger = get_logger(__name__)


def default_config_path() -> Path:
    return Path.home() / ".config" / "editguard" / "config.yaml"


class ConfigManager:
    """
    Configuration manager with lazy validation.

    Example:
        >>> config_mgr = ConfigManager.load_default()
        >>> config_mgr.editing.language
        'vi'
    """

    def __init__(self, config: Config):
        self._config = config

    @classmethod
    def defaults(cls) -> "ConfigManager":
        """Manager holding built-in defaults, for when no config file exists."""
        return cls(Config())

    @classmethod
    def load_default(cls, missing_ok: bool = False) -> "ConfigManager":
        """
        Load configuration from ~/.config/editguard/config.yaml.

        Args:
            missing_ok: Fall back to built-in defaults when the file is absent

        Raises:
            FileNotFoundError: If config file doesn't exist and missing_ok is False
            ValueError: If config is invalid
        """
        config_path = default_config_path()
        if missing_ok and not config_path.exists():
            logger.info("config_defaults_used", path=str(config_path))
            return cls.defaults()
        return cls.load_from_path(config_path)

    @classmethod
    def load_from_path(cls, path: Path) -> "ConfigManager":
        """
        Load configuration from specific path.

        Args:
            path: Path to config.yaml file

        Returns:
            ConfigManager instance with loaded config

        Raises:
            FileNotFoundError: If config file doesn't exist
            PermissionError: If config file can't be read
            ValueError: If config is invalid
        """
        logger.info("config_loading", path=str(path))

        try:
            config = Config.load(path)
            logger.info("config_loaded", path=str(path))
            return cls(config)

        except FileNotFoundError as e:
            logger.error("config_not_found", path=str(path), error=str(e))
            raise

        except PermissionError as e:
            logger.error("config_permission_error", path=str(path), error=str(e))
            raise

        except Exception as e:
            logger.error("config_validation_error", path=str(path), error=str(e))
            raise ValueError(f"Configuration validation failed: {e}") from e

    @cached_property
    def editing(self) -> EditingConfig:
        """Edit session settings (defaults when the section is absent)."""
        return self._config.editing
