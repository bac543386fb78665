"""Configuration models for editguard."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from editguard.models.canon import LockPolicy
from editguard.models.scope import Language


class EditingConfig(BaseModel):
    """Defaults applied to every edit session."""

    language: Language = Field(
        default="vi",
        description="Language of instructions and diagnostics ('vi' or 'en')"
    )

    lock_policy: LockPolicy = Field(
        default="default",
        description="Lock policy applied to a freshly extracted canon"
    )

    model_config = {"frozen": True}


class Config(BaseModel):
    """Root configuration for editguard."""

    editing: EditingConfig = Field(default_factory=EditingConfig, description="Edit session settings")

    @classmethod
    def load(cls, path: Path) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            path: Path to config.yaml file

        Returns:
            Validated Config instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If YAML is invalid or validation fails
        """
        if not path.exists():
            raise FileNotFoundError(
                f"Configuration file not found at {path}\n\n"
                f"Please create the file with the following format:\n\n"
                f"editing:\n"
                f"  language: vi\n"
                f"  lock_policy: default\n"
            )

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Configuration root must be a mapping, got {type(data).__name__}")

        return cls(**data)

    model_config = {"frozen": True}
