"""
Configuration management for Prompt Workbench.

Handles variable limits, storage locations and export settings using
Pydantic for type safety and validation. Values come from environment
variables prefixed with ``PROMPT_WORKBENCH_`` or a ``.env`` file.
"""

from typing import Dict, Optional, Any
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..constants import (
    INTERACTIVE_MAX_VALUE_LENGTH,
    MAX_NAME_LENGTH,
    MAX_VALUE_LENGTH,
    STORAGE_KEY,
)


ENV_PREFIX = "PROMPT_WORKBENCH_"


class WorkbenchSettings(BaseSettings):
    """
    Engine settings loaded from environment variables.

    These settings are persisted to the .env file and loaded on startup.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Variable limits
    max_name_length: int = Field(default=MAX_NAME_LENGTH, ge=1, le=MAX_NAME_LENGTH, description="Maximum variable name length")
    max_value_length: int = Field(default=MAX_VALUE_LENGTH, ge=1, description="Maximum variable value length")
    interactive_max_value_length: int = Field(
        default=INTERACTIVE_MAX_VALUE_LENGTH, ge=1, description="Maximum value length while editing interactively"
    )

    # Persistence
    storage_key: str = Field(default=STORAGE_KEY, description="Preference key holding the variable storage")
    storage_path: Path = Field(
        default=Path.home() / ".prompt-workbench" / "preferences.yaml",
        description="YAML file used by the file preference store"
    )

    # Import / export
    export_dir: Path = Field(default=Path("exports"), description="Directory for exported files")
    default_model: str = Field(default="gpt-3.5-turbo", description="Model used when exporting data without one")

    # Application settings
    log_level: str = Field(default="WARNING", description="Log level for the prompt_workbench logger")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure the log level is a standard logging level name."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    def value_limit(self, interactive: bool = False) -> int:
        """Get the value length limit for the editing context."""
        if interactive:
            return min(self.interactive_max_value_length, self.max_value_length)
        return self.max_value_length

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        return {
            "max_name_length": self.max_name_length,
            "max_value_length": self.max_value_length,
            "interactive_max_value_length": self.interactive_max_value_length,
            "storage_key": self.storage_key,
            "storage_path": str(self.storage_path),
            "export_dir": str(self.export_dir),
            "default_model": self.default_model,
            "log_level": self.log_level,
        }


class ConfigManager:
    """
    Manages engine configuration.

    Handles loading from .env, updating configuration, and saving changes.
    """

    def __init__(self, env_file: str = ".env"):
        self.env_file = Path(env_file)
        self.settings = WorkbenchSettings(_env_file=str(self.env_file))

    def save_to_env(
        self,
        max_value_length: Optional[int] = None,
        interactive_max_value_length: Optional[int] = None,
        storage_path: Optional[str] = None,
        export_dir: Optional[str] = None,
        default_model: Optional[str] = None,
        log_level: Optional[str] = None
    ) -> bool:
        """
        Save configuration to .env file and reload the settings.

        Returns True if successful, False otherwise.

        Raises:
            pydantic.ValidationError: If the saved values do not validate on reload
        """
        from dotenv import set_key

        updates = {
            "MAX_VALUE_LENGTH": max_value_length,
            "INTERACTIVE_MAX_VALUE_LENGTH": interactive_max_value_length,
            "STORAGE_PATH": storage_path,
            "EXPORT_DIR": export_dir,
            "DEFAULT_MODEL": default_model,
            "LOG_LEVEL": log_level,
        }

        # Create .env if it doesn't exist
        if not self.env_file.exists():
            self.env_file.touch()

        env_path = str(self.env_file)

        try:
            for key, value in updates.items():
                if value is not None:
                    set_key(env_path, f"{ENV_PREFIX}{key}", str(value))
        except OSError:
            return False

        self.reload()
        return True

    def reload(self):
        """Reload settings from .env file."""
        self.settings = WorkbenchSettings(_env_file=str(self.env_file))


def load_settings(env_file: Optional[str] = None) -> WorkbenchSettings:
    """Load settings from the environment and an optional .env file."""
    if env_file is None:
        return WorkbenchSettings()
    return WorkbenchSettings(_env_file=env_file)
