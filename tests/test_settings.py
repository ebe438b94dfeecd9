"""Unit tests for config/settings.py and logging_setup.py."""

import io
import logging
import pytest
from pathlib import Path
from pydantic import ValidationError
from prompt_workbench.config.settings import ConfigManager, WorkbenchSettings, load_settings
from prompt_workbench.logging_setup import LOGGER_NAME, setup_logging


class TestWorkbenchSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self):
        settings = WorkbenchSettings(_env_file=None)

        assert settings.max_name_length == 50
        assert settings.max_value_length == 10000
        assert settings.interactive_max_value_length == 5000
        assert settings.storage_key == "variableManager.storage"
        assert settings.default_model == "gpt-3.5-turbo"

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("PROMPT_WORKBENCH_MAX_VALUE_LENGTH", "2000")
        monkeypatch.setenv("PROMPT_WORKBENCH_DEFAULT_MODEL", "gpt-4o")

        settings = WorkbenchSettings(_env_file=None)

        assert settings.max_value_length == 2000
        assert settings.default_model == "gpt-4o"

    def test_value_limit(self):
        settings = WorkbenchSettings(_env_file=None, max_value_length=3000)

        assert settings.value_limit() == 3000
        assert settings.value_limit(interactive=True) == 3000
        assert WorkbenchSettings(_env_file=None).value_limit(interactive=True) == 5000

    def test_log_level_normalized(self):
        assert WorkbenchSettings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_log_level_invalid(self):
        with pytest.raises(ValidationError):
            WorkbenchSettings(_env_file=None, log_level="chatty")

    def test_name_length_cannot_exceed_limit(self):
        with pytest.raises(ValidationError):
            WorkbenchSettings(_env_file=None, max_name_length=80)

    def test_to_dict(self, settings):
        data = settings.to_dict()
        assert data["storage_path"].endswith("preferences.yaml")
        assert data["log_level"] == "WARNING"

    def test_load_settings_from_file(self, temp_workspace):
        env_file = Path(temp_workspace) / ".env"
        env_file.write_text("PROMPT_WORKBENCH_EXPORT_DIR=out\n")

        assert load_settings(str(env_file)).export_dir == Path("out")


class TestConfigManager:
    """Tests for saving settings to .env."""

    def test_save_to_env(self, temp_workspace):
        env_file = Path(temp_workspace) / ".env"
        manager = ConfigManager(env_file=str(env_file))

        assert manager.save_to_env(max_value_length=1234, default_model="gpt-4o")

        content = env_file.read_text()
        assert "PROMPT_WORKBENCH_MAX_VALUE_LENGTH" in content
        assert "PROMPT_WORKBENCH_DEFAULT_MODEL" in content
        assert "PROMPT_WORKBENCH_LOG_LEVEL" not in content
        assert manager.settings.max_value_length == 1234
        assert manager.settings.default_model == "gpt-4o"

    def test_reload_picks_up_changes(self, temp_workspace):
        env_file = Path(temp_workspace) / ".env"
        manager = ConfigManager(env_file=str(env_file))
        env_file.write_text("PROMPT_WORKBENCH_LOG_LEVEL=info\n")

        manager.reload()

        assert manager.settings.log_level == "INFO"


class TestLogging:
    """Tests for logging setup."""

    def test_setup_logging_no_duplicate_handlers(self):
        stream = io.StringIO()
        logger = setup_logging("info", stream=stream)
        count = len(logger.handlers)
        setup_logging("debug", stream=stream)

        assert len(logger.handlers) == count
        assert logger.level == logging.DEBUG

        logging.getLogger(f"{LOGGER_NAME}.tests").debug("hello")
        assert "hello" in stream.getvalue()

        for handler in list(logger.handlers):
            if getattr(handler, "_prompt_workbench", False):
                logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)

    def test_module_loggers_share_package_handler(self):
        """Test module loggers propagate to the package logger."""
        stream = io.StringIO()
        logger = setup_logging("info", stream=stream)

        logging.getLogger("prompt_workbench.formats.converter").info("converted")

        assert "prompt_workbench.formats.converter" in stream.getvalue()
        for handler in list(logger.handlers):
            if getattr(handler, "_prompt_workbench", False):
                logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)
