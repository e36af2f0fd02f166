"""
Pytest configuration and shared fixtures.

Databases are created per test in pytest's tmp_path so tests never touch
the bot's real database or config file.
"""

import os
import sys
from pathlib import Path

import pytest

# Ensure the project root is importable (modules/, database/, cogs/)
sys.path.insert(0, str(Path(__file__).parent.parent))

# Console logging only while testing
os.environ["LOG_TO_FILE"] = "0"

from database.db_manager import DBManager
from modules.config_manager import ConfigManager
from modules.preset_service import PresetService
from modules.settings_service import SettingsService


@pytest.fixture
def db_manager(tmp_path):
    """Fresh SQLite database in a temp directory."""
    manager = DBManager(str(tmp_path / "data" / "test.db"))
    yield manager
    manager.close()


@pytest.fixture
def clean_env(monkeypatch):
    """Removes every environment override the config manager reads."""
    for env_name in ConfigManager.ENV_OVERRIDES.values():
        monkeypatch.delenv(env_name, raising=False)
    return monkeypatch


@pytest.fixture
def config_manager(tmp_path, clean_env):
    return ConfigManager(str(tmp_path / "config.json"))


@pytest.fixture
def settings_service(db_manager):
    return SettingsService(db_manager)


@pytest.fixture
def preset_service(db_manager):
    return PresetService(db_manager)
