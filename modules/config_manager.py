# modules/config_manager.py

import json
import os
from dotenv import load_dotenv

from modules.logging_manager import get_logger

TRUE_VALUES = ('1', 'true', 'yes', 'on')
FALSE_VALUES = ('0', 'false', 'no', 'off')


def parse_bool(value, default):
    """Parses a boolean flag from text, returning the default for anything unrecognized."""
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    normalized = str(value).strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    return default


def parse_id_list(value):
    """Parses a comma-separated ID list, dropping blanks and duplicates."""
    if not value:
        return []
    ids = []
    for item in str(value).split(','):
        item = item.strip()
        if item and item not in ids:
            ids.append(item)
    return ids


class ConfigManager:
    """
    Manages loading secrets from .env and reading/writing settings to config.json.
    Environment variables take precedence over config.json for deployment settings.
    """

    DEFAULT_CONFIG = {
        "default_model": "nai-diffusion-4-full",
        "default_size": "portrait_small",
        "rate_limit_per_min": 3,
        "limit_mode": False,
        "db_path": "bot-nullscape.db",
        "admin_user_ids": []
    }

    # config key -> environment variable override
    ENV_OVERRIDES = {
        "rate_limit_per_min": "RATE_LIMIT_PER_MIN",
        "limit_mode": "NAI_LIMIT_MODE",
        "db_path": "DB_PATH",
        "admin_user_ids": "ADMIN_USER_IDS",
        "default_model": "DEFAULT_MODEL"
    }

    def __init__(self, config_path='config.json'):
        load_dotenv()
        self.config_path = config_path
        self.logger = get_logger()
        self.config = self._load_config()

    def _load_config(self):
        """Loads the config file from disk, creating it with defaults if needed."""
        if not os.path.exists(self.config_path):
            default_config = dict(self.DEFAULT_CONFIG)
            self._save_config(default_config)
            return default_config
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                loaded = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            self.logger.error(f"ConfigManager: Failed to read {self.config_path}, using defaults: {e}")
            return dict(self.DEFAULT_CONFIG)

        # Merge with defaults for any missing keys
        for key, value in self.DEFAULT_CONFIG.items():
            loaded.setdefault(key, value)
        return loaded

    def _save_config(self, data):
        """Saves the config data to the file."""
        try:
            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=4)
        except OSError as e:
            self.logger.error(f"ConfigManager: Failed to save {self.config_path}: {e}")

    def get_secret(self, key_name):
        """Gets a secret from environment variables."""
        return os.getenv(key_name)

    def get_config(self):
        """Returns the current configuration."""
        return self.config

    def get(self, key, default=None):
        """Gets a value, preferring its environment override when set."""
        env_name = self.ENV_OVERRIDES.get(key)
        if env_name:
            env_value = os.getenv(env_name)
            if env_value is not None and env_value.strip() != '':
                return env_value
        return self.config.get(key, default)

    def get_int(self, key, default):
        try:
            return int(float(self.get(key, default)))
        except (TypeError, ValueError):
            return default

    def get_bool(self, key, default):
        return parse_bool(self.get(key, default), default)

    def update_config(self, new_data):
        """Updates the config with new data and saves it."""
        self.config.update(new_data)
        self._save_config(self.config)
        self.logger.info("ConfigManager: Configuration updated and saved.")

    def get_admin_ids(self):
        """Returns the bot admin user IDs as strings."""
        value = self.get("admin_user_ids", [])
        if isinstance(value, list):
            return parse_id_list(",".join(str(v) for v in value))
        return parse_id_list(value)

    def is_admin(self, user_id):
        """Checks whether a Discord user ID belongs to a bot admin."""
        return str(user_id) in self.get_admin_ids()

    def has_admin_access(self, user):
        """
        Admin gate for the admin slash commands.
        When admin IDs are configured only those users pass; otherwise the
        guild administrator permission decides.
        """
        if self.get_admin_ids():
            return self.is_admin(user.id)
        permissions = getattr(user, "guild_permissions", None)
        return bool(permissions and permissions.administrator)
