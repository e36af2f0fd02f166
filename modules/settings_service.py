# modules/settings_service.py

import math
from dataclasses import dataclass, replace
from threading import Lock

from modules.config_manager import parse_bool
from modules.logging_manager import get_logger

RATE_LIMIT_KEY = "rate_limit_per_min"
LIMIT_MODE_KEY = "novelai_limit_mode"

DEFAULT_RATE_LIMIT_PER_MIN = 3


@dataclass(frozen=True)
class RuntimeSettings:
    """Snapshot of the settings admins can change while the bot runs."""
    rate_limit_per_min: int
    limit_mode: bool


class SettingsService:
    """
    Process-wide runtime settings, created once at startup and shared through the bot.

    Values are loaded from the settings table, falling back to the configured
    defaults; missing keys are written back so the database is always complete.
    Reads come from the in-memory snapshot and updates write through to the database.
    """

    def __init__(self, db_manager, config_manager=None):
        self.db_manager = db_manager
        self.config_manager = config_manager
        self.logger = get_logger()
        self._lock = Lock()
        self._settings = self._load()

    def _configured_defaults(self):
        if self.config_manager is None:
            return DEFAULT_RATE_LIMIT_PER_MIN, False
        rate = self.config_manager.get_int("rate_limit_per_min", DEFAULT_RATE_LIMIT_PER_MIN)
        if rate <= 0:
            rate = DEFAULT_RATE_LIMIT_PER_MIN
        limit_mode = self.config_manager.get_bool("limit_mode", False)
        return rate, limit_mode

    def _load(self):
        default_rate, default_limit_mode = self._configured_defaults()

        stored_rate = self.db_manager.get_setting(RATE_LIMIT_KEY)
        stored_limit_mode = self.db_manager.get_setting(LIMIT_MODE_KEY)

        rate_limit_per_min = default_rate
        if stored_rate is not None:
            try:
                rate_limit_per_min = math.floor(float(stored_rate))
            except (ValueError, OverflowError):
                rate_limit_per_min = default_rate
            if rate_limit_per_min <= 0:
                rate_limit_per_min = default_rate

        if stored_limit_mode is None:
            limit_mode = default_limit_mode
        else:
            limit_mode = parse_bool(stored_limit_mode, default_limit_mode)

        if stored_rate is None:
            self.db_manager.set_setting(RATE_LIMIT_KEY, str(rate_limit_per_min))
        if stored_limit_mode is None:
            self.db_manager.set_setting(LIMIT_MODE_KEY, "1" if limit_mode else "0")

        settings = RuntimeSettings(rate_limit_per_min=rate_limit_per_min, limit_mode=limit_mode)
        self.logger.info(f"Runtime settings loaded: {settings} | raw={self.db_manager.get_all_settings()}")
        return settings

    def get_runtime_settings(self) -> RuntimeSettings:
        return self._settings

    @property
    def rate_limit_per_min(self) -> int:
        return self._settings.rate_limit_per_min

    @property
    def limit_mode(self) -> bool:
        return self._settings.limit_mode

    def set_rate_limit_per_min(self, value) -> RuntimeSettings:
        """
        Updates the global per-minute request limit.
        Fractions are floored; non-positive, non-finite or invalid values are stored as 1.
        """
        try:
            number = float(value)
            sanitized = math.floor(number) if number > 0 else 1
        except (TypeError, ValueError, OverflowError):
            sanitized = 1
        sanitized = max(1, sanitized)

        with self._lock:
            self._settings = replace(self._settings, rate_limit_per_min=sanitized)
            self.db_manager.set_setting(RATE_LIMIT_KEY, str(sanitized))

        self.logger.info(f"Rate limit updated: {sanitized} requests/min")
        return self._settings

    def set_limit_mode(self, enabled: bool) -> RuntimeSettings:
        """Turns the NovelAI size limit mode on or off."""
        with self._lock:
            self._settings = replace(self._settings, limit_mode=bool(enabled))
            self.db_manager.set_setting(LIMIT_MODE_KEY, "1" if enabled else "0")

        self.logger.info(f"NovelAI limit mode updated: {'enabled' if enabled else 'disabled'}")
        return self._settings
