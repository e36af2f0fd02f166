# modules/logging_manager.py

import logging
import os
from datetime import datetime

LOGGER_NAME = 'NullscapeBot'

LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL,
}


class LoggingManager:
    """
    Centralized logging for the bot.
    Console output uses a short format; the optional daily log file keeps
    function names and line numbers for debugging.
    """

    def __init__(self, log_level=logging.INFO, log_to_file=True, log_dir='logs'):
        """
        Args:
            log_level: Console logging level
            log_to_file: Whether to also write logs/bot_YYYYMMDD.log
            log_dir: Directory for the daily log file
        """
        self.logger = logging.getLogger(LOGGER_NAME)
        self.logger.setLevel(logging.DEBUG if log_to_file else log_level)
        self.logger.propagate = False

        # Avoid duplicate handlers when re-created
        self.logger.handlers.clear()

        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%H:%M:%S'
        ))
        self.logger.addHandler(console_handler)

        self.log_file = None
        if log_to_file:
            os.makedirs(log_dir, exist_ok=True)
            self.log_file = os.path.join(log_dir, f'bot_{datetime.now().strftime("%Y%m%d")}.log')

            file_handler = logging.FileHandler(self.log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            ))
            self.logger.addHandler(file_handler)

        self.logger.info(f"Logging initialized (level={logging.getLevelName(log_level)}, file={self.log_file or 'off'})")

    def debug(self, message):
        self.logger.debug(message)

    def info(self, message):
        self.logger.info(message)

    def warning(self, message):
        self.logger.warning(message)

    def error(self, message, exc_info=False):
        """Log an error message, optionally with exception info."""
        self.logger.error(message, exc_info=exc_info)

    def critical(self, message, exc_info=False):
        """Log a critical message, optionally with exception info."""
        self.logger.critical(message, exc_info=exc_info)

    def log_command(self, user, command, channel):
        self.info(f"Command '{command}' executed by {user} in #{channel}")

    def log_generation(self, user_id, username, prompt, model, preset, success, error=None):
        """
        Log a prompt build for an image generation request.

        Args:
            user_id: Discord user ID
            username: Discord username
            prompt: Final positive prompt
            model: Target model id
            preset: Preset name (empty when none was used)
            success: Whether the request succeeded
            error: Optional error description
        """
        message = (
            f"Image generation | user={username} ({user_id}) | model={model} | "
            f"preset={preset or 'none'} | success={success} | prompt={prompt}"
        )
        if error:
            self.error(f"{message} | error={error}")
        else:
            self.info(message)

    def log_admin_action(self, user, action, target):
        """Audit line for admin changes to presets and runtime settings."""
        self.info(f"Admin action | {action} | target={target} | by={user}")

    def log_error_with_context(self, error, context):
        """
        Log an error with additional context information.

        Args:
            error: The error/exception object
            context: Dictionary with contextual information
        """
        context_str = " | ".join([f"{k}={v}" for k, v in context.items()])
        exc_info = error if isinstance(error, BaseException) else True
        self.error(f"{error} | Context: {context_str}", exc_info=exc_info)


# Singleton instance
_logger_instance = None

def get_logger():
    """
    Get the singleton logger instance, creating it on first use.

    Environment:
        LOG_LEVEL: console level name (default INFO)
        LOG_TO_FILE: set to 0/false/no/off to disable the daily log file
        LOG_DIR: directory for the daily log file (default logs)
    """
    global _logger_instance
    if _logger_instance is None:
        level = LEVELS.get(os.getenv("LOG_LEVEL", "INFO").strip().upper(), logging.INFO)
        log_to_file = os.getenv("LOG_TO_FILE", "1").strip().lower() not in ("0", "false", "no", "off")
        _logger_instance = LoggingManager(
            log_level=level,
            log_to_file=log_to_file,
            log_dir=os.getenv("LOG_DIR", "logs")
        )
    return _logger_instance
