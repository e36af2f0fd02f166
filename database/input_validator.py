# database/input_validator.py
"""
Input validation and sanitization for database operations.
Parameterized queries are the primary defense; these checks keep
admin-supplied identifiers and names within the shapes the bot expects.
"""

import re

class InputValidator:
    """Validates and sanitizes user inputs before database operations."""

    MAX_PRESET_ID_LENGTH = 64
    MAX_PRESET_NAME_LENGTH = 100
    MAX_PRESET_DESCRIPTION_LENGTH = 1000
    MAX_TAGS_LENGTH = 4000

    PRESET_ID_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')

    @staticmethod
    def validate_preset_id(preset_id: str) -> tuple[bool, str]:
        """
        Validates a preset ID.

        Args:
            preset_id: The preset ID to validate

        Returns:
            tuple: (is_valid, error_message)
        """
        trimmed = (preset_id or "").strip()
        if not trimmed:
            return (False, "Preset ID cannot be empty")

        if len(trimmed) > InputValidator.MAX_PRESET_ID_LENGTH:
            return (False, f"Preset ID too long (max {InputValidator.MAX_PRESET_ID_LENGTH} characters)")

        if not InputValidator.PRESET_ID_PATTERN.match(trimmed):
            return (False, "Preset ID may only contain letters, digits, underscores and hyphens")

        return (True, "")

    @staticmethod
    def validate_preset_name(name: str) -> tuple[bool, str]:
        """
        Validates a preset display name.

        Args:
            name: The name to validate

        Returns:
            tuple: (is_valid, error_message)
        """
        if not name or not name.strip():
            return (False, "Preset name cannot be empty")

        if len(name.strip()) > InputValidator.MAX_PRESET_NAME_LENGTH:
            return (False, f"Preset name too long (max {InputValidator.MAX_PRESET_NAME_LENGTH} characters)")

        return (True, "")

    @staticmethod
    def validate_tags(tags: str) -> tuple[bool, str]:
        """Validates free-form tag text entered for a preset."""
        if tags and len(tags) > InputValidator.MAX_TAGS_LENGTH:
            return (False, f"Tags too long (max {InputValidator.MAX_TAGS_LENGTH} characters)")
        return (True, "")

    @staticmethod
    def sanitize_sql_like_pattern(pattern: str) -> str:
        """
        Sanitizes a LIKE pattern by escaping special characters.
        Use this when building LIKE queries with user input.

        Args:
            pattern: The pattern to sanitize

        Returns:
            str: Sanitized pattern
        """
        # Escape SQL LIKE special characters: % and _
        sanitized = pattern.replace('\\', '\\\\')  # Escape backslash first
        sanitized = sanitized.replace('%', '\\%')
        sanitized = sanitized.replace('_', '\\_')
        return sanitized
