"""
Tests for admin input validation.
"""

import pytest

from database.input_validator import InputValidator


class TestPresetId:

    @pytest.mark.parametrize("preset_id", ["anime", "anime_v2", "Soft-Look", " padded "])
    def test_valid(self, preset_id):
        assert InputValidator.validate_preset_id(preset_id) == (True, "")

    def test_empty(self):
        assert InputValidator.validate_preset_id("  ") == (False, "Preset ID cannot be empty")
        assert InputValidator.validate_preset_id(None)[0] is False

    def test_too_long(self):
        valid, message = InputValidator.validate_preset_id("a" * (InputValidator.MAX_PRESET_ID_LENGTH + 1))
        assert valid is False
        assert "too long" in message

    @pytest.mark.parametrize("preset_id", ["my preset", "anime!", "a/b", "ünï"])
    def test_invalid_characters(self, preset_id):
        valid, message = InputValidator.validate_preset_id(preset_id)
        assert valid is False
        assert "letters, digits" in message


class TestPresetName:

    def test_valid(self):
        assert InputValidator.validate_preset_name("🎨 Anime") == (True, "")

    def test_empty(self):
        assert InputValidator.validate_preset_name("   ")[0] is False

    def test_too_long(self):
        assert InputValidator.validate_preset_name("x" * 101)[0] is False


class TestTags:

    def test_empty_tags_allowed(self):
        assert InputValidator.validate_tags("") == (True, "")

    def test_too_long(self):
        assert InputValidator.validate_tags("a" * (InputValidator.MAX_TAGS_LENGTH + 1))[0] is False


class TestLikePattern:

    def test_escapes_wildcards(self):
        assert InputValidator.sanitize_sql_like_pattern("50%_off") == "50\\%\\_off"

    def test_escapes_backslash_first(self):
        assert InputValidator.sanitize_sql_like_pattern("a\\b") == "a\\\\b"
