"""
Tests for the preset and runtime settings services.
"""

import pytest

from modules.preset_service import BUILTIN_PRESETS, PresetService
from modules.settings_service import (
    LIMIT_MODE_KEY,
    RATE_LIMIT_KEY,
    RuntimeSettings,
    SettingsService,
)


class TestPresetService:

    def test_upsert_normalizes_tags(self, preset_service):
        preset = preset_service.upsert_normalized(
            "anime",
            "Anime",
            description="  General  ",
            quality_tags="masterpiece,\n{best quality} ,, 1.2::very aesthetic ::",
            negative_tags="[[blurry]]\nlowres",
        )
        assert preset.quality_tags == "masterpiece, <best quality:1.05>, <very aesthetic:1.2>"
        assert preset.negative_tags == "<blurry:0.90>, lowres"
        assert preset.description == "General"

    def test_upsert_strips_id_and_name(self, preset_service):
        preset = preset_service.upsert_normalized("  anime  ", "  Anime  ")
        assert preset.id == "anime"
        assert preset.name == "Anime"
        assert preset_service.get_preset(" anime ") == preset

    def test_upsert_with_empty_tags(self, preset_service):
        preset = preset_service.upsert_normalized("empty", "Empty", quality_tags="  ", negative_tags=None)
        assert preset.quality_tags == ""
        assert preset.negative_tags == ""

    def test_get_missing(self, preset_service):
        assert preset_service.get_preset("missing") is None

    def test_delete(self, preset_service):
        preset_service.upsert_normalized("anime", "Anime")
        assert preset_service.delete("anime") is True
        assert preset_service.delete("anime") is False

    def test_summaries(self, preset_service):
        preset_service.upsert_normalized("b", "Bravo")
        preset_service.upsert_normalized("a", "Alpha")
        assert preset_service.list_summaries() == [{"id": "a", "name": "Alpha"}, {"id": "b", "name": "Bravo"}]
        assert preset_service.search_summaries("brav") == [{"id": "b", "name": "Bravo"}]

    def test_seed_only_into_empty_database(self, preset_service, db_manager):
        assert preset_service.seed_builtin_presets() == len(BUILTIN_PRESETS)
        assert db_manager.count_presets() == len(BUILTIN_PRESETS)
        assert preset_service.seed_builtin_presets() == 0

    def test_seed_skipped_when_presets_exist(self, preset_service, db_manager):
        preset_service.upsert_normalized("custom", "Custom")
        assert preset_service.seed_builtin_presets() == 0
        assert db_manager.count_presets() == 1

    def test_seeded_presets_are_normalized(self, preset_service):
        preset_service.seed_builtin_presets()
        furry = preset_service.get_preset("furry")
        assert furry.quality_tags == "<best quality:1.05>, <amazing quality:1.05>, very aesthetic"


class TestSettingsService:

    def test_defaults_written_to_fresh_database(self, settings_service, db_manager):
        assert settings_service.get_runtime_settings() == RuntimeSettings(rate_limit_per_min=3, limit_mode=False)
        assert db_manager.get_setting(RATE_LIMIT_KEY) == "3"
        assert db_manager.get_setting(LIMIT_MODE_KEY) == "0"

    def test_loads_stored_values(self, db_manager):
        db_manager.set_setting(RATE_LIMIT_KEY, "12")
        db_manager.set_setting(LIMIT_MODE_KEY, "true")

        service = SettingsService(db_manager)
        assert service.rate_limit_per_min == 12
        assert service.limit_mode is True

    def test_invalid_stored_rate_falls_back_to_default(self, db_manager):
        db_manager.set_setting(RATE_LIMIT_KEY, "abc")
        assert SettingsService(db_manager).rate_limit_per_min == 3

        db_manager.set_setting(RATE_LIMIT_KEY, "-4")
        assert SettingsService(db_manager).rate_limit_per_min == 3

        db_manager.set_setting(RATE_LIMIT_KEY, "inf")
        assert SettingsService(db_manager).rate_limit_per_min == 3

    def test_set_rate_limit_writes_through(self, settings_service, db_manager):
        settings = settings_service.set_rate_limit_per_min(10)
        assert settings.rate_limit_per_min == 10
        assert settings_service.rate_limit_per_min == 10
        assert db_manager.get_setting(RATE_LIMIT_KEY) == "10"
        assert SettingsService(db_manager).rate_limit_per_min == 10

    def test_set_rate_limit_sanitizes(self, settings_service):
        assert settings_service.set_rate_limit_per_min(0).rate_limit_per_min == 1
        assert settings_service.set_rate_limit_per_min(-5).rate_limit_per_min == 1
        assert settings_service.set_rate_limit_per_min("abc").rate_limit_per_min == 1
        assert settings_service.set_rate_limit_per_min(2.7).rate_limit_per_min == 2

    def test_set_rate_limit_floors_numeric_text(self, settings_service, db_manager):
        assert settings_service.set_rate_limit_per_min("2.5").rate_limit_per_min == 2
        assert db_manager.get_setting(RATE_LIMIT_KEY) == "2"
        assert settings_service.set_rate_limit_per_min(" 7 ").rate_limit_per_min == 7

    @pytest.mark.parametrize("value", [float("inf"), "inf", "nan", None, "0.4"])
    def test_set_rate_limit_non_finite_or_invalid_stored_as_one(self, settings_service, value):
        assert settings_service.set_rate_limit_per_min(value).rate_limit_per_min == 1

    def test_set_limit_mode(self, settings_service, db_manager):
        settings = settings_service.set_limit_mode(True)
        assert settings.limit_mode is True
        assert db_manager.get_setting(LIMIT_MODE_KEY) == "1"
        assert SettingsService(db_manager).limit_mode is True

        settings_service.set_limit_mode(False)
        assert db_manager.get_setting(LIMIT_MODE_KEY) == "0"

    def test_configured_defaults(self, db_manager, config_manager, clean_env):
        clean_env.setenv("RATE_LIMIT_PER_MIN", "7")
        clean_env.setenv("NAI_LIMIT_MODE", "yes")

        service = SettingsService(db_manager, config_manager)
        assert service.get_runtime_settings() == RuntimeSettings(rate_limit_per_min=7, limit_mode=True)

    def test_stored_values_win_over_config(self, db_manager, config_manager, clean_env):
        db_manager.set_setting(RATE_LIMIT_KEY, "20")
        clean_env.setenv("RATE_LIMIT_PER_MIN", "7")

        assert SettingsService(db_manager, config_manager).rate_limit_per_min == 20
