"""
In-bot diagnostics for the live services.
Validates database operations, runtime settings, presets and syntax conversion
against the running bot, reporting pass/fail per check.
"""

import json
import os
from datetime import datetime
from typing import Dict, List

from database.input_validator import InputValidator
from modules.emphasis_syntax import auto_convert, to_unified
from modules.limit_mode import apply_limit_mode_to_size
from modules.logging_manager import get_logger
from modules.rate_limiter import RateLimiter

DIAGNOSTIC_PRESET_ID = "diagnostics_tmp"

# (input, model, expected)
CONVERSION_SAMPLES = [
    ("{{tag}}", "nai-diffusion-4-full", "1.1::tag ::"),
    ("1.5::tag ::", "nai-diffusion-3", "{{{{{tag}}}}}"),
    ("<tag:-1>", "nai-diffusion-4-full", "0.1::tag ::"),
    ("<tag:-1>", "nai-diffusion-4-5-full", "-1::tag ::"),
    ("<tag:1.0>", "nai-diffusion-4-5-full", "tag"),
    ("0.00005::tag ::", "nai-diffusion-4-full", "0.00005::tag ::"),
]


class _FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class BotTestSuite:
    """
    Diagnostic suite run from the admin settings command.
    Tests are organized by category and report pass/fail status.
    """

    def __init__(self, bot):
        """
        Args:
            bot: Discord bot instance with the services attached in main.py
        """
        self.bot = bot
        self.db_manager = bot.db_manager
        self.logger = get_logger()
        self.results = []

    def _log_test(self, category: str, test_name: str, passed: bool, details: str = ""):
        """Log a test result."""
        status = "PASS" if passed else "FAIL"
        emoji = "✅" if passed else "❌"
        self.results.append({
            "category": category,
            "test": test_name,
            "status": status,
            "emoji": emoji,
            "details": details,
            "passed": passed
        })

    async def run_all_tests(self) -> Dict:
        """
        Run all test categories.

        Returns:
            Dictionary with test results and summary
        """
        self.logger.info("Starting bot diagnostics...")

        await self.test_database_tables()
        await self.test_settings_round_trip()
        await self.test_preset_lifecycle()
        await self.test_syntax_conversion()
        await self.test_rate_limiter()
        await self.test_limit_mode()
        await self.test_input_validation()

        total_tests = len(self.results)
        passed_tests = sum(1 for r in self.results if r["passed"])
        failed_tests = total_tests - passed_tests
        pass_rate = (passed_tests / total_tests * 100) if total_tests > 0 else 0

        summary = {
            "total": total_tests,
            "passed": passed_tests,
            "failed": failed_tests,
            "pass_rate": pass_rate,
            "results": self.results,
            "timestamp": datetime.now().isoformat()
        }

        self.logger.info(
            f"Diagnostics complete | Total: {total_tests} | Passed: {passed_tests} | "
            f"Failed: {failed_tests} | Pass Rate: {pass_rate:.1f}%"
        )
        return summary

    def save_test_log(self, summary: Dict, logs_dir: str = "logs"):
        """Save test results to the logs directory. Returns the file path, or None on failure."""
        try:
            os.makedirs(logs_dir, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            log_path = os.path.join(logs_dir, f"test_results_{timestamp}.json")
            with open(log_path, 'w', encoding='utf-8') as f:
                json.dump(summary, f, indent=2, ensure_ascii=False)
            return log_path
        except OSError as e:
            self.logger.warning(f"Could not save test log: {e}")
            return None

    # ==================== DATABASE TESTS ====================

    async def test_database_tables(self):
        category = "Database"
        tables = set(self.db_manager.get_table_names())
        for table in ("settings", "presets"):
            self._log_test(category, f"Table '{table}' exists", table in tables)

    async def test_settings_round_trip(self):
        """Writes and restores the runtime settings."""
        category = "Settings"
        service = self.bot.settings_service
        original = service.get_runtime_settings()

        try:
            updated = service.set_rate_limit_per_min(original.rate_limit_per_min + 1)
            stored = self.db_manager.get_setting("rate_limit_per_min")
            self._log_test(
                category, "Rate limit write-through",
                stored == str(updated.rate_limit_per_min),
                f"stored={stored}"
            )

            updated = service.set_limit_mode(not original.limit_mode)
            self._log_test(
                category, "Limit mode toggle",
                updated.limit_mode is (not original.limit_mode)
            )

            sanitized = service.set_rate_limit_per_min(0)
            self._log_test(
                category, "Non-positive rate limit stored as 1",
                sanitized.rate_limit_per_min == 1
            )
        finally:
            service.set_rate_limit_per_min(original.rate_limit_per_min)
            service.set_limit_mode(original.limit_mode)

        self._log_test(
            category, "Original settings restored",
            service.get_runtime_settings() == original
        )

    # ==================== PRESET TESTS ====================

    async def test_preset_lifecycle(self):
        category = "Presets"
        service = self.bot.preset_service

        try:
            preset = service.upsert_normalized(
                DIAGNOSTIC_PRESET_ID, "Diagnostics",
                quality_tags="{best quality},\n 1.2::detailed :: ,, masterpiece",
                negative_tags="[[blurry]]"
            )
            self._log_test(category, "Upsert preset", preset is not None)
            if preset:
                self._log_test(
                    category, "Quality tags normalized",
                    preset.quality_tags == "<best quality:1.05>, <detailed:1.2>, masterpiece",
                    preset.quality_tags
                )
                self._log_test(
                    category, "Negative tags normalized",
                    preset.negative_tags == "<blurry:0.90>",
                    preset.negative_tags
                )

            fetched = service.get_preset(DIAGNOSTIC_PRESET_ID)
            self._log_test(category, "Get preset", fetched is not None and fetched.name == "Diagnostics")

            found = [s["id"] for s in service.search_summaries(DIAGNOSTIC_PRESET_ID)]
            self._log_test(
                category, "Search ranks exact ID first",
                bool(found) and found[0] == DIAGNOSTIC_PRESET_ID
            )
        finally:
            deleted = service.delete(DIAGNOSTIC_PRESET_ID)

        self._log_test(category, "Delete preset", deleted)
        self._log_test(category, "Deleted preset is gone", service.get_preset(DIAGNOSTIC_PRESET_ID) is None)

    # ==================== SYNTAX TESTS ====================

    async def test_syntax_conversion(self):
        category = "Emphasis Syntax"
        for text, model, expected in CONVERSION_SAMPLES:
            actual = auto_convert(text, model)
            self._log_test(
                category, f"{text} -> {model}",
                actual == expected,
                "" if actual == expected else f"expected {expected!r}, got {actual!r}"
            )

        mixed = to_unified("{a}, 2::b ::, <c:0.5>")
        self._log_test(category, "Mixed input to unified", mixed == "<a:1.05>, <b:2>, <c:0.5>", mixed)

    # ==================== RATE LIMIT TESTS ====================

    async def test_rate_limiter(self):
        """Uses a private limiter instance so live users are not affected."""
        category = "Rate Limiting"
        clock = _FakeClock()
        limiter = RateLimiter(self.bot.settings_service, clock=clock)
        limit = self.bot.settings_service.rate_limit_per_min

        allowed = [limiter.check_and_consume("diagnostics", "run_tests").allowed for _ in range(limit)]
        self._log_test(category, f"First {limit} requests allowed", all(allowed))

        blocked = limiter.check_and_consume("diagnostics", "run_tests")
        self._log_test(category, "Request over limit blocked", not blocked.allowed)

        admin = limiter.check_and_consume("diagnostics", "run_tests", is_admin=True)
        self._log_test(category, "Admin bypasses limit", admin.allowed)

        clock.now += 60
        self._log_test(
            category, "Window resets after 60s",
            limiter.check_and_consume("diagnostics", "run_tests").allowed
        )

    async def test_limit_mode(self):
        category = "Limit Mode"
        result = apply_limit_mode_to_size(832, 1216, "portrait", True)
        self._log_test(
            category, "Portrait switches to small variant",
            (result.width, result.height) == (512, 768),
            f"{result.width}x{result.height}"
        )
        result = apply_limit_mode_to_size(1536, 640, "wide", True)
        self._log_test(
            category, "Other sizes halved and aligned",
            (result.width, result.height) == (768, 320),
            f"{result.width}x{result.height}"
        )

    async def test_input_validation(self):
        category = "Input Validation"
        self._log_test(category, "Valid preset ID accepted", InputValidator.validate_preset_id("anime_v2")[0])
        self._log_test(category, "Preset ID with spaces rejected", not InputValidator.validate_preset_id("my preset")[0])
        self._log_test(category, "Empty preset name rejected", not InputValidator.validate_preset_name("  ")[0])


def format_results_for_discord(summary: Dict) -> List[str]:
    """
    Format test results for Discord DM (respects 2000 char limit).

    Args:
        summary: Test results summary

    Returns:
        List of message strings to send
    """
    messages = []

    header = f"""**Bot Diagnostics Results**
Total Tests: {summary['total']}
Passed: {summary['passed']} ✅
Failed: {summary['failed']} ❌
Pass Rate: {summary['pass_rate']:.1f}%

{'='*40}
"""
    messages.append(header)

    # Group results by category
    categories = {}
    for result in summary["results"]:
        categories.setdefault(result["category"], []).append(result)

    current_message = ""
    for category, tests in categories.items():
        category_text = f"\n**{category}**\n"

        for test in tests:
            test_line = f"{test['emoji']} {test['test']}\n"
            if test['details']:
                test_line += f"   ↳ {test['details']}\n"

            if len(current_message) + len(category_text) + len(test_line) > 1900:
                messages.append(current_message)
                current_message = category_text + test_line
            else:
                if category_text not in current_message:
                    current_message += category_text
                current_message += test_line

    if current_message:
        messages.append(current_message)

    return messages


async def run_diagnostics(bot) -> Dict:
    """
    Run the diagnostic suite against the bot's services and save the report.

    Returns:
        Test results summary
    """
    suite = BotTestSuite(bot)
    summary = await suite.run_all_tests()
    suite.save_test_log(summary)
    return summary
