"""
Tests for emphasis syntax conversion.

Covers parsing V3/V4 notation into unified <tag:weight> tokens, emitting
model-specific syntax, and the conversion properties relied on by presets.
"""

import random
import sys

import pytest

from modules.emphasis_syntax import (
    UNIFIED_PATTERN,
    auto_convert,
    convert_emphasis,
    format_weight,
    parse_bracket_syntax,
    parse_numeric_syntax,
    to_bracket_syntax,
    to_numeric_syntax,
    to_unified,
    weight_to_brackets,
)

V3 = "nai-diffusion-3"
V4 = "nai-diffusion-4-full"
V45 = "nai-diffusion-4-5-full"


class TestFormatWeight:
    """Shortest-form weight formatting."""

    def test_integral_weights_drop_decimals(self):
        assert format_weight(2.0) == "2"
        assert format_weight(-1.0) == "-1"
        assert format_weight(1.0) == "1"

    def test_fractional_weights(self):
        assert format_weight(1.5) == "1.5"
        assert format_weight(0.1) == "0.1"
        assert format_weight(1.1025) == "1.1025"

    def test_small_weights_have_no_exponent(self):
        assert format_weight(0.00005) == "0.00005"
        assert format_weight(-0.0001) == "-0.0001"
        assert format_weight(1e-7) == "0.0000001"

    def test_non_finite_weights(self):
        assert format_weight(float("inf")) == "Infinity"
        assert format_weight(float("-inf")) == "-Infinity"
        assert format_weight(float("nan")) == "NaN"


class TestParsing:
    """V3 and V4 notation into unified tokens."""

    def test_curly_brackets_strengthen(self):
        assert parse_bracket_syntax("{tag}") == "<tag:1.05>"
        assert parse_bracket_syntax("{{tag}}") == "<tag:1.10>"
        assert parse_bracket_syntax("{{{tag}}}") == "<tag:1.16>"

    def test_square_brackets_weaken(self):
        assert parse_bracket_syntax("[tag]") == "<tag:0.95>"
        assert parse_bracket_syntax("[[tag]]") == "<tag:0.90>"
        assert parse_bracket_syntax("[[[tag]]]") == "<tag:0.86>"

    def test_bracket_tag_may_contain_spaces(self):
        assert parse_bracket_syntax("{best quality}, [[blurry bg]]") == "<best quality:1.05>, <blurry bg:0.90>"

    def test_numeric_prefix(self):
        assert parse_numeric_syntax("1.5::tag ::") == "<tag:1.5>"
        assert parse_numeric_syntax("-1::tag ::") == "<tag:-1>"
        assert parse_numeric_syntax("2::long tag name ::") == "<long tag name:2>"

    def test_numeric_prefix_strips_tag_whitespace(self):
        assert parse_numeric_syntax("0.8::  tag  ::") == "<tag:0.8>"

    def test_tiny_numeric_weight_stays_readable(self):
        assert parse_numeric_syntax("0.00005::tag ::") == "<tag:0.00005>"
        assert auto_convert("0.00005::tag ::", V4) == "0.00005::tag ::"

    def test_cross_nested_brackets_fully_resolved(self):
        assert to_unified("[{blue eyes}]") == "<<blue eyes:1.05>:0.95>"
        assert to_unified("{[tag]}") == "<<tag:0.95>:1.05>"
        assert to_unified("[ {2}]{-+.<") == "< <2:1.05>:0.95>{-+.<"

    def test_plain_text_unchanged(self):
        text = "1girl, solo, night sky"
        assert to_unified(text) == text

    def test_unified_text_unchanged(self):
        text = "<tag:1.5>, <other>, <neg:-1>"
        assert to_unified(text) == text

    def test_mixed_notations(self):
        assert to_unified("{a}, 2::b ::, <c:0.5>, d") == "<a:1.05>, <b:2>, <c:0.5>, d"


class TestBracketEmission:
    """Unified tokens into V3 bracket nesting."""

    def test_neutral_weight_becomes_bare_tag(self):
        assert to_bracket_syntax("<tag:1.0>") == "tag"
        assert to_bracket_syntax("<tag:1.005>") == "tag"
        assert to_bracket_syntax("<tag>") == "tag"

    def test_strengthen_depths(self):
        assert to_bracket_syntax("<tag:1.05>") == "{tag}"
        assert to_bracket_syntax("<tag:1.1>") == "{{tag}}"

    def test_small_boost_uses_minimum_depth(self):
        assert to_bracket_syntax("<tag:1.02>") == "{tag}"

    def test_weaken_depths(self):
        assert to_bracket_syntax("<tag:0.95>") == "[tag]"
        assert to_bracket_syntax("<tag:0.9>") == "[[tag]]"

    def test_depth_is_clamped(self):
        assert to_bracket_syntax("<tag:1.5>") == "{{{{{tag}}}}}"
        assert to_bracket_syntax("<tag:0.5>") == "[[[[[tag]]]]]"

    @pytest.mark.parametrize("weight", ["0", "-1", "-0.3"])
    def test_non_positive_weight_uses_deepest_weakening(self, weight):
        assert to_bracket_syntax(f"<tag:{weight}>") == "[[[[[tag]]]]]"

    def test_weight_to_brackets(self):
        assert weight_to_brackets(1.1) == ("{", "}", 2)
        assert weight_to_brackets(0.9) == ("[", "]", 2)
        assert weight_to_brackets(-2) == ("[", "]", 5)


class TestNumericEmission:
    """Unified tokens into V4 numeric prefixes."""

    def test_positive_weights(self):
        assert to_numeric_syntax("<tag:1.5>", allow_negative=False) == "1.5::tag ::"
        assert to_numeric_syntax("<tag:0.8>", allow_negative=False) == "0.8::tag ::"

    def test_neutral_weight_becomes_bare_tag(self):
        assert to_numeric_syntax("<tag:1>", allow_negative=True) == "tag"
        assert to_numeric_syntax("<tag>", allow_negative=False) == "tag"

    def test_negative_weight_kept_when_allowed(self):
        assert to_numeric_syntax("<tag:-1>", allow_negative=True) == "-1::tag ::"
        assert to_numeric_syntax("<tag:-0.5>", allow_negative=True) == "-0.5::tag ::"

    def test_negative_weight_mapped_when_not_allowed(self):
        assert to_numeric_syntax("<tag:-0.5>", allow_negative=False) == "0.5::tag ::"
        assert to_numeric_syntax("<tag:-1>", allow_negative=False) == "0.1::tag ::"
        assert to_numeric_syntax("<tag:-3>", allow_negative=False) == "0.1::tag ::"


class TestModelConversion:
    """Dispatch on the target model family."""

    def test_v3_gets_brackets(self):
        assert convert_emphasis("<tag:1.1>", V3) == "{{tag}}"

    def test_v4_gets_numeric_without_negatives(self):
        assert convert_emphasis("<tag:-1>", V4) == "0.1::tag ::"

    def test_v45_keeps_negatives(self):
        assert convert_emphasis("<tag:-1>", V45) == "-1::tag ::"

    def test_unknown_model_is_treated_as_v3(self):
        assert convert_emphasis("<tag:1.1>", "some-future-model") == "{{tag}}"

    def test_auto_convert_from_brackets_to_v4(self):
        assert auto_convert("{{tag}}", V4) == "1.1::tag ::"

    def test_auto_convert_from_numeric_to_v3(self):
        assert auto_convert("1.5::tag ::", V3) == "{{{{{tag}}}}}"

    def test_auto_convert_plain_text(self):
        assert auto_convert("1girl, solo", V45) == "1girl, solo"


class TestConversionProperties:
    """Properties that hold across conversions."""

    @pytest.mark.parametrize("depth", [1, 2, 3, 4, 5])
    def test_v3_round_trip_within_clamp(self, depth):
        strong = "{" * depth + "tag" + "}" * depth
        weak = "[" * depth + "tag" + "]" * depth
        assert to_bracket_syntax(to_unified(strong)) == strong
        assert to_bracket_syntax(to_unified(weak)) == weak

    @pytest.mark.parametrize("text", ["1.5::tag ::", "0.7::tag ::", "-1::tag ::"])
    def test_v45_round_trip(self, text):
        assert to_numeric_syntax(to_unified(text), allow_negative=True) == text

    @pytest.mark.parametrize("text", [
        "{a}, [[b]], 1.3::c ::, plain",
        "[{blue eyes}], {{[smile]}}",
        "22{[:],}1{",
        "{1::a ::}, 2::{b} ::",
    ])
    def test_to_unified_is_idempotent(self, text):
        once = to_unified(text)
        assert to_unified(once) == once

    def test_to_unified_is_idempotent_on_random_mixed_text(self):
        rng = random.Random(20240601)
        alphabet = "{}[]<>:.-+12 ab,"
        for _ in range(3000):
            text = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 14)))
            once = to_unified(text)
            assert to_unified(once) == once, text

    def test_untouched_text_is_preserved_around_tokens(self):
        assert auto_convert("before {tag} after", V4) == "before 1.05::tag :: after"


class TestDocumentedScenarios:
    """Scenarios the bot's conversion behaviour is expected to reproduce exactly."""

    @pytest.mark.parametrize("weight", [0.5, 0.8, 1.0, 1.5, 2.0])
    def test_bracket_round_trip_within_quantization_bound(self, weight):
        emitted = to_bracket_syntax(f"<t:{weight}>")
        match = UNIFIED_PATTERN.search(to_unified(emitted))
        reparsed = float(match.group(2)) if match else 1.0

        representable = min(max(weight, 0.95 ** 5), 1.05 ** 5)
        assert abs(reparsed - representable) <= 0.05

    @pytest.mark.parametrize("model", [V3, V4, V45, "nai-diffusion-4-curated", "unknown"])
    def test_neutral_weight_elided_for_any_model(self, model):
        assert auto_convert("<calm:1.0>", model) == "calm"

    def test_huge_weight_clamped_to_five_brackets(self):
        assert to_bracket_syntax("<tag:100>") == "{{{{{tag}}}}}"

    @pytest.mark.parametrize("model,expected", [
        ("nai-diffusion-3", "{{{{{x}}}}}"),
        ("nai-diffusion-furry-v3", "{{{{{x}}}}}"),
        ("nai-diffusion-4-full", "2::x ::"),
        ("nai-diffusion-4-curated", "2::x ::"),
        ("nai-diffusion-4-5-full", "2::x ::"),
        ("nai-diffusion-4-5-curated", "2::x ::"),
    ])
    def test_family_dispatch_for_every_model(self, model, expected):
        assert auto_convert("<x:2>", model) == expected


class TestOversizedWeights:
    """Weights too large or too small for a float never break conversion."""

    HUGE = "9" * 400
    TINY = "0." + "0" * 315 + "1"

    @pytest.mark.parametrize("model", [V3, V4, V45])
    def test_huge_weight_converts_for_every_family(self, model):
        result = auto_convert(f"<tag:{self.HUGE}>", model)
        if model == V3:
            assert result == "{{{{{tag}}}}}"
        else:
            assert result == f"{int(sys.float_info.max)}::tag ::"

    def test_huge_numeric_prefix_parses_to_readable_token(self):
        result = to_unified(f"{self.HUGE}::tag ::")
        assert UNIFIED_PATTERN.fullmatch(result)
        assert to_unified(result) == result

    def test_huge_negative_weight(self):
        assert auto_convert(f"<tag:-{self.HUGE}>", V3) == "[[[[[tag]]]]]"
        assert auto_convert(f"<tag:-{self.HUGE}>", V4) == "0.1::tag ::"

    def test_tiny_weight_uses_deepest_weakening(self):
        assert to_bracket_syntax(f"<tag:{self.TINY}>") == "[[[[[tag]]]]]"
        assert weight_to_brackets(5e-324) == ("[", "]", 5)

    def test_tiny_weight_on_v4_stays_readable(self):
        result = auto_convert(f"<tag:{self.TINY}>", V4)
        assert "e" not in result.split("::")[0]
        assert result.endswith("::tag ::")
