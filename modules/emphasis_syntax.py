# modules/emphasis_syntax.py
"""
Emphasis syntax conversion between the bot's unified notation and the
notations understood by NovelAI models.

Unified notation (stored in presets, accepted from users):
    <tag:1.5>   strengthen
    <tag:0.8>   weaken
    <tag:-1>    negative weight
    <tag>       weight 1.0

V3 (bracket) notation:
    {tag} = 1.05x, {{tag}} = 1.1025x ...   [tag] = 0.95x, [[tag]] = 0.9025x ...

V4+ (numeric) notation:
    1.5::tag ::    and, on V4.5 only, negative weights such as -1::tag ::
"""

import math
import re
import sys
from decimal import Decimal
from typing import Optional

from modules.model_registry import is_v4_model, supports_negative_weights

STRENGTHEN_STEP = 1.05
WEAKEN_STEP = 0.95
MAX_BRACKET_DEPTH = 5
NEUTRAL_EPSILON = 0.01
MIN_V4_WEIGHT = 0.1

# <tag>, <tag:1.5>, <tag:-1>, <tag:+2>
UNIFIED_PATTERN = re.compile(r'<([^:>]+)(?::([+-]?\d*\.?\d+))?>')

# {tag}, {{tag}}, [tag], [[tag]]
BRACKET_PATTERN = re.compile(r'(\{+)([^{}]+)(\}+)|(\[+)([^\[\]]+)(\]+)')

# 1.5::tag ::, -1::tag ::
NUMERIC_PATTERN = re.compile(r'([+-]?\d*\.?\d+)::([^:]+)::')


def format_weight(value: float) -> str:
    """
    Formats a weight in its shortest form without an exponent:
    2.0 -> "2", 1.50 -> "1.5", 5e-05 -> "0.00005".
    Every result can be read back by UNIFIED_PATTERN.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == int(value):
        return str(int(value))
    return format(Decimal(repr(value)), 'f')


def _parse_weight(weight_str: Optional[str]) -> float:
    if not weight_str:
        return 1.0
    try:
        weight = float(weight_str)
    except ValueError:
        return 1.0
    # A digit run too long for a float still means "as strong as possible"
    if math.isinf(weight):
        return math.copysign(sys.float_info.max, weight)
    return weight


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _bracket_depth(weight: float) -> int:
    """Number of 1.05x steps closest to a positive weight, clamped to 1..5."""
    steps = abs(math.log(weight)) / math.log(STRENGTHEN_STEP)
    if not math.isfinite(steps) or steps >= MAX_BRACKET_DEPTH:
        return MAX_BRACKET_DEPTH
    return max(1, _round_half_up(steps))


def _is_neutral(weight: float) -> bool:
    return abs(weight - 1.0) < NEUTRAL_EPSILON


# --- Parsing into unified notation ---

def parse_bracket_syntax(text: str) -> str:
    """Converts V3 bracket runs such as {{tag}} or [tag] to <tag:weight>."""
    def replace(match):
        if match.group(1):
            depth = len(match.group(1))
            tag = match.group(2)
            weight = STRENGTHEN_STEP ** depth
        else:
            depth = len(match.group(4))
            tag = match.group(5)
            weight = WEAKEN_STEP ** depth
        return f"<{tag}:{weight:.2f}>"

    return BRACKET_PATTERN.sub(replace, text)


def parse_numeric_syntax(text: str) -> str:
    """Converts V4 numeric prefixes such as 1.5::tag :: to <tag:1.5>."""
    def replace(match):
        weight = _parse_weight(match.group(1))
        return f"<{match.group(2).strip()}:{format_weight(weight)}>"

    return NUMERIC_PATTERN.sub(replace, text)


def to_unified(text: str) -> str:
    """
    Normalizes any mix of V3 and V4 emphasis into unified notation.

    The bracket pass and then the numeric pass are repeated until the text
    stops changing, so nested runs like [{tag}] are resolved from the outside
    in. Text that matches neither notation (including existing unified
    tokens) is left untouched.
    """
    result = text
    while True:
        converted = parse_numeric_syntax(parse_bracket_syntax(result))
        # Each pass that changes the text removes brackets or '::' pairs
        if converted == result:
            return result
        result = converted


# --- Emitting model-specific notation ---

def weight_to_brackets(weight: float) -> tuple:
    """
    Quantizes a weight to a bracket pair and nesting depth.

    Returns:
        tuple: (open_char, close_char, depth)
    """
    if weight >= 1:
        return "{", "}", _bracket_depth(weight)
    if weight > 0:
        return "[", "]", _bracket_depth(weight)
    # V3 has no negative weights; the deepest weakening is the closest match
    return "[", "]", MAX_BRACKET_DEPTH


def to_bracket_syntax(text: str) -> str:
    """Converts unified tokens to V3 bracket nesting."""
    def replace(match):
        tag = match.group(1)
        weight = _parse_weight(match.group(2))
        if _is_neutral(weight):
            return tag
        open_char, close_char, depth = weight_to_brackets(weight)
        return f"{open_char * depth}{tag}{close_char * depth}"

    return UNIFIED_PATTERN.sub(replace, text)


def to_numeric_syntax(text: str, allow_negative: bool) -> str:
    """
    Converts unified tokens to V4 numeric prefixes.

    Args:
        text: Text in unified notation
        allow_negative: Whether the target model accepts negative weights.
            When False, a negative weight w is sent as max(0.1, 1 + w).
    """
    def replace(match):
        tag = match.group(1)
        weight = _parse_weight(match.group(2))
        if _is_neutral(weight):
            return tag
        if weight < 0 and not allow_negative:
            weight = max(MIN_V4_WEIGHT, 1 + weight)
        return f"{format_weight(weight)}::{tag} ::"

    return UNIFIED_PATTERN.sub(replace, text)


def convert_emphasis(text: str, model: str) -> str:
    """Emits unified-notation text in the syntax of the target model."""
    if not is_v4_model(model):
        return to_bracket_syntax(text)
    return to_numeric_syntax(text, allow_negative=supports_negative_weights(model))


def auto_convert(text: str, model: str) -> str:
    """
    Converts text of unknown emphasis notation to the target model's syntax.
    This is the entry point used when building prompts for generation.
    """
    return convert_emphasis(to_unified(text), model)
