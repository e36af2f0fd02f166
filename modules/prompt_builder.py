# modules/prompt_builder.py

from dataclasses import dataclass
from typing import Optional

from modules.emphasis_syntax import auto_convert, to_unified
from modules.model_registry import DEFAULT_NEGATIVE_PROMPT


@dataclass
class Preset:
    """
    An admin-curated prompt preset.
    quality_tags and negative_tags are always stored in canonical unified notation.
    """
    id: str
    name: str
    description: str = ""
    quality_tags: str = ""
    negative_tags: str = ""


@dataclass(frozen=True)
class BuiltPrompt:
    """Final prompt pair sent with a generation request. Never persisted."""
    positive: str
    negative: str
    preset_name: str


def normalize_comma_list(text: str) -> str:
    """Turns newline/comma separated text into a clean 'a, b, c' list."""
    normalized = text.replace('\n', ',').replace('\r', ',')
    parts = [part.strip() for part in normalized.split(',')]
    return ", ".join(part for part in parts if part)


def normalize_preset_text(text: str) -> str:
    """
    Canonicalizes admin-entered tag text before it is stored.

    Emphasis in V3 or V4 syntax is converted to unified notation, and
    whitespace, newlines and empty segments are cleaned up.

    Example:
        "tag1,\\n tag2 ,,tag3\\r" -> "tag1, tag2, tag3"
    """
    trimmed = text.strip()
    if not trimmed:
        return ""
    return normalize_comma_list(to_unified(trimmed))


def build_final_prompt(
    scene_prompt: str,
    preset: Optional[Preset],
    model: str,
    user_negative: Optional[str] = None,
) -> BuiltPrompt:
    """
    Assembles the final prompt for a model.

    Order is fixed: [preset quality tags], [scene prompt] for the positive
    prompt and [preset negative tags], [user negative] for the negative one.
    Both are converted to the target model's emphasis syntax.

    Args:
        scene_prompt: The user's scene tags
        preset: The selected preset, or None for no preset
        model: Target NovelAI model id
        user_negative: Optional extra negative tags from the user

    Returns:
        BuiltPrompt with converted positive/negative text
    """
    quality_tags = preset.quality_tags if preset else ""
    negative_tags = preset.negative_tags if preset else ""
    preset_name = preset.name if preset else ""

    positive_parts = []
    if quality_tags:
        positive_parts.append(quality_tags)
    if scene_prompt and scene_prompt.strip():
        positive_parts.append(scene_prompt.strip())

    negative_parts = []
    if negative_tags:
        negative_parts.append(negative_tags)
    if user_negative and user_negative.strip():
        negative_parts.append(user_negative.strip())

    return BuiltPrompt(
        positive=auto_convert(", ".join(positive_parts), model),
        negative=auto_convert(", ".join(negative_parts), model),
        preset_name=preset_name,
    )


def request_negative_prompt(built: BuiltPrompt, model: str) -> str:
    """Negative prompt sent with the request: the built one, or the default list when it is empty."""
    return built.negative or auto_convert(DEFAULT_NEGATIVE_PROMPT, model)
