# modules/limit_mode.py

from dataclasses import dataclass
from typing import Optional

MULTIPLE = 64

# Size presets with a dedicated small variant
SMALL_SIZES = {
    "portrait": (512, 768),
    "landscape": (768, 512),
    "square": (512, 512),
}


@dataclass(frozen=True)
class LimitedSize:
    width: int
    height: int
    limited: bool
    original_width: int
    original_height: int


def _align(value: float) -> int:
    aligned = (int(value + 0.5) // MULTIPLE) * MULTIPLE
    return max(aligned, MULTIPLE)


def apply_limit_mode_to_size(width: int, height: int, size_preset: Optional[str], enabled: bool) -> LimitedSize:
    """
    Shrinks the requested size while NovelAI limit mode is on.

    Presets with a small variant switch to it, already-small presets are kept,
    and any other size is halved. Results are aligned down to multiples of 64.
    """
    unchanged = LimitedSize(width, height, False, width, height)
    if not enabled:
        return unchanged

    preset = (size_preset or "").lower()
    if preset.endswith("_small"):
        return unchanged

    if preset in SMALL_SIZES:
        target_width, target_height = SMALL_SIZES[preset]
    else:
        target_width, target_height = width * 0.5, height * 0.5

    new_width = _align(target_width)
    new_height = _align(target_height)

    if new_width == width and new_height == height:
        return unchanged

    return LimitedSize(new_width, new_height, True, width, height)
