# modules/model_registry.py

from dataclasses import dataclass
from enum import Enum


class ModelFamily(Enum):
    """
    Emphasis-syntax family of a NovelAI model.

    V3 models only understand bracket nesting ({tag} / [tag]).
    V4 and V4.5 models understand the numeric prefix syntax (1.5::tag ::),
    and only V4.5 accepts negative weights directly.
    """
    V3 = "v3"
    V4 = "v4"
    V4_5 = "v4.5"


@dataclass(frozen=True)
class ModelDefaults:
    """Default generation parameters for a model."""
    scale: float
    steps: int
    sampler: str
    smea: bool
    smea_dyn: bool


@dataclass(frozen=True)
class SizePreset:
    width: int
    height: int
    name: str


NAI_MODELS = {
    "nai-diffusion-4-5-full": "🌟 V4.5 Full",
    "nai-diffusion-4-5-curated": "✨ V4.5 Curated",
    "nai-diffusion-4-full": "🎯 V4 Full",
    "nai-diffusion-4-curated": "📌 V4 Curated",
    "nai-diffusion-3": "🎨 V3 Anime",
    "nai-diffusion-furry-v3": "🐺 V3 Furry",
}

MODEL_FAMILIES = {
    "nai-diffusion-4-5-full": ModelFamily.V4_5,
    "nai-diffusion-4-5-curated": ModelFamily.V4_5,
    "nai-diffusion-4-full": ModelFamily.V4,
    "nai-diffusion-4-curated": ModelFamily.V4,
    "nai-diffusion-3": ModelFamily.V3,
    "nai-diffusion-furry-v3": ModelFamily.V3,
}

NAI_SAMPLERS = [
    "k_euler",
    "k_euler_ancestral",
    "k_dpmpp_2s_ancestral",
    "k_dpmpp_2m",
    "k_dpmpp_sde",
    "ddim_v3",
]

MODEL_DEFAULTS = {
    "nai-diffusion-4-5-full": ModelDefaults(5, 28, "k_euler_ancestral", False, False),
    "nai-diffusion-4-5-curated": ModelDefaults(5, 28, "k_euler_ancestral", False, False),
    "nai-diffusion-4-full": ModelDefaults(7, 28, "k_euler_ancestral", False, False),
    "nai-diffusion-4-curated": ModelDefaults(7, 28, "k_euler_ancestral", False, False),
    "nai-diffusion-3": ModelDefaults(5, 28, "k_euler_ancestral", True, True),
    "nai-diffusion-furry-v3": ModelDefaults(5, 28, "k_euler_ancestral", True, True),
}

SIZE_PRESETS = {
    "portrait": SizePreset(832, 1216, "📱 Portrait (832×1216)"),
    "portrait_small": SizePreset(512, 768, "📱 Portrait Small (512×768)"),
    "landscape": SizePreset(1216, 832, "🖼️ Landscape (1216×832)"),
    "landscape_small": SizePreset(768, 512, "🖼️ Landscape Small (768×512)"),
    "square": SizePreset(1024, 1024, "⬜ Square (1024×1024)"),
    "square_small": SizePreset(512, 512, "⬜ Square Small (512×512)"),
    "wide": SizePreset(1536, 640, "📺 Wide (1536×640)"),
    "tall": SizePreset(640, 1536, "📐 Tall (640×1536)"),
}

DEFAULT_MODEL = "nai-diffusion-4-full"
DEFAULT_SIZE = "portrait_small"
FALLBACK_MODEL = "nai-diffusion-3"

DEFAULT_NEGATIVE_PROMPT = (
    "lowres, bad anatomy, bad hands, text, error, missing fingers, extra digit, "
    "fewer digits, cropped, worst quality, low quality, normal quality, "
    "jpeg artifacts, signature, watermark, username, blurry"
)


def classify_model(model: str) -> ModelFamily:
    """
    Maps a model identifier to its emphasis-syntax family.
    Unknown identifiers are treated as legacy V3 models.
    """
    return MODEL_FAMILIES.get(model, ModelFamily.V3)


def is_v4_model(model: str) -> bool:
    return classify_model(model) is not ModelFamily.V3


def supports_negative_weights(model: str) -> bool:
    return classify_model(model) is ModelFamily.V4_5


def get_model_defaults(model: str) -> ModelDefaults:
    """Returns the defaults for a model, falling back to the V3 anime model."""
    return MODEL_DEFAULTS.get(model, MODEL_DEFAULTS[FALLBACK_MODEL])


def get_model_display_name(model: str) -> str:
    return NAI_MODELS.get(model, model)
