# modules/preset_service.py

from typing import Dict, List, Optional

from modules.logging_manager import get_logger
from modules.prompt_builder import Preset, normalize_preset_text

# Seeded into an empty database on first start. Admins own them afterwards.
BUILTIN_PRESETS = [
    Preset(
        id="anime",
        name="🎨 Anime",
        description="General anime illustration style, high quality output",
        quality_tags="masterpiece, best quality, very aesthetic, absurdres",
        negative_tags=(
            "lowres, bad anatomy, bad hands, text, error, missing fingers, extra digit, "
            "fewer digits, cropped, worst quality, low quality, normal quality, jpeg artifacts, "
            "signature, watermark, username, blurry, artist name"
        ),
    ),
    Preset(
        id="realistic",
        name="📷 Realistic",
        description="Photorealistic style",
        quality_tags="photorealistic, best quality, amazing quality, very aesthetic, absurdres, ultra detailed",
        negative_tags=(
            "illustration, painting, drawing, art, sketch, anime, cartoon, 3d render, lowres, "
            "bad anatomy, bad hands, text, error, cropped, worst quality, low quality, "
            "jpeg artifacts, signature, watermark, username, blurry"
        ),
    ),
    Preset(
        id="artistic",
        name="🖼️ Artistic",
        description="Painterly style such as oil or watercolor",
        quality_tags="masterpiece, best quality, very aesthetic, artistic, detailed",
        negative_tags=(
            "lowres, bad anatomy, text, error, cropped, worst quality, low quality, "
            "jpeg artifacts, signature, watermark, blurry, photo, photorealistic"
        ),
    ),
    Preset(
        id="furry",
        name="🦊 Furry",
        description="Furry / anthro style",
        quality_tags="{best quality}, {amazing quality}, very aesthetic",
        negative_tags=(
            "lowres, bad anatomy, bad hands, text, error, missing fingers, cropped, worst quality, "
            "low quality, normal quality, jpeg artifacts, signature, watermark, blurry, human"
        ),
    ),
]


def _row_to_preset(row: Dict) -> Preset:
    return Preset(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        quality_tags=row["quality_tags"],
        negative_tags=row["negative_tags"],
    )


class PresetService:
    """
    Preset lookups and admin writes on top of the database.
    Every write normalizes tag text into unified notation before storage.
    """

    def __init__(self, db_manager):
        self.db_manager = db_manager
        self.logger = get_logger()

    def get_preset(self, preset_id: str) -> Optional[Preset]:
        row = self.db_manager.get_preset(preset_id.strip())
        return _row_to_preset(row) if row else None

    def list_summaries(self, limit: int = 25) -> List[Dict[str, str]]:
        return self.db_manager.list_presets(limit)

    def search_summaries(self, query: str, limit: int = 25) -> List[Dict[str, str]]:
        return self.db_manager.search_presets(query, limit)

    def upsert_normalized(
        self,
        preset_id: str,
        name: str,
        description: str = "",
        quality_tags: str = "",
        negative_tags: str = "",
    ) -> Optional[Preset]:
        """
        Creates or fully replaces a preset.

        Returns:
            The stored Preset, or None if the database write failed
        """
        row = self.db_manager.upsert_preset(
            preset_id=preset_id.strip(),
            name=name.strip(),
            description=(description or "").strip(),
            quality_tags=normalize_preset_text(quality_tags or ""),
            negative_tags=normalize_preset_text(negative_tags or ""),
        )
        return _row_to_preset(row) if row else None

    def delete(self, preset_id: str) -> bool:
        return self.db_manager.delete_preset(preset_id.strip())

    def seed_builtin_presets(self) -> int:
        """
        Stores the built-in presets when no preset exists yet.

        Returns:
            Number of presets created
        """
        if self.db_manager.count_presets() > 0:
            return 0

        created = 0
        for preset in BUILTIN_PRESETS:
            if self.upsert_normalized(
                preset.id, preset.name, preset.description,
                preset.quality_tags, preset.negative_tags
            ):
                created += 1
        self.logger.info(f"Seeded {created} built-in presets into an empty database.")
        return created
