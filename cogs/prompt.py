# cogs/prompt.py

import time

import discord
from discord.ext import commands
from discord import app_commands

from modules.emphasis_syntax import auto_convert
from modules.formatting_handler import format_duration, format_field_value, truncate
from modules.limit_mode import apply_limit_mode_to_size
from modules.logging_manager import get_logger
from modules.model_registry import (
    DEFAULT_MODEL, DEFAULT_SIZE, NAI_MODELS, NAI_SAMPLERS, SIZE_PRESETS,
    classify_model, get_model_defaults, get_model_display_name
)
from modules.prompt_builder import build_final_prompt, request_negative_prompt

MODEL_CHOICES = [app_commands.Choice(name=label, value=model_id) for model_id, label in NAI_MODELS.items()]
SIZE_CHOICES = [app_commands.Choice(name=size.name, value=key) for key, size in SIZE_PRESETS.items()]
SAMPLER_CHOICES = [app_commands.Choice(name=sampler, value=sampler) for sampler in NAI_SAMPLERS]


class PromptCog(commands.Cog):
    def __init__(self, bot):
        self.bot = bot
        self.logger = get_logger()

    def _default_model(self):
        model = self.bot.config_manager.get("default_model", DEFAULT_MODEL)
        return model if model in NAI_MODELS else DEFAULT_MODEL

    def _default_size(self):
        size = self.bot.config_manager.get("default_size", DEFAULT_SIZE)
        return size if size in SIZE_PRESETS else DEFAULT_SIZE

    async def preset_autocomplete(self, interaction: discord.Interaction, current: str):
        """Autocomplete function for preset IDs."""
        summaries = self.bot.preset_service.search_summaries(current, limit=25)
        return [
            app_commands.Choice(name=truncate(f"{s['name']} ({s['id']})", 100), value=s['id'])
            for s in summaries
        ]

    @app_commands.command(name="prompt", description="Build the final NovelAI prompt for a scene")
    @app_commands.describe(
        prompt="Scene tags, e.g. 1girl, <smile:1.2>, night sky",
        preset="Optional: preset providing quality and negative tags",
        model="Optional: target model (defaults to the configured model)",
        size="Optional: image size",
        sampler="Optional: sampler (defaults to the model's sampler)",
        negative="Optional: extra negative tags"
    )
    @app_commands.autocomplete(preset=preset_autocomplete)
    @app_commands.choices(model=MODEL_CHOICES, size=SIZE_CHOICES, sampler=SAMPLER_CHOICES)
    async def prompt(
        self,
        interaction: discord.Interaction,
        prompt: str,
        preset: str = None,
        model: app_commands.Choice[str] = None,
        size: app_commands.Choice[str] = None,
        sampler: app_commands.Choice[str] = None,
        negative: str = None
    ):
        """Builds the prompt pair a generation request would send."""
        started_at = time.monotonic()
        user = interaction.user
        is_admin = self.bot.config_manager.is_admin(user.id)

        rate = self.bot.rate_limiter.check_and_consume(user.id, "prompt", is_admin=is_admin)
        if not rate.allowed:
            await interaction.response.send_message(rate.message, ephemeral=True)
            return

        self.logger.log_command(user, "prompt", getattr(interaction.channel, "name", "DM"))

        model_id = model.value if model else self._default_model()
        size_key = size.value if size else self._default_size()
        size_preset = SIZE_PRESETS[size_key]

        selected_preset = None
        preset_label = "None"
        if preset:
            selected_preset = self.bot.preset_service.get_preset(preset)
            if selected_preset:
                preset_label = f"{selected_preset.name} (`{selected_preset.id}`)"
            else:
                preset_label = f"⚠️ Preset `{preset}` not found"

        built = build_final_prompt(prompt, selected_preset, model_id, user_negative=negative)
        negative_prompt = request_negative_prompt(built, model_id)

        sized = apply_limit_mode_to_size(
            size_preset.width, size_preset.height, size_key,
            self.bot.settings_service.limit_mode
        )
        size_text = f"{sized.width}×{sized.height}"
        if sized.limited:
            size_text += f" (limit mode, requested {sized.original_width}×{sized.original_height})"

        defaults = get_model_defaults(model_id)
        sampler_name = sampler.value if sampler else defaults.sampler

        embed = discord.Embed(
            title="🖌️ Final Prompt",
            color=discord.Color.blurple()
        )
        embed.add_field(name="Positive", value=format_field_value(built.positive), inline=False)
        embed.add_field(name="Negative", value=format_field_value(negative_prompt), inline=False)
        embed.add_field(name="Preset", value=preset_label, inline=True)
        embed.add_field(
            name="Model",
            value=f"{get_model_display_name(model_id)} ({classify_model(model_id).value})",
            inline=True
        )
        embed.add_field(name="Size", value=size_text, inline=True)
        embed.add_field(
            name="Parameters",
            value=(
                f"Scale {defaults.scale} | Steps {defaults.steps} | {sampler_name}"
                f"{' | SMEA' if defaults.smea else ''}{' + DYN' if defaults.smea_dyn else ''}"
            ),
            inline=False
        )
        footer = f"Built in {format_duration((time.monotonic() - started_at) * 1000)}"
        if not is_admin:
            footer += f" | Requests left this minute: {rate.remaining}"
        embed.set_footer(text=footer)

        self.logger.log_generation(
            user_id=user.id,
            username=str(user),
            prompt=built.positive,
            model=model_id,
            preset=built.preset_name,
            success=True
        )

        await interaction.response.send_message(embed=embed)

    @app_commands.command(name="convert", description="Convert emphasis syntax for a NovelAI model")
    @app_commands.describe(
        text="Tags in any emphasis syntax ({tag}, 1.5::tag ::, <tag:1.5>)",
        model="Target model"
    )
    @app_commands.choices(model=MODEL_CHOICES)
    async def convert(self, interaction: discord.Interaction, text: str, model: app_commands.Choice[str]):
        """Shows the text converted to the target model's syntax."""
        converted = auto_convert(text, model.value)

        embed = discord.Embed(
            title="🔁 Emphasis Conversion",
            color=discord.Color.blurple()
        )
        embed.add_field(name="Input", value=format_field_value(text), inline=False)
        embed.add_field(name=f"Output for {model.name}", value=format_field_value(converted), inline=False)

        await interaction.response.send_message(embed=embed, ephemeral=True)


async def setup(bot):
    await bot.add_cog(PromptCog(bot))
