# cogs/settings.py

import discord
from discord.ext import commands
from discord import app_commands

import testing
from database.input_validator import InputValidator
from modules.formatting_handler import format_field_value, truncate
from modules.logging_manager import get_logger


class PresetModal(discord.ui.Modal, title="Preset Editor"):
    """Modal for creating or replacing a preset. Tag fields accept any emphasis syntax."""

    preset_id = discord.ui.TextInput(
        label="Preset ID",
        style=discord.TextStyle.short,
        placeholder="e.g., anime_soft",
        required=True,
        max_length=InputValidator.MAX_PRESET_ID_LENGTH,
    )

    name = discord.ui.TextInput(
        label="Display Name",
        style=discord.TextStyle.short,
        placeholder="e.g., 🎨 Soft Anime",
        required=True,
        max_length=InputValidator.MAX_PRESET_NAME_LENGTH,
    )

    description = discord.ui.TextInput(
        label="Description",
        style=discord.TextStyle.paragraph,
        required=False,
        max_length=InputValidator.MAX_PRESET_DESCRIPTION_LENGTH,
    )

    quality_tags = discord.ui.TextInput(
        label="Quality Tags",
        style=discord.TextStyle.paragraph,
        placeholder="masterpiece, {best quality}, 1.2::very aesthetic ::",
        required=False,
        max_length=InputValidator.MAX_TAGS_LENGTH,
    )

    negative_tags = discord.ui.TextInput(
        label="Negative Tags",
        style=discord.TextStyle.paragraph,
        placeholder="lowres, [[blurry]], <watermark:1.3>",
        required=False,
        max_length=InputValidator.MAX_TAGS_LENGTH,
    )

    def __init__(self, preset_service, preset_id: str, existing=None):
        super().__init__()
        self.preset_service = preset_service
        self.logger = get_logger()

        self.preset_id.default = preset_id
        if existing:
            self.name.default = existing.name
            self.description.default = existing.description
            self.quality_tags.default = existing.quality_tags
            self.negative_tags.default = existing.negative_tags

    async def on_submit(self, interaction: discord.Interaction):
        """Validates the fields and stores the preset."""
        is_valid, error_msg = InputValidator.validate_preset_id(self.preset_id.value)
        if not is_valid:
            await interaction.response.send_message(f"❌ {error_msg}", ephemeral=True)
            return

        is_valid, error_msg = InputValidator.validate_preset_name(self.name.value)
        if not is_valid:
            await interaction.response.send_message(f"❌ {error_msg}", ephemeral=True)
            return

        for field in (self.quality_tags, self.negative_tags):
            is_valid, error_msg = InputValidator.validate_tags(field.value)
            if not is_valid:
                await interaction.response.send_message(f"❌ {field.label}: {error_msg}", ephemeral=True)
                return

        preset = self.preset_service.upsert_normalized(
            preset_id=self.preset_id.value,
            name=self.name.value,
            description=self.description.value,
            quality_tags=self.quality_tags.value,
            negative_tags=self.negative_tags.value,
        )
        if not preset:
            await interaction.response.send_message("❌ Failed to save preset. Check the logs for details.", ephemeral=True)
            return

        self.logger.log_admin_action(f"{interaction.user} ({interaction.user.id})", "preset_upsert", preset.id)
        await interaction.response.send_message(
            embed=_preset_embed(preset, title=f"✅ Saved preset `{preset.id}`"),
            ephemeral=True
        )


def _preset_embed(preset, title=None):
    embed = discord.Embed(
        title=title or f"📋 {preset.name}",
        description=preset.description or None,
        color=discord.Color.green()
    )
    embed.add_field(name="ID", value=f"`{preset.id}`", inline=True)
    embed.add_field(name="Name", value=preset.name, inline=True)
    embed.add_field(name="Quality Tags", value=format_field_value(preset.quality_tags), inline=False)
    embed.add_field(name="Negative Tags", value=format_field_value(preset.negative_tags), inline=False)
    return embed


class SettingsCog(commands.Cog):
    settings_group = app_commands.Group(
        name="settings",
        description="Bot administration: runtime settings and presets",
        default_permissions=discord.Permissions(administrator=True)
    )

    def __init__(self, bot):
        self.bot = bot
        self.logger = get_logger()

    async def _ensure_admin(self, interaction: discord.Interaction) -> bool:
        """
        Admin check on top of the administrator permission.
        When admin IDs are configured only those users pass.
        """
        allowed = self.bot.config_manager.has_admin_access(interaction.user)
        if not allowed:
            await interaction.response.send_message("❌ Only bot admins can use this command.", ephemeral=True)
        return allowed

    async def preset_autocomplete(self, interaction: discord.Interaction, current: str):
        """Autocomplete function for preset IDs."""
        summaries = self.bot.preset_service.search_summaries(current, limit=25)
        return [
            app_commands.Choice(name=truncate(f"{s['name']} ({s['id']})", 100), value=s['id'])
            for s in summaries
        ]

    # ==================== RUNTIME SETTINGS ====================

    @settings_group.command(name="show", description="Show the current runtime settings")
    async def show(self, interaction: discord.Interaction):
        if not await self._ensure_admin(interaction):
            return

        settings = self.bot.settings_service.get_runtime_settings()
        embed = discord.Embed(
            title="⚙️ Runtime Settings",
            color=discord.Color.blue()
        )
        embed.add_field(name="Rate Limit", value=f"{settings.rate_limit_per_min} requests/min (global)", inline=False)
        status_emoji = "✅" if settings.limit_mode else "❌"
        embed.add_field(
            name="NovelAI Limit Mode",
            value=f"{status_emoji} {'Enabled' if settings.limit_mode else 'Disabled'}",
            inline=False
        )
        embed.add_field(name="Presets", value=str(self.bot.db_manager.count_presets()), inline=False)

        await interaction.response.send_message(embed=embed, ephemeral=True)

    @settings_group.command(name="set_rate_limit", description="Set the global number of requests allowed per minute")
    @app_commands.describe(per_minute="Requests per minute for all non-admin users (1-60)")
    async def set_rate_limit(self, interaction: discord.Interaction, per_minute: app_commands.Range[int, 1, 60]):
        if not await self._ensure_admin(interaction):
            return

        settings = self.bot.settings_service.set_rate_limit_per_min(per_minute)
        self.logger.log_admin_action(interaction.user, "set_rate_limit", settings.rate_limit_per_min)
        await interaction.response.send_message(
            f"✅ Rate limit set to **{settings.rate_limit_per_min}** requests per minute.",
            ephemeral=True
        )

    @settings_group.command(name="set_limit_mode", description="Turn NovelAI limit mode (smaller image sizes) on or off")
    @app_commands.describe(enabled="Whether limit mode is on")
    async def set_limit_mode(self, interaction: discord.Interaction, enabled: bool):
        if not await self._ensure_admin(interaction):
            return

        settings = self.bot.settings_service.set_limit_mode(enabled)
        self.logger.log_admin_action(interaction.user, "set_limit_mode", settings.limit_mode)
        await interaction.response.send_message(
            f"✅ NovelAI limit mode is now **{'enabled' if settings.limit_mode else 'disabled'}**.",
            ephemeral=True
        )

    # ==================== PRESETS ====================

    @settings_group.command(name="preset_list", description="List stored presets")
    async def preset_list(self, interaction: discord.Interaction):
        if not await self._ensure_admin(interaction):
            return

        summaries = self.bot.preset_service.list_summaries(limit=25)
        if not summaries:
            await interaction.response.send_message("ℹ️ No presets stored yet. Use `/settings preset_upsert` to add one.", ephemeral=True)
            return

        lines = [f"• `{s['id']}` {s['name']}" for s in summaries]
        embed = discord.Embed(
            title=f"📋 Presets ({len(summaries)})",
            description="\n".join(lines),
            color=discord.Color.green()
        )
        await interaction.response.send_message(embed=embed, ephemeral=True)

    @settings_group.command(name="preset_get", description="Show a preset's stored tags")
    @app_commands.describe(preset_id="Preset ID")
    @app_commands.autocomplete(preset_id=preset_autocomplete)
    async def preset_get(self, interaction: discord.Interaction, preset_id: str):
        if not await self._ensure_admin(interaction):
            return

        preset = self.bot.preset_service.get_preset(preset_id)
        if not preset:
            await interaction.response.send_message(f"❌ Preset `{preset_id}` not found.", ephemeral=True)
            return

        await interaction.response.send_message(embed=_preset_embed(preset), ephemeral=True)

    @settings_group.command(name="preset_upsert", description="Create a preset or edit an existing one")
    @app_commands.describe(preset_id="Preset ID (existing presets are loaded into the editor)")
    @app_commands.autocomplete(preset_id=preset_autocomplete)
    async def preset_upsert(self, interaction: discord.Interaction, preset_id: str):
        if not await self._ensure_admin(interaction):
            return

        existing = self.bot.preset_service.get_preset(preset_id)
        modal = PresetModal(self.bot.preset_service, preset_id.strip(), existing)
        await interaction.response.send_modal(modal)

    @settings_group.command(name="preset_delete", description="Delete a preset")
    @app_commands.describe(preset_id="Preset ID")
    @app_commands.autocomplete(preset_id=preset_autocomplete)
    async def preset_delete(self, interaction: discord.Interaction, preset_id: str):
        if not await self._ensure_admin(interaction):
            return

        if self.bot.preset_service.delete(preset_id):
            self.logger.log_admin_action(f"{interaction.user} ({interaction.user.id})", "preset_delete", preset_id)
            await interaction.response.send_message(f"✅ Deleted preset `{preset_id}`.", ephemeral=True)
        else:
            await interaction.response.send_message(f"❌ Preset `{preset_id}` not found.", ephemeral=True)

    # ==================== DIAGNOSTICS ====================

    @settings_group.command(name="run_tests", description="Run the in-bot diagnostics and send results via DM")
    async def run_tests(self, interaction: discord.Interaction):
        """Runs the diagnostic suite against the live services and DMs the report."""
        if not await self._ensure_admin(interaction):
            return

        # Defer response since tests might take a while
        await interaction.response.defer(ephemeral=True)

        summary = await testing.run_diagnostics(self.bot)
        messages = testing.format_results_for_discord(summary)
        summary_line = f"**Summary**: {summary['passed']}/{summary['total']} tests passed ({summary['pass_rate']:.1f}%)"

        try:
            for message in messages:
                await interaction.user.send(message)
            await interaction.followup.send(
                f"✅ Test suite complete! Results sent to your DM.\n{summary_line}",
                ephemeral=True
            )
        except discord.Forbidden:
            await interaction.followup.send(
                f"❌ Could not send DM. Please enable DMs from server members.\n{summary_line}",
                ephemeral=True
            )


async def setup(bot):
    await bot.add_cog(SettingsCog(bot))
