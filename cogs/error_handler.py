# cogs/error_handler.py

import discord
from discord.ext import commands
from discord import app_commands

from modules.logging_manager import get_logger

GENERIC_FAILURE = "❌ Something went wrong while running this command. Please try again later."


class ErrorHandlerCog(commands.Cog):
    def __init__(self, bot):
        self.bot = bot
        self.logger = get_logger()
        self._previous_handler = bot.tree.on_error
        bot.tree.on_error = self.on_app_command_error

    def cog_unload(self):
        self.bot.tree.on_error = self._previous_handler

    async def on_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        """Logs slash command failures and tells the user without exposing details."""
        if isinstance(error, app_commands.MissingPermissions):
            message = "❌ You don't have permission to use this command."
        elif isinstance(error, app_commands.CommandOnCooldown):
            message = f"⏳ Please wait {error.retry_after:.0f} seconds before using this command again."
        else:
            command_name = interaction.command.qualified_name if interaction.command else "unknown"
            self.logger.log_error_with_context(
                getattr(error, "original", error),
                {
                    "command": command_name,
                    "user": f"{interaction.user} ({interaction.user.id})",
                    "guild": interaction.guild_id,
                    "channel": interaction.channel_id,
                }
            )
            message = GENERIC_FAILURE

        try:
            if interaction.response.is_done():
                await interaction.followup.send(message, ephemeral=True)
            else:
                await interaction.response.send_message(message, ephemeral=True)
        except discord.HTTPException as e:
            self.logger.error(f"Failed to report command error to user: {e}")

    @commands.Cog.listener()
    async def on_command_error(self, ctx, error):
        if isinstance(error, commands.CommandNotFound):
            return
        self.logger.log_error_with_context(error, {"command": ctx.command, "user": ctx.author})


async def setup(bot):
    await bot.add_cog(ErrorHandlerCog(bot))
