# cogs/utility.py

import discord
from discord.ext import commands
from discord import app_commands

from modules.logging_manager import get_logger


class UtilityCog(commands.Cog):
    def __init__(self, bot):
        self.bot = bot
        self.logger = get_logger()

    @commands.command(name='ping')
    async def ping(self, ctx):
        await ctx.send(f'Pong! {round(self.bot.latency * 1000)}ms')

    @app_commands.command(name="sync", description="Re-sync slash commands with Discord")
    @app_commands.default_permissions(administrator=True)
    async def sync(self, interaction: discord.Interaction):
        """Manually sync the application command tree."""
        if not self.bot.config_manager.has_admin_access(interaction.user):
            await interaction.response.send_message("❌ Only bot admins can use this command.", ephemeral=True)
            return

        await interaction.response.defer(ephemeral=True)

        try:
            synced = await self.bot.tree.sync()
        except discord.HTTPException as e:
            self.logger.error(f"Failed to sync slash commands: {e}")
            await interaction.followup.send(f"❌ Error syncing commands: {e}", ephemeral=True)
            return

        self.logger.info(f"Synced {len(synced)} command(s) on request of {interaction.user}")
        await interaction.followup.send(f"✅ Synced **{len(synced)}** command(s).", ephemeral=True)


async def setup(bot):
    await bot.add_cog(UtilityCog(bot))
