# main.py

import discord
from discord.ext import commands
import os
import asyncio

# Import all custom modules
from modules.config_manager import ConfigManager
from modules.logging_manager import get_logger
from modules.preset_service import PresetService
from modules.rate_limiter import RateLimiter
from modules.settings_service import SettingsService
from database.db_manager import DBManager


async def main():
    # 1. Initialize logging first
    logger = get_logger()
    logger.info("Starting bot initialization...")

    # 2. Initialize Managers
    config_manager = ConfigManager()
    db_manager = DBManager(config_manager.get("db_path"))

    # 3. Runtime services shared by all cogs
    settings_service = SettingsService(db_manager, config_manager)
    preset_service = PresetService(db_manager)
    seeded = preset_service.seed_builtin_presets()
    if not seeded:
        logger.info("Presets already exist in database. Skipping built-in presets.")
    rate_limiter = RateLimiter(settings_service)

    # 4. Setup Intents
    intents = discord.Intents.default()
    intents.message_content = True

    # 5. Create Bot instance
    bot = commands.Bot(command_prefix='!', intents=intents, help_command=None)

    # 6. Attach managers and services
    logger.info("Initializing modules...")
    bot.config_manager = config_manager
    bot.db_manager = db_manager
    bot.settings_service = settings_service
    bot.preset_service = preset_service
    bot.rate_limiter = rate_limiter
    logger.info("All modules initialized.")

    # 7. Load all cogs
    logger.info("Loading cogs...")
    cogs_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'cogs')
    for filename in sorted(os.listdir(cogs_dir)):
        if filename.endswith('.py') and not filename.startswith('__'):
            try:
                await bot.load_extension(f'cogs.{filename[:-3]}')
                logger.info(f'Successfully loaded cog: {filename}')
            except commands.ExtensionError as e:
                logger.error(f'Failed to load cog {filename}: {e}')

    # 8. Define the on_ready event for setup tasks
    @bot.event
    async def on_ready():
        logger.info('------')
        logger.info(f'Bot is logged in as {bot.user}')

        logger.info('Syncing slash commands...')
        try:
            synced = await bot.tree.sync()
            logger.info(f"Synced {len(synced)} command(s)")
        except discord.HTTPException as e:
            logger.error(f"Failed to sync slash commands: {e}")
        logger.info('------ Bot is Ready ------')

    # 9. Get the bot token and run the bot
    bot_token = config_manager.get_secret("DISCORD_TOKEN")
    if not bot_token:
        logger.critical("DISCORD_TOKEN not found in .env file.")
        db_manager.close()
        return

    try:
        await bot.start(bot_token)
    except discord.errors.LoginFailure:
        logger.critical("Login failed. The provided Discord Bot Token is invalid.")
    except Exception as e:
        logger.critical(f"An unexpected error occurred while running the bot: {e}", exc_info=True)
    finally:
        if not bot.is_closed():
            await bot.close()
        db_manager.close()

if __name__ == '__main__':
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nBot shutdown requested by user.")
