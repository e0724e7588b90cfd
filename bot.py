"""
Tournament schedule bot - entry point

Runs the weekly tournament cycle: Sunday schedule preview for admins,
then start/end of each approved tournament at its scheduled hours.
"""

import os
import sys

import discord
from discord import app_commands

from config import MAIN_CHANNEL_ID, ADMIN_CHANNEL_ID, SCHEDULE_TIMEZONE
from cogs.schedule import ScheduleMainView, process_schedule_input, register_schedule_commands
from managers.messenger import DiscordMessenger
from managers.schedule_manager import TournamentScheduler
from tournament_manager import TournamentLifecycle
from utils.error_handling import log_error


# ============================================================================
# DISCORD BOT CLIENT
# ============================================================================

class ScheduleBot(discord.Client):
    """Discord client that owns the weekly scheduler"""

    def __init__(self, *, intents: discord.Intents):
        super().__init__(intents=intents)
        self.tree = app_commands.CommandTree(self)
        self.scheduler = TournamentScheduler(
            messenger=DiscordMessenger(self),
            tournaments=TournamentLifecycle(),
            main_channel_id=MAIN_CHANNEL_ID,
            admin_channel_id=ADMIN_CHANNEL_ID,
            timezone=SCHEDULE_TIMEZONE,
            controls_factory=lambda: ScheduleMainView(self.scheduler),
        )
        register_schedule_commands(self.tree, self.scheduler)

    async def setup_hook(self):
        """Setup hook called before the bot connects"""
        # Buttons on an earlier preview keep working after a restart
        self.add_view(ScheduleMainView(self.scheduler))
        print("✅ Registered ScheduleMainView persistent view")

        await self.tree.sync()
        print("✅ Commands synced to Discord")

    async def on_ready(self):
        print(f"✅ Logged in as {self.user}")
        if not self.scheduler.engine.is_running:
            self.scheduler.start()
        print(f"🚀 Bot is ready! Serving {len(self.guilds)} guilds")

    async def on_message(self, message: discord.Message):
        """Route admin replies to the schedule field being edited"""
        if message.author.bot or not message.guild:
            return
        try:
            await process_schedule_input(message, self.scheduler)
        except Exception as e:
            log_error(e, "Processing schedule input", {"channel_id": message.channel.id})

    async def close(self):
        self.scheduler.stop()
        await self.scheduler.engine.wait_closed()
        await super().close()


def create_client() -> ScheduleBot:
    intents = discord.Intents.default()
    intents.message_content = True
    return ScheduleBot(intents=intents)


if __name__ == "__main__":
    # Load bot token from environment variable (secure method)
    BOT_TOKEN = os.getenv('DISCORD_BOT_TOKEN')

    if not BOT_TOKEN:
        print("ERROR: DISCORD_BOT_TOKEN environment variable is not set!")
        print("Please create a .env file with:")
        print("    DISCORD_BOT_TOKEN=your_bot_token_here")
        sys.exit(1)

    if not MAIN_CHANNEL_ID or not ADMIN_CHANNEL_ID:
        print("ERROR: MAIN_CHANNEL_ID and ADMIN_CHANNEL_ID must be set!")
        sys.exit(1)

    try:
        print("Starting bot...")
        create_client().run(BOT_TOKEN)
    except discord.LoginFailure:
        print("ERROR: Invalid Bot Token.")
        print("Please check your token at: https://discord.com/developers/applications")
