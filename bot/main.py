"""Main bot entry point."""
import logging

import discord
from discord import app_commands
from discord.ext import commands

import config
from bot.cogs import linking as linking_cog
from bot.http_server import start_http_server
from bot.models import create_engine, create_session_factory, init_db
from bot.services.auth_codes import AuthCodeStore
from bot.services.links import LinkStore
from bot.services.linking import LinkingService
from bot.services.role_oracle import RoleOracle

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("tierthree")

intents = discord.Intents.default()
intents.members = True  # Required to see member roles; enable in Developer Portal → Bot → Server Members Intent


class TierThreeBot(commands.Bot):
    """Discord bot that links Minecraft accounts and answers gameserver role checks."""

    def __init__(self):
        super().__init__(
            command_prefix="!",
            intents=intents,
            chunk_guilds_at_startup=True,  # Populate member cache so role checks rarely need REST
        )
        self.engine = None
        self.linking = None
        self.oracle = None
        self.http_runner = None

    async def on_ready(self) -> None:
        logger.info("Bot ready: %s (ID: %s)", self.user, self.user.id if self.user else "?")

    async def setup_hook(self) -> None:
        """Build the shared database handle and services, then start the HTTP server."""
        self.engine = create_engine(config.DATABASE_URL)
        await init_db(self.engine)
        sessions = create_session_factory(self.engine)
        self.linking = LinkingService(sessions, LinkStore(sessions), AuthCodeStore(sessions))
        self.oracle = RoleOracle(
            self, config.GUILD_ID, config.TIER_THREE_ROLE_IDS, config.TIER_THREE_ROLE_NAMES
        )

        # Add commands
        self.tree.add_command(linking_cog.link)
        self.tree.add_command(linking_cog.unlink)
        self.tree.add_command(linking_cog.account)
        self.tree.add_command(linking_cog.unlink_player)
        self.tree.add_command(linking_cog.audit_links)

        # Sync commands
        await self.tree.sync()
        logger.info("Commands synced")

        # Global error handler: always respond so Discord doesn't show "application did not respond"
        async def on_app_command_error(interaction: discord.Interaction, error: app_commands.AppCommandError) -> None:
            msg = "Something went wrong. Check bot logs."
            if isinstance(error, app_commands.errors.CheckFailure):
                msg = "You don't have permission to use this command. (Need Admin role)"
            else:
                logger.exception("Command error: %s", error)
            try:
                if interaction.response.is_done():
                    await interaction.followup.send(msg, ephemeral=True)
                else:
                    await interaction.response.send_message(msg, ephemeral=True)
            except discord.HTTPException:
                logger.warning("Could not report command error to %s", interaction.user)

        self.tree.on_error = on_app_command_error

        self.http_runner = await start_http_server(
            self.linking, self.oracle, config.WEBSERVER_HOST, config.WEBSERVER_PORT
        )

    async def close(self) -> None:
        """Cleanup on shutdown."""
        if self.http_runner:
            await self.http_runner.cleanup()
        if self.engine:
            await self.engine.dispose()
        await super().close()


def main() -> None:
    """Run the bot."""
    if not config.DISCORD_TOKEN:
        raise ValueError("DISCORD_TOKEN is required")
    if not config.GUILD_ID:
        raise ValueError("GUILD_ID is required")
    if not config.TIER_THREE_ROLE_IDS and not config.TIER_THREE_ROLE_NAMES:
        logger.warning("No tier three role configured - every role check will answer no")

    bot = TierThreeBot()
    bot.run(config.DISCORD_TOKEN)


if __name__ == "__main__":
    main()
