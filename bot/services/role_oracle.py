"""Role oracle - asks Discord whether a member holds the tier three role."""
from __future__ import annotations

import logging

import discord

from bot.checks import has_role
from bot.errors import NoDiscordAccount, OracleFailure

logger = logging.getLogger("tierthree.oracle")


class RoleOracle:
    """Role checks against one guild, through the bot's Discord session. No caching."""

    def __init__(self, client: discord.Client, guild_id: int, role_ids: set[int], role_names: set[str]):
        self._client = client
        self._guild_id = guild_id
        self._role_ids = role_ids
        self._role_names = role_names

    async def _get_guild(self) -> discord.Guild:
        guild = self._client.get_guild(self._guild_id)
        if guild is None:
            guild = await self._client.fetch_guild(self._guild_id)
        return guild

    async def _get_member(self, discord_id: str) -> discord.Member:
        try:
            member_id = int(discord_id)
        except ValueError:
            raise NoDiscordAccount(discord_id) from None
        try:
            guild = await self._get_guild()
        except discord.DiscordException as e:
            raise OracleFailure(f"Guild {self._guild_id} unavailable: {e}") from e
        try:
            return guild.get_member(member_id) or await guild.fetch_member(member_id)
        except discord.NotFound as e:
            raise NoDiscordAccount(discord_id) from e
        except discord.DiscordException as e:
            raise OracleFailure(f"Discord lookup failed for {discord_id}: {e}") from e

    async def is_tier_three(self, discord_id: str) -> bool:
        """True if the member holds the role. Raises NoDiscordAccount or OracleFailure."""
        member = await self._get_member(discord_id)
        allowed = has_role(member, self._role_ids, self._role_names)
        logger.debug("Role check discord=%s tier_three=%s", discord_id, allowed)
        return allowed
