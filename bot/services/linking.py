"""Linking service - auth code issue/redeem and unlink across both tables."""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bot.errors import BOTH, AlreadyLinked, InvalidCode
from bot.models import AccountLink
from bot.services.auth_codes import AuthCodeStore
from bot.services.links import LinkStore

logger = logging.getLogger("tierthree.linking")


def normalize_mc_id(mc_id: str) -> str:
    """Minecraft UUIDs are stored without dashes, lower-case."""
    return mc_id.strip().replace("-", "").lower()


def normalize_code(code: str) -> str:
    return code.strip().lower()


class LinkingService:
    """Orchestrates the link store and the auth code store."""

    def __init__(
        self,
        sessions: async_sessionmaker[AsyncSession],
        links: LinkStore,
        auth_codes: AuthCodeStore,
    ):
        self._sessions = sessions
        self.links = links
        self.auth_codes = auth_codes

    async def request_code(self, mc_id: str) -> str:
        """Issue (or replace) the auth code a player types into Discord. Linked players may ask too."""
        pending = await self.auth_codes.issue_or_refresh(normalize_mc_id(mc_id))
        return pending.auth_code

    async def redeem(self, code: str, discord_id: str) -> AccountLink:
        """Consume an auth code and link its Minecraft player to ``discord_id``.

        Runs in one transaction: on InvalidCode or AlreadyLinked nothing is
        written and the code stays redeemable.
        """
        code = normalize_code(code)
        mc_id: Optional[str] = None
        try:
            async with self._sessions.begin() as session:
                pending = await self.auth_codes.consume(code, session)
                if pending is None:
                    raise InvalidCode(code)
                mc_id = pending.mc_id
                link = await self.links.create_link(discord_id, mc_id, session)
        except IntegrityError:
            # A concurrent redemption inserted a conflicting link first
            side = await self.links.find_conflict(discord_id, mc_id)
            raise AlreadyLinked(side or BOTH) from None
        logger.info("Redeemed auth code for minecraft=%s discord=%s", mc_id, discord_id)
        return link

    async def unlink(self, discord_id: Optional[str] = None, mc_id: Optional[str] = None) -> bool:
        """Remove a link by exactly one of its ids. Returns whether a link existed."""
        if (discord_id is None) == (mc_id is None):
            raise ValueError("Pass exactly one of discord_id or mc_id")
        if discord_id is not None:
            return await self.links.delete_by_discord_id(discord_id)
        return await self.links.delete_by_minecraft_id(normalize_mc_id(mc_id))
