"""Link store - the account_links table mapping Discord ids to Minecraft ids."""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bot.errors import BOTH, DISCORD, MINECRAFT, AlreadyLinked, NoMinecraftAccount
from bot.models import AccountLink

logger = logging.getLogger("tierthree.links")


class LinkStore:
    """Reads and writes account links. Lookups return None for absence; only rule violations raise."""

    def __init__(self, sessions: async_sessionmaker[AsyncSession]):
        self._sessions = sessions

    async def resolve_discord_id(self, mc_id: str) -> Optional[str]:
        """Discord id linked to a Minecraft id, or None if the player isn't linked."""
        async with self._sessions() as session:
            result = await session.execute(
                select(AccountLink.discord).where(AccountLink.minecraft == mc_id)
            )
            return result.scalar_one_or_none()

    async def resolve_mc_id(self, discord_id: str) -> str:
        """Minecraft id linked to a Discord id. Raises NoMinecraftAccount if there is none."""
        async with self._sessions() as session:
            result = await session.execute(
                select(AccountLink.minecraft).where(AccountLink.discord == discord_id)
            )
            mc_id = result.scalar_one_or_none()
        if mc_id is None:
            raise NoMinecraftAccount(discord_id)
        return mc_id

    async def _classify(self, session: AsyncSession, discord_id: str, mc_id: str) -> Optional[str]:
        result = await session.execute(
            select(AccountLink).where(
                or_(AccountLink.discord == discord_id, AccountLink.minecraft == mc_id)
            )
        )
        rows = result.scalars().all()
        discord_taken = any(row.discord == discord_id for row in rows)
        minecraft_taken = any(row.minecraft == mc_id for row in rows)
        if discord_taken and minecraft_taken:
            return BOTH
        if discord_taken:
            return DISCORD
        if minecraft_taken:
            return MINECRAFT
        return None

    async def find_conflict(
        self, discord_id: str, mc_id: str, session: Optional[AsyncSession] = None
    ) -> Optional[str]:
        """Which side of a would-be link is already taken ("discord", "minecraft", "both"), if any."""
        if session is not None:
            return await self._classify(session, discord_id, mc_id)
        async with self._sessions() as own:
            return await self._classify(own, discord_id, mc_id)

    async def create_link(
        self, discord_id: str, mc_id: str, session: Optional[AsyncSession] = None
    ) -> AccountLink:
        """Insert a link. Raises AlreadyLinked naming the side(s) that collided.

        With ``session`` the insert joins the caller's transaction and a unique
        constraint violation propagates as IntegrityError for the caller to roll back.
        """
        if session is None:
            try:
                async with self._sessions.begin() as own:
                    return await self.create_link(discord_id, mc_id, own)
            except IntegrityError:
                # Lost a race with a concurrent insert
                side = await self.find_conflict(discord_id, mc_id)
                raise AlreadyLinked(side or BOTH) from None

        side = await self._classify(session, discord_id, mc_id)
        if side is not None:
            raise AlreadyLinked(side)
        link = AccountLink(discord=discord_id, minecraft=mc_id)
        session.add(link)
        await session.flush()
        logger.info("Linked discord=%s minecraft=%s", discord_id, mc_id)
        return link

    async def _delete_where(self, criterion) -> bool:
        async with self._sessions.begin() as session:
            result = await session.execute(
                delete(AccountLink).where(criterion).execution_options(synchronize_session=False)
            )
            deleted = result.rowcount > 0
        return deleted

    async def delete_by_discord_id(self, discord_id: str) -> bool:
        deleted = await self._delete_where(AccountLink.discord == discord_id)
        if deleted:
            logger.info("Unlinked discord=%s", discord_id)
        return deleted

    async def delete_by_minecraft_id(self, mc_id: str) -> bool:
        deleted = await self._delete_where(AccountLink.minecraft == mc_id)
        if deleted:
            logger.info("Unlinked minecraft=%s", mc_id)
        return deleted

    async def list_all_discord_ids(self) -> list[str]:
        """Every linked Discord id, for re-validation sweeps."""
        async with self._sessions() as session:
            result = await session.execute(select(AccountLink.discord).order_by(AccountLink.discord))
            return list(result.scalars().all())
