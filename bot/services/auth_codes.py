"""Pending authorisation store - short auth codes that bootstrap an account link."""
from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bot.models import PendingAuthorisation
from bot.models.base import dialect_insert

logger = logging.getLogger("tierthree.auth_codes")

ISSUE_ATTEMPTS = 3  # Retries when a fresh code collides with another player's code


def generate_auth_code() -> str:
    """8 hex characters (first UUID segment). Meant to be typed by a human, not a secret."""
    return str(uuid.uuid4()).split("-")[0]


class AuthCodeStore:
    """Reads and writes the pending_authorisations table."""

    def __init__(self, sessions: async_sessionmaker[AsyncSession]):
        self._sessions = sessions

    async def lookup_by_minecraft_id(self, mc_id: str) -> Optional[PendingAuthorisation]:
        async with self._sessions() as session:
            return await session.get(PendingAuthorisation, mc_id)

    async def lookup_by_code(self, code: str) -> Optional[PendingAuthorisation]:
        async with self._sessions() as session:
            result = await session.execute(
                select(PendingAuthorisation).where(PendingAuthorisation.auth_code == code)
            )
            return result.scalar_one_or_none()

    async def _upsert(self, mc_id: str, code: str) -> PendingAuthorisation:
        async with self._sessions.begin() as session:
            stmt = dialect_insert(session, PendingAuthorisation).values(mc_id=mc_id, auth_code=code)
            stmt = stmt.on_conflict_do_update(
                index_elements=["mc_id"],
                set_={"auth_code": stmt.excluded.auth_code},
            ).returning(PendingAuthorisation.mc_id, PendingAuthorisation.auth_code)
            row = (await session.execute(stmt)).one()
        return PendingAuthorisation(mc_id=row.mc_id, auth_code=row.auth_code)

    async def issue_or_refresh(self, mc_id: str) -> PendingAuthorisation:
        """Give a player a new code, replacing any code they haven't redeemed yet."""
        for attempt in range(1, ISSUE_ATTEMPTS + 1):
            try:
                pending = await self._upsert(mc_id, generate_auth_code())
            except IntegrityError:
                if attempt == ISSUE_ATTEMPTS:
                    raise
                logger.warning("Auth code collision for %s, retrying (%d/%d)", mc_id, attempt, ISSUE_ATTEMPTS)
                continue
            logger.info("Issued auth code for minecraft=%s", mc_id)
            return pending

    async def consume(self, code: str, session: AsyncSession) -> Optional[PendingAuthorisation]:
        """Delete a code inside the caller's transaction and return what it authorised.

        The delete is the claim: of two concurrent redemptions only one gets the row back.
        """
        result = await session.execute(
            delete(PendingAuthorisation)
            .where(PendingAuthorisation.auth_code == code)
            .returning(PendingAuthorisation.mc_id, PendingAuthorisation.auth_code)
            .execution_options(synchronize_session=False)
        )
        row = result.first()
        if row is None:
            return None
        return PendingAuthorisation(mc_id=row.mc_id, auth_code=row.auth_code)
