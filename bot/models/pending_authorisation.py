"""Pending authorisation model - an auth code waiting to be redeemed on Discord."""
from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from bot.models.base import Base


class PendingAuthorisation(Base):
    """At most one code per Minecraft player. Deleted when the code is redeemed."""

    __tablename__ = "pending_authorisations"

    mc_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    auth_code: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)

    def __repr__(self) -> str:
        return f"PendingAuthorisation(mc_id={self.mc_id!r}, auth_code={self.auth_code!r})"
