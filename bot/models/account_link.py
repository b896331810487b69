"""Account link model - a Discord account linked to a Minecraft account."""
from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from bot.models.base import Base


class AccountLink(Base):
    """Confirmed one-to-one association. Never updated in place: unlink and relink instead."""

    __tablename__ = "account_links"

    discord: Mapped[str] = mapped_column(String(32), primary_key=True)  # Discord snowflake as text
    minecraft: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)  # UUID without dashes

    def __repr__(self) -> str:
        return f"AccountLink(discord={self.discord!r}, minecraft={self.minecraft!r})"
