"""Errors raised by the linking flow and the validation pipeline."""
from __future__ import annotations

# Sides reported by AlreadyLinked
DISCORD = "discord"
MINECRAFT = "minecraft"
BOTH = "both"


class LinkError(Exception):
    """Base class for every condition this bot maps to a specific reply."""


class Unauthorized(LinkError):
    """Authorization header missing, malformed (203) or wrong (401)."""

    def __init__(self, status: int):
        super().__init__(f"Unauthorized ({status})")
        self.status = status


class MalformedRequest(LinkError):
    """Request body rejected before any lookup runs."""

    def __init__(self, errcode: str, message: str):
        super().__init__(message)
        self.errcode = errcode
        self.message = message

    def to_dict(self) -> dict:
        return {"errcode": self.errcode, "message": self.message}


class AlreadyLinked(LinkError):
    """A Discord or Minecraft id (or both) is already part of a link.

    ``side`` names the identifier that collided: ``discord`` means the Discord
    account is linked to another Minecraft account, ``minecraft`` the reverse,
    ``both`` means both ids are taken (usually linked to each other).
    """

    def __init__(self, side: str):
        super().__init__(f"Already linked ({side})")
        self.side = side


class InvalidCode(LinkError):
    """Auth code is unknown or was already redeemed."""

    def __init__(self, code: str):
        super().__init__(f"Invalid auth code: {code!r}")
        self.code = code


class NoMinecraftAccount(LinkError):
    """Discord account has no linked Minecraft account."""

    def __init__(self, discord_id: str):
        super().__init__(f"No Minecraft account linked to {discord_id}")
        self.discord_id = discord_id


class NoDiscordAccount(LinkError):
    """Discord account is not (or no longer) a member of the guild."""

    def __init__(self, discord_id: str):
        super().__init__(f"No Discord member {discord_id}")
        self.discord_id = discord_id


class OracleFailure(LinkError):
    """Role check failed for a reason other than a missing member."""
