"""Role helpers and permission checks for slash commands."""
from __future__ import annotations

import discord
from discord import app_commands

import config


def _get_member(interaction: discord.Interaction) -> discord.Member | None:
    """Get Member from interaction."""
    if not interaction.guild:
        return None
    member = getattr(interaction, "member", None) or (
        interaction.user if isinstance(interaction.user, discord.Member) else None
    )
    return member


def _get_role_ids(member: discord.Member) -> set[int]:
    """Get member's role IDs. Uses raw _roles to bypass guild.get_role() returning None.
    discord.py's member.roles filters through guild.get_role(); if the guild role cache
    is incomplete, roles can appear empty even when _roles has IDs from the API payload."""
    ids = set()
    raw = getattr(member, "_roles", None)
    if raw is not None:
        ids.update(int(r) for r in raw)
    for r in member.roles:
        ids.add(r.id)
    return ids


def _get_role_names(member: discord.Member) -> set[str]:
    """Get member's role names (lowercase)."""
    names = {r.name.lower() for r in member.roles}
    raw = getattr(member, "_roles", None)
    guild = member.guild
    if raw is not None and guild is not None:
        for role_id in raw:
            role = guild.get_role(int(role_id))
            if role is not None:
                names.add(role.name.lower())
    return names


def has_role(member: discord.Member, role_ids: set[int], role_names: set[str]) -> bool:
    """True if member holds any of the roles, matched by ID or case-insensitive name."""
    return bool(_get_role_ids(member) & role_ids) or bool(_get_role_names(member) & role_names)


async def _get_member_with_roles(interaction: discord.Interaction) -> discord.Member | None:
    """Get Member with roles. Fetches via REST API if we have no role IDs."""
    member = _get_member(interaction)
    if not member or not interaction.guild:
        return None
    if len(_get_role_ids(member)) <= 1:  # Only @everyone or empty
        try:
            member = await interaction.guild.fetch_member(interaction.user.id)
        except discord.NotFound:
            return None
    return member


def admin_only():
    """Check that user has Admin role or is server admin."""

    async def predicate(interaction: discord.Interaction) -> bool:
        if interaction.user.id in config.ADMIN_USER_IDS:
            return True
        member = await _get_member_with_roles(interaction)
        if not member:
            return False
        if member.guild_permissions.administrator:
            return True
        return has_role(member, config.ADMIN_ROLE_IDS, config.ADMIN_ROLE_NAMES)

    return app_commands.check(predicate)
