"""Linking cog - /link, /unlink, /account and admin tools for account links."""
from __future__ import annotations

import discord
from discord import app_commands

from bot.checks import admin_only
from bot.errors import BOTH, DISCORD, AlreadyLinked, InvalidCode, NoDiscordAccount, NoMinecraftAccount, OracleFailure

ALREADY_LINKED_MESSAGES = {
    DISCORD: "Your Discord account is already linked to a Minecraft account. Use `/unlink` first.",
    BOTH: "These accounts are already linked.",
}
MINECRAFT_TAKEN_MESSAGE = "That Minecraft account is already linked to another Discord account."


AUDIT_LIST_LIMIT = 20  # Per section; keeps the reply under Discord's 2000 character limit


def already_linked_message(error: AlreadyLinked) -> str:
    return ALREADY_LINKED_MESSAGES.get(error.side, MINECRAFT_TAKEN_MESSAGE)


def _capped(items: list[str]) -> str:
    text = ", ".join(items[:AUDIT_LIST_LIMIT])
    if len(items) > AUDIT_LIST_LIMIT:
        text += f" and {len(items) - AUDIT_LIST_LIMIT} more"
    return text


def audit_report(total: int, lacking: list[str], missing: list[str], failed: list[str]) -> str:
    """Summary for /audit_links. Each section lists at most AUDIT_LIST_LIMIT ids."""
    lines = [f"**Linked accounts:** {total}"]
    if lacking:
        lines.append(f"**Without role ({len(lacking)}):** " + _capped([f"<@{d}>" for d in lacking]))
    if missing:
        lines.append(f"**Not in server ({len(missing)}):** " + _capped(missing))
    if failed:
        lines.append(f"**Check failed ({len(failed)}):** " + _capped(failed))
    if len(lines) == 1:
        lines.append("Every linked account still has the role.")
    return "\n".join(lines)


@app_commands.command(description="Link your Minecraft account using the code shown in-game")
@app_commands.describe(code="Auth code from the Minecraft server")
async def link(interaction: discord.Interaction, code: str) -> None:
    """Redeem an auth code and link the caller's Discord account."""
    await interaction.response.defer(ephemeral=True)
    linking = interaction.client.linking
    try:
        account = await linking.redeem(code, str(interaction.user.id))
    except InvalidCode:
        await interaction.followup.send(
            "That code isn't valid. Join the Minecraft server to get a new one.", ephemeral=True
        )
        return
    except AlreadyLinked as e:
        await interaction.followup.send(already_linked_message(e), ephemeral=True)
        return
    await interaction.followup.send(
        f"Linked to Minecraft account `{account.minecraft}`.", ephemeral=True
    )


@app_commands.command(description="Unlink your Minecraft account")
async def unlink(interaction: discord.Interaction) -> None:
    removed = await interaction.client.linking.unlink(discord_id=str(interaction.user.id))
    msg = "Your Minecraft account has been unlinked." if removed else "You don't have a linked Minecraft account."
    await interaction.response.send_message(msg, ephemeral=True)


@app_commands.command(description="Show which Minecraft account you're linked to")
async def account(interaction: discord.Interaction) -> None:
    try:
        mc_id = await interaction.client.linking.links.resolve_mc_id(str(interaction.user.id))
    except NoMinecraftAccount:
        await interaction.response.send_message(
            "You don't have a linked Minecraft account. Join the Minecraft server to get a code.",
            ephemeral=True,
        )
        return
    await interaction.response.send_message(f"Linked to Minecraft account `{mc_id}`.", ephemeral=True)


@app_commands.command(description="Unlink a Minecraft account from whoever it's linked to (Admin only)")
@app_commands.describe(minecraft_id="Minecraft UUID (dashes optional)")
@admin_only()
async def unlink_player(interaction: discord.Interaction, minecraft_id: str) -> None:
    removed = await interaction.client.linking.unlink(mc_id=minecraft_id)
    msg = f"Unlinked `{minecraft_id}`." if removed else f"`{minecraft_id}` isn't linked."
    await interaction.response.send_message(msg, ephemeral=True)


@app_commands.command(description="List linked accounts that no longer have the tier three role (Admin only)")
@admin_only()
async def audit_links(interaction: discord.Interaction) -> None:
    """Re-check every linked Discord account against the role oracle."""
    await interaction.response.defer(ephemeral=True)
    client = interaction.client
    discord_ids = await client.linking.links.list_all_discord_ids()

    lacking, missing, failed = [], [], []
    for discord_id in discord_ids:
        try:
            if not await client.oracle.is_tier_three(discord_id):
                lacking.append(discord_id)
        except NoDiscordAccount:
            missing.append(discord_id)
        except OracleFailure:
            failed.append(discord_id)

    report = audit_report(len(discord_ids), lacking, missing, failed)
    await interaction.followup.send(report, ephemeral=True)
