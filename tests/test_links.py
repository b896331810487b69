"""Tests for the account link store."""
import pytest

from bot.errors import AlreadyLinked, NoMinecraftAccount


@pytest.mark.asyncio
async def test_create_link_resolves_both_ways(links):
    """After linking, each id resolves to the other."""
    link = await links.create_link("1001", "aaaa")
    assert link.discord == "1001"
    assert link.minecraft == "aaaa"
    assert await links.resolve_discord_id("aaaa") == "1001"
    assert await links.resolve_mc_id("1001") == "aaaa"


@pytest.mark.asyncio
async def test_resolve_discord_id_absent_is_none(links):
    assert await links.resolve_discord_id("nobody") is None


@pytest.mark.asyncio
async def test_resolve_mc_id_absent_raises(links):
    with pytest.raises(NoMinecraftAccount):
        await links.resolve_mc_id("1001")


@pytest.mark.asyncio
async def test_create_link_twice_is_both(links):
    """Same pair again collides on both sides."""
    await links.create_link("1001", "aaaa")
    with pytest.raises(AlreadyLinked) as exc:
        await links.create_link("1001", "aaaa")
    assert exc.value.side == "both"


@pytest.mark.asyncio
async def test_discord_linked_elsewhere(links):
    await links.create_link("1001", "aaaa")
    with pytest.raises(AlreadyLinked) as exc:
        await links.create_link("1001", "bbbb")
    assert exc.value.side == "discord"
    assert await links.resolve_discord_id("bbbb") is None


@pytest.mark.asyncio
async def test_minecraft_linked_elsewhere(links):
    await links.create_link("1001", "aaaa")
    with pytest.raises(AlreadyLinked) as exc:
        await links.create_link("2002", "aaaa")
    assert exc.value.side == "minecraft"
    with pytest.raises(NoMinecraftAccount):
        await links.resolve_mc_id("2002")


@pytest.mark.asyncio
async def test_both_ids_taken_by_different_links(links):
    await links.create_link("1001", "aaaa")
    await links.create_link("2002", "bbbb")
    assert await links.find_conflict("1001", "bbbb") == "both"
    assert await links.find_conflict("3003", "cccc") is None


@pytest.mark.asyncio
async def test_delete_by_either_side(links):
    await links.create_link("1001", "aaaa")
    await links.create_link("2002", "bbbb")

    assert await links.delete_by_discord_id("1001") is True
    assert await links.delete_by_discord_id("1001") is False
    assert await links.resolve_discord_id("aaaa") is None

    assert await links.delete_by_minecraft_id("bbbb") is True
    assert await links.delete_by_minecraft_id("bbbb") is False
    assert await links.list_all_discord_ids() == []


@pytest.mark.asyncio
async def test_relink_after_unlink(links):
    await links.create_link("1001", "aaaa")
    await links.delete_by_minecraft_id("aaaa")
    await links.create_link("1001", "bbbb")
    assert await links.resolve_mc_id("1001") == "bbbb"


@pytest.mark.asyncio
async def test_list_all_discord_ids(links):
    await links.create_link("2002", "bbbb")
    await links.create_link("1001", "aaaa")
    assert await links.list_all_discord_ids() == ["1001", "2002"]
