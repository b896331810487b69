"""Tests for the pending authorisation store."""
import re

import pytest
from sqlalchemy import func, select

from bot.models import PendingAuthorisation
from bot.services.auth_codes import generate_auth_code


def test_generate_auth_code_format():
    assert re.fullmatch(r"[0-9a-f]{8}", generate_auth_code())


@pytest.mark.asyncio
async def test_issue_then_lookup(auth_codes):
    pending = await auth_codes.issue_or_refresh("aaaa")
    assert pending.mc_id == "aaaa"

    by_mc = await auth_codes.lookup_by_minecraft_id("aaaa")
    by_code = await auth_codes.lookup_by_code(pending.auth_code)
    assert by_mc.auth_code == pending.auth_code
    assert by_code.mc_id == "aaaa"


@pytest.mark.asyncio
async def test_lookups_absent_are_none(auth_codes):
    assert await auth_codes.lookup_by_minecraft_id("aaaa") is None
    assert await auth_codes.lookup_by_code("deadbeef") is None


@pytest.mark.asyncio
async def test_refresh_replaces_code(auth_codes, sessions, monkeypatch):
    """Second request for the same player leaves one row holding the second code."""
    codes = iter(["11111111", "22222222"])
    monkeypatch.setattr("bot.services.auth_codes.generate_auth_code", lambda: next(codes))
    first = await auth_codes.issue_or_refresh("aaaa")
    second = await auth_codes.issue_or_refresh("aaaa")

    async with sessions() as session:
        count = await session.scalar(select(func.count()).select_from(PendingAuthorisation))
    assert count == 1
    assert second.auth_code == "22222222"
    assert (await auth_codes.lookup_by_minecraft_id("aaaa")).auth_code == "22222222"
    assert await auth_codes.lookup_by_code(first.auth_code) is None


@pytest.mark.asyncio
async def test_codes_per_player_are_independent(auth_codes):
    a = await auth_codes.issue_or_refresh("aaaa")
    b = await auth_codes.issue_or_refresh("bbbb")
    assert (await auth_codes.lookup_by_code(a.auth_code)).mc_id == "aaaa"
    assert (await auth_codes.lookup_by_code(b.auth_code)).mc_id == "bbbb"


@pytest.mark.asyncio
async def test_consume_is_single_use(auth_codes, sessions):
    pending = await auth_codes.issue_or_refresh("aaaa")

    async with sessions.begin() as session:
        consumed = await auth_codes.consume(pending.auth_code, session)
    assert consumed.mc_id == "aaaa"

    async with sessions.begin() as session:
        assert await auth_codes.consume(pending.auth_code, session) is None
    assert await auth_codes.lookup_by_minecraft_id("aaaa") is None


@pytest.mark.asyncio
async def test_code_collision_retries(auth_codes, monkeypatch):
    """A fresh code that clashes with another player's code is regenerated."""
    taken = await auth_codes.issue_or_refresh("aaaa")
    codes = iter([taken.auth_code, "0badc0de"])
    monkeypatch.setattr("bot.services.auth_codes.generate_auth_code", lambda: next(codes))

    pending = await auth_codes.issue_or_refresh("bbbb")
    assert pending.auth_code == "0badc0de"
    assert (await auth_codes.lookup_by_minecraft_id("aaaa")).auth_code == taken.auth_code
