"""Pytest configuration and fixtures for store, service and HTTP tests."""
import asyncio
import os

# Set test env BEFORE any imports that use config
os.environ["WEBSERVER_TOKEN"] = "test-token"

import httpx
import pytest
from aiohttp.test_utils import TestServer

from bot.errors import NoDiscordAccount, OracleFailure
from bot.http_server import create_app
from bot.models import create_engine, create_session_factory, init_db
from bot.services.auth_codes import AuthCodeStore
from bot.services.links import LinkStore
from bot.services.linking import LinkingService

TOKEN = "test-token"


class FakeOracle:
    """Stands in for RoleOracle: answers from dicts instead of Discord."""

    def __init__(self):
        self.tier_three: set[str] = set()
        self.missing: set[str] = set()
        self.failing = False
        self.delay = 0.0
        self.calls: list[str] = []

    async def is_tier_three(self, discord_id: str) -> bool:
        self.calls.append(discord_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.failing:
            raise OracleFailure("Discord is down")
        if discord_id in self.missing:
            raise NoDiscordAccount(discord_id)
        return discord_id in self.tier_three


@pytest.fixture
async def engine(tmp_path):
    """File-backed SQLite per test so every session sees the same database."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def sessions(engine):
    return create_session_factory(engine)


@pytest.fixture
def links(sessions):
    return LinkStore(sessions)


@pytest.fixture
def auth_codes(sessions):
    return AuthCodeStore(sessions)


@pytest.fixture
def linking(sessions, links, auth_codes):
    return LinkingService(sessions, links, auth_codes)


@pytest.fixture
def oracle():
    return FakeOracle()


@pytest.fixture
async def client(linking, oracle):
    """Async HTTP client talking to a real aiohttp server on localhost."""
    app = create_app(linking, oracle, TOKEN, oracle_timeout=0.2)
    async with TestServer(app) as server:
        async with httpx.AsyncClient(base_url=str(server.make_url("/"))) as ac:
            yield ac


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {TOKEN}"}
