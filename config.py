"""Configuration for the tier-three gate bot."""
from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Discord
DISCORD_TOKEN = os.getenv("DISCORD_TOKEN", "")
GUILD_ID = int(os.getenv("GUILD_ID", "0") or 0)  # Guild whose roles gate the Minecraft server

# Database
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"sqlite+aiosqlite:///{Path(__file__).parent / 'tierthree.db'}",
)

# Role IDs or names (comma-separated). Names are case-insensitive.
def _parse_role_ids(value: str) -> set[int]:
    if not value:
        return set()
    result = set()
    for x in value.split(","):
        try:
            result.add(int(x.strip()))
        except ValueError:
            continue
    return result


def _parse_role_names(value: str) -> set[str]:
    if not value:
        return set()
    return {x.strip().lower() for x in value.split(",") if x.strip()}


TIER_THREE_ROLE_IDS = _parse_role_ids(os.getenv("TIER_THREE_ROLE_IDS", ""))
TIER_THREE_ROLE_NAMES = _parse_role_names(os.getenv("TIER_THREE_ROLE_NAMES", "tier 3"))
ADMIN_ROLE_IDS = _parse_role_ids(os.getenv("ADMIN_ROLE_IDS", ""))
ADMIN_ROLE_NAMES = _parse_role_names(os.getenv("ADMIN_ROLE_NAMES", ""))

# User IDs that bypass admin role checks (when Members Intent fails to return roles)
ADMIN_USER_IDS = _parse_role_ids(os.getenv("ADMIN_USER_IDS", ""))

# Gameserver -> bot HTTP API
WEBSERVER_TOKEN = os.getenv("WEBSERVER_TOKEN", "")  # Static token gameservers send as "Bearer <token>"
WEBSERVER_HOST = os.getenv("WEBSERVER_HOST", "0.0.0.0")
WEBSERVER_PORT = int(os.getenv("WEBSERVER_PORT", "8001"))
ROLE_CHECK_TIMEOUT = float(os.getenv("ROLE_CHECK_TIMEOUT", "5"))  # Seconds before a role check fails closed
