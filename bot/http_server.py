"""HTTP server gameservers call to check whether a player may join."""
from __future__ import annotations

import asyncio
import functools
import hmac
import logging

import aiohttp.web

import config
from bot.errors import MalformedRequest, NoDiscordAccount, OracleFailure, Unauthorized
from bot.services.linking import LinkingService, normalize_mc_id

logger = logging.getLogger("tierthree.http")

VALID = {"valid": True}
NOT_VALID = {"valid": False}
NO_LINK = {"valid": False, "reason": "no_link"}
NO_ROLE = {"valid": False, "reason": "no_role"}


def _check_token(auth: str | None, expected: str) -> None:
    """Raise Unauthorized(203) for a missing/malformed header, Unauthorized(401) for a wrong token."""
    if not auth:
        raise Unauthorized(203)
    parts = auth.split(" ")
    if len(parts) < 2:
        raise Unauthorized(203)
    token = parts[1]
    if not expected or not hmac.compare_digest(token.encode(), expected.encode()):
        raise Unauthorized(401)


@aiohttp.web.middleware
async def fail_closed(request: aiohttp.web.Request, handler) -> aiohttp.web.StreamResponse:
    """Any unhandled error answers 500 with a not-valid body."""
    try:
        return await handler(request)
    except aiohttp.web.HTTPException:
        raise
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return aiohttp.web.json_response(NOT_VALID, status=500)


@aiohttp.web.middleware
async def check_auth(request: aiohttp.web.Request, handler) -> aiohttp.web.StreamResponse:
    """Authorize every request before it reaches a handler."""
    try:
        _check_token(request.headers.get("Authorization"), request.app["token"])
    except Unauthorized as e:
        return aiohttp.web.Response(status=e.status)
    return await handler(request)


async def _read_player_id(request: aiohttp.web.Request) -> str:
    if not request.body_exists:
        raise MalformedRequest("NO_BODY", "A JSON body is required")
    try:
        body = await request.json()
    except ValueError:
        raise MalformedRequest("NO_BODY", "A JSON body is required") from None
    if not isinstance(body, dict):
        raise MalformedRequest("NO_BODY", "A JSON body is required")

    player_id = body.get("player_id")
    if player_id is None:
        raise MalformedRequest("NO_PLAYER_ID", "player_id is missing from the body")
    if not isinstance(player_id, str):
        raise MalformedRequest("PLAYER_ID_TYPE", "player_id must be a string")
    return normalize_mc_id(player_id)


def requires_player_id(handler):
    """Validate the body and put the normalised player id on request["player_id"]."""

    @functools.wraps(handler)
    async def wrapper(request: aiohttp.web.Request) -> aiohttp.web.StreamResponse:
        try:
            request["player_id"] = await _read_player_id(request)
        except MalformedRequest as e:
            return aiohttp.web.json_response(e.to_dict(), status=400)
        return await handler(request)

    return wrapper


@requires_player_id
async def _handle_is_valid_player(request: aiohttp.web.Request) -> aiohttp.web.Response:
    """POST /isValidPlayer - Is this Minecraft player linked to a tier three Discord member?"""
    player_id = request["player_id"]
    linking: LinkingService = request.app["linking"]

    discord_id = await linking.links.resolve_discord_id(player_id)
    if discord_id is None:
        return aiohttp.web.json_response(NO_LINK)

    try:
        is_tier_three = await asyncio.wait_for(
            request.app["oracle"].is_tier_three(discord_id),
            timeout=request.app["oracle_timeout"],
        )
    except NoDiscordAccount:
        return aiohttp.web.json_response(NO_ROLE)
    except (OracleFailure, asyncio.TimeoutError):
        logger.exception("Role check failed for player %s (discord %s)", player_id, discord_id)
        return aiohttp.web.json_response(NOT_VALID, status=500)

    return aiohttp.web.json_response(VALID if is_tier_three else NO_ROLE)


@requires_player_id
async def _handle_get_auth_code(request: aiohttp.web.Request) -> aiohttp.web.Response:
    """POST /getAuthCode - Issue the code a player types into Discord with /link."""
    linking: LinkingService = request.app["linking"]
    code = await linking.request_code(request["player_id"])
    return aiohttp.web.json_response({"auth_code": code})


def create_app(
    linking: LinkingService,
    oracle,
    token: str,
    oracle_timeout: float = 5.0,
) -> aiohttp.web.Application:
    """Create aiohttp app with the linking service and role oracle."""
    app = aiohttp.web.Application(middlewares=[fail_closed, check_auth])
    app["linking"] = linking
    app["oracle"] = oracle
    app["token"] = token
    app["oracle_timeout"] = oracle_timeout
    app.router.add_post("/isValidPlayer", _handle_is_valid_player)
    app.router.add_post("/getAuthCode", _handle_get_auth_code)
    return app


async def start_http_server(
    linking: LinkingService,
    oracle,
    host: str = "0.0.0.0",
    port: int = 8001,
) -> aiohttp.web.AppRunner | None:
    """Start the HTTP server (runs alongside the bot). Returns the runner for cleanup."""
    if not config.WEBSERVER_TOKEN:
        logger.warning("WEBSERVER_TOKEN not set - skipping HTTP server")
        return None
    app = create_app(linking, oracle, config.WEBSERVER_TOKEN, config.ROLE_CHECK_TIMEOUT)
    runner = aiohttp.web.AppRunner(app)
    await runner.setup()
    site = aiohttp.web.TCPSite(runner, host, port)
    await site.start()
    logger.info("HTTP server listening on %s:%d", host, port)
    return runner
