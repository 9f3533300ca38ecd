from __future__ import annotations

import os
from typing import TYPE_CHECKING

from xbot.constants import (
    APP_VERSION,
    DEFAULT_HOST,
    DEFAULT_LLM_MODEL,
    DEFAULT_LLM_URL,
    DEFAULT_PORT,
    X_API_BASE_URL,
)
from xbot.env import (
    get_env_float,
    get_env_int,
    get_redirect_uri,
    get_scopes,
    load_env,
    parse_csv_env,
    setup_logging,
    validate_env,
)
from xbot.http import RetryTransport, mount_health_route

if TYPE_CHECKING:
    from fastmcp import FastMCP

__all__ = [
    "APP_VERSION",
    "RetryTransport",
    "build_credential_store",
    "create_app",
    "load_env",
    "main",
    "parse_csv_env",
    "setup_logging",
    "validate_env",
]


def build_credential_store():
    from auth.token_store import FileCredentialStore, MemoryCredentialStore

    path = os.getenv("X_TOKEN_STORE_PATH", "").strip()
    if path:
        return FileCredentialStore(path)
    return MemoryCredentialStore()


def create_app() -> "FastMCP":
    from fastmcp import FastMCP

    from auth.auth_flow import AuthFlowCoordinator
    from auth.pending_registry import PendingAuthRegistry
    from auth.token_refresher import TokenRefresher
    from xbot.bot import BotService
    from xbot.composer import Composer
    from xbot.routes import BotRoutes
    from xbot.tools import mount_tools
    from xbot.x_api import XClient

    load_env()
    debug_enabled = setup_logging()
    validate_env()

    client_id = os.getenv("X_OAUTH2_CLIENT_ID", "").strip()
    client_secret = os.getenv("X_OAUTH2_CLIENT_SECRET", "").strip()
    oauth_timeout = get_env_float("X_OAUTH2_TIMEOUT", 30.0)

    store = build_credential_store()
    coordinator = AuthFlowCoordinator(
        client_id=client_id,
        client_secret=client_secret,
        redirect_uri=get_redirect_uri(),
        store=store,
        pending=PendingAuthRegistry(),
        scopes=get_scopes(),
        timeout=oauth_timeout,
    )
    refresher = TokenRefresher(
        client_id=client_id,
        client_secret=client_secret,
        store=store,
        refresh_margin_seconds=get_env_float("X_TOKEN_REFRESH_MARGIN", 0.0),
        timeout=oauth_timeout,
    )

    x_client = XClient(
        refresher,
        base_url=os.getenv("X_API_BASE_URL", X_API_BASE_URL),
        timeout=get_env_float("X_API_TIMEOUT", 30.0),
        max_retries=get_env_int("X_API_MAX_RETRIES", 2),
        debug=debug_enabled,
    )
    composer = Composer(
        url=os.getenv("XBOT_LLM_URL", DEFAULT_LLM_URL),
        model=os.getenv("XBOT_LLM_MODEL", DEFAULT_LLM_MODEL),
        timeout=get_env_float("XBOT_LLM_TIMEOUT", 60.0),
    )
    bot = BotService(
        x_client=x_client,
        composer=composer,
        favorite_creators=parse_csv_env("XBOT_FAVORITE_CREATORS"),
    )

    mcp = FastMCP(name="xbot")
    routes = BotRoutes(
        coordinator=coordinator,
        bot=bot,
        trigger_token=os.getenv("XBOT_TRIGGER_TOKEN", "").strip() or None,
    )
    routes.mount_routes(mcp)
    mount_tools(mcp, bot)
    mount_health_route(mcp, store)

    setattr(mcp, "_coordinator", coordinator)
    setattr(mcp, "_refresher", refresher)
    setattr(mcp, "_bot", bot)
    return mcp


def main() -> None:
    host = os.getenv("XBOT_HOST", DEFAULT_HOST)
    port = int(os.getenv("XBOT_PORT", str(DEFAULT_PORT)))
    mcp = create_app()
    mcp.run(transport="streamable-http", host=host, port=port)


if __name__ == "__main__":
    main()
