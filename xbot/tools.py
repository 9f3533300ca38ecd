from __future__ import annotations

from mcp.types import ToolAnnotations

from .bot import BotService

READ_ONLY = ToolAnnotations(readOnlyHint=True, destructiveHint=False, openWorldHint=True)
PUBLISHING = ToolAnnotations(readOnlyHint=False, destructiveHint=False, openWorldHint=True)


def mount_tools(mcp, bot: BotService) -> None:
    """Expose the bot's actions as MCP tools next to the HTTP routes."""

    @mcp.tool(name="generate_post", annotations=READ_ONLY)
    async def generate_post(topic: str | None = None) -> dict:
        """Draft a post with the local language model without publishing it."""
        return {"text": await bot.composer.generate_post(topic)}

    @mcp.tool(name="publish_post", annotations=PUBLISHING)
    async def publish_post(text: str) -> dict:
        """Publish a post on the bot's X account."""
        return await bot.publish_post(text)

    @mcp.tool(name="quote_latest_post", annotations=PUBLISHING)
    async def quote_latest_post() -> dict:
        """Quote the newest post of a random favourite creator with a generated comment."""
        return await bot.quote_latest()
