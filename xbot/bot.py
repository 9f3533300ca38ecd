from __future__ import annotations

import logging
import random

from .composer import Composer
from .x_api import XClient

LOGGER = logging.getLogger("xbot.bot")


class NothingToQuoteError(RuntimeError):
    code = "nothing_to_quote"
    status_code = 404


class BotService:
    def __init__(
        self,
        *,
        x_client: XClient,
        composer: Composer,
        favorite_creators: list[str] | None = None,
        choice=random.choice,
    ) -> None:
        self.x_client = x_client
        self.composer = composer
        self.favorite_creators = list(favorite_creators or [])
        self._choice = choice

    async def whoami(self) -> dict:
        return await self.x_client.get_me()

    async def publish_post(self, text: str) -> dict:
        created = await self.x_client.create_post(text)
        LOGGER.info("Published post %s", created.get("id"))
        return created

    async def post_generated(self, topic: str | None = None) -> dict:
        text = await self.composer.generate_post(topic)
        return await self.publish_post(text)

    async def quote_latest(self) -> dict:
        """Quote the newest post of a randomly picked favourite creator."""
        if not self.favorite_creators:
            raise NothingToQuoteError("No favourite creators configured (XBOT_FAVORITE_CREATORS).")

        creator_id = self._choice(self.favorite_creators)
        posts = await self.x_client.get_user_posts(creator_id, max_results=5)
        if not posts:
            raise NothingToQuoteError(f"No posts found for creator {creator_id}.")

        latest = posts[0]
        comment = await self.composer.generate_quote(latest.get("text", ""))
        created = await self.x_client.create_post(comment, quote_post_id=latest["id"])
        LOGGER.info("Quoted post %s from creator %s as %s", latest["id"], creator_id, created.get("id"))
        return {**created, "quoted_post_id": latest["id"], "creator_id": creator_id}

    async def aclose(self) -> None:
        await self.x_client.aclose()
        await self.composer.aclose()
