from __future__ import annotations

import logging
import random
import re

import httpx

from .constants import DEFAULT_LLM_MODEL, DEFAULT_LLM_URL, DEFAULT_TOPICS, MAX_POST_LENGTH

LOGGER = logging.getLogger("xbot.composer")

POST_PROMPT = (
    "Write an engaging and authentic tweet about: {topic}. "
    "reply the tweet only without any hashtags"
)
QUOTE_PROMPT = (
    "Write a short, authentic reaction to this tweet, to be posted as a quote tweet. "
    "reply the reaction only without any hashtags.\n\nTweet: {text}"
)

_HASHTAG_RE = re.compile(r"(?:^|\s)#\w+")
_QUOTES = "\"'“”"


class ComposerError(RuntimeError):
    code = "composer_failed"
    status_code = 502


def clean_post_text(raw: str, *, limit: int = MAX_POST_LENGTH) -> str:
    text = raw.strip()
    if len(text) >= 2 and text[0] in _QUOTES and text[-1] in _QUOTES:
        text = text[1:-1].strip()
    text = _HASHTAG_RE.sub("", text).strip()

    if len(text) <= limit:
        return text
    clipped = text[: limit - 1]
    if " " in clipped:
        clipped = clipped.rsplit(" ", 1)[0]
    return clipped.rstrip() + "…"


class Composer:
    """Generates post text with a local Ollama model."""

    def __init__(
        self,
        *,
        url: str = DEFAULT_LLM_URL,
        model: str = DEFAULT_LLM_MODEL,
        topics: tuple[str, ...] | list[str] | None = None,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
        choice=random.choice,
    ) -> None:
        self.url = url
        self.model = model
        self.topics = tuple(topics or DEFAULT_TOPICS)
        self._choice = choice
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    def pick_topic(self) -> str:
        return self._choice(self.topics)

    async def generate_post(self, topic: str | None = None) -> str:
        topic = topic or self.pick_topic()
        LOGGER.info("Generating post about %r", topic)
        return await self._generate(POST_PROMPT.format(topic=topic))

    async def generate_quote(self, text: str) -> str:
        return await self._generate(QUOTE_PROMPT.format(text=text))

    async def _generate(self, prompt: str) -> str:
        try:
            response = await self._client.post(
                self.url,
                json={"model": self.model, "prompt": prompt, "stream": False},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as error:
            raise ComposerError(
                f"Language model returned status {error.response.status_code}: "
                f"{error.response.text}"
            ) from error
        except httpx.HTTPError as error:
            raise ComposerError(f"Language model request failed: {error!r}") from error
        except ValueError as error:
            raise ComposerError("Language model response is not JSON.") from error

        generated = payload.get("response") if isinstance(payload, dict) else None
        if not isinstance(generated, str):
            raise ComposerError("Language model response missing 'response' text.")

        text = clean_post_text(generated)
        if not text:
            raise ComposerError("Language model returned an empty post.")
        LOGGER.info("Generated post: %s", text)
        return text

    async def aclose(self) -> None:
        await self._client.aclose()
