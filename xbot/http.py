from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import httpx

from .constants import APP_VERSION, LOGGER

if TYPE_CHECKING:
    from fastmcp import FastMCP

    from auth.token_store import CredentialStore

IDEMPOTENT_METHODS = {"GET", "HEAD", "OPTIONS", "DELETE"}


class RetryTransport(httpx.AsyncBaseTransport):
    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        *,
        max_retries: int = 2,
        sleep=asyncio.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self._transport = transport
        self._max_retries = max(0, max_retries)
        self._sleep = sleep
        self._logger = logger or LOGGER

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        body = request.content
        retries = 0

        while True:
            next_request = httpx.Request(
                method=request.method,
                url=request.url,
                headers=request.headers,
                content=body,
                extensions=request.extensions,
            )
            response = await self._transport.handle_async_request(next_request)

            # Retrying a POST could publish the same post twice.
            if request.method not in IDEMPOTENT_METHODS:
                return response

            if 500 <= response.status_code < 600 and retries < self._max_retries:
                backoff_seconds = 2**retries
                self._logger.warning(
                    "Retrying %s after %ss (%s %s)",
                    response.status_code,
                    backoff_seconds,
                    request.method,
                    request.url,
                )
                await response.aclose()
                await self._sleep(backoff_seconds)
                retries += 1
                continue

            return response

    async def aclose(self) -> None:
        await self._transport.aclose()


def friendly_error_message(status_code: int) -> str:
    if status_code == 401:
        return "Authentication failed. The X account token may have expired."
    if status_code == 403:
        return "The X account doesn't have permission to perform this action."
    if status_code == 404:
        return "The requested resource was not found on X."
    if status_code == 429:
        return "X is rate limiting this account. Please try again later."
    if status_code >= 500:
        return "X API is experiencing issues. Please try again later."
    return f"X API request failed with status {status_code}."


def extract_bearer_token(authorization_header: str | None) -> str | None:
    if not authorization_header:
        return None
    scheme, _, token = authorization_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def build_logging_hooks(logger: logging.Logger | None = None) -> dict[str, list]:
    log = logger or LOGGER

    async def log_request(request: httpx.Request) -> None:
        log.info("X API request %s %s", request.method, request.url)

    async def log_response(response: httpx.Response) -> None:
        log.info(
            "X API response %s %s -> %s",
            response.request.method,
            response.request.url,
            response.status_code,
        )
        if response.status_code >= 400:
            transaction_id = response.headers.get("x-transaction-id")
            if transaction_id:
                log.warning("X API x-transaction-id: %s", transaction_id)
            body = await response.aread()
            text = body.decode("utf-8", errors="replace")
            if len(text) > 1000:
                text = text[:1000] + "...<truncated>"
            log.warning("X API error body: %s", text)

    return {"request": [log_request], "response": [log_response]}


def mount_health_route(mcp: "FastMCP", store: "CredentialStore") -> None:
    from starlette.requests import Request
    from starlette.responses import JSONResponse, Response

    @mcp.custom_route("/health", methods=["GET"])
    async def health_route(request: Request) -> Response:
        del request
        return JSONResponse(
            {
                "status": "ok",
                "version": APP_VERSION,
                "authenticated": await store.get() is not None,
            }
        )
