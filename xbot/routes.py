from __future__ import annotations

import secrets

from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response

from auth.auth_flow import AuthFlowCoordinator
from auth.errors import AuthError

from .bot import BotService, NothingToQuoteError
from .composer import ComposerError
from .http import extract_bearer_token
from .x_api import XApiError

HANDLED_ERRORS = (AuthError, XApiError, ComposerError, NothingToQuoteError)


class BotRoutes:
    def __init__(
        self,
        *,
        coordinator: AuthFlowCoordinator,
        bot: BotService,
        trigger_token: str | None = None,
    ) -> None:
        self.coordinator = coordinator
        self.bot = bot
        self.trigger_token = trigger_token or None

    def mount_routes(self, mcp) -> None:
        @mcp.custom_route("/auth", methods=["GET"])
        async def auth_route(request: Request) -> Response:
            return await self._handle_auth(request)

        @mcp.custom_route("/callback", methods=["GET"])
        async def callback_route(request: Request) -> Response:
            return await self._handle_callback(request)

        @mcp.custom_route("/tweet", methods=["POST"])
        async def tweet_route(request: Request) -> Response:
            return await self._handle_tweet(request)

        @mcp.custom_route("/quote", methods=["POST"])
        async def quote_route(request: Request) -> Response:
            return await self._handle_quote(request)

        @mcp.custom_route("/logout", methods=["POST"])
        async def logout_route(request: Request) -> Response:
            return await self._handle_logout(request)

    # -- handlers --------------------------------------------------------------

    async def _handle_auth(self, request: Request) -> Response:
        del request
        return RedirectResponse(url=self.coordinator.begin_auth(), status_code=302)

    async def _handle_callback(self, request: Request) -> Response:
        if request.query_params.get("error"):
            return self._error("x_oauth_error", "X authorization returned an error.", 400)

        try:
            await self.coordinator.complete_auth(
                request.query_params.get("state"),
                request.query_params.get("code"),
            )
            me = await self.bot.whoami()
        except HANDLED_ERRORS as error:
            return self._from_exception(error)

        username = me.get("username")
        return JSONResponse(
            {
                "status": "authenticated",
                "username": username,
                "message": f"Authentication successful! Welcome, {username}",
            }
        )

    async def _handle_tweet(self, request: Request) -> Response:
        denied = self._check_trigger_token(request)
        if denied is not None:
            return denied

        payload = await self._optional_json(request)
        if payload is None:
            return self._error("invalid_request", "Invalid JSON body.", 400)

        text = payload.get("text")
        topic = payload.get("topic")
        if text is not None and (not isinstance(text, str) or not text.strip()):
            return self._error("invalid_request", "text must be a non-empty string.", 400)
        if topic is not None and not isinstance(topic, str):
            return self._error("invalid_request", "topic must be a string.", 400)

        try:
            if text:
                created = await self.bot.publish_post(text.strip())
            else:
                created = await self.bot.post_generated(topic)
        except HANDLED_ERRORS as error:
            return self._from_exception(error)

        return JSONResponse({"status": "posted", "post": created}, status_code=201)

    async def _handle_quote(self, request: Request) -> Response:
        denied = self._check_trigger_token(request)
        if denied is not None:
            return denied

        try:
            created = await self.bot.quote_latest()
        except HANDLED_ERRORS as error:
            return self._from_exception(error)

        return JSONResponse({"status": "posted", "post": created}, status_code=201)

    async def _handle_logout(self, request: Request) -> Response:
        denied = self._check_trigger_token(request)
        if denied is not None:
            return denied

        await self.coordinator.logout()
        return JSONResponse({"status": "logged_out"})

    # -- helpers ---------------------------------------------------------------

    def _check_trigger_token(self, request: Request) -> Response | None:
        if self.trigger_token is None:
            return None
        token = extract_bearer_token(request.headers.get("authorization"))
        if token is None or not secrets.compare_digest(token, self.trigger_token):
            return self._error("unauthorized", "Missing or invalid trigger token.", 401)
        return None

    async def _optional_json(self, request: Request) -> dict | None:
        body = await request.body()
        if not body.strip():
            return {}
        try:
            payload = await request.json()
        except ValueError:
            return None
        if not isinstance(payload, dict):
            return None
        return payload

    def _from_exception(self, error: Exception) -> Response:
        return self._error(error.code, str(error), error.status_code)

    def _error(self, code: str, description: str, status_code: int) -> Response:
        return JSONResponse(
            {"error": code, "error_description": description},
            status_code=status_code,
        )
