from __future__ import annotations

import httpx

from auth.token_refresher import TokenRefresher

from .constants import LOGGER, X_API_BASE_URL
from .http import RetryTransport, build_logging_hooks, friendly_error_message


class XApiError(RuntimeError):
    code = "x_api_error"
    status_code = 502

    def __init__(
        self,
        message: str,
        *,
        x_status_code: int | None = None,
        x_error: object = None,
        x_transaction_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.x_status_code = x_status_code
        self.x_error = x_error
        self.x_transaction_id = x_transaction_id


class XClient:
    """Thin client for the handful of X API v2 calls the bot makes.

    Every outgoing request is signed by a request hook that asks the
    TokenRefresher for a valid access token, so callers never handle tokens.
    Auth errors raised by the refresher propagate unchanged.
    """

    def __init__(
        self,
        refresher: TokenRefresher,
        *,
        base_url: str = X_API_BASE_URL,
        timeout: float = 30.0,
        max_retries: int = 2,
        transport: httpx.AsyncBaseTransport | None = None,
        debug: bool = False,
    ) -> None:
        self._refresher = refresher

        event_hooks: dict[str, list] = {"request": [self._sign_request], "response": []}
        if debug:
            logging_hooks = build_logging_hooks(LOGGER)
            event_hooks["request"].extend(logging_hooks["request"])
            event_hooks["response"].extend(logging_hooks["response"])

        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=RetryTransport(
                transport or httpx.AsyncHTTPTransport(),
                max_retries=max_retries,
                logger=LOGGER,
            ),
            event_hooks=event_hooks,
        )

    async def _sign_request(self, request: httpx.Request) -> None:
        access_token = await self._refresher.get_valid_access_token()
        request.headers["Authorization"] = f"Bearer {access_token}"

    async def _request(self, method: str, url: str, **kwargs) -> dict:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as error:
            raise XApiError(f"X API request failed: {error!r}") from error

        if response.status_code >= 400:
            try:
                raw_error = response.json()
            except ValueError:
                raw_error = {"raw": response.text}
            raise XApiError(
                friendly_error_message(response.status_code),
                x_status_code=response.status_code,
                x_error=raw_error,
                x_transaction_id=response.headers.get("x-transaction-id"),
            )

        return response.json()

    async def get_me(self) -> dict:
        payload = await self._request("GET", "/2/users/me")
        return payload["data"]

    async def create_post(self, text: str, *, quote_post_id: str | None = None) -> dict:
        body: dict[str, str] = {"text": text}
        if quote_post_id:
            body["quote_tweet_id"] = quote_post_id
        payload = await self._request("POST", "/2/tweets", json=body)
        return payload["data"]

    async def get_user_posts(self, user_id: str, *, max_results: int = 5) -> list[dict]:
        # X accepts between 5 and 100 results per page.
        max_results = min(max(max_results, 5), 100)
        payload = await self._request(
            "GET",
            f"/2/users/{user_id}/tweets",
            params={"max_results": max_results},
        )
        return payload.get("data", [])

    async def aclose(self) -> None:
        await self._client.aclose()
