from __future__ import annotations

import asyncio
import logging

from auth import x_oauth2
from auth.errors import NotAuthenticatedError, RefreshFailedError
from auth.token_store import CredentialStore, TokenSet

LOGGER = logging.getLogger("xbot.auth")


class TokenRefresher:
    """Hands out a usable X access token, refreshing it when it has expired.

    X rotates the refresh token on every use, so two refreshes racing on the
    same credential leave one of them holding a dead token. Refreshes are
    therefore single-flight: the first caller that finds the token expired
    starts a refresh task and every other caller awaits that same task. The
    task is shielded from its callers, so a cancelled request never discards
    a rotated refresh token.
    """

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        store: CredentialStore,
        refresh_margin_seconds: float = 0,
        timeout: float = x_oauth2.DEFAULT_TIMEOUT_SECONDS,
        refresh_token_fn=x_oauth2.refresh_token,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.store = store
        self.refresh_margin_seconds = refresh_margin_seconds
        self.timeout = timeout

        self._refresh_token_fn = refresh_token_fn
        self._lock = asyncio.Lock()
        self._refresh_task: asyncio.Task[TokenSet] | None = None

    @property
    def refreshing(self) -> bool:
        return self._refresh_task is not None

    async def get_valid_access_token(self) -> str:
        async with self._lock:
            token_set = await self.store.get()
            if token_set is None or not token_set.refresh_token:
                raise NotAuthenticatedError()

            if self._refresh_task is not None and self._refresh_task.done():
                self._refresh_task = None
            if self._refresh_task is None:
                if not token_set.is_expired(margin_seconds=self.refresh_margin_seconds):
                    return token_set.access_token
                LOGGER.info("X access token expired; refreshing")
                self._refresh_task = asyncio.create_task(self._refresh(token_set))
                self._refresh_task.add_done_callback(self._on_refresh_done)
            task = self._refresh_task

        refreshed = await asyncio.shield(task)
        return refreshed.access_token

    async def aclose(self) -> None:
        task = self._refresh_task
        if task is None:
            return
        await asyncio.wait([task])

    async def _refresh(self, token_set: TokenSet) -> TokenSet:
        try:
            refreshed = await self._refresh_token_fn(
                client_id=self.client_id,
                client_secret=self.client_secret,
                refresh_token=token_set.refresh_token,
                timeout=self.timeout,
            )
        except Exception as error:
            retryable = isinstance(error, x_oauth2.TokenRequestError) and error.retryable
            LOGGER.warning("X token refresh failed (retryable=%s): %s", retryable, error)
            if retryable:
                message = f"X token refresh failed; try again later: {error}"
            else:
                message = f"X refresh token expired or revoked; re-auth required: {error}"
            raise RefreshFailedError(message, retryable=retryable) from error

        new_token_set = TokenSet.from_token_response(refreshed)
        try:
            replaced = await self.store.replace(token_set, new_token_set)
        except Exception as error:
            # X already rotated the refresh token, so the stored one is dead.
            LOGGER.error("Could not store refreshed X credential; re-auth required: %s", error)
            raise RefreshFailedError(
                f"Refreshed X credential could not be stored; re-auth required: {error}"
            ) from error

        if replaced:
            LOGGER.info("X access token refreshed; expires at %.0f", new_token_set.expires_at)
            return new_token_set

        # A logout or a new login landed while the refresh was in flight.
        LOGGER.info("X credential changed during refresh; discarding refreshed tokens")
        current = await self.store.get()
        if current is None:
            raise NotAuthenticatedError()
        return current

    def _on_refresh_done(self, task: asyncio.Task[TokenSet]) -> None:
        if self._refresh_task is task:
            self._refresh_task = None
        if not task.cancelled():
            # Marks the exception retrieved when every caller has gone away.
            task.exception()
